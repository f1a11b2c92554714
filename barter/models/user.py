"""
Modelo ORM para Usuarios.

La tabla pertenece al sistema de cuentas; el núcleo solo la lee para
resolver nombres y como destino de las foreign keys.
"""
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from barter.db.base import Base, utcnow


class User(Base):
    """Modelo de Usuarios del sistema."""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    # Relationships
    offers = relationship("Offer", back_populates="owner")
    interests = relationship("Interest", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.id}>"

    @property
    def full_name(self) -> str:
        """Nombre completo (vacío si no hay datos de perfil)."""
        return f"{self.first_name} {self.last_name}".strip()
