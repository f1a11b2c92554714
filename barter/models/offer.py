"""
Modelo ORM para Ofertas.
"""
from sqlalchemy import Column, String, DateTime, Enum, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
import uuid
from barter.db.base import Base, utcnow


class OfferStatus(str, enum.Enum):
    """Estados de una oferta. REMOVED es el borrado suave."""
    ACTIVE = "ACTIVE"
    REMOVED = "REMOVED"


class Offer(Base):
    """Modelo de Ofertas (objetos o servicios publicados para trueque)."""

    __tablename__ = "offers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    status = Column(Enum(OfferStatus, name="offer_status"), nullable=False, default=OfferStatus.ACTIVE, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    # Relationships
    owner = relationship("User", back_populates="offers")
    interests = relationship("Interest", back_populates="offer", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Offer {self.title} by user {self.owner_id}>"

    def is_active(self) -> bool:
        """Verificar si la oferta está activa."""
        return self.status == OfferStatus.ACTIVE
