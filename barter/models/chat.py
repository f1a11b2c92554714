"""
Modelo ORM para Chats entre dos usuarios.
"""
from sqlalchemy import Column, DateTime, Enum, CheckConstraint, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
import uuid
from uuid import UUID
from barter.db.base import Base, utcnow


class ChatStatus(str, enum.Enum):
    """Estados de un chat."""
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class Chat(Base):
    """
    Conversación persistente entre exactamente dos usuarios.

    Los participantes se guardan en orden canónico (user_a < user_b), así un
    par no ordenado corresponde a una sola fila.
    """

    __tablename__ = "chats"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_a = Column(Uuid(as_uuid=True), nullable=False, index=True)
    user_b = Column(Uuid(as_uuid=True), nullable=False, index=True)
    status = Column(Enum(ChatStatus, name="chat_status"), nullable=False, default=ChatStatus.ACTIVE)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    # Constraints
    __table_args__ = (
        UniqueConstraint('user_a', 'user_b', name='uq_chat_pair'),
        CheckConstraint('user_a < user_b', name='check_chat_pair_ordered'),
    )

    # Relationships
    exchange_records = relationship("ExchangeRecord", back_populates="chat")

    def __repr__(self):
        return f"<Chat {self.id} between {self.user_a} and {self.user_b}>"

    def has_participant(self, user_id: UUID) -> bool:
        """Verificar si el usuario participa en el chat."""
        return user_id in (self.user_a, self.user_b)

    def get_other_user_id(self, current_user_id: UUID) -> UUID:
        """Obtener el ID del otro usuario en el chat."""
        return self.user_b if self.user_a == current_user_id else self.user_a
