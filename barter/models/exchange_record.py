"""
Modelo ORM para el historial de intercambios realizados.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from uuid import UUID
from barter.db.base import Base, utcnow


class ExchangeRecord(Base):
    """
    Comprobante inmutable de un intercambio completado.

    offer_a pertenece a user_a y offer_b a user_b. Los títulos se copian al
    registrar para que el historial sobreviva a la eliminación de las ofertas.
    """

    __tablename__ = "exchange_records"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    chat_id = Column(Uuid(as_uuid=True), ForeignKey("chats.id", ondelete="RESTRICT"), nullable=False, index=True)
    user_a = Column(Uuid(as_uuid=True), nullable=False, index=True)
    user_b = Column(Uuid(as_uuid=True), nullable=False, index=True)
    offer_a_id = Column(Uuid(as_uuid=True), ForeignKey("offers.id", ondelete="SET NULL"))
    offer_b_id = Column(Uuid(as_uuid=True), ForeignKey("offers.id", ondelete="SET NULL"))
    offer_a_title = Column(String(200), nullable=False)
    offer_b_title = Column(String(200), nullable=False)
    realized_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    # Constraints
    __table_args__ = (
        UniqueConstraint('chat_id', 'offer_a_id', 'offer_b_id', name='uq_exchange_record_offers'),
    )

    # Relationships
    chat = relationship("Chat", back_populates="exchange_records")

    def __repr__(self):
        return f"<ExchangeRecord {self.id} chat={self.chat_id}>"

    def get_other_user_id(self, current_user_id: UUID) -> UUID:
        """Obtener el ID de la contraparte del intercambio."""
        return self.user_b if self.user_a == current_user_id else self.user_a
