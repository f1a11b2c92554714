"""
Modelo ORM para Intereses en ofertas.
"""
from sqlalchemy import Column, DateTime, Enum, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
import uuid
from barter.db.base import Base, utcnow


class InterestStatus(str, enum.Enum):
    """
    Ciclo de vida de un interés.

    PROPOSED -> ACCEPTED (match mutuo) -> REALIZED -> ACCEPTED (unrealize).
    """
    PROPOSED = "PROPOSED"
    ACCEPTED = "ACCEPTED"
    REALIZED = "REALIZED"


LIVE_INTEREST_STATUSES = (
    InterestStatus.PROPOSED,
    InterestStatus.ACCEPTED,
    InterestStatus.REALIZED,
)


class Interest(Base):
    """Interés de un usuario en recibir una oferta ajena (uno por par oferta/usuario)."""

    __tablename__ = "interests"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    offer_id = Column(Uuid(as_uuid=True), ForeignKey("offers.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(Enum(InterestStatus, name="interest_status"), nullable=False, default=InterestStatus.PROPOSED, index=True)
    realized_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    # Constraints
    __table_args__ = (
        UniqueConstraint('offer_id', 'user_id', name='uq_interest_offer_user'),
    )

    # Relationships
    offer = relationship("Offer", back_populates="interests")
    user = relationship("User", back_populates="interests")

    def __repr__(self):
        return f"<Interest user={self.user_id} offer={self.offer_id} status={self.status}>"
