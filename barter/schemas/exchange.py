"""
Schemas para el historial de intercambios.
"""
from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime


class ExchangeRecordResponse(BaseModel):
    """Schema de respuesta de un registro de intercambio."""

    id: UUID
    chat_id: UUID
    user_a: UUID
    user_b: UUID
    offer_a_id: Optional[UUID] = None
    offer_a_title: str
    offer_b_id: Optional[UUID] = None
    offer_b_title: str
    realized_at: datetime

    model_config = {"from_attributes": True}


class ExchangeUserSummary(BaseModel):
    """Resumen de un usuario dentro del historial."""

    id: UUID
    name: str


class ExchangeOfferSummary(BaseModel):
    """Resumen de una oferta dentro del historial (título copiado)."""

    id: Optional[UUID] = None
    title: str


class ExchangeHistoryItem(ExchangeRecordResponse):
    """Registro de historial visto desde uno de los participantes."""

    other_user: ExchangeUserSummary
    my_offer: ExchangeOfferSummary
    their_offer: ExchangeOfferSummary

    model_config = {"from_attributes": True}
