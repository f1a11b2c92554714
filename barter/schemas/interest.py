"""
Schemas para intereses en ofertas.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from barter.models.interest import InterestStatus


class InterestResponse(BaseModel):
    """Schema de respuesta de interés."""

    id: UUID
    offer_id: UUID
    user_id: UUID
    status: InterestStatus
    realized_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class OfferInterestResponse(InterestResponse):
    """Interés visto por el dueño de la oferta (incluye nombre del interesado)."""

    user_name: Optional[str] = None

    model_config = {"from_attributes": True}


class MyInterestResponse(InterestResponse):
    """Interés visto por quien lo expresó (incluye datos de la oferta)."""

    offer_title: Optional[str] = None
    offer_owner_id: Optional[UUID] = None

    model_config = {"from_attributes": True}


class ExpressInterestResponse(InterestResponse):
    """Respuesta al expresar interés; ``chat_id`` presente si hubo match mutuo."""

    chat_id: Optional[UUID] = None
    message: Optional[str] = None

    model_config = {"from_attributes": True}


class MatchOutcome(BaseModel):
    """Resultado de evaluar un interés en busca de reciprocidad."""

    matched: bool = False
    chat_id: Optional[UUID] = None
    promoted_interest_ids: List[UUID] = Field(default_factory=list)


class RealizationOutcome(BaseModel):
    """Resultado de confirmar la realización de un interés."""

    interest: InterestResponse
    completed: bool = False
    exchange_record_id: Optional[UUID] = None
    message: str
