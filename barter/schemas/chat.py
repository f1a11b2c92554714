"""
Schemas para chats.
"""
from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime

from barter.models.chat import ChatStatus
from barter.models.interest import InterestStatus


class ChatResponse(BaseModel):
    """Schema de respuesta de chat."""

    id: UUID
    user_a: UUID
    user_b: UUID
    status: ChatStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class ChatInterestState(BaseModel):
    """Estado de uno de los intereses del par dentro de un chat."""

    interest_id: UUID
    offer_id: UUID
    status: InterestStatus
    realized_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ChatDetailResponse(ChatResponse):
    """Chat con el estado de los intereses de ambas partes."""

    other_user_id: UUID
    current_interest: Optional[ChatInterestState] = None
    other_interest: Optional[ChatInterestState] = None
    other_confirmed: bool = False

    model_config = {"from_attributes": True}
