"""
Historiador de intercambios: escribe el comprobante inmutable cuando ambos
intereses de un par de ofertas quedan REALIZED.
"""
import logging
from datetime import datetime, timezone
from typing import Dict
from uuid import UUID
from sqlalchemy.orm import Session

from barter.core.exceptions import InternalException
from barter.core.pairs import canonical_pair
from barter.crud.exchange_record import exchange_record as crud_exchange_record
from barter.models.exchange_record import ExchangeRecord
from barter.models.interest import Interest
from barter.schemas.exchange import ExchangeHistoryItem, ExchangeOfferSummary, ExchangeUserSummary
from barter.services.chat_allocator import get_chat_for_pair

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite devuelve fechas sin zona horaria
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def record_completed_exchange(db: Session, interest_a: Interest, interest_b: Interest) -> ExchangeRecord:
    """
    Registrar un intercambio completado (idempotente).

    Si dos confirmaciones concurrentes detectan la finalización, la restricción
    única (chat, oferta A, oferta B) garantiza un solo registro.

    Args:
        db: Sesión de base de datos (dentro de la transacción del llamador)
        interest_a: Interés de un participante (REALIZED)
        interest_b: Interés espejo del otro participante (REALIZED)

    Returns:
        Registro de intercambio (nuevo o existente)

    Raises:
        InternalException: Si el par no tiene chat (el match mutuo es precondición)
    """
    user_a, user_b = canonical_pair(interest_a.user_id, interest_b.user_id)

    chat = get_chat_for_pair(db, user_a, user_b)
    if chat is None:
        logger.error(f"Intercambio completado sin chat para el par {user_a}/{user_b}")
        raise InternalException("No existe chat para el par que completó el intercambio")

    # Cada usuario recibe la oferta del otro: la oferta de user_a es la que quería el otro
    offers_by_owner = {
        interest_a.offer.owner_id: interest_a.offer,
        interest_b.offer.owner_id: interest_b.offer,
    }
    offer_a = offers_by_owner[user_a]
    offer_b = offers_by_owner[user_b]

    record = crud_exchange_record.insert_once(db, obj_in={
        "chat_id": chat.id,
        "user_a": user_a,
        "user_b": user_b,
        "offer_a_id": offer_a.id,
        "offer_b_id": offer_b.id,
        "offer_a_title": offer_a.title,
        "offer_b_title": offer_b.title,
        "realized_at": max(_as_utc(interest_a.realized_at), _as_utc(interest_b.realized_at)),
    })
    logger.info(f"Intercambio {record.id} registrado en chat {chat.id}")
    return record


def build_history_item(
    record: ExchangeRecord, viewer_id: UUID, names: Dict[UUID, str]
) -> ExchangeHistoryItem:
    """
    Presentar un registro desde el punto de vista de uno de los participantes.

    Args:
        record: Registro de intercambio
        viewer_id: Usuario que consulta su historial
        names: Mapa id -> nombre de usuario

    Returns:
        ExchangeHistoryItem con mi oferta, la del otro y la contraparte
    """
    a_side = ExchangeOfferSummary(id=record.offer_a_id, title=record.offer_a_title)
    b_side = ExchangeOfferSummary(id=record.offer_b_id, title=record.offer_b_title)
    viewer_is_a = record.user_a == viewer_id
    other_id = record.get_other_user_id(viewer_id)

    return ExchangeHistoryItem.model_validate({
        "id": record.id,
        "chat_id": record.chat_id,
        "user_a": record.user_a,
        "user_b": record.user_b,
        "offer_a_id": record.offer_a_id,
        "offer_a_title": record.offer_a_title,
        "offer_b_id": record.offer_b_id,
        "offer_b_title": record.offer_b_title,
        "realized_at": record.realized_at,
        "other_user": ExchangeUserSummary(id=other_id, name=names.get(other_id, "")),
        "my_offer": a_side if viewer_is_a else b_side,
        "their_offer": b_side if viewer_is_a else a_side,
    })
