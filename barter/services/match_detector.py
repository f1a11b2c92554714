"""
Detector de match mutuo.

Hay match cuando el dueño de la oferta (B) tiene a su vez un interés vivo en
alguna oferta del interesado (A). En ese caso todos los intereses del par que
sigan en PROPOSED pasan a ACCEPTED y se asegura el chat del par.
"""
import logging
from sqlalchemy.orm import Session

from barter.crud.interest import interest as crud_interest
from barter.models.interest import Interest, InterestStatus
from barter.schemas.interest import MatchOutcome
from barter.services.chat_allocator import ensure_chat

logger = logging.getLogger(__name__)


def evaluate(db: Session, interest: Interest) -> MatchOutcome:
    """
    Evaluar un interés recién creado (o reevaluado) en busca de reciprocidad.

    Args:
        db: Sesión de base de datos (dentro de la transacción del llamador)
        interest: Interés a evaluar

    Returns:
        MatchOutcome con el chat del par y los intereses promovidos
    """
    user_id = interest.user_id
    owner_id = interest.offer.owner_id

    reciprocal = crud_interest.get_between(db, user_id=owner_id, owner_id=user_id)
    if not reciprocal:
        return MatchOutcome(matched=False)

    own = crud_interest.get_between(db, user_id=user_id, owner_id=owner_id)

    promoted = []
    for candidate in own + reciprocal:
        if candidate.status == InterestStatus.PROPOSED:
            crud_interest.set_status(db, interest=candidate, status=InterestStatus.ACCEPTED)
            promoted.append(candidate.id)

    chat = ensure_chat(db, user_id, owner_id)
    logger.info(
        f"Match mutuo entre {user_id} y {owner_id}: "
        f"{len(promoted)} intereses aceptados, chat {chat.id}"
    )
    return MatchOutcome(matched=True, chat_id=chat.id, promoted_interest_ids=promoted)
