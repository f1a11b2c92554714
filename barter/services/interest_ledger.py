"""
Registro de intereses: alta, cancelación y consultas.

Toda escritura se valida antes de modificar nada; la evaluación de match
ocurre en la misma transacción que la inserción.
"""
import logging
from typing import List, Tuple
from uuid import UUID
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from barter.core.exceptions import (
    AlreadyRealizedException,
    DuplicateInterestException,
    ForbiddenException,
    NotFoundException,
    OfferUnavailableException,
    SelfInterestException,
)
from barter.crud.interest import interest as crud_interest
from barter.crud.offer import offer as crud_offer
from barter.models.interest import Interest, InterestStatus
from barter.schemas.interest import MatchOutcome, MyInterestResponse, OfferInterestResponse
from barter.services import match_detector

logger = logging.getLogger(__name__)


def express_interest(db: Session, offer_id: UUID, user_id: UUID) -> Tuple[Interest, MatchOutcome]:
    """
    Registrar el interés de un usuario en una oferta y evaluar el match.

    Args:
        db: Sesión de base de datos (dentro de la transacción del llamador)
        offer_id: ID de la oferta
        user_id: ID del usuario interesado

    Returns:
        Tupla (interés creado, resultado de la evaluación de match)

    Raises:
        NotFoundException: Si la oferta no existe
        OfferUnavailableException: Si la oferta fue retirada
        SelfInterestException: Si el usuario es dueño de la oferta
        DuplicateInterestException: Si ya existe un interés para el par
    """
    offer = crud_offer.get(db, offer_id)
    if offer is None:
        raise NotFoundException("Oferta no encontrada")
    if offer.owner_id == user_id:
        raise SelfInterestException()
    if not offer.is_active():
        raise OfferUnavailableException()

    if crud_interest.get_by_offer_and_user(db, offer_id=offer_id, user_id=user_id) is not None:
        raise DuplicateInterestException()

    try:
        with db.begin_nested():
            interest = crud_interest.create_proposed(db, offer_id=offer_id, user_id=user_id)
    except IntegrityError:
        raise DuplicateInterestException()

    logger.info(f"Interés {interest.id} de {user_id} en oferta {offer_id}")
    outcome = match_detector.evaluate(db, interest)
    return interest, outcome


def cancel_interest(db: Session, interest: Interest, by_user_id: UUID) -> None:
    """
    Cancelar (eliminar) un interés PROPOSED o ACCEPTED.

    El interés recíproco, si existe, conserva su estado.

    Raises:
        ForbiddenException: Si el usuario no es dueño del interés
        AlreadyRealizedException: Si el interés ya fue realizado
    """
    if interest.user_id != by_user_id:
        raise ForbiddenException("No puedes eliminar este interés")
    if interest.status == InterestStatus.REALIZED:
        raise AlreadyRealizedException("No se puede cancelar un interés ya realizado")

    crud_interest.remove(db, db_obj=interest)
    logger.info(f"Interés {interest.id} cancelado por {by_user_id}")


def list_interests_for_offer(db: Session, offer_id: UUID) -> List[OfferInterestResponse]:
    """Intereses de una oferta con el nombre de cada interesado."""
    responses = []
    for item in crud_interest.get_by_offer(db, offer_id=offer_id):
        response = OfferInterestResponse.model_validate(item)
        response.user_name = item.user.full_name if item.user else None
        responses.append(response)
    return responses


def list_interests_for_user(db: Session, user_id: UUID) -> List[MyInterestResponse]:
    """Intereses expresados por un usuario con título y dueño de cada oferta."""
    responses = []
    for item in crud_interest.get_by_user(db, user_id=user_id):
        response = MyInterestResponse.model_validate(item)
        response.offer_title = item.offer.title if item.offer else None
        response.offer_owner_id = item.offer.owner_id if item.offer else None
        responses.append(response)
    return responses
