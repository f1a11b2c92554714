"""
Seguimiento de la realización de intercambios.

Cada parte confirma (realize) o retira su confirmación (unrealize) de forma
independiente. Cuando el interés y su espejo quedan ambos en REALIZED el
intercambio se registra y ninguna de las dos partes puede retractarse.
"""
import logging
from typing import Optional
from uuid import UUID
from sqlalchemy.orm import Session

from barter.core.exceptions import (
    AlreadyCompletedException,
    AlreadyRealizedException,
    BadStatusException,
    ForbiddenException,
)
from barter.crud.exchange_record import exchange_record as crud_exchange_record
from barter.crud.interest import interest as crud_interest
from barter.db.base import utcnow
from barter.models.interest import Interest, InterestStatus
from barter.schemas.interest import InterestResponse, RealizationOutcome
from barter.services.exchange_historian import record_completed_exchange

logger = logging.getLogger(__name__)


def find_mirror(db: Session, interest: Interest) -> Optional[Interest]:
    """
    Buscar el interés espejo: el de la contraparte en una oferta del usuario.

    Solo se consideran espejos ACCEPTED o REALIZED cuya oferta no forme parte
    ya de un intercambio registrado del par. Se prefiere uno REALIZED y, a
    igualdad, el más antiguo.

    Args:
        db: Sesión de base de datos
        interest: Interés de referencia

    Returns:
        Interés espejo o None
    """
    owner_id = interest.offer.owner_id
    candidates = crud_interest.get_between(
        db,
        user_id=owner_id,
        owner_id=interest.user_id,
        statuses=(InterestStatus.ACCEPTED, InterestStatus.REALIZED),
    )
    candidates = [
        c for c in candidates
        if not crud_exchange_record.is_offer_settled(
            db, user_a=interest.user_id, user_b=owner_id, offer_id=c.offer_id
        )
    ]
    if not candidates:
        return None

    candidates.sort(key=lambda c: c.status != InterestStatus.REALIZED)
    return candidates[0]


def realize(db: Session, interest: Interest, by_user_id: UUID) -> RealizationOutcome:
    """
    Confirmar la realización de un interés.

    Args:
        db: Sesión de base de datos (dentro de la transacción del llamador)
        interest: Interés a confirmar
        by_user_id: Usuario que confirma

    Returns:
        RealizationOutcome (completado o esperando a la otra parte)

    Raises:
        ForbiddenException: Si el usuario no es dueño del interés
        AlreadyRealizedException: Si ya estaba confirmado
        BadStatusException: Si el interés no está ACCEPTED
    """
    if interest.user_id != by_user_id:
        raise ForbiddenException("No puedes confirmar este interés")
    if interest.status == InterestStatus.REALIZED:
        raise AlreadyRealizedException()
    if interest.status != InterestStatus.ACCEPTED:
        raise BadStatusException("El estado debe ser ACCEPTED para confirmar la realización")

    crud_interest.set_status(db, interest=interest, status=InterestStatus.REALIZED, realized_at=utcnow())

    mirror = find_mirror(db, interest)
    if mirror is not None and mirror.status == InterestStatus.REALIZED:
        record = record_completed_exchange(db, interest, mirror)
        return RealizationOutcome(
            interest=InterestResponse.model_validate(interest),
            completed=True,
            exchange_record_id=record.id,
            message="Intercambio completado por ambas partes",
        )

    logger.info(f"Interés {interest.id} realizado, esperando a la otra parte")
    return RealizationOutcome(
        interest=InterestResponse.model_validate(interest),
        completed=False,
        message="Esperando la confirmación de la otra parte",
    )


def unrealize(db: Session, interest: Interest, by_user_id: UUID) -> None:
    """
    Retirar la confirmación de realización.

    Args:
        db: Sesión de base de datos (dentro de la transacción del llamador)
        interest: Interés a revertir
        by_user_id: Usuario que retira la confirmación

    Raises:
        ForbiddenException: Si el usuario no es dueño del interés
        BadStatusException: Si el interés no está REALIZED
        AlreadyCompletedException: Si la otra parte ya confirmó
    """
    if interest.user_id != by_user_id:
        raise ForbiddenException("No puedes modificar este interés")
    if interest.status != InterestStatus.REALIZED:
        raise BadStatusException("Solo se puede retirar la confirmación de un interés REALIZED")

    owner_id = interest.offer.owner_id
    if crud_exchange_record.is_offer_settled(
        db, user_a=interest.user_id, user_b=owner_id, offer_id=interest.offer_id
    ):
        raise AlreadyCompletedException()

    mirror = find_mirror(db, interest)
    if mirror is not None and mirror.status == InterestStatus.REALIZED:
        raise AlreadyCompletedException()

    crud_interest.set_status(db, interest=interest, status=InterestStatus.ACCEPTED, realized_at=None)
    logger.info(f"Interés {interest.id} vuelve a ACCEPTED")
