"""
Fachada del núcleo de intercambios.

Expone las cuatro operaciones que modifican estado (expresar interés,
cancelar, realizar, retirar realización) y las consultas de lectura. Cada
operación de escritura se ejecuta como una unidad de trabajo: se resuelve el
par de usuarios afectado, se toma la sección crítica del par y dentro de una
sola transacción se valida, se aplica el cambio y se ejecutan los efectos
(match, chat, historial). Cualquier fallo revierte todo.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from barter.core.exceptions import (
    BarterException,
    ForbiddenException,
    InternalException,
    NotFoundException,
    SelfInterestException,
)
from barter.crud.chat import chat as crud_chat
from barter.crud.exchange_record import exchange_record as crud_exchange_record
from barter.crud.interest import interest as crud_interest
from barter.crud.offer import offer as crud_offer
from barter.crud.user import user as crud_user
from barter.db.unit_of_work import UnitOfWork
from barter.models.chat import ChatStatus
from barter.models.interest import Interest, InterestStatus
from barter.schemas.chat import ChatDetailResponse, ChatInterestState, ChatResponse
from barter.schemas.exchange import ExchangeHistoryItem
from barter.schemas.interest import (
    ExpressInterestResponse,
    MyInterestResponse,
    OfferInterestResponse,
    RealizationOutcome,
)
from barter.services import interest_ledger, realization_tracker
from barter.services.chat_allocator import get_chat_for_pair
from barter.services.exchange_historian import build_history_item

logger = logging.getLogger(__name__)


class BarterService:
    """Punto de entrada del núcleo para la capa API."""

    def __init__(self, session_factory: sessionmaker, uow: Optional[UnitOfWork] = None):
        self.uow = uow or UnitOfWork(session_factory)

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        """Traducir fallos inesperados a InternalException (con log)."""
        try:
            yield
        except BarterException:
            raise
        except SQLAlchemyError as e:
            logger.exception(f"Error de persistencia en {operation}")
            raise InternalException(f"Error interno en {operation}") from e
        except Exception as e:
            logger.exception(f"Fallo inesperado en {operation}")
            raise InternalException(f"Error interno en {operation}") from e

    def _interest_pair(self, interest_id: UUID) -> Tuple[UUID, UUID]:
        """Resolver el par (interesado, dueño) de un interés."""
        with self.uow.read_scope() as db:
            interest = crud_interest.get(db, interest_id)
            if interest is None:
                raise NotFoundException("Interés no encontrado")
            return interest.user_id, interest.offer.owner_id

    def _load_interest(self, db: Session, interest_id: UUID) -> Interest:
        interest = crud_interest.get(db, interest_id, for_update=True)
        if interest is None:
            raise NotFoundException("Interés no encontrado")
        return interest

    # ================================================================
    # OPERACIONES DE ESCRITURA
    # ================================================================

    def express_interest(self, offer_id: UUID, user_id: UUID) -> ExpressInterestResponse:
        """
        Expresar interés en una oferta.

        Args:
            offer_id: ID de la oferta
            user_id: ID del usuario autenticado

        Returns:
            Interés creado; incluye ``chat_id`` si se produjo un match mutuo
        """
        with self._guard("express_interest"):
            with self.uow.read_scope() as db:
                offer = crud_offer.get(db, offer_id)
                if offer is None:
                    raise NotFoundException("Oferta no encontrada")
                owner_id = offer.owner_id
            if owner_id == user_id:
                raise SelfInterestException()

            with self.uow.pair_scope(user_id, owner_id) as db:
                interest, outcome = interest_ledger.express_interest(db, offer_id, user_id)
                response = ExpressInterestResponse.model_validate(interest)
                response.chat_id = outcome.chat_id
                response.message = (
                    "Match mutuo: se abrió el chat" if outcome.matched else "Interés registrado"
                )
            return response

    def cancel_interest(self, interest_id: UUID, user_id: UUID) -> None:
        """Cancelar un interés propio (solo PROPOSED o ACCEPTED)."""
        with self._guard("cancel_interest"):
            pair = self._interest_pair(interest_id)
            with self.uow.pair_scope(*pair) as db:
                interest = self._load_interest(db, interest_id)
                interest_ledger.cancel_interest(db, interest, user_id)

    def realize(self, interest_id: UUID, user_id: UUID) -> RealizationOutcome:
        """Confirmar la realización del intercambio asociado a un interés."""
        with self._guard("realize"):
            pair = self._interest_pair(interest_id)
            with self.uow.pair_scope(*pair) as db:
                interest = self._load_interest(db, interest_id)
                return realization_tracker.realize(db, interest, user_id)

    def unrealize(self, interest_id: UUID, user_id: UUID) -> None:
        """Retirar la confirmación de realización (si la otra parte no confirmó)."""
        with self._guard("unrealize"):
            pair = self._interest_pair(interest_id)
            with self.uow.pair_scope(*pair) as db:
                interest = self._load_interest(db, interest_id)
                realization_tracker.unrealize(db, interest, user_id)

    # ================================================================
    # CONSULTAS
    # ================================================================

    def list_interests_for_offer(self, offer_id: UUID) -> List[OfferInterestResponse]:
        """Intereses de una oferta (del más antiguo al más reciente)."""
        with self._guard("list_interests_for_offer"), self.uow.read_scope() as db:
            return interest_ledger.list_interests_for_offer(db, offer_id)

    def list_interests_for_user(self, user_id: UUID) -> List[MyInterestResponse]:
        """Intereses expresados por un usuario (del más antiguo al más reciente)."""
        with self._guard("list_interests_for_user"), self.uow.read_scope() as db:
            return interest_ledger.list_interests_for_user(db, user_id)

    def count_interests_for_offer(self, offer_id: UUID) -> int:
        """Cantidad de intereses vivos en una oferta."""
        with self._guard("count_interests_for_offer"), self.uow.read_scope() as db:
            return crud_interest.count_by_offer(db, offer_id=offer_id)

    def has_interest(self, offer_id: UUID, user_id: UUID) -> bool:
        """Indica si el usuario tiene un interés vivo en la oferta."""
        with self._guard("has_interest"), self.uow.read_scope() as db:
            return crud_interest.get_by_offer_and_user(db, offer_id=offer_id, user_id=user_id) is not None

    def get_chat_for_pair(self, user_a: UUID, user_b: UUID) -> Optional[ChatResponse]:
        """Chat de un par de usuarios, o None si nunca hubo match."""
        with self._guard("get_chat_for_pair"), self.uow.read_scope() as db:
            chat = get_chat_for_pair(db, user_a, user_b)
            return ChatResponse.model_validate(chat) if chat else None

    def list_chats_for_user(
        self, user_id: UUID, status: Optional[ChatStatus] = ChatStatus.ACTIVE,
        skip: int = 0, limit: int = 50
    ) -> List[ChatResponse]:
        """Chats de un usuario filtrados por estado (None = todos), paginados."""
        with self._guard("list_chats_for_user"), self.uow.read_scope() as db:
            chats = crud_chat.get_by_user(
                db, user_id=user_id, status=status, skip=skip, limit=limit
            )
            return [ChatResponse.model_validate(c) for c in chats]

    def get_chat_detail(self, chat_id: UUID, user_id: UUID) -> ChatDetailResponse:
        """
        Chat con el estado de los intereses de ambas partes.

        Para el usuario actual se toma su interés pendiente de cierre en una
        oferta del otro; para la contraparte, el espejo de ese interés.

        Raises:
            NotFoundException: Si el chat no existe
            ForbiddenException: Si el usuario no participa en el chat
        """
        with self._guard("get_chat_detail"), self.uow.read_scope() as db:
            chat = crud_chat.get(db, chat_id)
            if chat is None:
                raise NotFoundException("Chat no encontrado")
            if not chat.has_participant(user_id):
                raise ForbiddenException("No participas en este chat")

            other_id = chat.get_other_user_id(user_id)
            current = self._open_interest(db, user_id, other_id)
            other = realization_tracker.find_mirror(db, current) if current else None
            if other is None:
                other = self._open_interest(db, other_id, user_id)

            response = ChatDetailResponse.model_validate({
                "id": chat.id,
                "user_a": chat.user_a,
                "user_b": chat.user_b,
                "status": chat.status,
                "created_at": chat.created_at,
                "other_user_id": other_id,
            })
            if current is not None:
                response.current_interest = self._interest_state(current)
            if other is not None:
                response.other_interest = self._interest_state(other)
                response.other_confirmed = other.status == InterestStatus.REALIZED
            return response

    def list_history_for_user(
        self, user_id: UUID, skip: int = 0, limit: int = 50
    ) -> List[ExchangeHistoryItem]:
        """
        Historial de intercambios del usuario, el más reciente primero.

        Args:
            user_id: ID del usuario
            skip: Registros a omitir
            limit: Tamaño de página
        """
        with self._guard("list_history_for_user"), self.uow.read_scope() as db:
            records = crud_exchange_record.get_by_user(
                db, user_id=user_id, skip=skip, limit=limit
            )
            other_ids = list({r.get_other_user_id(user_id) for r in records})
            names = crud_user.get_names(db, ids=other_ids)
            return [build_history_item(r, user_id, names) for r in records]

    @staticmethod
    def _open_interest(db: Session, user_id: UUID, owner_id: UUID) -> Optional[Interest]:
        """Primer interés de user_id en ofertas de owner_id que aún no cerró un intercambio."""
        for candidate in crud_interest.get_between(db, user_id=user_id, owner_id=owner_id):
            if not crud_exchange_record.is_offer_settled(
                db, user_a=user_id, user_b=owner_id, offer_id=candidate.offer_id
            ):
                return candidate
        return None

    @staticmethod
    def _interest_state(interest: Interest) -> ChatInterestState:
        return ChatInterestState(
            interest_id=interest.id,
            offer_id=interest.offer_id,
            status=interest.status,
            realized_at=interest.realized_at,
        )
