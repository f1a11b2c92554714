"""
CRUD para intereses en ofertas.
"""
from datetime import datetime
from typing import List, Optional, Sequence
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from uuid import UUID
from barter.crud.base import CRUDBase
from barter.models.interest import Interest, InterestStatus, LIVE_INTEREST_STATUSES
from barter.models.offer import Offer


class CRUDInterest(CRUDBase[Interest]):
    """CRUD específico para intereses."""

    def get_by_offer_and_user(
        self, db: Session, *, offer_id: UUID, user_id: UUID
    ) -> Optional[Interest]:
        """
        Obtener el interés de un usuario en una oferta.

        Args:
            db: Sesión de base de datos
            offer_id: ID de la oferta
            user_id: ID del usuario interesado

        Returns:
            Interés encontrado o None
        """
        return (
            db.query(Interest)
            .filter(Interest.offer_id == offer_id, Interest.user_id == user_id)
            .first()
        )

    def create_proposed(self, db: Session, *, offer_id: UUID, user_id: UUID) -> Interest:
        """Crear un interés en estado PROPOSED."""
        return self.create(db, obj_in={
            "offer_id": offer_id,
            "user_id": user_id,
            "status": InterestStatus.PROPOSED,
        })

    def get_by_offer(self, db: Session, *, offer_id: UUID) -> List[Interest]:
        """
        Obtener intereses de una oferta, del más antiguo al más reciente.

        Args:
            db: Sesión de base de datos
            offer_id: ID de la oferta

        Returns:
            Lista de intereses (con el usuario cargado)
        """
        return (
            db.query(Interest)
            .options(joinedload(Interest.user))
            .filter(Interest.offer_id == offer_id)
            .order_by(Interest.created_at.asc(), Interest.id.asc())
            .all()
        )

    def get_by_user(self, db: Session, *, user_id: UUID) -> List[Interest]:
        """
        Obtener intereses expresados por un usuario, del más antiguo al más reciente.

        Args:
            db: Sesión de base de datos
            user_id: ID del usuario

        Returns:
            Lista de intereses (con la oferta cargada)
        """
        return (
            db.query(Interest)
            .options(joinedload(Interest.offer))
            .filter(Interest.user_id == user_id)
            .order_by(Interest.created_at.asc(), Interest.id.asc())
            .all()
        )

    def count_by_offer(self, db: Session, *, offer_id: UUID) -> int:
        """Cantidad de intereses vivos en una oferta."""
        return (
            db.query(func.count(Interest.id))
            .filter(Interest.offer_id == offer_id)
            .scalar()
        )

    def get_between(
        self,
        db: Session,
        *,
        user_id: UUID,
        owner_id: UUID,
        statuses: Sequence[InterestStatus] = LIVE_INTEREST_STATUSES,
    ) -> List[Interest]:
        """
        Intereses de ``user_id`` en ofertas cuyo dueño es ``owner_id``.

        Args:
            db: Sesión de base de datos
            user_id: Usuario interesado
            owner_id: Dueño de las ofertas
            statuses: Estados a incluir

        Returns:
            Lista ordenada por fecha de creación
        """
        return (
            db.query(Interest)
            .join(Offer, Interest.offer_id == Offer.id)
            .filter(
                Interest.user_id == user_id,
                Offer.owner_id == owner_id,
                Interest.status.in_(list(statuses))
            )
            .order_by(Interest.created_at.asc(), Interest.id.asc())
            .all()
        )

    def set_status(
        self,
        db: Session,
        *,
        interest: Interest,
        status: InterestStatus,
        realized_at: Optional[datetime] = None,
    ) -> Interest:
        """Cambiar el estado de un interés y su fecha de realización."""
        return self.update(db, db_obj=interest, obj_in={
            "status": status,
            "realized_at": realized_at,
        })


# Instancia global del CRUD
interest = CRUDInterest(Interest)
