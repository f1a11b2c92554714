"""
CRUD para el historial de intercambios.

Los registros solo se insertan; nunca se actualizan ni se eliminan.
"""
import uuid
from typing import Any, Dict, List, Optional
from sqlalchemy import and_, or_, desc
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from uuid import UUID
from barter.crud.base import CRUDBase
from barter.core.pairs import canonical_pair
from barter.db.base import utcnow
from barter.models.exchange_record import ExchangeRecord

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class CRUDExchangeRecord(CRUDBase[ExchangeRecord]):
    """CRUD específico para registros de intercambio."""

    def get_by_chat_and_offers(
        self, db: Session, *, chat_id: UUID, offer_a_id: UUID, offer_b_id: UUID
    ) -> Optional[ExchangeRecord]:
        """Obtener el registro de un par de ofertas dentro de un chat."""
        return (
            db.query(ExchangeRecord)
            .filter(
                ExchangeRecord.chat_id == chat_id,
                ExchangeRecord.offer_a_id == offer_a_id,
                ExchangeRecord.offer_b_id == offer_b_id
            )
            .first()
        )

    def insert_once(self, db: Session, *, obj_in: Dict[str, Any]) -> ExchangeRecord:
        """
        Insertar un registro si no existe otro para (chat, oferta A, oferta B).

        Args:
            db: Sesión de base de datos
            obj_in: Valores del registro (chat_id, usuarios, ofertas, títulos, realized_at)

        Returns:
            El registro nuevo o el que ya existía
        """
        values = {"id": uuid.uuid4(), "created_at": utcnow(), **obj_in}
        insert_fn = _INSERTS.get(db.get_bind().dialect.name)

        db.flush()
        if insert_fn is not None:
            stmt = insert_fn(ExchangeRecord).values(**values).on_conflict_do_nothing(
                index_elements=["chat_id", "offer_a_id", "offer_b_id"]
            )
            db.execute(stmt)
        else:
            try:
                with db.begin_nested():
                    db.add(ExchangeRecord(**values))
            except IntegrityError:
                pass

        return self.get_by_chat_and_offers(
            db,
            chat_id=values["chat_id"],
            offer_a_id=values["offer_a_id"],
            offer_b_id=values["offer_b_id"],
        )

    def is_offer_settled(
        self, db: Session, *, user_a: UUID, user_b: UUID, offer_id: UUID
    ) -> bool:
        """
        Verificar si una oferta ya forma parte de un intercambio registrado del par.

        Args:
            db: Sesión de base de datos
            user_a: ID de un participante
            user_b: ID del otro participante
            offer_id: ID de la oferta

        Returns:
            True si existe un registro del par que incluye la oferta
        """
        low, high = canonical_pair(user_a, user_b)
        query = db.query(ExchangeRecord.id).filter(
            ExchangeRecord.user_a == low,
            ExchangeRecord.user_b == high,
            or_(ExchangeRecord.offer_a_id == offer_id, ExchangeRecord.offer_b_id == offer_id)
        )
        return db.query(query.exists()).scalar()

    def get_by_user(
        self, db: Session, *, user_id: UUID, skip: int = 0, limit: int = 50
    ) -> List[ExchangeRecord]:
        """
        Obtener el historial de un usuario, el más reciente primero.

        Args:
            db: Sesión de base de datos
            user_id: ID del usuario
            skip: Registros a omitir
            limit: Límite de registros (default 50)

        Returns:
            Lista de registros
        """
        return (
            db.query(ExchangeRecord)
            .filter(or_(ExchangeRecord.user_a == user_id, ExchangeRecord.user_b == user_id))
            .order_by(desc(ExchangeRecord.realized_at), ExchangeRecord.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_by_pair(self, db: Session, *, user_a: UUID, user_b: UUID) -> int:
        """Cantidad de intercambios registrados entre dos usuarios."""
        low, high = canonical_pair(user_a, user_b)
        return (
            db.query(ExchangeRecord)
            .filter(and_(ExchangeRecord.user_a == low, ExchangeRecord.user_b == high))
            .count()
        )


# Instancia global del CRUD
exchange_record = CRUDExchangeRecord(ExchangeRecord)
