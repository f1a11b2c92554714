"""
CRUD para chats.

``upsert_active`` es la primitiva "insertar, y si el par ya existe
reactivar" usada por el asignador de chats.
"""
import logging
import uuid
from typing import List, Optional
from sqlalchemy import or_, desc
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from uuid import UUID
from barter.crud.base import CRUDBase
from barter.core.pairs import canonical_pair
from barter.db.base import utcnow
from barter.models.chat import Chat, ChatStatus

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class CRUDChat(CRUDBase[Chat]):
    """CRUD específico para chats."""

    def get_by_pair(
        self, db: Session, *, user_a: UUID, user_b: UUID, for_update: bool = False
    ) -> Optional[Chat]:
        """
        Obtener el chat de un par de usuarios (en cualquier orden).

        Args:
            db: Sesión de base de datos
            user_a: ID de un participante
            user_b: ID del otro participante
            for_update: Bloquear la fila

        Returns:
            Chat encontrado o None
        """
        low, high = canonical_pair(user_a, user_b)
        query = db.query(Chat).filter(Chat.user_a == low, Chat.user_b == high)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def get_by_user(
        self, db: Session, *, user_id: UUID, status: Optional[ChatStatus] = ChatStatus.ACTIVE,
        skip: int = 0, limit: int = 50
    ) -> List[Chat]:
        """
        Obtener chats de un usuario, los más recientes primero.

        Args:
            db: Sesión de base de datos
            user_id: ID del usuario
            status: Filtrar por estado (None = todos)
            skip: Registros a omitir
            limit: Límite de registros

        Returns:
            Lista de chats
        """
        query = db.query(Chat).filter(
            or_(Chat.user_a == user_id, Chat.user_b == user_id)
        )
        if status is not None:
            query = query.filter(Chat.status == status)

        return (
            query
            .order_by(desc(Chat.updated_at), Chat.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def upsert_active(self, db: Session, *, user_a: UUID, user_b: UUID) -> Chat:
        """
        Crear el chat del par o reactivarlo si ya existe.

        Args:
            db: Sesión de base de datos
            user_a: ID de un participante
            user_b: ID del otro participante

        Returns:
            Chat activo del par
        """
        low, high = canonical_pair(user_a, user_b)
        insert_fn = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
        if insert_fn is None:
            return self._get_or_create_active(db, user_a=low, user_b=high)

        now = utcnow()
        stmt = insert_fn(Chat).values(
            id=uuid.uuid4(),
            user_a=low,
            user_b=high,
            status=ChatStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_a", "user_b"],
            set_={"status": ChatStatus.ACTIVE, "updated_at": now},
        ).returning(Chat)

        db.flush()
        return db.scalars(stmt, execution_options={"populate_existing": True}).one()

    def _get_or_create_active(self, db: Session, *, user_a: UUID, user_b: UUID) -> Chat:
        """Variante sin upsert nativo: crear en un savepoint y releer si otro ganó."""
        chat = self.get_by_pair(db, user_a=user_a, user_b=user_b, for_update=True)
        if chat is None:
            try:
                with db.begin_nested():
                    chat = Chat(user_a=user_a, user_b=user_b, status=ChatStatus.ACTIVE)
                    db.add(chat)
                    db.flush()
                return chat
            except IntegrityError:
                logger.info(f"Chat creado en paralelo para {user_a}/{user_b}, se reutiliza")
                chat = self.get_by_pair(db, user_a=user_a, user_b=user_b, for_update=True)

        if chat.status != ChatStatus.ACTIVE:
            chat.status = ChatStatus.ACTIVE
            db.add(chat)
            db.flush()
        return chat

    def set_status(self, db: Session, *, chat: Chat, status: ChatStatus) -> Chat:
        """Cambiar el estado de un chat."""
        return self.update(db, db_obj=chat, obj_in={"status": status})


# Instancia global del CRUD
chat = CRUDChat(Chat)
