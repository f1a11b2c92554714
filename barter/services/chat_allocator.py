"""
Asignador de chats: un único chat por par no ordenado de usuarios.
"""
import logging
from typing import Optional
from uuid import UUID
from sqlalchemy.orm import Session

from barter.crud.chat import chat as crud_chat
from barter.models.chat import Chat

logger = logging.getLogger(__name__)


def ensure_chat(db: Session, user_a: UUID, user_b: UUID) -> Chat:
    """
    Obtener el chat activo del par, creándolo o reactivándolo si hace falta.

    Seguro ante invocaciones concurrentes para el mismo par: la escritura es
    un upsert sobre el par canónico, no una lectura seguida de inserción.

    Args:
        db: Sesión de base de datos (dentro de la transacción del llamador)
        user_a: ID de un participante
        user_b: ID del otro participante

    Returns:
        Chat del par con estado ACTIVE
    """
    chat = crud_chat.upsert_active(db, user_a=user_a, user_b=user_b)
    logger.info(f"Chat {chat.id} activo para el par {chat.user_a}/{chat.user_b}")
    return chat


def get_chat_for_pair(db: Session, user_a: UUID, user_b: UUID) -> Optional[Chat]:
    """Buscar el chat de un par sin crearlo."""
    return crud_chat.get_by_pair(db, user_a=user_a, user_b=user_b)
