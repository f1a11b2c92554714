"""
CRUD de lectura para usuarios.
"""
from typing import Dict, List
from sqlalchemy.orm import Session
from uuid import UUID
from barter.crud.base import CRUDBase
from barter.models.user import User


class CRUDUser(CRUDBase[User]):
    """CRUD específico para usuarios."""

    def get_names(self, db: Session, *, ids: List[UUID]) -> Dict[UUID, str]:
        """Mapa id -> nombre completo para los usuarios indicados."""
        if not ids:
            return {}
        users = db.query(User).filter(User.id.in_(ids)).all()
        return {u.id: u.full_name for u in users}


# Instancia global del CRUD
user = CRUDUser(User)
