"""
Unidad de trabajo con sección crítica por par de usuarios.

Cada operación que modifica el estado de un par (intereses, chat, historial)
se ejecuta dentro de una única transacción y mientras se mantiene el lock
del par canónico. Pares distintos nunca comparten lock.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.orm import Session, sessionmaker

from barter.core.pairs import pair_key, pair_lock_id

logger = logging.getLogger(__name__)


class PairLockRegistry:
    """
    Locks en proceso indexados por par canónico.

    Las entradas se liberan cuando ningún hilo las usa.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._users: Dict[str, int] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Mantener el lock de ``key`` durante el bloque."""
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if self._users[key] == 0:
                    del self._users[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class UnitOfWork:
    """
    Abre sesiones transaccionales sobre el sessionmaker configurado.

    ``pair_scope`` serializa las operaciones del mismo par dentro del proceso
    y, en PostgreSQL, entre procesos mediante ``pg_advisory_xact_lock``.
    """

    def __init__(self, session_factory: sessionmaker, locks: PairLockRegistry = None):
        self.session_factory = session_factory
        self.locks = locks or PairLockRegistry()

    @contextmanager
    def pair_scope(self, user_a: UUID, user_b: UUID) -> Iterator[Session]:
        """
        Transacción serializada para el par (user_a, user_b).

        Hace commit al salir sin error y rollback ante cualquier excepción.

        Yields:
            Session: Sesión dentro de la transacción
        """
        key = pair_key(user_a, user_b)
        with self.locks.hold(key):
            db = self.session_factory()
            try:
                with db.begin():
                    if db.get_bind().dialect.name == "postgresql":
                        db.execute(
                            text("SELECT pg_advisory_xact_lock(:lock_id)"),
                            {"lock_id": pair_lock_id(user_a, user_b)}
                        )
                    yield db
            finally:
                db.close()

    @contextmanager
    def read_scope(self) -> Iterator[Session]:
        """Sesión de solo lectura (sin lock de par)."""
        db = self.session_factory()
        try:
            yield db
        finally:
            db.rollback()
            db.close()
