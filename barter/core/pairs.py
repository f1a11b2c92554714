"""
Normalización de pares de usuarios.

Un par no ordenado {a, b} siempre se guarda y se busca como (menor, mayor),
de modo que cada par corresponde a una sola fila de chat.
"""
import hashlib
from typing import Tuple
from uuid import UUID


def canonical_pair(user_a: UUID, user_b: UUID) -> Tuple[UUID, UUID]:
    """
    Ordenar un par de usuarios (menor id primero).

    Raises:
        ValueError: Si ambos ids son iguales
    """
    if user_a == user_b:
        raise ValueError("Un par requiere dos usuarios distintos")
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


def pair_key(user_a: UUID, user_b: UUID) -> str:
    """Clave textual estable para un par no ordenado."""
    low, high = canonical_pair(user_a, user_b)
    return f"{low}:{high}"


def pair_lock_id(user_a: UUID, user_b: UUID) -> int:
    """Entero de 64 bits con signo derivado del par (para pg_advisory_xact_lock)."""
    digest = hashlib.blake2b(pair_key(user_a, user_b).encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)
