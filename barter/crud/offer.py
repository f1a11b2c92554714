"""
CRUD de lectura para ofertas (la tabla pertenece al catálogo de ofertas).
"""
from barter.crud.base import CRUDBase
from barter.models.offer import Offer


class CRUDOffer(CRUDBase[Offer]):
    """CRUD específico para ofertas."""


# Instancia global del CRUD
offer = CRUDOffer(Offer)
