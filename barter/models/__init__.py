"""
Módulo de modelos ORM.
Importa todos los modelos para que SQLAlchemy los reconozca.
"""
from barter.db.base import Base

# Tablas externas (solo lectura desde el núcleo)
from barter.models.user import User
from barter.models.offer import Offer, OfferStatus

# Intereses
from barter.models.interest import Interest, InterestStatus

# Chat
from barter.models.chat import Chat, ChatStatus

# Historial
from barter.models.exchange_record import ExchangeRecord

__all__ = [
    "Base",
    # Externas
    "User",
    "Offer",
    "OfferStatus",
    # Intereses
    "Interest",
    "InterestStatus",
    # Chat
    "Chat",
    "ChatStatus",
    # Historial
    "ExchangeRecord",
]
