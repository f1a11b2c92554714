"""
Dependencias comunes para la capa que consume el núcleo.
"""
from typing import Optional

from barter.core.logging_config import configure_logging
from barter.db.session import get_db_connection
from barter.services.barter_service import BarterService

_service_instance: Optional[BarterService] = None


def get_barter_service() -> BarterService:
    """
    Obtener la instancia compartida del servicio (Singleton).

    La primera llamada configura el logging y la conexión a la base de datos.
    Los locks por par viven en esta instancia, por lo que todo el proceso
    debe usar la misma.
    """
    global _service_instance
    if _service_instance is None:
        configure_logging()
        _service_instance = BarterService(get_db_connection().session_factory)
    return _service_instance
