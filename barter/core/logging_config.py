"""
Configuración de logging del núcleo.
"""
import logging
from typing import Optional

from barter.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configurar el logging raíz una sola vez.

    Args:
        level: Nivel de log (por defecto settings.LOG_LEVEL)
    """
    global _configured
    if _configured:
        return

    if level is None:
        level = get_settings().LOG_LEVEL

    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # SQLAlchemy escribe su propio eco de SQL cuando DEBUG está activo
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    _configured = True
