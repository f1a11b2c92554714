"""
Base declarativa de SQLAlchemy.
Todos los modelos heredan de esta clase base.
"""
from datetime import datetime, timezone
from sqlalchemy.orm import declarative_base


def utcnow() -> datetime:
    """Fecha/hora actual en UTC (con zona horaria)."""
    return datetime.now(timezone.utc)


# Base declarativa de SQLAlchemy
Base = declarative_base()
