"""
Configuración de sesión de base de datos SQLAlchemy con patrón Singleton.
"""
from sqlalchemy import create_engine, event, Engine
from sqlalchemy.orm import sessionmaker
from typing import Optional
from barter.config import get_settings
from barter.db.base import Base


def create_db_engine(
    database_url: str,
    *,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_recycle: int = 3600,
) -> Engine:
    """
    Crear engine de SQLAlchemy para la URL dada.

    En SQLite se habilitan las foreign keys en cada conexión y no se
    aplican parámetros de pool.

    Args:
        database_url: URL de conexión
        echo: Log de SQL
        pool_size: Tamaño del pool de conexiones
        max_overflow: Conexiones adicionales permitidas
        pool_recycle: Reciclar conexiones cada N segundos

    Returns:
        Engine configurado
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

        @event.listens_for(engine, "connect")
        def _configure_sqlite_connection(dbapi_connection, connection_record):
            # pysqlite no emite BEGIN antes de un SAVEPOINT: el BEGIN lo emite SQLAlchemy
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _begin_sqlite_transaction(conn):
            conn.exec_driver_sql("BEGIN")

        return engine

    return create_engine(
        database_url,
        pool_pre_ping=True,            # Verificar conexiones antes de usar
        pool_recycle=pool_recycle,
        pool_size=pool_size,
        max_overflow=max_overflow,
        echo=echo,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Crear factory de sesiones ligado al engine."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine
    )


def init_models(engine: Engine) -> None:
    """Crear las tablas del núcleo si no existen."""
    # Importar modelos para registrarlos en el metadata
    import barter.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


class DatabaseConnection:
    """
    Singleton para la conexión a la base de datos.
    Garantiza una única instancia de engine y sessionmaker.
    """
    _instance: Optional['DatabaseConnection'] = None
    _engine: Optional[Engine] = None
    _session_factory: Optional[sessionmaker] = None

    def __new__(cls):
        """Implementación del patrón Singleton."""
        if cls._instance is None:
            cls._instance = super(DatabaseConnection, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        """Inicializar conexión solo una vez."""
        if self._engine is None:
            settings = get_settings()

            self._engine = create_db_engine(
                settings.DATABASE_URL,
                echo=settings.DEBUG,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_recycle=settings.DB_POOL_RECYCLE,
            )
            self._session_factory = create_session_factory(self._engine)

    @property
    def engine(self) -> Engine:
        """Obtener engine de SQLAlchemy."""
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        """Obtener factory de sesiones."""
        return self._session_factory

    def close(self):
        """Cerrar todas las conexiones."""
        if self._engine:
            self._engine.dispose()


def get_db_connection() -> DatabaseConnection:
    """Obtener instancia Singleton de conexión (se crea en el primer uso)."""
    return DatabaseConnection()
