"""
CRUD base genérico con operaciones comunes.

Los métodos hacen ``flush`` y nunca ``commit``: la transacción la controla
la unidad de trabajo que abrió la sesión.
"""
from typing import Generic, TypeVar, Type, Optional, Any, Dict
from sqlalchemy.orm import Session
from barter.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    """Clase base para operaciones CRUD sobre un modelo ORM."""

    def __init__(self, model: Type[ModelType]):
        """
        Inicializar CRUD con el modelo ORM.

        Args:
            model: Modelo ORM de SQLAlchemy
        """
        self.model = model

    def get(self, db: Session, id: Any, *, for_update: bool = False) -> Optional[ModelType]:
        """
        Obtener un registro por ID.

        Args:
            db: Sesión de base de datos
            id: ID del registro
            for_update: Bloquear la fila (SELECT ... FOR UPDATE) donde el motor lo soporte

        Returns:
            Registro encontrado o None
        """
        query = db.query(self.model).filter(self.model.id == id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def create(self, db: Session, *, obj_in: Dict[str, Any]) -> ModelType:
        """
        Crear un nuevo registro.

        Args:
            db: Sesión de base de datos
            obj_in: Valores de las columnas

        Returns:
            Registro creado (con defaults ya aplicados)
        """
        db_obj = self.model(**obj_in)
        db.add(db_obj)
        db.flush()
        db.refresh(db_obj)
        return db_obj

    def update(self, db: Session, *, db_obj: ModelType, obj_in: Dict[str, Any]) -> ModelType:
        """
        Actualizar un registro existente.

        Args:
            db: Sesión de base de datos
            db_obj: Objeto de base de datos a actualizar
            obj_in: Campos a modificar

        Returns:
            Registro actualizado
        """
        for field, value in obj_in.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        db.add(db_obj)
        db.flush()
        return db_obj

    def remove(self, db: Session, *, db_obj: ModelType) -> ModelType:
        """Eliminar un registro (HARD DELETE)."""
        db.delete(db_obj)
        db.flush()
        return db_obj
