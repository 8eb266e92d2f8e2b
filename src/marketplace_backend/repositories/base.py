"""
Base repository pattern implementation.

Repositories wrap SQLAlchemy sessions so services can run several
operations inside one transaction and decide themselves when to commit.
"""

from abc import ABC
from typing import TypeVar, Generic, Optional, Dict, Any, Type
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import inspect

# Type variable for generic entity type
T = TypeVar('T')


class RepositoryError(Exception):
    """Base exception for repository operations."""
    pass


class NotFoundError(RepositoryError):
    """Exception raised when entity is not found."""

    def __init__(self, entity_type: str, entity_id: Any):
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class DuplicateError(RepositoryError):
    """Exception raised when attempting to create duplicate entity."""

    def __init__(self, entity_type: str, criteria: Dict[str, Any]):
        super().__init__(f"{entity_type} already exists with criteria: {criteria}")
        self.entity_type = entity_type
        self.criteria = criteria


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository providing common database operations.

    Write methods commit by default; pass ``commit=False`` to only flush and
    leave the transaction open for the caller.
    """

    def __init__(self, db: Session, model: Type[T]):
        """
        Initialize repository with database session and model class.

        Args:
            db: SQLAlchemy database session
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model

    def get_by_id(self, entity_id: Any, for_update: bool = False) -> T:
        """
        Get entity by ID.

        Args:
            entity_id: Entity identifier
            for_update: Lock the row until the transaction ends

        Raises:
            NotFoundError: If entity not found
        """
        entity = self.get_by_id_optional(entity_id, for_update=for_update)
        if entity is None:
            raise NotFoundError(self.model.__name__, entity_id)
        return entity

    def get_by_id_optional(self, entity_id: Any, for_update: bool = False) -> Optional[T]:
        query = self.db.query(self.model).filter(self.model.id == entity_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def create(self, entity: T, commit: bool = True) -> T:
        """
        Create a new entity.

        Raises:
            DuplicateError: If entity violates unique constraints
            RepositoryError: If database operation fails
        """
        try:
            self.db.add(entity)
            if commit:
                self.db.commit()
                self.db.refresh(entity)
            else:
                self.db.flush()
            return entity
        except IntegrityError:
            self.db.rollback()
            raise DuplicateError(
                self.model.__name__,
                self._extract_entity_dict(entity)
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Failed to create {self.model.__name__}: {str(e)}")

    def _extract_entity_dict(self, entity: T) -> Dict[str, Any]:
        try:
            mapper = inspect(entity)
            return {
                col.key: getattr(entity, col.key)
                for col in mapper.mapper.column_attrs
            }
        except Exception:
            return {}
