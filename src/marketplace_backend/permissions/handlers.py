from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type
from sqlalchemy.orm import Session, Query
from marketplace_backend.permissions.principal import Principal
from marketplace_backend.api.exceptions import ForbiddenException


class PermissionHandler(ABC):
    """Base class for entity-specific permission handlers"""

    def __init__(self, entity: Type[Any]):
        self.entity = entity
        self.resource_name = entity.__tablename__

    @abstractmethod
    def can_perform_action(self, principal: Principal, action: str, db: Session, resource_id: Optional[str] = None, context: Optional[Dict[str, str]] = None) -> bool:
        """Check if principal can perform an action on a resource.

        Args:
            principal: Current principal
            action: Action to perform (e.g., create, update)
            db: Session used to resolve parent ownership
            resource_id: Optional id of the targeted row
            context: Optional mapping of parent identifiers from the payload (e.g., {"course_id": "..."})
        """
        pass

    @abstractmethod
    def build_query(self, principal: Principal, action: str, db: Session) -> Query:
        """Build a filtered query based on permissions"""
        pass


class PermissionRegistry:
    """Registry for managing entity permission handlers"""

    _instance = None
    _handlers: Dict[Type[Any], PermissionHandler] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def register(self, entity: Type[Any], handler: PermissionHandler):
        self._handlers[entity] = handler

    def get_handler(self, entity: Type[Any]) -> Optional[PermissionHandler]:
        return self._handlers.get(entity)

    def check_permissions(self, principal: Principal, entity: Type[Any], action: str, db: Session) -> Query:
        """Check permissions and return filtered query"""
        handler = self.get_handler(entity)
        if not handler:
            raise ForbiddenException(detail={"entity": entity.__tablename__})

        return handler.build_query(principal, action, db)


# Global registry instance
permission_registry = PermissionRegistry()
