"""
Permission checks built on the handler registry.
"""

from typing import Any
from sqlalchemy.orm import Session

from marketplace_backend.api.exceptions import ForbiddenException
from marketplace_backend.permissions.handlers import permission_registry
from marketplace_backend.permissions.handlers_impl import (
    UserPermissionHandler,
    ProductPermissionHandler,
    ModulePermissionHandler,
    LessonPermissionHandler,
    get_course_owner_id,
)
from marketplace_backend.permissions.principal import Principal
from marketplace_backend.model.auth import User
from marketplace_backend.model.product import Product, Module, Lesson


def initialize_permission_handlers():
    """Initialize and register all permission handlers"""
    permission_registry.register(User, UserPermissionHandler(User))
    permission_registry.register(Product, ProductPermissionHandler(Product))
    permission_registry.register(Module, ModulePermissionHandler(Module))
    permission_registry.register(Lesson, LessonPermissionHandler(Lesson))


def check_permissions(permissions: Principal, entity: Any, action: str, db: Session):
    """
    Main entry point for permission checking.
    Uses the registry pattern to delegate to appropriate handlers.
    """
    return permission_registry.check_permissions(permissions, entity, action, db)


def check_course_owner(permissions: Principal, course_id: str, db: Session) -> str:
    """Raise unless the principal is the seller owning the course. Unknown courses raise NotFound."""
    owner_id = get_course_owner_id(db, course_id)
    if not permissions.is_owner_of(owner_id):
        raise ForbiddenException(detail="Only the seller owning this course can manage its access")
    return owner_id


initialize_permission_handlers()
