"""
Permission system for the marketplace backend.

Main components:
- principal: authenticated subject (user id + role)
- handlers: base permission handler interface and registry
- handlers_impl: concrete handlers for users, products, modules and lessons
- core: handler registration and the checks used by the routers
- auth: bearer authentication producing the Principal
"""

from .principal import (
    Principal,
    SELLER_ROLE,
    USER_ROLE,
)

from .core import (
    check_permissions,
    check_course_owner,
    initialize_permission_handlers,
)

from .auth import (
    get_current_principal,
    get_current_permissions,
    AuthenticationService,
    PrincipalBuilder,
)

from .handlers import (
    PermissionHandler,
    PermissionRegistry,
    permission_registry,
)

__all__ = [
    "Principal",
    "SELLER_ROLE",
    "USER_ROLE",
    "check_permissions",
    "check_course_owner",
    "initialize_permission_handlers",
    "get_current_principal",
    "get_current_permissions",
    "AuthenticationService",
    "PrincipalBuilder",
    "PermissionHandler",
    "PermissionRegistry",
    "permission_registry",
]
