"""
Repository layer over the SQLAlchemy session.
"""

from .base import BaseRepository, RepositoryError, NotFoundError, DuplicateError
from .users import UserRepository
from .products import ProductRepository, ModuleRepository
from .module_access import ModuleAccessRepository

__all__ = [
    "BaseRepository",
    "RepositoryError",
    "NotFoundError",
    "DuplicateError",
    "UserRepository",
    "ProductRepository",
    "ModuleRepository",
    "ModuleAccessRepository",
]
