from .base import Base, metadata
from .auth import User
from .product import Product, Module, Lesson, ModuleAccess

# Import all models to ensure relationships are properly set up
from . import auth, product

__all__ = [
    'Base',
    'metadata',
    # Auth models
    'User',
    # Course structure
    'Product',
    'Module',
    'Lesson',
    # Access control
    'ModuleAccess',
]
