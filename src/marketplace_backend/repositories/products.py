"""
Repositories for courses and their structure (modules).
"""

from typing import List
from sqlalchemy.orm import Session, selectinload

from marketplace_backend.model.product import Product, Module
from marketplace_backend.repositories.base import BaseRepository, NotFoundError


class ProductRepository(BaseRepository[Product]):

    def __init__(self, db: Session):
        super().__init__(db, Product)

    def lock(self, course_id: str) -> Product:
        """Load the course row with a write lock held until the transaction ends."""
        return self.get_by_id(course_id, for_update=True)

    def list_with_modules(self) -> List[Product]:
        return (
            self.db.query(Product)
            .options(selectinload(Product.modules), selectinload(Product.seller))
            .order_by(Product.created_at, Product.id)
            .all()
        )

    def get_with_structure(self, course_id: str) -> Product:
        course = (
            self.db.query(Product)
            .options(
                selectinload(Product.modules).selectinload(Module.lessons),
                selectinload(Product.seller),
            )
            .filter(Product.id == course_id)
            .first()
        )
        if course is None:
            raise NotFoundError(Product.__name__, course_id)
        return course

    def module_ids(self, course_id: str) -> List[str]:
        rows = self.db.query(Module.id).filter(Module.course_id == course_id).all()
        return [row[0] for row in rows]


class ModuleRepository(BaseRepository[Module]):

    def __init__(self, db: Session):
        super().__init__(db, Module)

