from typing import Optional
from sqlalchemy.orm import Session, Query
from marketplace_backend.permissions.handlers import PermissionHandler
from marketplace_backend.permissions.principal import Principal
from marketplace_backend.api.exceptions import ForbiddenException, NotFoundException
from marketplace_backend.model.auth import User
from marketplace_backend.model.product import Product, Module


def get_course_owner_id(db: Session, course_id: Optional[str]) -> str:
    if course_id is None:
        raise NotFoundException(detail="Product not found")
    row = db.query(Product.user_id).filter(Product.id == course_id).first()
    if row is None:
        raise NotFoundException(detail=f"Product with id [{course_id}] not found")
    return row[0]

def get_module_owner_id(db: Session, module_id: Optional[str]) -> str:
    if module_id is None:
        raise NotFoundException(detail="Module not found")
    row = (
        db.query(Product.user_id)
        .join(Module, Module.course_id == Product.id)
        .filter(Module.id == module_id)
        .first()
    )
    if row is None:
        raise NotFoundException(detail=f"Module with id [{module_id}] not found")
    return row[0]


class UserPermissionHandler(PermissionHandler):
    """Sellers browse the whole directory to pick grantees, buyers only see themselves"""

    def can_perform_action(self, principal: Principal, action: str, db: Session, resource_id: Optional[str] = None, context: Optional[dict] = None) -> bool:
        if action in ["list", "get"]:
            return principal.is_seller or resource_id == principal.user_id
        # Accounts are created through registration only
        return False

    def build_query(self, principal: Principal, action: str, db: Session) -> Query:
        if action in ["list", "get"]:
            if principal.is_seller:
                return db.query(self.entity)
            return db.query(self.entity).filter(User.id == principal.user_id)

        raise ForbiddenException(detail={"entity": self.resource_name})


class ProductPermissionHandler(PermissionHandler):
    """Every authenticated user reads products, only the owning seller writes them"""

    def can_perform_action(self, principal: Principal, action: str, db: Session, resource_id: Optional[str] = None, context: Optional[dict] = None) -> bool:
        if action in ["list", "get"]:
            return True

        if action == "create":
            return principal.is_seller

        if action in ["update", "delete"] and resource_id is not None:
            return principal.is_owner_of(get_course_owner_id(db, resource_id))

        return False

    def build_query(self, principal: Principal, action: str, db: Session) -> Query:
        if action in ["list", "get"]:
            return db.query(self.entity)

        if action in ["update", "delete"]:
            return db.query(self.entity).filter(Product.user_id == principal.user_id)

        raise ForbiddenException(detail={"entity": self.resource_name})


class ModulePermissionHandler(PermissionHandler):
    """Module structure is public, writes need the seller owning the parent course"""

    def can_perform_action(self, principal: Principal, action: str, db: Session, resource_id: Optional[str] = None, context: Optional[dict] = None) -> bool:
        if action in ["list", "get"]:
            return True

        if action == "create":
            course_id = (context or {}).get("course_id")
            return principal.is_owner_of(get_course_owner_id(db, course_id))

        if action in ["update", "delete"] and resource_id is not None:
            return principal.is_owner_of(get_module_owner_id(db, resource_id))

        return False

    def build_query(self, principal: Principal, action: str, db: Session) -> Query:
        if action in ["list", "get"]:
            return db.query(self.entity)

        if action in ["update", "delete"]:
            return (
                db.query(self.entity)
                .join(Product, Product.id == Module.course_id)
                .filter(Product.user_id == principal.user_id)
            )

        raise ForbiddenException(detail={"entity": self.resource_name})


class LessonPermissionHandler(PermissionHandler):
    """Lessons follow the ownership of module -> course"""

    def can_perform_action(self, principal: Principal, action: str, db: Session, resource_id: Optional[str] = None, context: Optional[dict] = None) -> bool:
        if action in ["list", "get"]:
            return True

        if action == "create":
            module_id = (context or {}).get("module_id")
            return principal.is_owner_of(get_module_owner_id(db, module_id))

        if action in ["update", "delete"] and resource_id is not None:
            lesson = db.query(self.entity).filter(self.entity.id == resource_id).first()
            if lesson is None:
                raise NotFoundException(detail=f"Lesson with id [{resource_id}] not found")
            return principal.is_owner_of(get_module_owner_id(db, lesson.module_id))

        return False

    def build_query(self, principal: Principal, action: str, db: Session) -> Query:
        if action in ["list", "get"]:
            return db.query(self.entity)

        if action in ["update", "delete"]:
            return (
                db.query(self.entity)
                .join(Module, Module.id == self.entity.module_id)
                .join(Product, Product.id == Module.course_id)
                .filter(Product.user_id == principal.user_id)
            )

        raise ForbiddenException(detail={"entity": self.resource_name})
