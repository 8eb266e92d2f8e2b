"""
Repository for the authoritative user/module grant relation.

Nothing here commits; the access control service owns the transaction.
"""

from typing import Iterable, List, Optional, Set
from sqlalchemy import select
from sqlalchemy.orm import Session

from marketplace_backend.model.auth import User
from marketplace_backend.model.product import Module, ModuleAccess
from marketplace_backend.repositories.base import BaseRepository


class ModuleAccessRepository(BaseRepository[ModuleAccess]):

    def __init__(self, db: Session):
        super().__init__(db, ModuleAccess)

    def get(self, user_id: str, module_id: str) -> Optional[ModuleAccess]:
        return self.db.query(ModuleAccess).filter(
            ModuleAccess.user_id == user_id,
            ModuleAccess.module_id == module_id
        ).first()

    def exists_pair(self, user_id: str, module_id: str) -> bool:
        return self.get(user_id, module_id) is not None

    def add(self, user_id: str, module_id: str, created_by: Optional[str] = None) -> ModuleAccess:
        """Insert the pair unless it is already present."""
        grant = self.get(user_id, module_id)
        if grant is None:
            grant = ModuleAccess(user_id=user_id, module_id=module_id, created_by=created_by)
            self.db.add(grant)
            self.db.flush()
        return grant

    def remove(self, user_id: str, module_id: str) -> bool:
        deleted = self.db.query(ModuleAccess).filter(
            ModuleAccess.user_id == user_id,
            ModuleAccess.module_id == module_id
        ).delete(synchronize_session="fetch")
        self.db.flush()
        return deleted > 0

    def remove_many(self, user_id: str, module_ids: Iterable[str]) -> int:
        module_ids = list(module_ids)
        if not module_ids:
            return 0
        deleted = self.db.query(ModuleAccess).filter(
            ModuleAccess.user_id == user_id,
            ModuleAccess.module_id.in_(module_ids)
        ).delete(synchronize_session="fetch")
        self.db.flush()
        return deleted

    def remove_for_modules(self, module_ids: Iterable[str]) -> int:
        module_ids = list(module_ids)
        if not module_ids:
            return 0
        deleted = self.db.query(ModuleAccess).filter(
            ModuleAccess.module_id.in_(module_ids)
        ).delete(synchronize_session="fetch")
        self.db.flush()
        return deleted

    def module_ids_for_user_in_course(self, user_id: str, course_id: str) -> List[str]:
        rows = (
            self.db.query(ModuleAccess.module_id)
            .select_from(ModuleAccess)
            .join(Module, Module.id == ModuleAccess.module_id)
            .filter(ModuleAccess.user_id == user_id, Module.course_id == course_id)
            .order_by(Module.order, Module.id)
            .all()
        )
        return [row[0] for row in rows]

    def module_ids_for_user(self, user_id: str) -> Set[str]:
        rows = self.db.query(ModuleAccess.module_id).filter(ModuleAccess.user_id == user_id).all()
        return {row[0] for row in rows}

    def course_ids_for_user(self, user_id: str) -> List[str]:
        rows = (
            self.db.query(Module.course_id).distinct()
            .select_from(Module)
            .join(ModuleAccess, ModuleAccess.module_id == Module.id)
            .filter(ModuleAccess.user_id == user_id)
            .order_by(Module.course_id)
            .all()
        )
        return [row[0] for row in rows]

    def user_ids_for_course(self, course_id: str) -> List[str]:
        rows = (
            self.db.query(ModuleAccess.user_id).distinct()
            .select_from(ModuleAccess)
            .join(Module, Module.id == ModuleAccess.module_id)
            .filter(Module.course_id == course_id)
            .order_by(ModuleAccess.user_id)
            .all()
        )
        return [row[0] for row in rows]

    def user_ids_for_modules(self, module_ids: Iterable[str]) -> List[str]:
        module_ids = list(module_ids)
        if not module_ids:
            return []
        rows = (
            self.db.query(ModuleAccess.user_id).distinct()
            .filter(ModuleAccess.module_id.in_(module_ids))
            .order_by(ModuleAccess.user_id)
            .all()
        )
        return [row[0] for row in rows]

    def users_for_course(self, course_id: str) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.id.in_(
                select(ModuleAccess.user_id)
                .join(Module, Module.id == ModuleAccess.module_id)
                .where(Module.course_id == course_id)
            ))
            .order_by(User.name, User.id)
            .all()
        )
