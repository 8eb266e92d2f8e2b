"""
Module-level access control.

The ``module_access`` table is the only authoritative record of who may see
what. ``User.accessible_course_ids`` and ``Product.user_access_ids`` are read
models recomputed from it inside the same transaction as every mutation, so
readers only ever observe committed, reconciled state.

Row locks are always taken user first, then course, which serializes
concurrent mutations on the same (user, course) pair.
"""

import logging
from contextlib import contextmanager
from typing import Iterable, List, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from marketplace_backend.api.exceptions import (
    InvalidReferenceException,
    NotFoundException,
    ServiceUnavailableException,
)
from marketplace_backend.model.auth import User
from marketplace_backend.model.product import Module, Product
from marketplace_backend.repositories import (
    ModuleAccessRepository,
    ModuleRepository,
    NotFoundError,
    ProductRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


class AccessControlService:
    """Grant, revoke and query module access for users."""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.products = ProductRepository(db)
        self.modules = ModuleRepository(db)
        self.grants = ModuleAccessRepository(db)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def grant_module_access(self, user_id: str, module_id: str, granted_by: Optional[str] = None) -> bool:
        """
        Give a user access to one module. Granting an existing pair is a no-op.

        Returns:
            True if a new grant was recorded
        """
        with self._transaction("grant"):
            module = self._get_module(module_id)
            user = self._lock_user(user_id)
            course = self._lock_course(module.course_id)

            created = not self.grants.exists_pair(user.id, module.id)
            if created:
                self.grants.add(user.id, module.id, created_by=granted_by)

            self._reconcile(user, course)

        logger.info(f"Granted module {module_id} to user {user_id} (new={created})")
        return created

    def revoke_module_access(self, user_id: str, module_id: str) -> bool:
        """
        Remove a user's access to one module. Sibling modules are untouched and
        revoking an absent grant is a no-op.

        Returns:
            True if a grant was removed
        """
        with self._transaction("revoke"):
            module = self._get_module(module_id)
            user = self._lock_user(user_id)
            course = self._lock_course(module.course_id)

            removed = self.grants.remove(user.id, module.id)

            self._reconcile(user, course)

        logger.info(f"Revoked module {module_id} from user {user_id} (removed={removed})")
        return removed

    def set_module_access_for_course(
        self,
        user_id: str,
        course_id: str,
        module_ids: Iterable[str],
        granted_by: Optional[str] = None
    ) -> List[str]:
        """
        Replace the user's grants within one course with exactly ``module_ids``.

        Raises:
            NotFoundException: unknown user, course or module
            InvalidReferenceException: a module belongs to another course
        """
        desired = list(dict.fromkeys(module_ids))

        with self._transaction("set"):
            user = self._lock_user(user_id)
            course = self._lock_course(course_id)

            for module_id in desired:
                module = self.modules.get_by_id_optional(module_id)
                if module is None:
                    raise NotFoundException(detail=f"Module {module_id} not found")
                if module.course_id != course.id:
                    raise InvalidReferenceException(
                        detail=f"Module {module_id} does not belong to course {course.id}"
                    )

            current = self.grants.module_ids_for_user_in_course(user.id, course.id)

            self.grants.remove_many(user.id, [m for m in current if m not in desired])
            for module_id in desired:
                if module_id not in current:
                    self.grants.add(user.id, module_id, created_by=granted_by)

            self._reconcile(user, course)
            result = self.grants.module_ids_for_user_in_course(user.id, course.id)

        logger.info(f"Set access of user {user_id} on course {course_id} to {len(result)} module(s)")
        return result

    def grant_course_access(self, user_id: str, course_id: str, granted_by: Optional[str] = None) -> List[str]:
        """Grant every module of a course; existing grants are kept."""
        module_ids = self.products.module_ids(course_id)
        current = self.grants.module_ids_for_user_in_course(user_id, course_id)
        return self.set_module_access_for_course(user_id, course_id, current + module_ids, granted_by=granted_by)

    def revoke_course_access(self, user_id: str, course_id: str) -> List[str]:
        """Revoke every module of a course."""
        return self.set_module_access_for_course(user_id, course_id, [])

    # ------------------------------------------------------------------
    # Cascades (run inside the caller's transaction, never commit)
    # ------------------------------------------------------------------

    def remove_course(self, course: Product) -> List[str]:
        """
        Delete a course with its modules, lessons and grants, then reconcile the
        read model of every user who held a grant on it.

        Returns:
            ids of the users whose access changed
        """
        module_ids = self.products.module_ids(course.id)
        affected = self.grants.user_ids_for_modules(module_ids)
        locked = [self.users.lock(uid) for uid in affected]

        self.grants.remove_for_modules(module_ids)
        self.db.delete(course)
        self.db.flush()

        for user in locked:
            user.accessible_course_ids = self.grants.course_ids_for_user(user.id)
        self.db.flush()

        logger.info(f"Removed course {course.id}; reconciled {len(affected)} user(s)")
        return affected

    def remove_module(self, module: Module) -> List[str]:
        """Delete one module with its lessons and grants, reconciling affected users."""
        affected = self.grants.user_ids_for_modules([module.id])
        locked = [self.users.lock(uid) for uid in affected]
        course = self.products.lock(module.course_id)

        self.grants.remove_for_modules([module.id])
        self.db.delete(module)
        self.db.flush()

        for user in locked:
            user.accessible_course_ids = self.grants.course_ids_for_user(user.id)
        course.user_access_ids = self.grants.user_ids_for_course(course.id)
        self.db.flush()

        logger.info(f"Removed module {module.id}; reconciled {len(affected)} user(s)")
        return affected

    # ------------------------------------------------------------------
    # Queries (always answered from grants, never from the read models)
    # ------------------------------------------------------------------

    def has_access_to_module(self, user_id: str, module_id: str) -> bool:
        return self.grants.exists_pair(user_id, module_id)

    def has_access_to_course(self, user_id: str, course_id: str) -> bool:
        return len(self.grants.module_ids_for_user_in_course(user_id, course_id)) > 0

    def list_module_access(self, user_id: str, course_id: str) -> List[str]:
        return self.grants.module_ids_for_user_in_course(user_id, course_id)

    def require_module_in_course(self, module_id: str, course_id: str) -> Module:
        module = self._get_module(module_id)
        if module.course_id != course_id:
            raise InvalidReferenceException(
                detail=f"Module {module_id} does not belong to course {course_id}"
            )
        return module

    def list_users_with_course_access(self, course_id: str) -> List[User]:
        self._get_course(course_id)
        return self.grants.users_for_course(course_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _reconcile(self, user: User, course: Product):
        user.accessible_course_ids = self.grants.course_ids_for_user(user.id)
        course.user_access_ids = self.grants.user_ids_for_course(course.id)
        self.db.flush()

    def _lock_user(self, user_id: str) -> User:
        try:
            return self.users.lock(user_id)
        except NotFoundError:
            raise NotFoundException(detail=f"User {user_id} not found")

    def _lock_course(self, course_id: str) -> Product:
        try:
            return self.products.lock(course_id)
        except NotFoundError:
            raise NotFoundException(detail=f"Course {course_id} not found")

    def _get_course(self, course_id: str) -> Product:
        try:
            return self.products.get_by_id(course_id)
        except NotFoundError:
            raise NotFoundException(detail=f"Course {course_id} not found")

    def _get_module(self, module_id: str) -> Module:
        try:
            return self.modules.get_by_id(module_id)
        except NotFoundError:
            raise NotFoundException(detail=f"Module {module_id} not found")

    @contextmanager
    def _transaction(self, operation: str):
        try:
            yield
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Access {operation} conflicted: {e}")
            raise ServiceUnavailableException(detail=f"Access {operation} conflicted with a concurrent change, retry")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Access {operation} failed: {e}")
            raise ServiceUnavailableException(detail=f"Access {operation} failed")
        except Exception:
            self.db.rollback()
            raise
