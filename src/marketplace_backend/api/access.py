"""
Routes managing which users may open which modules of a course.
Only the seller owning the course may change or list its grants.
"""

import logging
from typing import Annotated, List
from aiocache import BaseCache
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from marketplace_backend.api.api_builder import clear_entity_cache
from marketplace_backend.api.exceptions import ForbiddenException
from marketplace_backend.database import get_db
from marketplace_backend.interface.access import (
    AccessAction,
    CourseAccessUser,
    ModuleAccessGet,
    ModuleAccessSet,
    ModuleAccessUpdate,
)
from marketplace_backend.permissions.auth import get_current_permissions
from marketplace_backend.permissions.core import check_course_owner
from marketplace_backend.permissions.handlers_impl import get_course_owner_id
from marketplace_backend.permissions.principal import Principal
from marketplace_backend.redis_cache import get_redis_client
from marketplace_backend.services.access_control import AccessControlService

logger = logging.getLogger(__name__)

access_router = APIRouter(prefix="/produtos", tags=["access"])


async def _invalidate(cache: BaseCache):
    # Access read models live on both sides of the grant
    await clear_entity_cache(cache, "product")
    await clear_entity_cache(cache, "user")


def _access_state(service: AccessControlService, user_id: str, course_id: str) -> ModuleAccessGet:
    module_ids = service.list_module_access(user_id, course_id)
    return ModuleAccessGet(
        user_id=user_id,
        course_id=course_id,
        module_ids=module_ids,
        has_course_access=len(module_ids) > 0
    )


@access_router.post("/{course_id}/access", response_model=ModuleAccessGet)
async def update_access(
    course_id: str,
    payload: ModuleAccessUpdate,
    permissions: Annotated[Principal, Depends(get_current_permissions)],
    cache: Annotated[BaseCache, Depends(get_redis_client)],
    db: Session = Depends(get_db)
):
    """Grant or revoke one module, or the whole course when no module is named"""
    check_course_owner(permissions, course_id, db)

    service = AccessControlService(db)

    if payload.module_id is not None:
        service.require_module_in_course(payload.module_id, course_id)

        if payload.action == AccessAction.grant.value:
            service.grant_module_access(payload.user_id, payload.module_id, granted_by=permissions.user_id)
        else:
            service.revoke_module_access(payload.user_id, payload.module_id)

    elif payload.action == AccessAction.grant.value:
        service.grant_course_access(payload.user_id, course_id, granted_by=permissions.user_id)
    else:
        service.revoke_course_access(payload.user_id, course_id)

    await _invalidate(cache)

    return _access_state(service, payload.user_id, course_id)


@access_router.post("/{course_id}/module-access", response_model=ModuleAccessGet)
async def set_module_access(
    course_id: str,
    payload: ModuleAccessSet,
    permissions: Annotated[Principal, Depends(get_current_permissions)],
    cache: Annotated[BaseCache, Depends(get_redis_client)],
    db: Session = Depends(get_db)
):
    """Replace the user's module set within the course"""
    check_course_owner(permissions, course_id, db)

    service = AccessControlService(db)
    module_ids = service.set_module_access_for_course(
        payload.user_id,
        course_id,
        payload.module_access,
        granted_by=permissions.user_id
    )

    await _invalidate(cache)

    return ModuleAccessGet(
        user_id=payload.user_id,
        course_id=course_id,
        module_ids=module_ids,
        has_course_access=len(module_ids) > 0
    )


@access_router.get("/{course_id}/module-access/{user_id}", response_model=ModuleAccessGet)
def get_module_access(
    course_id: str,
    user_id: str,
    permissions: Annotated[Principal, Depends(get_current_permissions)],
    db: Session = Depends(get_db)
):
    owner_id = get_course_owner_id(db, course_id)

    # Buyers may look up their own grants
    if not permissions.is_owner_of(owner_id) and permissions.user_id != user_id:
        raise ForbiddenException(detail="Only the seller owning this course can inspect its access")

    return _access_state(AccessControlService(db), user_id, course_id)


@access_router.get("/{course_id}/users", response_model=List[CourseAccessUser])
def list_course_users(
    course_id: str,
    permissions: Annotated[Principal, Depends(get_current_permissions)],
    db: Session = Depends(get_db)
):
    check_course_owner(permissions, course_id, db)

    users = AccessControlService(db).list_users_with_course_access(course_id)

    return [CourseAccessUser.model_validate(user) for user in users]
