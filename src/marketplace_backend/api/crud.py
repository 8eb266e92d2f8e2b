import logging
from typing import Any
from fastapi import HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session
from sqlalchemy import exc
from marketplace_backend.api.exceptions import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
    ServiceUnavailableException,
)
from marketplace_backend.permissions.core import check_permissions
from marketplace_backend.permissions.handlers import permission_registry
from marketplace_backend.permissions.principal import Principal
from marketplace_backend.interface.base import EntityInterface, ListQuery

logger = logging.getLogger(__name__)


def _integrity_message(e: exc.IntegrityError) -> str:
    # Just provide a cleaner version of the database error without hardcoding constraint names
    error_msg = str(e.orig) if hasattr(e, 'orig') else str(e)
    if 'DETAIL:' in error_msg:
        main_error = error_msg.split('\n')[0]
        detail_part = error_msg.split('DETAIL:')[1].split('\n')[0].strip()
        return f"{main_error}. {detail_part}"
    return error_msg.split('\n')[0] if '\n' in error_msg else error_msg


def _authorize(permissions: Principal, db: Session, db_type: Any, action: str, resource_id: str = None, context: dict = None):
    handler = permission_registry.get_handler(db_type)

    if handler is None:
        raise ForbiddenException(detail={"entity": db_type.__tablename__})

    # Handlers raise NotFound themselves when the targeted row or its parent is missing
    if not handler.can_perform_action(permissions, action, db, resource_id=resource_id, context=context):
        raise ForbiddenException(detail=f"Not allowed to {action} {db_type.__tablename__}")


async def create_db(permissions: Principal, db: Session, entity: BaseModel, interface: EntityInterface):

    db_type = interface.model
    model_dump = entity.model_dump(exclude_unset=True)

    # Build a simple context dict of *_id keys for handler use
    context = {k: str(v) for k, v in model_dump.items() if k.endswith("_id") and v is not None}
    _authorize(permissions, db, db_type, "create", context=context)

    if interface.owner_field is not None:
        model_dump[interface.owner_field] = permissions.get_user_id_or_throw()

    try:
        db_item = db_type(**model_dump)

        db.add(db_item)
        db.commit()
        db.refresh(db_item)
    except exc.IntegrityError as e:
        db.rollback()
        raise BadRequestException(detail=_integrity_message(e))
    except exc.SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create {db_type.__tablename__}: {e}")
        raise ServiceUnavailableException(detail=f"Could not create {db_type.__tablename__}")

    logger.info(f"Created {db_type.__tablename__} {db_item.id}")
    return interface.get.model_validate(db_item, from_attributes=True)


async def get_id_db(permissions: Principal, db: Session, id: str, interface: EntityInterface, scope: str = "get"):

    db_type = interface.model

    query = check_permissions(permissions, db_type, scope, db)

    try:
        item = query.filter(db_type.id == id).first()
    except exc.StatementError as e:
        raise BadRequestException(detail=str(e.orig) if hasattr(e, 'orig') else str(e))

    if item is None:
        raise NotFoundException(detail=f"{db_type.__name__} with id [{id}] not found")

    return interface.get.model_validate(item, from_attributes=True)


async def list_db(permissions: Principal, db: Session, params: ListQuery, interface: EntityInterface):

    db_type = interface.model
    query_func = interface.search

    query = check_permissions(permissions, db_type, "list", db)

    query = query_func(db, query, params)

    total = query.order_by(None).count()

    if params.limit is not None:
        query = query.limit(params.limit)
    if params.skip is not None:
        query = query.offset(params.skip)

    query_result = [interface.list.model_validate(entity, from_attributes=True) for entity in query.all()]

    return query_result, total


async def update_db(permissions: Principal, db: Session, id: str, entity: BaseModel, interface: EntityInterface):

    db_type = interface.model

    _authorize(permissions, db, db_type, "update", resource_id=id)

    db_item = check_permissions(permissions, db_type, "update", db).filter(db_type.id == id).first()

    if db_item is None:
        raise NotFoundException(detail=f"{db_type.__name__} with id [{id}] not found")

    updates = entity.model_dump(exclude_unset=True)

    try:
        for key, value in updates.items():
            setattr(db_item, key, value)

        db.commit()
        db.refresh(db_item)
    except exc.IntegrityError as e:
        db.rollback()
        raise BadRequestException(detail=_integrity_message(e))
    except exc.SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update {db_type.__tablename__} {id}: {e}")
        raise ServiceUnavailableException(detail=f"Could not update {db_type.__tablename__}")

    logger.info(f"Updated {db_type.__tablename__} {id}")
    return interface.get.model_validate(db_item, from_attributes=True)


def delete_db(permissions: Principal, db: Session, id: str, interface: EntityInterface):

    db_type = interface.model

    _authorize(permissions, db, db_type, "delete", resource_id=id)

    entity = check_permissions(permissions, db_type, "delete", db).filter(db_type.id == id).first()

    if entity is None:
        raise NotFoundException(detail=f"{db_type.__name__} not found")

    try:
        if interface.delete_service is not None:
            interface.delete_service(db, entity)
        else:
            db.delete(entity)
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except exc.IntegrityError as e:
        db.rollback()
        raise BadRequestException(
            detail=f"Cannot delete this {db_type.__tablename__.replace('_', ' ')} due to data integrity constraints. {_integrity_message(e)}"
        )
    except exc.SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to delete {db_type.__tablename__} {id}: {e}")
        raise ServiceUnavailableException(detail="An unexpected database error occurred while deleting.")

    logger.info(f"Deleted {db_type.__tablename__} {id}")
    return {"ok": True}
