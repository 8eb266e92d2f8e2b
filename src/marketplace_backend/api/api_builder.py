import json
import hashlib
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from marketplace_backend.api.crud import create_db, get_id_db, list_db, update_db, delete_db
from typing import Annotated, Optional
from marketplace_backend.permissions.auth import get_current_permissions
from marketplace_backend.database import get_db
from marketplace_backend.permissions.principal import Principal
from marketplace_backend.interface.base import EntityInterface
from marketplace_backend.redis_cache import get_redis_client
from aiocache import BaseCache
from fastapi import FastAPI
from fastapi import Response

logger = logging.getLogger(__name__)


def cache_namespace(table_name: str) -> str:
    return f"{table_name}:"


async def clear_entity_cache(cache: BaseCache, table_name: str):
    """Clear all cache entries for a given entity type"""
    try:
        await cache.clear(namespace=cache_namespace(table_name))
    except Exception as e:
        # Log error but don't fail the operation
        logger.warning(f"Cache clear error for {table_name}: {e}")


class CrudRouter:

    id_type = "id"

    path: str
    dto: EntityInterface

    def __init__(self, dto, endpoint: Optional[str] = None):
        self.dto = dto
        if endpoint == None:
            self.path = self.dto.endpoint
        else:
            self.path = endpoint

        self.router = APIRouter()

    @property
    def namespace(self) -> str:
        return cache_namespace(self.dto.model.__tablename__)

    def create(self):
        async def route(permissions: Annotated[Principal, Depends(get_current_permissions)], entity: self.dto.create, cache: Annotated[BaseCache, Depends(get_redis_client)], db: Session = Depends(get_db)) -> self.dto.get:
            entity_created = await create_db(permissions, db, entity, self.dto)

            # Clear related cache entries
            await clear_entity_cache(cache, self.dto.model.__tablename__)

            return entity_created
        return route

    def get(self):
        async def route(permissions: Annotated[Principal, Depends(get_current_permissions)], id: str, cache: Annotated[BaseCache, Depends(get_redis_client)], db: Session = Depends(get_db)) -> self.dto.get:
            # Check cache first
            cache_key = f"get:{permissions.user_id}:{id}"
            cached_result = await cache.get(cache_key, namespace=self.namespace)

            if cached_result:
                return self.dto.get.model_validate_json(cached_result)

            result = await get_id_db(permissions, db, id, self.dto)

            await cache.set(cache_key, result.model_dump_json(), ttl=self.dto.cache_ttl, namespace=self.namespace)

            return result
        return route

    def list(self):
        async def route(permissions: Annotated[Principal, Depends(get_current_permissions)], cache: Annotated[BaseCache, Depends(get_redis_client)], response: Response, params: self.dto.query = Depends(), db: Session = Depends(get_db)) -> list[self.dto.list]:
            # Generate cache key based on params and user permissions
            params_hash = hashlib.sha256(params.model_dump_json(exclude_none=True).encode()).hexdigest()
            cache_key = f"list:{permissions.user_id}:{params_hash}"

            cached_result = await cache.get(cache_key, namespace=self.namespace)
            if cached_result:
                cached_data = json.loads(cached_result)
                response.headers["X-Total-Count"] = str(cached_data.get("total", 0))
                return [self.dto.list.model_validate(item) for item in cached_data.get("items", [])]

            list_result, total = await list_db(permissions, db, params, self.dto)
            response.headers["X-Total-Count"] = str(total)

            cache_data = {
                "items": [item.model_dump(mode='json') for item in list_result],
                "total": total
            }
            await cache.set(cache_key, json.dumps(cache_data), ttl=self.dto.cache_ttl, namespace=self.namespace)

            return list_result
        return route

    def update(self):
        async def route(permissions: Annotated[Principal, Depends(get_current_permissions)], id: str, entity: self.dto.update, cache: Annotated[BaseCache, Depends(get_redis_client)], db: Session = Depends(get_db)) -> self.dto.get:
            entity_updated = await update_db(permissions, db, id, entity, self.dto)

            # Clear related cache entries
            await clear_entity_cache(cache, self.dto.model.__tablename__)

            return entity_updated
        return route

    def delete(self):
        async def route(permissions: Annotated[Principal, Depends(get_current_permissions)], id: str, cache: Annotated[BaseCache, Depends(get_redis_client)], db: Session = Depends(get_db)):

            delete_db(permissions, db, id, self.dto)

            # Deletes can cascade into other entity types and the access read models
            await clear_entity_cache(cache, self.dto.model.__tablename__)
            for table_name in self.dto.cascades:
                await clear_entity_cache(cache, table_name)

            return Response(status_code=status.HTTP_204_NO_CONTENT)

        return route

    def register_routes(self, app: FastAPI):

        scope_name = self.path.replace("/","").replace("_"," ")

        self.router.add_api_route("", self.create(), methods=["POST"],
                    status_code=status.HTTP_201_CREATED, name=f"{self.create.__name__} {scope_name.capitalize()}",dependencies=[Depends(get_current_permissions)])
        self.router.add_api_route(f"/{{{CrudRouter.id_type}}}", self.get(), methods=["GET"],
                    status_code=status.HTTP_200_OK, name=f"{self.get.__name__} {scope_name.capitalize()}",dependencies=[Depends(get_current_permissions)])
        self.router.add_api_route("", self.list(), methods=["GET"],
                    status_code=status.HTTP_200_OK, name=f"{self.list.__name__} {scope_name.capitalize()}",dependencies=[Depends(get_current_permissions)])
        self.router.add_api_route(f"/{{{CrudRouter.id_type}}}", self.update(), methods=["PATCH"],
                    status_code=status.HTTP_200_OK, name=f"{self.update.__name__} {scope_name.capitalize()}",dependencies=[Depends(get_current_permissions)])
        self.router.add_api_route(f"/{{{CrudRouter.id_type}}}", self.delete(), methods=["DELETE"],
                    status_code=status.HTTP_204_NO_CONTENT, name=f"{self.delete.__name__} {scope_name.capitalize()}", dependencies=[Depends(get_current_permissions)])

        app.include_router(
            self.router,
            prefix=f"/{self.path}",
            tags=[scope_name]
        )

        return self


class LookUpRouter:

    id_type = "id"

    path: str
    dto: EntityInterface

    def __init__(self, dto, endpoint: Optional[str] = None):
        self.dto = dto
        if endpoint == None:
            self.path = self.dto.endpoint
        else:
            self.path = endpoint

        self.router = APIRouter()

    def get(self):
        async def route(permissions: Annotated[Principal, Depends(get_current_permissions)], id: str, db: Session = Depends(get_db)) -> self.dto.get:
            return await get_id_db(permissions, db, id, self.dto)
        return route

    def list(self):
        async def route(permissions: Annotated[Principal, Depends(get_current_permissions)], response: Response, params: self.dto.query = Depends(), db: Session = Depends(get_db)) -> list[self.dto.list]:
            list_result, total = await list_db(permissions, db, params, self.dto)
            response.headers["X-Total-Count"] = str(total)
            return list_result
        return route

    def register_routes(self, app: FastAPI):

        scope_name = self.path.replace("/","").replace("_"," ")

        self.router.add_api_route(f"/{{{LookUpRouter.id_type}}}", self.get(), methods=["GET"],
                    status_code=status.HTTP_200_OK, name=f"{self.get.__name__} {scope_name.capitalize()}",dependencies=[Depends(get_current_permissions)])
        self.router.add_api_route("", self.list(), methods=["GET"],
                    status_code=status.HTTP_200_OK, name=f"{self.list.__name__} {scope_name.capitalize()}",dependencies=[Depends(get_current_permissions)])

        app.include_router(
            self.router,
            prefix=f"/{self.path}",
            tags=[scope_name]
        )

        return self
