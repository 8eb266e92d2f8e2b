from abc import ABC
from datetime import datetime
from typing import List, Optional, Any
from pydantic import BaseModel, Field

class ListQuery(BaseModel):
    skip: Optional[int] = 0
    limit: Optional[int] = 100

class EntityInterface(ABC):
    create: BaseModel = None
    get: BaseModel = None
    list: BaseModel = None
    update: BaseModel = None
    query: BaseModel = None
    search: Any = None
    endpoint: str = None
    model: Any = None

    cache_ttl: int = 15

    # Column filled from the authenticated principal on create (e.g. the seller)
    owner_field: Optional[str] = None

    # Replaces the plain session delete; runs inside the deleting transaction
    delete_service: Any = None
    # Other tables whose cached reads a delete can invalidate
    cascades: tuple = ()

class BaseEntityList(BaseModel):
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Update timestamp")

class BaseEntityGet(BaseEntityList):
    pass
