from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from sqlalchemy.orm import Session
from marketplace_backend.interface.base import BaseEntityGet, EntityInterface, ListQuery
from marketplace_backend.model.product import Module

class ModuleCreate(BaseModel):
    course_id: str
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=4096)
    order: int = Field(0, ge=0, description="Position among the modules of the course")

class ModuleGet(BaseEntityGet):
    id: str
    course_id: str
    title: str
    description: Optional[str] = None
    order: int

    model_config = ConfigDict(from_attributes=True)

class ModuleList(BaseModel):
    id: str
    course_id: str
    title: str
    order: int

    model_config = ConfigDict(from_attributes=True)

class ModuleUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=4096)
    order: Optional[int] = Field(None, ge=0)

class ModuleQuery(ListQuery):
    id: Optional[str] = None
    course_id: Optional[str] = None
    title: Optional[str] = None

def module_search(db: Session, query, params: Optional[ModuleQuery]):
    if params.id != None:
        query = query.filter(Module.id == params.id)
    if params.course_id != None:
        query = query.filter(Module.course_id == params.course_id)
    if params.title != None:
        query = query.filter(Module.title == params.title)
    return query.order_by(Module.course_id, Module.order, Module.id)

def module_delete(db: Session, module: Module):
    from marketplace_backend.services.access_control import AccessControlService
    AccessControlService(db).remove_module(module)

class ModuleInterface(EntityInterface):
    create = ModuleCreate
    get = ModuleGet
    list = ModuleList
    update = ModuleUpdate
    query = ModuleQuery
    search = module_search
    endpoint = "modules"
    model = Module
    cache_ttl = 300
    delete_service = module_delete
    cascades = ("lesson", "product", "user")
