from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from sqlalchemy.orm import Session
from marketplace_backend.interface.base import BaseEntityGet, EntityInterface, ListQuery
from marketplace_backend.model.product import Product

class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=4096)

    @field_validator('category')
    @classmethod
    def blank_category_is_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v

class ProductGet(BaseEntityGet):
    id: str
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    pdf_url: Optional[str] = None
    user_id: str
    user_access_ids: List[str] = Field(default_factory=list, description="Users holding at least one module of this course")

    model_config = ConfigDict(from_attributes=True)

class ProductList(BaseModel):
    id: str
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    user_id: str

    model_config = ConfigDict(from_attributes=True)

class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=4096)

    @field_validator('category')
    @classmethod
    def blank_category_is_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v

class ProductQuery(ListQuery):
    id: Optional[str] = None
    name: Optional[str] = None
    category: Optional[str] = None
    user_id: Optional[str] = None

def product_search(db: Session, query, params: Optional[ProductQuery]):
    if params.id != None:
        query = query.filter(Product.id == params.id)
    if params.name != None:
        query = query.filter(Product.name.ilike(f"%{params.name}%"))
    if params.category != None:
        query = query.filter(Product.category == params.category)
    if params.user_id != None:
        query = query.filter(Product.user_id == params.user_id)
    return query.order_by(Product.created_at, Product.id)

def product_delete(db: Session, product: Product):
    from marketplace_backend.services.access_control import AccessControlService
    AccessControlService(db).remove_course(product)

class ProductInterface(EntityInterface):
    create = ProductCreate
    get = ProductGet
    list = ProductList
    update = ProductUpdate
    query = ProductQuery
    search = product_search
    endpoint = "produtos"
    model = Product
    cache_ttl = 300
    owner_field = "user_id"
    delete_service = product_delete
    cascades = ("module", "lesson", "user")
