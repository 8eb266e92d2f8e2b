from enum import Enum
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import List, Optional
from sqlalchemy.orm import Session
from marketplace_backend.interface.base import BaseEntityGet, EntityInterface, ListQuery
from marketplace_backend.model.auth import User

class UserRoleEnum(str, Enum):
    user = "USER"
    seller = "VENDEDOR"

class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255, description="Display name")
    email: EmailStr = Field(description="Login e-mail address")
    password: str = Field(min_length=6, max_length=128, description="Plain password, hashed before storage")
    role: UserRoleEnum = Field(UserRoleEnum.user, description="Fixed at registration")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Name cannot be empty or only whitespace')
        return v.strip()

    model_config = ConfigDict(use_enum_values=True)

class UserGet(BaseEntityGet):
    id: str = Field(description="User unique identifier")
    name: str
    email: str
    role: UserRoleEnum
    accessible_course_ids: List[str] = Field(default_factory=list, description="Courses with at least one granted module")

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

class UserList(BaseModel):
    id: str
    name: str
    email: str
    role: UserRoleEnum

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

class UserQuery(ListQuery):
    id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[UserRoleEnum] = None

def user_search(db: Session, query, params: Optional[UserQuery]):
    if params.id != None:
        query = query.filter(User.id == params.id)
    if params.email != None:
        query = query.filter(User.email == params.email)
    if params.name != None:
        query = query.filter(User.name.ilike(f"%{params.name}%"))
    if params.role != None:
        query = query.filter(User.role == UserRoleEnum(params.role).value)
    return query.order_by(User.name)

class UserInterface(EntityInterface):
    create = UserCreate
    get = UserGet
    list = UserList
    query = UserQuery
    search = user_search
    endpoint = "users"
    model = User
    cache_ttl = 60
