from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class AccessAction(str, Enum):
    grant = "grant"
    revoke = "revoke"


class ModuleAccessUpdate(BaseModel):
    """Grant or revoke for one user; without module_id it covers every module of the course"""
    user_id: str
    action: AccessAction
    module_id: Optional[str] = None

    @model_validator(mode='after')
    def strip_blank_module_id(self):
        if self.module_id is not None and not self.module_id.strip():
            self.module_id = None
        return self

    model_config = ConfigDict(use_enum_values=True)


class ModuleAccessSet(BaseModel):
    """Replacement of a user's whole module set within one course"""
    user_id: str
    module_access: List[str] = Field(default_factory=list)


class ModuleAccessGet(BaseModel):
    user_id: str
    course_id: str
    module_ids: List[str] = Field(default_factory=list)
    has_course_access: bool = False


class CourseAccessUser(BaseModel):
    id: str
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)
