from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from sqlalchemy.orm import Session
from marketplace_backend.interface.base import BaseEntityGet, EntityInterface, ListQuery
from marketplace_backend.model.product import Lesson

class LessonCreate(BaseModel):
    module_id: str
    title: str = Field(min_length=1, max_length=255)
    content: Optional[str] = Field(None, max_length=16384)
    video_url: Optional[str] = Field(None, max_length=2048)
    order: int = Field(0, ge=0, description="Position among the lessons of the module")

class LessonGet(BaseEntityGet):
    id: str
    module_id: str
    title: str
    content: Optional[str] = None
    video_url: Optional[str] = None
    order: int

    model_config = ConfigDict(from_attributes=True)

class LessonList(BaseModel):
    id: str
    module_id: str
    title: str
    order: int

    model_config = ConfigDict(from_attributes=True)

class LessonUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, max_length=16384)
    video_url: Optional[str] = Field(None, max_length=2048)
    order: Optional[int] = Field(None, ge=0)

class LessonQuery(ListQuery):
    id: Optional[str] = None
    module_id: Optional[str] = None
    title: Optional[str] = None

def lesson_search(db: Session, query, params: Optional[LessonQuery]):
    if params.id != None:
        query = query.filter(Lesson.id == params.id)
    if params.module_id != None:
        query = query.filter(Lesson.module_id == params.module_id)
    if params.title != None:
        query = query.filter(Lesson.title == params.title)
    return query.order_by(Lesson.module_id, Lesson.order, Lesson.id)

class LessonInterface(EntityInterface):
    create = LessonCreate
    get = LessonGet
    list = LessonList
    update = LessonUpdate
    query = LessonQuery
    search = lesson_search
    endpoint = "lessons"
    model = Lesson
    cache_ttl = 300
