from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from marketplace_backend.interface.lessons import LessonGet


class CourseSummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    category: str
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    pdf_url: Optional[str] = None
    seller_name: Optional[str] = None


class Catalog(BaseModel):
    """Courses grouped by category, split by whether the viewer holds any module"""
    available: Dict[str, List[CourseSummary]] = Field(default_factory=dict)
    unavailable: Dict[str, List[CourseSummary]] = Field(default_factory=dict)


class ModuleDetail(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    order: int
    has_access: bool = False
    lessons: List[LessonGet] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class CourseDetail(CourseSummary):
    user_id: str
    modules: List[ModuleDetail] = Field(default_factory=list)
