"""
Per-viewer catalog: every course listed once, split into the ones the viewer
holds at least one module of and the ones that stay locked.
"""

import logging
from typing import Optional
from sqlalchemy.orm import Session

from marketplace_backend.api.exceptions import NotFoundException
from marketplace_backend.interface.catalog import (
    Catalog,
    CourseDetail,
    CourseSummary,
    ModuleDetail,
)
from marketplace_backend.interface.lessons import LessonGet
from marketplace_backend.model.product import Product
from marketplace_backend.repositories import (
    ModuleAccessRepository,
    NotFoundError,
    ProductRepository,
)
from marketplace_backend.settings import settings

logger = logging.getLogger(__name__)


class CatalogService:

    def __init__(self, db: Session):
        self.db = db
        self.products = ProductRepository(db)
        self.grants = ModuleAccessRepository(db)

    def list_catalog(self, viewer_id: Optional[str]) -> Catalog:
        granted = self.grants.module_ids_for_user(viewer_id) if viewer_id else set()
        catalog = Catalog()

        for course in self.products.list_with_modules():
            if self._is_owner(course, viewer_id):
                available = True
            else:
                available = any(module.id in granted for module in course.modules)

            bucket = catalog.available if available else catalog.unavailable
            summary = self._summary(course)
            bucket.setdefault(summary.category, []).append(summary)

        logger.debug(
            f"Catalog for {viewer_id}: {sum(len(v) for v in catalog.available.values())} available, "
            f"{sum(len(v) for v in catalog.unavailable.values())} unavailable"
        )
        return catalog

    def get_course_detail(self, course_id: str, viewer_id: Optional[str]) -> CourseDetail:
        """All modules and lessons are returned; each module only carries the viewer's access flag."""
        try:
            course = self.products.get_with_structure(course_id)
        except NotFoundError:
            raise NotFoundException(detail=f"Course {course_id} not found")

        owner = self._is_owner(course, viewer_id)
        granted = self.grants.module_ids_for_user(viewer_id) if viewer_id else set()

        modules = []
        for module in sorted(course.modules, key=lambda m: (m.order, m.id)):
            lessons = sorted(module.lessons, key=lambda l: (l.order, l.id))
            modules.append(ModuleDetail(
                id=module.id,
                title=module.title,
                description=module.description,
                order=module.order,
                has_access=owner or module.id in granted,
                lessons=[LessonGet.model_validate(lesson) for lesson in lessons],
            ))

        return CourseDetail(
            **self._summary(course).model_dump(),
            user_id=course.user_id,
            modules=modules,
        )

    @staticmethod
    def _is_owner(course: Product, viewer_id: Optional[str]) -> bool:
        return viewer_id is not None and course.user_id == viewer_id

    @staticmethod
    def _summary(course: Product) -> CourseSummary:
        category = course.category.strip() if course.category and course.category.strip() else settings.UNCATEGORIZED_LABEL
        return CourseSummary(
            id=course.id,
            name=course.name,
            description=course.description,
            category=category,
            image_url=course.image_url,
            video_url=course.video_url,
            pdf_url=course.pdf_url,
            seller_name=course.seller.name if course.seller is not None else None,
        )
