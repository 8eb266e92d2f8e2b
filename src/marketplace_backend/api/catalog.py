from typing import Annotated
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from marketplace_backend.database import get_db
from marketplace_backend.interface.catalog import Catalog, CourseDetail
from marketplace_backend.permissions.auth import get_current_permissions
from marketplace_backend.permissions.principal import Principal
from marketplace_backend.services.catalog import CatalogService

catalog_router = APIRouter(tags=["catalog"])


@catalog_router.get("/cursos", response_model=Catalog)
def list_catalog(permissions: Annotated[Principal, Depends(get_current_permissions)], db: Session = Depends(get_db)):
    return CatalogService(db).list_catalog(permissions.get_user_id_or_throw())


@catalog_router.get("/product/{course_id}", response_model=CourseDetail)
def get_course_detail(course_id: str, permissions: Annotated[Principal, Depends(get_current_permissions)], db: Session = Depends(get_db)):
    return CatalogService(db).get_course_detail(course_id, permissions.get_user_id_or_throw())
