import io
import logging
from typing import Annotated, Optional
from aiocache import BaseCache
from fastapi import APIRouter, Depends, File, Response, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..api.api_builder import clear_entity_cache
from ..api.exceptions import BadRequestException, ServiceUnavailableException
from ..database import get_db
from ..interface.storage import AttachmentKind, AttachmentUploadResult
from ..model.product import Product
from ..permissions.auth import get_current_permissions
from ..permissions.core import check_course_owner
from ..permissions.principal import Principal
from ..redis_cache import get_redis_client
from ..services.storage_service import BlobStore, get_storage_service
from ..storage_config import format_bytes
from ..storage_security import perform_full_file_validation

logger = logging.getLogger(__name__)

attachments_router = APIRouter(tags=["attachments"])


async def _store(storage: BlobStore, upload: UploadFile, course_id: str, kind: AttachmentKind) -> str:
    # Read file content once for validation
    file_content = await upload.read()
    content_type = upload.content_type or "application/octet-stream"

    perform_full_file_validation(
        filename=upload.filename or "",
        kind=kind.value,
        content_type=content_type,
        file_size=len(file_content),
        file_data=io.BytesIO(file_content)
    )

    blob = await storage.put(
        file_content,
        content_type,
        course_id=course_id,
        kind=kind.value,
        filename=upload.filename
    )

    logger.info(f"Stored {kind.value} for course {course_id} ({format_bytes(blob.size)})")
    return blob.url


@attachments_router.post("/produtos/{course_id}/arquivos", response_model=AttachmentUploadResult)
async def upload_attachments(
    course_id: str,
    permissions: Annotated[Principal, Depends(get_current_permissions)],
    cache: Annotated[BaseCache, Depends(get_redis_client)],
    image: Optional[UploadFile] = File(None),
    video: Optional[UploadFile] = File(None),
    pdf: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: BlobStore = Depends(get_storage_service)
):
    """Upload the image, video and PDF of a course; each field is optional"""
    check_course_owner(permissions, course_id, db)

    uploads = {
        AttachmentKind.image: image,
        AttachmentKind.video: video,
        AttachmentKind.pdf: pdf,
    }
    uploads = {kind: upload for kind, upload in uploads.items() if upload is not None and upload.filename}

    if not uploads:
        raise BadRequestException(detail="Nenhum arquivo enviado")

    urls = {}
    for kind, upload in uploads.items():
        urls[f"{kind.value}_url"] = await _store(storage, upload, course_id, kind)

    product = db.query(Product).filter(Product.id == course_id).first()
    try:
        for column, url in urls.items():
            setattr(product, column, url)
        db.commit()
        db.refresh(product)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to attach files to course {course_id}: {e}")
        raise ServiceUnavailableException(detail="Could not update course attachments")

    await clear_entity_cache(cache, "product")

    return AttachmentUploadResult(
        course_id=product.id,
        image_url=product.image_url,
        video_url=product.video_url,
        pdf_url=product.pdf_url
    )


@attachments_router.get("/attachments/{handle:path}")
async def download_attachment(
    handle: str,
    permissions: Annotated[Principal, Depends(get_current_permissions)],
    storage: BlobStore = Depends(get_storage_service)
):
    data, metadata = await storage.get(handle)

    filename = handle.rsplit("/", 1)[-1]

    return Response(
        content=data,
        media_type=metadata.content_type,
        headers={"Content-Disposition": f'inline; filename="{filename}"'}
    )
