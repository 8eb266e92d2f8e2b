from datetime import datetime
from enum import Enum
from typing import Dict, Optional
from pydantic import BaseModel, Field


class AttachmentKind(str, Enum):
    image = "image"
    video = "video"
    pdf = "pdf"


class StorageObjectMetadata(BaseModel):
    """Metadata for stored attachments"""
    content_type: str = Field(..., description="MIME type of the object")
    size: int = Field(..., description="Size of the object in bytes")
    etag: Optional[str] = Field(None, description="Entity tag of the object")
    last_modified: Optional[datetime] = Field(None, description="Last modification timestamp")
    metadata: Optional[Dict[str, str]] = Field(None, description="Custom metadata")


class StoredBlob(BaseModel):
    handle: str = Field(..., description="Opaque key used to fetch the bytes back")
    url: str = Field(..., description="Link served by the attachments endpoint")
    content_type: str
    size: int


class AttachmentUploadResult(BaseModel):
    course_id: str
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    pdf_url: Optional[str] = None
