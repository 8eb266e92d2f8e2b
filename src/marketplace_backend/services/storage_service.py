import io
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple
from minio.error import S3Error

from ..minio_client import get_minio_client, MINIO_DEFAULT_BUCKET
from ..api.exceptions import (
    ServiceUnavailableException,
    NotFoundException,
)
from ..interface.storage import StorageObjectMetadata, StoredBlob
from ..storage_config import ATTACHMENT_PATH_PATTERN
from ..storage_security import sanitize_filename

logger = logging.getLogger(__name__)

ATTACHMENT_URL_PREFIX = "/attachments/"


class BlobStore(ABC):
    """Opaque byte storage for course attachments"""

    @abstractmethod
    async def put(
        self,
        data: bytes,
        content_type: str,
        course_id: str,
        kind: str,
        filename: str
    ) -> StoredBlob:
        pass

    @abstractmethod
    async def get(self, handle: str) -> Tuple[bytes, StorageObjectMetadata]:
        pass

    @abstractmethod
    async def delete(self, handle: str) -> bool:
        pass

    @staticmethod
    def build_handle(course_id: str, kind: str, filename: str) -> str:
        return ATTACHMENT_PATH_PATTERN.format(
            course_id=course_id,
            kind=kind,
            handle=uuid.uuid4().hex,
            filename=sanitize_filename(filename)
        )

    @staticmethod
    def url_for(handle: str) -> str:
        return f"{ATTACHMENT_URL_PREFIX}{handle}"


class StorageService(BlobStore):
    """Attachment storage on MinIO / S3 compatible object storage"""

    def __init__(self):
        self.client = get_minio_client()
        self.default_bucket = MINIO_DEFAULT_BUCKET

    async def ensure_bucket_exists(self, bucket_name: Optional[str] = None) -> str:
        """Ensure bucket exists, create if it doesn't"""
        bucket = bucket_name or self.default_bucket
        try:
            if not self.client.bucket_exists(bucket):
                self.client.make_bucket(bucket)
                logger.info(f"Created bucket: {bucket}")
        except S3Error as e:
            logger.error(f"Error ensuring bucket exists: {e}")
            raise ServiceUnavailableException(f"Storage service error: {e}")
        return bucket

    async def put(
        self,
        data: bytes,
        content_type: str,
        course_id: str,
        kind: str,
        filename: str
    ) -> StoredBlob:
        """Upload an attachment and return its handle"""
        bucket = await self.ensure_bucket_exists()
        handle = self.build_handle(course_id, kind, filename)

        try:
            self.client.put_object(
                bucket_name=bucket,
                object_name=handle,
                data=io.BytesIO(data),
                length=len(data),
                content_type=content_type or 'application/octet-stream',
                metadata={"x-amz-meta-course-id": course_id, "x-amz-meta-kind": kind}
            )
        except S3Error as e:
            logger.error(f"Error uploading file: {e}")
            if e.code == 'NoSuchBucket':
                raise NotFoundException(f"Bucket not found: {bucket}")
            raise ServiceUnavailableException(f"Storage upload error: {e}")

        logger.info(f"Uploaded object: {bucket}/{handle}")

        return StoredBlob(
            handle=handle,
            url=self.url_for(handle),
            content_type=content_type or 'application/octet-stream',
            size=len(data)
        )

    async def get(self, handle: str) -> Tuple[bytes, StorageObjectMetadata]:
        """Download an attachment with its metadata"""
        bucket = self.default_bucket

        try:
            stat = self.client.stat_object(bucket, handle)
            response = self.client.get_object(bucket, handle)
            try:
                data = response.read()
            finally:
                response.close()
                response.release_conn()
        except S3Error as e:
            logger.error(f"Error downloading file: {e}")
            if e.code in ('NoSuchKey', 'NoSuchObject'):
                raise NotFoundException(f"Attachment not found: {handle}")
            if e.code == 'NoSuchBucket':
                raise NotFoundException(f"Bucket not found: {bucket}")
            raise ServiceUnavailableException(f"Storage download error: {e}")

        logger.info(f"Downloaded object: {bucket}/{handle}")

        return data, StorageObjectMetadata(
            content_type=stat.content_type or 'application/octet-stream',
            size=stat.size,
            etag=stat.etag,
            last_modified=stat.last_modified,
            metadata=self._extract_custom_metadata(stat.metadata or {})
        )

    async def delete(self, handle: str) -> bool:
        """Delete an attachment"""
        bucket = self.default_bucket

        try:
            self.client.remove_object(bucket, handle)
            logger.info(f"Deleted object: {bucket}/{handle}")
            return True
        except S3Error as e:
            logger.error(f"Error deleting file: {e}")
            if e.code == 'NoSuchKey':
                raise NotFoundException(f"Attachment not found: {handle}")
            raise ServiceUnavailableException(f"Storage delete error: {e}")

    def _extract_custom_metadata(self, metadata: Dict[str, str]) -> Dict[str, str]:
        """Extract custom metadata from MinIO metadata"""
        custom_metadata = {}
        for key, value in metadata.items():
            if key.lower().startswith('x-amz-meta-'):
                custom_metadata[key[11:].lower()] = value
        return custom_metadata


# Singleton instance getter
_storage_service: Optional[BlobStore] = None


def get_storage_service() -> BlobStore:
    """Get the singleton storage service instance"""
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
