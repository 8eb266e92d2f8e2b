import io
import pytest
from datetime import datetime, timezone
from typing import Dict, Tuple
from unittest.mock import Mock, MagicMock, patch
from minio.error import S3Error

from marketplace_backend.api.exceptions import (
    BadRequestException,
    NotFoundException,
    ServiceUnavailableException,
)
from marketplace_backend.interface.storage import StorageObjectMetadata, StoredBlob
from marketplace_backend.minio_client import get_minio_client, reset_minio_client
from marketplace_backend.server import app
from marketplace_backend.services.storage_service import BlobStore, StorageService, get_storage_service
from marketplace_backend.storage_security import perform_full_file_validation, sanitize_filename
from marketplace_backend.tests.utils import auth_headers

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
PDF_BYTES = b"%PDF-1.4\n" + b"0" * 64


def s3_error(code: str) -> S3Error:
    return S3Error(
        code=code,
        message="error",
        resource="resource",
        request_id="test",
        host_id="test",
        response="test"
    )


@pytest.fixture
def mock_minio_client():
    """Create a mock MinIO client"""
    with patch('marketplace_backend.minio_client.Minio') as mock_minio_class:
        mock_client = MagicMock()
        mock_minio_class.return_value = mock_client

        # Reset the client to force recreation with mock
        reset_minio_client()

        yield mock_client

        reset_minio_client()


@pytest.fixture
def storage_service(mock_minio_client):
    service = StorageService()
    service.client = mock_minio_client
    return service


class InMemoryBlobStore(BlobStore):

    def __init__(self):
        self.blobs: Dict[str, Tuple[bytes, str]] = {}

    async def put(self, data, content_type, course_id, kind, filename):
        handle = self.build_handle(course_id, kind, filename)
        self.blobs[handle] = (data, content_type)
        return StoredBlob(handle=handle, url=self.url_for(handle), content_type=content_type, size=len(data))

    async def get(self, handle):
        if handle not in self.blobs:
            raise NotFoundException(f"Attachment not found: {handle}")
        data, content_type = self.blobs[handle]
        return data, StorageObjectMetadata(content_type=content_type, size=len(data))

    async def delete(self, handle):
        return self.blobs.pop(handle, None) is not None


@pytest.fixture
def blob_store():
    store = InMemoryBlobStore()
    app.dependency_overrides[get_storage_service] = lambda: store
    yield store
    app.dependency_overrides.pop(get_storage_service, None)


class TestMinIOClient:

    def test_minio_client_singleton(self, mock_minio_client):
        assert get_minio_client() is get_minio_client()

    def test_default_bucket_is_created(self, mock_minio_client):
        mock_minio_client.bucket_exists.return_value = False

        get_minio_client()

        mock_minio_client.make_bucket.assert_called_once()


class TestStorageService:

    @pytest.mark.asyncio
    async def test_put_stores_under_course_prefix(self, storage_service, mock_minio_client):
        mock_minio_client.bucket_exists.return_value = True

        blob = await storage_service.put(PNG_BYTES, "image/png", course_id="c1", kind="image", filename="My Cover.png")

        mock_minio_client.put_object.assert_called_once()
        kwargs = mock_minio_client.put_object.call_args.kwargs
        assert kwargs["object_name"] == blob.handle
        assert kwargs["length"] == len(PNG_BYTES)
        assert blob.handle.startswith("products/c1/image/")
        assert blob.handle.endswith("My_Cover.png")
        assert blob.url == f"/attachments/{blob.handle}"

    @pytest.mark.asyncio
    async def test_put_storage_down(self, storage_service, mock_minio_client):
        mock_minio_client.bucket_exists.return_value = True
        mock_minio_client.put_object.side_effect = s3_error("InternalError")

        with pytest.raises(ServiceUnavailableException):
            await storage_service.put(PNG_BYTES, "image/png", course_id="c1", kind="image", filename="a.png")

    @pytest.mark.asyncio
    async def test_get(self, storage_service, mock_minio_client):
        stat = Mock()
        stat.content_type = "application/pdf"
        stat.size = len(PDF_BYTES)
        stat.etag = "etag"
        stat.last_modified = datetime.now(timezone.utc)
        stat.metadata = {"X-Amz-Meta-Kind": "pdf"}
        response = Mock()
        response.read.return_value = PDF_BYTES
        mock_minio_client.stat_object.return_value = stat
        mock_minio_client.get_object.return_value = response

        data, metadata = await storage_service.get("products/c1/pdf/x-a.pdf")

        assert data == PDF_BYTES
        assert metadata.content_type == "application/pdf"
        assert metadata.metadata == {"kind": "pdf"}
        response.close.assert_called_once()
        response.release_conn.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_missing(self, storage_service, mock_minio_client):
        mock_minio_client.stat_object.side_effect = s3_error("NoSuchKey")

        with pytest.raises(NotFoundException):
            await storage_service.get("products/c1/pdf/missing.pdf")


class TestFileValidation:

    def test_sanitize_filename(self):
        assert sanitize_filename("../../etc/passwd") == "passwd"

    def test_rejects_wrong_kind(self):
        with pytest.raises(BadRequestException):
            perform_full_file_validation("cover.pdf", "image", "application/pdf", len(PDF_BYTES), io.BytesIO(PDF_BYTES))

    def test_rejects_executables(self):
        data = b"MZ" + b"\x00" * 32
        with pytest.raises(BadRequestException):
            perform_full_file_validation("cover.png", "image", "image/png", len(data), io.BytesIO(data))

    def test_accepts_valid_image(self):
        perform_full_file_validation("cover.png", "image", "image/png", len(PNG_BYTES), io.BytesIO(PNG_BYTES))


class TestAttachmentRoutes:

    def test_owner_uploads_and_downloads(self, client, blob_store, seller, buyer, make_course):
        course = make_course(seller)

        response = client.post(
            f"/produtos/{course.id}/arquivos",
            headers=auth_headers(seller),
            files={
                "image": ("cover.png", PNG_BYTES, "image/png"),
                "pdf": ("syllabus.pdf", PDF_BYTES, "application/pdf"),
            }
        )
        assert response.status_code == 200
        body = response.json()
        assert body["video_url"] is None
        assert body["image_url"].startswith(f"/attachments/products/{course.id}/image/")

        product = client.get(f"/produtos/{course.id}", headers=auth_headers(buyer)).json()
        assert product["pdf_url"] == body["pdf_url"]

        download = client.get(body["pdf_url"], headers=auth_headers(buyer))
        assert download.status_code == 200
        assert download.content == PDF_BYTES
        assert download.headers["content-type"] == "application/pdf"

    def test_non_owner_cannot_upload(self, client, blob_store, seller, buyer, make_course):
        course = make_course(seller)

        response = client.post(
            f"/produtos/{course.id}/arquivos",
            headers=auth_headers(buyer),
            files={"image": ("cover.png", PNG_BYTES, "image/png")}
        )
        assert response.status_code == 403
        assert blob_store.blobs == {}

    def test_rejects_invalid_file(self, client, blob_store, seller, make_course):
        course = make_course(seller)

        response = client.post(
            f"/produtos/{course.id}/arquivos",
            headers=auth_headers(seller),
            files={"video": ("clip.exe", b"MZ" + b"\x00" * 32, "application/octet-stream")}
        )
        assert response.status_code == 400
        assert blob_store.blobs == {}

    def test_requires_a_file(self, client, blob_store, seller, make_course):
        course = make_course(seller)

        response = client.post(f"/produtos/{course.id}/arquivos", headers=auth_headers(seller), data={"note": "x"})
        assert response.status_code == 400

    def test_download_missing(self, client, blob_store, buyer):
        assert client.get("/attachments/products/none/pdf/x.pdf", headers=auth_headers(buyer)).status_code == 404
