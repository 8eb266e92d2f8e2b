"""
Security validation for product attachments.
"""
import os
import re
import logging
from typing import BinaryIO, Optional, Tuple

from .storage_config import (
    MAX_UPLOAD_SIZE,
    ALLOWED_EXTENSIONS,
    ALLOWED_MIME_TYPES,
    DANGEROUS_SIGNATURES,
    format_bytes
)
from .api.exceptions import BadRequestException

logger = logging.getLogger(__name__)


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename to prevent path traversal and other security issues.

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    if not filename or not filename.strip():
        return "unnamed_file"

    # Split on both / and \ to get the final component
    filename = filename.replace('\\', '/').split('/')[-1]

    if not filename:
        return "unnamed_file"

    if filename.startswith('.'):
        filename = '_' + filename.lstrip('.')

    filename = re.sub(r'[^\w\s.-]', '', filename, flags=re.UNICODE)
    filename = re.sub(r'\s+', '_', filename)
    filename = filename.strip('. ')

    name_parts = filename.rsplit('.', 1)
    if len(name_parts) == 2:
        name, ext = name_parts
        filename = f"{name[:100]}.{ext}"
    else:
        filename = filename[:100]

    if not filename or filename.strip('_') == '':
        filename = "unnamed_file"

    return filename


def validate_file_extension(filename: str, kind: str) -> Tuple[bool, Optional[str]]:
    ext = os.path.splitext(filename)[1].lower()

    if not ext:
        return False, "File must have an extension"

    allowed = ALLOWED_EXTENSIONS.get(kind, set())
    if ext not in allowed:
        return False, f"File type '{ext}' is not allowed for {kind}. Allowed types: {', '.join(sorted(allowed))}"

    return True, None


def validate_content_type(content_type: str, kind: str) -> Tuple[bool, Optional[str]]:
    # Normalize content type (remove parameters like charset)
    content_type = content_type.split(';')[0].strip().lower()

    if content_type not in ALLOWED_MIME_TYPES.get(kind, set()):
        return False, f"Content type '{content_type}' is not allowed for {kind}"

    return True, None


def validate_file_size(file_size: int) -> Tuple[bool, Optional[str]]:
    if file_size > MAX_UPLOAD_SIZE:
        return False, f"File size {format_bytes(file_size)} exceeds maximum allowed size of {format_bytes(MAX_UPLOAD_SIZE)}"

    if file_size == 0:
        return False, "Empty files are not allowed"

    return True, None


def check_file_content_security(file_data: BinaryIO) -> Tuple[bool, Optional[str]]:
    file_data.seek(0)
    header = file_data.read(16)
    file_data.seek(0)

    for signature, description in DANGEROUS_SIGNATURES.items():
        if header.startswith(signature):
            return False, f"File type not allowed: {description}"

    return True, None


def perform_full_file_validation(
    filename: str,
    kind: str,
    content_type: str,
    file_size: int,
    file_data: BinaryIO
) -> None:
    """
    Perform all attachment validations. Raises BadRequestException if validation fails.

    Args:
        filename: Original filename
        kind: Attachment slot ("image", "video" or "pdf")
        content_type: MIME type
        file_size: File size in bytes
        file_data: File binary data
    """
    for valid, error in (
        validate_file_size(file_size),
        validate_file_extension(filename, kind),
        validate_content_type(content_type, kind),
        check_file_content_security(file_data),
    ):
        if not valid:
            logger.warning(f"Rejected {kind} attachment '{filename}': {error}")
            raise BadRequestException(error)
