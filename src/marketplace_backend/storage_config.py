"""
Attachment limits and whitelists for product files.
"""
import os
from typing import Dict, Set

MAX_UPLOAD_SIZE = int(os.environ.get('MINIO_MAX_UPLOAD_SIZE', 200 * 1024 * 1024))  # 200MB default, videos included

# One whitelist per attachment slot on a product
ALLOWED_EXTENSIONS: Dict[str, Set[str]] = {
    'image': {'.jpg', '.jpeg', '.png', '.gif', '.webp'},
    'video': {'.mp4', '.webm', '.mov', '.mkv'},
    'pdf': {'.pdf'},
}

ALLOWED_MIME_TYPES: Dict[str, Set[str]] = {
    'image': {'image/jpeg', 'image/png', 'image/gif', 'image/webp'},
    'video': {'video/mp4', 'video/webm', 'video/quicktime', 'video/x-matroska'},
    'pdf': {'application/pdf'},
}

# Dangerous file signatures to block
DANGEROUS_SIGNATURES: Dict[bytes, str] = {
    b'MZ': 'Windows executable',
    b'\x7fELF': 'Linux executable',
    b'\xfe\xed\xfa\xce': 'Mach-O executable (32-bit)',
    b'\xfe\xed\xfa\xcf': 'Mach-O executable (64-bit)',
    b'\xca\xfe\xba\xbe': 'Java class file',
    b'#!': 'Executable script',
}

ATTACHMENT_PATH_PATTERN = 'products/{course_id}/{kind}/{handle}-{filename}'

def format_bytes(bytes_size: int) -> str:
    """Format bytes to human readable string"""
    for unit in ['B', 'KB', 'MB', 'GB']:
        if bytes_size < 1024.0:
            return f"{bytes_size:.2f} {unit}"
        bytes_size /= 1024.0
    return f"{bytes_size:.2f} TB"
