"""Metadata extraction and blob key utilities for files."""

import hashlib
import mimetypes
import secrets
import time
from pathlib import PurePosixPath
from typing import BinaryIO, Final

from django.core.exceptions import ValidationError

_CHUNK_SIZE: Final = 8192  # 8KB chunks for checksum calculation
_KEY_SUFFIX_LIMIT: Final = 10**9
_DEFAULT_MIME_TYPE: Final = 'application/octet-stream'


def detect_mime_type(filename: str, declared: str | None = None) -> str:
    """Detect MIME type of an upload.

    Prefers the type declared by the client, falling back to a guess
    from the filename extension.

    Args:
        filename: Original filename with extension.
        declared: Content type sent by the client, if any.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    if declared:
        return declared
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or _DEFAULT_MIME_TYPE


def calculate_checksum(file_obj: BinaryIO) -> str:
    """Calculate SHA256 checksum of file.

    Reads file in chunks and resets the file pointer afterwards.

    Args:
        file_obj: File-like object to checksum.

    Returns:
        Hex-encoded SHA256 hash string.
    """
    sha256_hash = hashlib.sha256()
    file_obj.seek(0)
    for chunk in iter(lambda: file_obj.read(_CHUNK_SIZE), b''):
        sha256_hash.update(chunk)
    file_obj.seek(0)
    return sha256_hash.hexdigest()


def measure_size(file_obj: BinaryIO) -> int:
    """Get size of a file-like object without consuming it.

    Args:
        file_obj: File-like object (Django File or raw stream).

    Returns:
        Size in bytes.
    """
    size = getattr(file_obj, 'size', None)
    if size is not None:
        return size
    file_obj.seek(0, 2)
    size = file_obj.tell()
    file_obj.seek(0)
    return size


def clean_filename(original_name: str) -> str:
    """Strip directory components a client may send with a filename.

    Example: '../docs/report.pdf' -> 'report.pdf'

    Args:
        original_name: Filename as sent by the client.

    Returns:
        Bare filename.

    Raises:
        ValidationError: If nothing usable remains.
    """
    name = PurePosixPath(original_name.replace('\\', '/').strip()).name
    if not name or name in {'.', '..'}:
        raise ValidationError('Filename is required')
    return name


def generate_blob_key(user_id: int, original_name: str) -> str:
    """Generate an opaque, collision resistant storage key.

    Example: (7, 'photo.JPG') -> '7/1760790000123-482913004.jpg'

    Args:
        user_id: Owner's user ID, used as key prefix.
        original_name: Uploaded filename, only its extension is kept.

    Returns:
        Storage key.
    """
    timestamp_ms = time.time_ns() // 1_000_000
    suffix = secrets.randbelow(_KEY_SUFFIX_LIMIT)
    extension = PurePosixPath(original_name).suffix.lower()
    return f'{user_id}/{timestamp_ms}-{suffix}{extension}'


def validate_blob_key(user_id: int, blob_key: str) -> None:
    """Validate blob key follows user isolation rules.

    Ensures the key starts with the owner's ID so one user's records
    can never point at another user's blobs.

    Args:
        user_id: Owner's user ID.
        blob_key: Proposed storage key.

    Raises:
        ValidationError: If key doesn't start with user_id or is invalid.
    """
    if not blob_key:
        raise ValidationError('Blob key cannot be empty')

    first_component, _, rest = blob_key.partition('/')
    if not rest:
        raise ValidationError('Blob key must have a user prefix and a name')

    try:
        key_user_id = int(first_component)
    except ValueError as error:
        raise ValidationError('Blob key must start with user ID') from error

    if key_user_id != user_id:
        raise ValidationError(
            f'Blob key user ID ({key_user_id}) does not match '
            f'owner ({user_id})',
        )


def validate_size(size_bytes: object) -> int:
    """Validate a byte count.

    Args:
        size_bytes: Value to check.

    Returns:
        The size as int.

    Raises:
        ValidationError: If value is not a non-negative integer.
    """
    if isinstance(size_bytes, bool) or not isinstance(size_bytes, int):
        raise ValidationError('Size must be an integer')
    if size_bytes < 0:
        raise ValidationError('Size must not be negative')
    return size_bytes
