"""Blob store backed by S3-compatible storage."""

import logging
from typing import IO, Any, final

from typing_extensions import override

from django.core.files.storage import default_storage
from storages.backends.s3 import S3Storage

logger = logging.getLogger(__name__)


@final
class FileStorage(S3Storage):
    """S3 storage backend holding raw file bytes under opaque keys.

    Extends django-storages S3Storage with:
    - Write-once puts (keys are never overwritten)
    - Rollback support for failed DB operations
    - Enhanced error logging
    """

    @override
    def save(  # noqa: WPS211
        self,
        name: str,
        content: Any,
        max_length: int | None = None,
    ) -> str:
        """Save blob to S3 with error handling and logging.

        Args:
            name: Storage key for the blob.
            content: File content (file-like object).
            max_length: Optional maximum length for the key.

        Returns:
            Actual storage key used (may differ from name if conflicts).

        Raises:
            Exception: If S3 upload fails.
        """
        try:
            logger.info('Uploading blob to storage: %s', name)
            saved_name = super().save(name, content, max_length)
        except Exception:
            logger.exception('Failed to upload blob to storage: %s', name)
            raise
        else:
            logger.info('Successfully uploaded blob: %s', saved_name)
            return saved_name

    @override
    def delete(self, name: str) -> None:
        """Delete blob from S3 with error handling and logging.

        Args:
            name: Storage key of blob to delete.

        Raises:
            Exception: If S3 delete fails.
        """
        try:
            logger.info('Deleting blob from storage: %s', name)
            super().delete(name)
        except Exception:
            logger.exception('Failed to delete blob from storage: %s', name)
            raise
        logger.info('Successfully deleted blob: %s', name)

    def rollback_upload(self, name: str) -> None:
        """Delete uploaded blob for DB transaction rollback.

        Called when the database work fails after a blob has been
        written. Best-effort: a failure is logged, not raised, as the
        original error is what the caller needs to see.

        Args:
            name: Storage key of blob to delete.
        """
        try:
            logger.warning('Rolling back upload, deleting blob: %s', name)
            self.delete(name)
        except Exception:
            # The blob stays in storage without a record
            logger.exception('Failed to rollback upload, orphaned blob: %s', name)


def get_storage() -> FileStorage:
    """Get the configured default storage backend.

    Returns:
        FileStorage instance with proper S3 configuration.
    """
    return default_storage  # type: ignore[return-value]


def put_blob(key: str, content: IO[bytes]) -> str:
    """Write blob bytes under a new key.

    Args:
        key: Requested storage key.
        content: Bytes to store.

    Returns:
        Key the blob was stored under.
    """
    return get_storage().save(key, content)


def open_blob(key: str) -> IO[bytes]:
    """Open blob for reading.

    Args:
        key: Storage key.

    Returns:
        Binary file handle.
    """
    return get_storage().open(key, 'rb')


def delete_blob(key: str) -> None:
    """Delete blob by key.

    Args:
        key: Storage key.
    """
    get_storage().delete(key)
