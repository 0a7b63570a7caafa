"""Database models for files app."""

from typing import Final, final

from typing_extensions import override

from django.conf import settings
from django.db import models

# Constants for field max lengths
_NAME_MAX_LENGTH: Final = 255
_MIME_TYPE_MAX_LENGTH: Final = 255
_CHECKSUM_MAX_LENGTH: Final = 64  # SHA256 hex length
_PERMISSION_MAX_LENGTH: Final = 8

# Default quota: 1 GB in bytes
_DEFAULT_QUOTA_BYTES: Final = 1024 * 1024 * 1024


def default_quota_bytes() -> int:
    """Storage limit assigned to new quota records.

    Returns:
        ``FILES_DEFAULT_QUOTA_BYTES`` setting, or 1 GB when unset.
    """
    return getattr(settings, 'FILES_DEFAULT_QUOTA_BYTES', _DEFAULT_QUOTA_BYTES)


@final
class Folder(models.Model):
    """Folder in a user's drive.

    Folders form a tree per user through ``parent``; a null parent means
    the folder sits in the user's root. Sibling names are not unique.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='folders',
        db_index=True,
    )

    name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
    )

    # Deleting a folder row takes its subfolder rows with it; files are
    # protected and must be removed first (see cascade_operations).
    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        related_name='children',
        null=True,
        blank=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Folder'  # type: ignore[mutable-override]
        verbose_name_plural = 'Folders'  # type: ignore[mutable-override]
        ordering = ['-created_at', '-id']

        indexes = [
            models.Index(
                fields=['user', 'parent'],
                name='folders_user_parent_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user.get_username()}:{self.name}'


@final
class File(models.Model):
    """File whose bytes live in S3-compatible storage.

    The storage key is opaque (``{user_id}/{timestamp}-{random}.ext``);
    the folder hierarchy lives in the database through ``folder``.
    A null folder means the file sits in the user's root.
    """

    # Owner relationship
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='files',
        db_index=True,
    )

    folder = models.ForeignKey(
        Folder,
        on_delete=models.PROTECT,
        related_name='files',
        null=True,
        blank=True,
    )

    # upload_to='' means we control the full key
    file = models.FileField(
        upload_to='',
        max_length=_NAME_MAX_LENGTH,
        help_text='Blob key in storage: {user_id}/{timestamp}-{random}.ext',
    )

    original_name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
        help_text='Filename as uploaded by the user',
    )

    # Immutable after creation, drives quota accounting
    size_bytes = models.BigIntegerField(
        help_text='File size in bytes',
    )

    mime_type = models.CharField(
        max_length=_MIME_TYPE_MAX_LENGTH,
    )

    checksum_sha256 = models.CharField(
        max_length=_CHECKSUM_MAX_LENGTH,
        blank=True,
        default='',
        help_text='SHA256 hash for integrity verification',
    )

    is_public = models.BooleanField(
        default=False,
        help_text='Readable by anyone when set',
    )

    # Timestamps
    uploaded_at = models.DateTimeField(auto_now_add=True)
    modified_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering = ['-uploaded_at', '-id']

        indexes = [
            # Optimize directory listing queries
            models.Index(
                fields=['user', 'folder'],
                name='files_user_folder_idx',
            ),
        ]

        constraints = [
            models.CheckConstraint(
                condition=models.Q(size_bytes__gte=0),
                name='files_size_non_negative',
            ),
            # Blob keys are never shared between records
            models.UniqueConstraint(
                fields=['file'],
                name='files_blob_key_unique',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user.get_username()}:{self.original_name}'


@final
class FileShare(models.Model):
    """Read or edit grant on a file for a user other than its owner."""

    class Permission(models.TextChoices):
        """Access levels a grant can confer."""

        READ = 'read', 'Read'
        EDIT = 'edit', 'Edit'

    file = models.ForeignKey(
        File,
        on_delete=models.CASCADE,
        related_name='shares',
    )

    # Removing a user drops their grants, so no stale entries remain
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='file_shares',
        db_index=True,
    )

    permission = models.CharField(
        max_length=_PERMISSION_MAX_LENGTH,
        choices=Permission.choices,
        default=Permission.READ,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    modified_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'File Share'  # type: ignore[mutable-override]
        verbose_name_plural = 'File Shares'  # type: ignore[mutable-override]
        ordering = ['created_at', 'id']

        constraints = [
            models.UniqueConstraint(
                fields=['file', 'user'],
                name='file_shares_file_user_unique',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.file_id}->{self.user.get_username()} ({self.permission})'


@final
class UserQuota(models.Model):
    """Storage quota for a user.

    Tracks user's storage limit and current usage. Usage is the sum of
    the sizes of the user's live files.

    When over quota, users can still read and delete files, but uploads
    are blocked until usage falls below the limit.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='quota',
        primary_key=True,
    )

    quota_bytes = models.BigIntegerField(
        default=default_quota_bytes,
        help_text='Storage quota limit in bytes',
    )

    used_bytes = models.BigIntegerField(
        default=0,
        help_text='Currently used storage in bytes',
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'User Quota'  # type: ignore[mutable-override]
        verbose_name_plural = 'User Quotas'  # type: ignore[mutable-override]

        constraints = [
            models.CheckConstraint(
                condition=models.Q(quota_bytes__gte=0),
                name='quota_bytes_non_negative',
            ),
            models.CheckConstraint(
                condition=models.Q(used_bytes__gte=0),
                name='used_bytes_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user.get_username()}: {self.used_bytes}/{self.quota_bytes}'

    def has_space_for(self, size_bytes: int) -> bool:
        """Check if there's enough space for the given size.

        Args:
            size_bytes: Size to check in bytes.

        Returns:
            True if there's enough space, False otherwise.
        """
        return self.used_bytes + size_bytes <= self.quota_bytes

    def available_bytes(self) -> int:
        """Get available storage space.

        Returns:
            Available bytes (never negative).
        """
        available = self.quota_bytes - self.used_bytes
        return max(0, available)
