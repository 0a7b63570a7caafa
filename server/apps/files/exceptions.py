"""Exceptions for files app."""

from typing import Final

_NOT_FOUND_MESSAGE: Final = 'Not found or access denied'


class FilesError(Exception):
    """Base class for errors raised by files business logic."""


class NotFoundError(FilesError):
    """Raised when a file, folder or user is absent or not visible.

    Missing objects and objects owned by someone else raise the same
    error with the same message, so callers cannot probe for existence.
    """

    def __init__(self, message: str = _NOT_FOUND_MESSAGE) -> None:
        """Initialize NotFoundError.

        Args:
            message: Human readable message.
        """
        super().__init__(message)


class ForbiddenError(FilesError):
    """Raised when a visible file is modified by someone who doesn't own it."""


class ConflictError(FilesError):
    """Raised when a folder gains files while it is being deleted."""


class QuotaExceededError(FilesError):
    """Raised when upload would exceed user's storage quota."""

    def __init__(
        self,
        quota_bytes: int,
        used_bytes: int,
        required_bytes: int,
    ) -> None:
        """Initialize QuotaExceededError.

        Args:
            quota_bytes: Total quota limit in bytes.
            used_bytes: Currently used bytes.
            required_bytes: Bytes needed for the operation.
        """
        self.quota_bytes = quota_bytes
        self.used_bytes = used_bytes
        self.required_bytes = required_bytes

        available = max(0, quota_bytes - used_bytes)
        super().__init__(
            f'Quota exceeded: need {required_bytes} bytes, '
            f'only {available} bytes available '
            f'(quota: {quota_bytes}, used: {used_bytes})',
        )
