"""Business logic for storage quota operations.

``commit`` is the single entry point that mutates a user's usage.
``reserve`` is a pre-flight estimate only; the upload path charges the
actual size with ``charge_usage``, which checks and increments in one
conditional UPDATE so concurrent uploads cannot overshoot the limit.
"""

import logging
from typing import Any

from django.db import transaction
from django.db.models import F, Sum  # noqa: WPS347

from server.apps.files.exceptions import QuotaExceededError
from server.apps.files.models import File, UserQuota

# User type for Django's dynamic user model
_User = Any

# Field name constant to avoid string literal over-use
_USED_BYTES_FIELD = 'used_bytes'  # noqa: WPS226

logger = logging.getLogger(__name__)


def get_or_create_quota(user: _User) -> UserQuota:
    """Get or create quota for user (on-demand creation).

    Args:
        user: User to get quota for.

    Returns:
        UserQuota instance for the user.
    """
    quota, created = UserQuota.objects.get_or_create(user=user)
    if created:
        logger.info(
            'Created quota for user %s: %d bytes',
            user.get_username(),
            quota.quota_bytes,
        )
    return quota


def _deny(user: _User, quota: UserQuota, size_bytes: int) -> QuotaExceededError:
    logger.warning(
        'Quota exceeded for user %s: need %d, have %d available',
        user.get_username(),
        size_bytes,
        quota.available_bytes(),
    )
    return QuotaExceededError(
        quota_bytes=quota.quota_bytes,
        used_bytes=quota.used_bytes,
        required_bytes=size_bytes,
    )


def reserve(user: _User, requested_bytes: int) -> None:
    """Check if user has enough quota for an upload.

    Pre-flight estimate made with the declared content length before
    any bytes are written. Nothing is held back; usage changes only
    through ``commit`` or ``charge_usage``.

    Args:
        user: User to check quota for.
        requested_bytes: Declared size of the upload in bytes.

    Raises:
        QuotaExceededError: If upload would exceed quota.
    """
    quota = get_or_create_quota(user)

    if not quota.has_space_for(requested_bytes):
        raise _deny(user, quota, requested_bytes)


def commit(user: _User, delta_bytes: int) -> None:
    """Apply a usage change to the user's ledger.

    Positive deltas are an atomic increment. Negative deltas lock the
    row and clamp at zero. Never denies; positive deltas must have
    passed ``reserve`` first.

    Args:
        user: User whose usage changes.
        delta_bytes: Bytes to add (negative to release).
    """
    if delta_bytes > 0:
        _increment_usage(user, delta_bytes)
    elif delta_bytes < 0:
        _decrement_usage(user, -delta_bytes)


def charge_usage(user: _User, size_bytes: int) -> None:
    """Atomically check quota and add usage in one statement.

    The row is only updated when the new total stays within the limit,
    so two concurrent uploads can't both squeeze past the check.

    Args:
        user: User to charge.
        size_bytes: Actual size of the stored upload.

    Raises:
        QuotaExceededError: If the charge would exceed quota.
    """
    get_or_create_quota(user)

    with transaction.atomic():
        updated = UserQuota.objects.filter(
            user=user,
            used_bytes__lte=F('quota_bytes') - size_bytes,
        ).update(
            used_bytes=F(_USED_BYTES_FIELD) + size_bytes,
        )

    if updated == 0:
        raise _deny(user, UserQuota.objects.get(user=user), size_bytes)

    logger.debug(
        'Charged user %s for %d bytes',
        user.get_username(),
        size_bytes,
    )


def _increment_usage(user: _User, size_bytes: int) -> None:
    with transaction.atomic():
        updated = UserQuota.objects.filter(user=user).update(
            used_bytes=F(_USED_BYTES_FIELD) + size_bytes,
        )

        if updated == 0:
            # Quota doesn't exist yet, create it
            quota = get_or_create_quota(user)
            quota.used_bytes = size_bytes
            quota.save(update_fields=[_USED_BYTES_FIELD])

    logger.debug(
        'Incremented usage for user %s by %d bytes',
        user.get_username(),
        size_bytes,
    )


def _decrement_usage(user: _User, size_bytes: int) -> None:
    with transaction.atomic():
        try:
            quota = UserQuota.objects.select_for_update().get(user=user)
        except UserQuota.DoesNotExist:
            logger.debug(
                'No quota exists for user %s, skipping decrement',
                user.get_username(),
            )
            return

        new_usage = max(0, quota.used_bytes - size_bytes)
        quota.used_bytes = new_usage
        quota.save(update_fields=[_USED_BYTES_FIELD])

    logger.debug(
        'Decremented usage for user %s by %d bytes (new: %d)',
        user.get_username(),
        size_bytes,
        new_usage,
    )


def calculate_usage(user: _User) -> int:
    """Sum the sizes of a user's live files.

    Args:
        user: File owner.

    Returns:
        Total size in bytes.
    """
    return File.objects.filter(user=user).aggregate(
        total=Sum('size_bytes'),
    )['total'] or 0


def recalculate_usage(user: _User) -> int:
    """Recalculate user's storage usage from actual files.

    Useful for fixing drift left by interrupted cascades or crashes.

    Args:
        user: User to recalculate usage for.

    Returns:
        New calculated usage in bytes.
    """
    with transaction.atomic():
        get_or_create_quota(user)
        quota = UserQuota.objects.select_for_update().get(user=user)
        total = calculate_usage(user)
        old_usage = quota.used_bytes
        quota.used_bytes = total
        quota.save(update_fields=[_USED_BYTES_FIELD])

    logger.info(
        'Recalculated usage for user %s: %d -> %d bytes',
        user.get_username(),
        old_usage,
        total,
    )

    return total
