"""Business logic for file access checks and sharing."""

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q, QuerySet

from server.apps.files.exceptions import ForbiddenError, NotFoundError
from server.apps.files.models import File, FileShare

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)


def _is_authenticated(user: _User | None) -> bool:
    return user is not None and bool(getattr(user, 'is_authenticated', False))


def can_read(user: _User | None, file_instance: File) -> bool:
    """Check whether a user may download a file.

    Owners, any grantee and, for public files, everyone may read.

    Args:
        user: Requesting user, None or anonymous for unauthenticated.
        file_instance: File to check.

    Returns:
        True if reading is allowed.
    """
    if file_instance.is_public:
        return True
    if not _is_authenticated(user):
        return False
    if file_instance.user_id == user.pk:
        return True
    return file_instance.shares.filter(user=user).exists()


def can_edit(user: _User | None, file_instance: File) -> bool:
    """Check whether a user may modify a file.

    Only the owner and holders of an edit grant may edit; public
    visibility never grants edit.

    Args:
        user: Requesting user, None or anonymous for unauthenticated.
        file_instance: File to check.

    Returns:
        True if editing is allowed.
    """
    if not _is_authenticated(user):
        return False
    if file_instance.user_id == user.pk:
        return True
    return file_instance.shares.filter(
        user=user,
        permission=FileShare.Permission.EDIT,
    ).exists()


def readable_files(user: _User | None) -> QuerySet[File]:
    """Files a user may read, as a single query.

    Args:
        user: Requesting user, None or anonymous for unauthenticated.

    Returns:
        QuerySet of readable files.
    """
    visible = Q(is_public=True)
    if _is_authenticated(user):
        visible |= Q(user=user) | Q(shares__user=user)
    return File.objects.filter(visible).distinct()


def get_readable_file(user: _User | None, file_id: int) -> File:
    """Get file if the user may read it.

    Args:
        user: Requesting user.
        file_id: ID of the file.

    Returns:
        File instance.

    Raises:
        NotFoundError: If file doesn't exist or isn't readable.
    """
    try:
        return readable_files(user).get(id=file_id)
    except File.DoesNotExist as error:
        raise NotFoundError from error


def normalize_permission(permission: str | None) -> str:
    """Map requested permission onto a known one.

    Args:
        permission: Requested permission, may be missing or unknown.

    Returns:
        'edit' or 'read' ('read' for anything unrecognized).
    """
    if permission in FileShare.Permission.values:
        return permission
    return FileShare.Permission.READ


def grant_access(
    owner: _User,
    file_id: int,
    email: str | None,
    permission: str | None = None,
) -> FileShare:
    """Share a file with another user, identified by e-mail.

    Granting twice to the same user updates the existing grant instead
    of adding a second one.

    Args:
        owner: File owner performing the share.
        file_id: ID of file to share.
        email: Grantee's e-mail address.
        permission: 'read' or 'edit', defaults to 'read'.

    Returns:
        The created or updated FileShare.

    Raises:
        ValidationError: If email is missing, ambiguous or names the owner.
        NotFoundError: If no user has that email or owner doesn't own file.
    """
    email = (email or '').strip()
    if not email:
        raise ValidationError('Email is required')

    # Auth e-mails are neither unique nor case-folded
    matches = list(
        get_user_model().objects.filter(email__iexact=email)[:2],
    )
    if not matches:
        raise NotFoundError('User not found')
    if len(matches) > 1:
        raise ValidationError('Email matches more than one user')
    target = matches[0]

    if target.pk == owner.pk:
        raise ValidationError('Cannot share with yourself')

    try:
        file_instance = File.objects.get(id=file_id, user=owner)
    except File.DoesNotExist as error:
        raise NotFoundError from error

    permission = normalize_permission(permission)
    with transaction.atomic():
        share, created = FileShare.objects.update_or_create(
            file=file_instance,
            user=target,
            defaults={'permission': permission},
        )

    logger.info(
        'File %d shared with %s (%s, %s)',
        file_instance.id,
        target.get_username(),
        permission,
        'new' if created else 'updated',
    )
    return share


def set_public(owner: _User, file_id: int, is_public: bool) -> File:
    """Toggle public visibility of a file.

    Args:
        owner: User performing the change, must own the file.
        file_id: ID of the file.
        is_public: New visibility.

    Returns:
        Updated File instance.

    Raises:
        ValidationError: If is_public isn't a bool.
        NotFoundError: If the file isn't visible to the caller.
        ForbiddenError: If the caller sees the file but doesn't own it.
    """
    if not isinstance(is_public, bool):
        raise ValidationError('isPublic must be a boolean')

    file_instance = get_readable_file(owner, file_id)
    if file_instance.user_id != owner.pk:
        logger.warning(
            'User %s tried to change visibility of file %d',
            owner.get_username(),
            file_id,
        )
        raise ForbiddenError('Only the owner can change file visibility')

    file_instance.is_public = is_public
    file_instance.save(update_fields=['is_public', 'modified_at'])

    logger.info(
        'File %d is now %s',
        file_id,
        'public' if is_public else 'private',
    )
    return file_instance


def list_shared_with(user: _User) -> QuerySet[File]:
    """List files other users have shared with a user.

    Args:
        user: Grantee.

    Returns:
        QuerySet of files, newest first.
    """
    return File.objects.filter(
        shares__user=user,
    ).exclude(user=user).select_related('user').distinct()
