"""Business logic for the file and folder catalog."""

import logging
from dataclasses import dataclass
from typing import IO, Any, BinaryIO, Final, NamedTuple

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from server.apps.files.exceptions import NotFoundError
from server.apps.files.infrastructure.metadata import (
    calculate_checksum,
    clean_filename,
    detect_mime_type,
    generate_blob_key,
    measure_size,
    validate_blob_key,
    validate_size,
)
from server.apps.files.infrastructure.storage import (
    delete_blob,
    get_storage,
    open_blob,
    put_blob,
)
from server.apps.files.logic import cascade_operations
from server.apps.files.logic.quota_operations import (
    charge_usage,
    commit,
    reserve,
)
from server.apps.files.logic.sharing_operations import get_readable_file
from server.apps.files.models import File, Folder

# User type for Django's dynamic user model
_User = Any

_DEFAULT_MAX_UPLOAD_BYTES: Final = 100 * 1024 * 1024

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlobMeta:
    """Description of a blob already written to storage."""

    key: str
    original_name: str
    size_bytes: int
    mime_type: str
    checksum_sha256: str = ''


class FolderContents(NamedTuple):
    """Direct children of a folder (or of the root)."""

    files: QuerySet[File]
    folders: QuerySet[Folder]


def get_max_upload_bytes() -> int:
    """Get per-file upload size limit.

    Returns:
        Limit from settings or default of 100 MB.
    """
    return getattr(settings, 'FILES_MAX_UPLOAD_BYTES', _DEFAULT_MAX_UPLOAD_BYTES)


def get_owned_folder(user: _User, folder_id: int) -> Folder:
    """Get a folder owned by user.

    Raises:
        NotFoundError: If folder doesn't exist or belongs to someone else.
    """
    try:
        return Folder.objects.get(id=folder_id, user=user)
    except Folder.DoesNotExist as error:
        raise NotFoundError from error


def get_owned_file(user: _User, file_id: int) -> File:
    """Get a file owned by user.

    Raises:
        NotFoundError: If file doesn't exist or belongs to someone else.
    """
    try:
        return File.objects.get(id=file_id, user=user)
    except File.DoesNotExist as error:
        raise NotFoundError from error


def _resolve_folder(user: _User, folder_id: int | None) -> Folder | None:
    if folder_id is None:
        return None
    return get_owned_folder(user, folder_id)


def list_children(user: _User, folder_id: int | None = None) -> FolderContents:
    """List files and folders directly inside a folder.

    Only the user's own entries are listed. An unknown folder simply
    has no children.

    Args:
        user: Owner of entries.
        folder_id: Folder to list, None for the root.

    Returns:
        FolderContents with files and folders, newest first.
    """
    logger.debug('Listing folder %s for user %s', folder_id, user.get_username())
    files = File.objects.filter(user=user, folder_id=folder_id).order_by(
        '-uploaded_at',
        '-id',
    )
    folders = Folder.objects.filter(user=user, parent_id=folder_id).order_by(
        '-created_at',
        '-id',
    )
    return FolderContents(files=files, folders=folders)


def create_folder(user: _User, parent_id: int | None, name: str | None) -> Folder:
    """Create a folder.

    Args:
        user: Owner of the folder.
        parent_id: Parent folder, None for the root.
        name: Folder name (need not be unique among siblings).

    Returns:
        Created Folder instance.

    Raises:
        ValidationError: If name is empty.
        NotFoundError: If parent isn't a folder owned by user.
    """
    name = (name or '').strip()
    if not name:
        raise ValidationError('Folder name is required')

    parent = _resolve_folder(user, parent_id)
    folder = Folder.objects.create(user=user, parent=parent, name=name)
    logger.info('Folder created: %s (ID: %d)', name, folder.id)
    return folder


def create_file(user: _User, folder_id: int | None, blob: BlobMeta) -> File:
    """Create the record for a blob that is already in storage.

    Writes no bytes and doesn't touch the quota ledger.

    Args:
        user: Owner of the file.
        folder_id: Containing folder, None for the root.
        blob: Key and metadata of the stored blob.

    Returns:
        Created File instance.

    Raises:
        ValidationError: If size or blob key is invalid.
        NotFoundError: If folder isn't a folder owned by user.
    """
    size_bytes = validate_size(blob.size_bytes)
    validate_blob_key(user.id, blob.key)
    folder = _resolve_folder(user, folder_id)

    file_instance = File.objects.create(
        user=user,
        folder=folder,
        file=blob.key,
        original_name=blob.original_name,
        size_bytes=size_bytes,
        mime_type=blob.mime_type,
        checksum_sha256=blob.checksum_sha256,
    )
    logger.info(
        'File record created in database: %s (ID: %d)',
        blob.key,
        file_instance.id,
    )
    return file_instance


def upload_file(  # noqa: WPS211
    user: _User,
    file_obj: BinaryIO,
    original_name: str,
    folder_id: int | None = None,
    declared_size: int | None = None,
    content_type: str | None = None,
) -> File:
    """Store uploaded bytes and record them in the catalog.

    Quota is checked before the write using the declared size, then
    charged with the actual size atomically together with the record.
    If the DB step fails the stored blob is deleted (rollback).

    Args:
        user: Owner of the file.
        file_obj: Uploaded content.
        original_name: Filename sent by the client.
        folder_id: Destination folder, None for the root.
        declared_size: Content length announced by the client, if any.
        content_type: MIME type announced by the client, if any.

    Returns:
        Created File instance.

    Raises:
        ValidationError: If name is missing or file is too large.
        NotFoundError: If destination folder isn't owned by user.
        QuotaExceededError: If the upload doesn't fit the user's quota.
    """
    filename = clean_filename(original_name)
    file_size = measure_size(file_obj)
    expected_size = file_size if declared_size is None else declared_size
    validate_size(expected_size)

    max_upload = get_max_upload_bytes()
    if max(file_size, expected_size) > max_upload:
        raise ValidationError(f'File exceeds upload limit of {max_upload} bytes')

    _resolve_folder(user, folder_id)
    reserve(user, expected_size)

    checksum = calculate_checksum(file_obj)
    mime_type = detect_mime_type(filename, content_type)
    blob_key = generate_blob_key(user.id, filename)

    # Step 1: Upload to storage first
    saved_key = put_blob(blob_key, file_obj)

    # Step 2: Charge quota and create record together
    try:
        with transaction.atomic():
            charge_usage(user, file_size)
            return create_file(
                user,
                folder_id,
                BlobMeta(
                    key=saved_key,
                    original_name=filename,
                    size_bytes=file_size,
                    mime_type=mime_type,
                    checksum_sha256=checksum,
                ),
            )
    except Exception:
        logger.exception(
            'Recording upload failed, rolling back storage upload: %s',
            saved_key,
        )
        get_storage().rollback_upload(saved_key)
        raise


def open_file(user: _User | None, file_id: int) -> tuple[File, IO[bytes]]:
    """Open a readable file for download.

    Args:
        user: Requesting user, None for anonymous.
        file_id: ID of the file.

    Returns:
        Tuple of File instance and an open binary handle.

    Raises:
        NotFoundError: If file doesn't exist or isn't readable.
    """
    file_instance = get_readable_file(user, file_id)
    return file_instance, open_blob(file_instance.file.name)


def delete_file(user: _User, file_id: int) -> int:
    """Delete a file owned by user.

    The record and the quota release happen in one transaction; the
    blob is deleted afterwards. A blob that can't be deleted is logged
    as orphaned and doesn't undo the delete. Must not run inside an
    outer transaction, since a rollback there would restore the record
    after its blob is gone.

    Args:
        user: Owner of the file.
        file_id: ID of file to delete.

    Returns:
        Number of bytes freed.

    Raises:
        NotFoundError: If file doesn't exist or isn't owned by user.
    """
    with transaction.atomic(durable=True):
        try:
            file_instance = File.objects.select_for_update().get(
                id=file_id,
                user=user,
            )
        except File.DoesNotExist as error:
            raise NotFoundError from error

        blob_key = file_instance.file.name
        freed = file_instance.size_bytes
        file_instance.delete()
        commit(user, -freed)

    logger.info('File deleted: ID=%d, %d bytes freed', file_id, freed)

    try:
        delete_blob(blob_key)
    except Exception:
        logger.exception('Failed to delete blob (orphaned): %s', blob_key)

    return freed


def delete_folder(user: _User, folder_id: int) -> cascade_operations.CascadeResult:
    """Delete a folder with everything below it.

    See ``cascade_operations.delete_folder``.
    """
    return cascade_operations.delete_folder(user, folder_id)
