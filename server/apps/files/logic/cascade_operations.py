"""Business logic for deleting folders together with their contents."""

import logging
from dataclasses import dataclass, field
from typing import Any

from django.db import transaction
from django.db.models import ProtectedError

from server.apps.files.exceptions import ConflictError, NotFoundError
from server.apps.files.infrastructure.storage import delete_blob
from server.apps.files.logic.quota_operations import commit
from server.apps.files.models import File, Folder

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)


@dataclass
class CascadeResult:
    """Outcome of a folder delete.

    ``failed_blobs`` lists storage keys whose records are gone but whose
    bytes could not be removed, so a caller can reconcile them later.
    """

    freed_bytes: int = 0
    deleted_files: int = 0
    deleted_folders: int = 0
    failed_blobs: list[str] = field(default_factory=list)


def collect_descendant_ids(user: _User, folder_id: int) -> list[int]:
    """Collect a folder's ID and the IDs of every folder below it.

    Walks the tree level by level, one query per level.

    Args:
        user: Folder owner.
        folder_id: Root of the subtree.

    Returns:
        Folder IDs, root first.
    """
    collected = [folder_id]
    level = [folder_id]
    while level:
        level = list(
            Folder.objects.filter(
                user=user,
                parent_id__in=level,
            ).values_list('id', flat=True),
        )
        collected.extend(level)
    return collected


def delete_folder(user: _User, folder_id: int) -> CascadeResult:
    """Delete a folder, its subfolders and every file inside them.

    Records and the ledger change are applied in one transaction:
    files first, then the folder tree, then a single negative delta
    for the summed sizes. Blobs are removed afterwards, best-effort;
    failures are logged and reported in the result, never raised.
    Must not run inside an outer transaction.

    Args:
        user: Folder owner.
        folder_id: ID of folder to delete.

    Returns:
        CascadeResult with freed bytes and any blobs left behind.

    Raises:
        NotFoundError: If folder doesn't exist or isn't owned by user.
        ConflictError: If files appeared in the tree during the delete;
            nothing is removed.
    """
    result = CascadeResult()

    with transaction.atomic(durable=True):
        try:
            folder = Folder.objects.select_for_update().get(
                id=folder_id,
                user=user,
            )
        except Folder.DoesNotExist as error:
            raise NotFoundError from error

        folder_ids = collect_descendant_ids(user, folder.id)
        # Locked subfolders can't receive new files until commit
        list(
            Folder.objects.select_for_update().filter(
                id__in=folder_ids,
            ).values_list('id', flat=True),
        )
        files = list(
            File.objects.select_for_update().filter(folder_id__in=folder_ids),
        )
        blob_keys = [file_instance.file.name for file_instance in files]

        result.freed_bytes = sum(
            file_instance.size_bytes for file_instance in files
        )
        File.objects.filter(
            id__in=[file_instance.id for file_instance in files],
        ).delete()
        result.deleted_files = len(files)
        result.deleted_folders = len(folder_ids)
        try:
            folder.delete()
        except ProtectedError as error:
            logger.warning(
                'Folder %d gained files during delete, rolled back',
                folder_id,
            )
            raise ConflictError(
                'Folder changed while being deleted, try again',
            ) from error

        if result.freed_bytes:
            commit(user, -result.freed_bytes)

    logger.info(
        'Folder deleted: ID=%d, %d folders, %d files, %d bytes freed',
        folder_id,
        result.deleted_folders,
        result.deleted_files,
        result.freed_bytes,
    )

    for blob_key in blob_keys:
        if not blob_key:
            continue
        try:
            delete_blob(blob_key)
        except Exception:
            logger.exception(
                'Failed to delete blob during folder delete (orphaned): %s',
                blob_key,
            )
            result.failed_blobs.append(blob_key)

    return result
