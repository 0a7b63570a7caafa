"""Tests for the S3 blob store backend."""

from unittest.mock import patch

from django.core.files.base import ContentFile
from storages.backends.s3 import S3Storage

from server.apps.files.infrastructure.storage import (
    delete_blob,
    get_storage,
    open_blob,
    put_blob,
)


def test_put_open_delete(mock_s3, bucket_keys):
    """Blobs can be written, read back and deleted by key."""
    key = put_blob('1/1760000000000-7.txt', ContentFile(b'payload'))

    assert key == '1/1760000000000-7.txt'
    assert bucket_keys() == {key}
    with open_blob(key) as handle:
        assert handle.read() == b'payload'

    delete_blob(key)

    assert bucket_keys() == set()


def test_put_never_overwrites(mock_s3, bucket_keys):
    """A taken key gets an alternative name instead of being replaced."""
    first = put_blob('1/same.txt', ContentFile(b'one'))
    second = put_blob('1/same.txt', ContentFile(b'two'))

    assert first != second
    assert bucket_keys() == {first, second}


def test_rollback_upload_removes_blob(mock_s3, bucket_keys):
    """Rollback deletes the blob."""
    key = put_blob('1/tmp.txt', ContentFile(b'x'))

    get_storage().rollback_upload(key)

    assert bucket_keys() == set()


def test_rollback_upload_swallows_errors(mock_s3):
    """Rollback never raises."""
    with patch.object(S3Storage, 'delete', side_effect=RuntimeError('down')):
        get_storage().rollback_upload('1/missing.txt')
