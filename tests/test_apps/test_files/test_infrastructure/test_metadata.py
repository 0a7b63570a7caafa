"""Tests for metadata utilities."""

import hashlib
import re
from io import BytesIO

import pytest
from django.core.exceptions import ValidationError
from django.core.files.base import ContentFile

from server.apps.files.infrastructure.metadata import (
    calculate_checksum,
    clean_filename,
    detect_mime_type,
    generate_blob_key,
    measure_size,
    validate_blob_key,
    validate_size,
)


@pytest.mark.parametrize(('filename', 'expected'), [
    ('test.pdf', 'application/pdf'),
    ('test.txt', 'text/plain'),
    ('test.jpg', 'image/jpeg'),
    ('test.unknown', 'application/octet-stream'),
    ('no_extension', 'application/octet-stream'),
])
def test_detect_mime_type_from_name(filename, expected):
    """MIME type is guessed from the extension."""
    assert detect_mime_type(filename) == expected


def test_detect_mime_type_prefers_declared():
    """A client-declared type wins over the guess."""
    assert detect_mime_type('photo.jpg', 'image/webp') == 'image/webp'


def test_calculate_checksum_and_rewind():
    """Checksum is SHA256 and the stream is rewound afterwards."""
    file_obj = BytesIO(b'test content')

    checksum = calculate_checksum(file_obj)

    assert checksum == hashlib.sha256(b'test content').hexdigest()
    assert file_obj.tell() == 0


def test_measure_size_without_consuming():
    """Raw streams are measured and left at the start."""
    file_obj = BytesIO(b'12345')
    file_obj.read(2)

    assert measure_size(file_obj) == 5
    assert file_obj.read() == b'12345'


def test_measure_size_uses_django_size():
    """Django files report their own size."""
    assert measure_size(ContentFile(b'abc', name='a.txt')) == 3


@pytest.mark.parametrize(('original', 'expected'), [
    ('report.pdf', 'report.pdf'),
    ('docs/report.pdf', 'report.pdf'),
    ('../../etc/passwd', 'passwd'),
    ('C:\\Users\\me\\photo.jpg', 'photo.jpg'),
])
def test_clean_filename(original, expected):
    """Directory parts sent by clients are dropped."""
    assert clean_filename(original) == expected


@pytest.mark.parametrize('original', ['', '   ', '..', 'docs/..'])
def test_clean_filename_rejects_empty(original):
    """Names with nothing left after cleaning are invalid."""
    with pytest.raises(ValidationError):
        clean_filename(original)


def test_generate_blob_key_format():
    """Keys carry the owner prefix and keep a lowercased extension."""
    key = generate_blob_key(42, 'Holiday.JPG')

    assert re.fullmatch(r'42/\d+-\d+\.jpg', key)


def test_generate_blob_key_is_unique():
    """Two uploads of the same name get different keys."""
    keys = {generate_blob_key(1, 'same.txt') for _ in range(50)}

    assert len(keys) == 50


def test_validate_blob_key_valid():
    """Keys under the owner's prefix pass."""
    validate_blob_key(123, '123/1760000000000-5.txt')


@pytest.mark.parametrize('blob_key', [
    '',
    '123',
    '456/file.txt',
    'abc/file.txt',
])
def test_validate_blob_key_invalid(blob_key):
    """Empty, prefix-less or foreign keys are rejected."""
    with pytest.raises(ValidationError):
        validate_blob_key(123, blob_key)


def test_validate_size_accepts_zero():
    """Empty files are allowed."""
    assert validate_size(0) == 0


@pytest.mark.parametrize('size_bytes', [-1, 1.5, '10', None, True])
def test_validate_size_rejects(size_bytes):
    """Only non-negative integers are sizes."""
    with pytest.raises(ValidationError):
        validate_size(size_bytes)
