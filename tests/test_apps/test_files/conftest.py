"""Shared fixtures for files app tests."""

import boto3
import pytest
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.files.base import ContentFile
from moto import mock_aws

from server.apps.files.models import File, UserQuota

User = get_user_model()


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance for testing.
    """
    return User.objects.create_user(
        username='testuser',
        password='testpass123',
        email='test@example.com',
    )


@pytest.fixture
def other_user(db):
    """Create second test user for isolation and sharing tests.

    Returns:
        Second user instance.
    """
    return User.objects.create_user(
        username='otheruser',
        password='testpass123',
        email='other@example.com',
    )


@pytest.fixture
def bucket_name():
    """Bucket the default storage writes to."""
    return settings.STORAGES['default']['OPTIONS']['bucket_name']


@pytest.fixture
def mock_s3(bucket_name):
    """Mock S3 service with the drive bucket.

    Yields:
        boto3 S3 resource with the bucket created.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')
        conn.create_bucket(Bucket=bucket_name)
        yield conn


@pytest.fixture
def bucket_keys(mock_s3, bucket_name):
    """Callable listing every key currently in the mocked bucket."""

    def factory() -> set[str]:
        return {
            obj.key for obj in mock_s3.Bucket(bucket_name).objects.all()
        }

    return factory


@pytest.fixture
def sample_file_content():
    """Sample file content for testing.

    Returns:
        ContentFile with test data.
    """
    return ContentFile(b'test file content', name='test.txt')


@pytest.fixture
def make_quota():
    """Factory for quota records with explicit limit and usage."""

    def factory(owner, quota_bytes=1000, used_bytes=0) -> UserQuota:
        return UserQuota.objects.create(
            user=owner,
            quota_bytes=quota_bytes,
            used_bytes=used_bytes,
        )

    return factory


@pytest.fixture
def make_file():
    """Factory for file records whose blobs are not in storage."""
    counter = iter(range(1, 10_000))

    def factory(owner, size_bytes=100, folder=None, **kwargs) -> File:
        number = next(counter)
        return File.objects.create(
            user=owner,
            folder=folder,
            file=f'{owner.id}/record-{number}.txt',
            original_name=f'file{number}.txt',
            size_bytes=size_bytes,
            mime_type='text/plain',
            **kwargs,
        )

    return factory
