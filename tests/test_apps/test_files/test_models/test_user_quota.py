"""Tests for UserQuota model."""

import pytest
from django.db import IntegrityError

from server.apps.files.models import UserQuota


@pytest.mark.django_db
def test_user_quota_default_values(user):
    """New quotas allow 1 GB and start empty."""
    quota = UserQuota.objects.create(user=user)

    assert quota.quota_bytes == 1024 * 1024 * 1024
    assert quota.used_bytes == 0


@pytest.mark.django_db
def test_user_quota_default_follows_setting(user, settings):
    """Default limit is read from FILES_DEFAULT_QUOTA_BYTES."""
    settings.FILES_DEFAULT_QUOTA_BYTES = 5000

    quota = UserQuota.objects.create(user=user)

    assert quota.quota_bytes == 5000


@pytest.mark.django_db
def test_user_quota_one_to_one_constraint(user):
    """A user has at most one ledger row."""
    UserQuota.objects.create(user=user)

    with pytest.raises(IntegrityError):
        UserQuota.objects.create(user=user)


@pytest.mark.django_db
def test_user_quota_str_representation(user, make_quota):
    """String shows used/limit."""
    quota = make_quota(user, quota_bytes=1024, used_bytes=512)

    assert str(quota) == f'{user.username}: 512/1024'


@pytest.mark.django_db
@pytest.mark.parametrize(('used', 'requested', 'expected'), [
    (400, 500, True),
    (400, 600, True),  # exactly at limit
    (400, 601, False),
    (1000, 0, True),
    (1000, 1, False),
])
def test_has_space_for(user, make_quota, used, requested, expected):
    """Space check is inclusive of the limit."""
    quota = make_quota(user, quota_bytes=1000, used_bytes=used)

    assert quota.has_space_for(requested) is expected


@pytest.mark.django_db
@pytest.mark.parametrize(('used', 'expected'), [
    (400, 600),
    (1000, 0),
    (1200, 0),  # over quota never goes negative
])
def test_available_bytes(user, make_quota, used, expected):
    """Available space is limit minus usage, floored at zero."""
    quota = make_quota(user, quota_bytes=1000, used_bytes=used)

    assert quota.available_bytes() == expected


@pytest.mark.django_db
@pytest.mark.parametrize(('quota_bytes', 'used_bytes'), [
    (-100, 0),
    (1000, -100),
])
def test_negative_values_rejected(user, quota_bytes, used_bytes):
    """Check constraints keep both counters non-negative."""
    quota = UserQuota(
        user=user,
        quota_bytes=quota_bytes,
        used_bytes=used_bytes,
    )

    with pytest.raises(IntegrityError):
        quota.save()


@pytest.mark.django_db
def test_user_quota_cascade_delete(user):
    """Quota goes away with its user."""
    quota = UserQuota.objects.create(user=user)
    quota_pk = quota.pk

    user.delete()

    assert not UserQuota.objects.filter(pk=quota_pk).exists()
