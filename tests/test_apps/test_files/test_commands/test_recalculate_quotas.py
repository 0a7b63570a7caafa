"""Tests for recalculate_quotas management command."""

from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from server.apps.files.models import UserQuota


@pytest.mark.django_db
class TestRecalculateQuotasCommand:
    """Tests for recalculate_quotas management command."""

    def test_fixes_drifted_usage(self, user, other_user, make_quota, make_file):
        """Drifted users are reset to the sum of their files."""
        make_quota(user, quota_bytes=10000, used_bytes=999)
        make_quota(other_user, quota_bytes=10000, used_bytes=50)
        make_file(user, size_bytes=100)
        make_file(other_user, size_bytes=50)

        out = StringIO()
        call_command('recalculate_quotas', stdout=out)

        assert UserQuota.objects.get(user=user).used_bytes == 100
        assert UserQuota.objects.get(user=other_user).used_bytes == 50
        assert f'{user.username}: recorded 999, actual 100' in out.getvalue()
        assert 'Checked 2 users, fixed 1' in out.getvalue()

    def test_dry_run_changes_nothing(self, user, make_quota, make_file):
        """Dry run only reports."""
        make_quota(user, quota_bytes=10000, used_bytes=999)
        make_file(user, size_bytes=100)

        out = StringIO()
        call_command('recalculate_quotas', '--dry-run', stdout=out)

        assert UserQuota.objects.get(user=user).used_bytes == 999
        assert 'Checked 1 users, 1 would be fixed' in out.getvalue()

    def test_single_user(self, user, other_user, make_quota, make_file):
        """--user limits the run to one e-mail."""
        make_quota(user, quota_bytes=10000, used_bytes=999)
        make_quota(other_user, quota_bytes=10000, used_bytes=999)

        out = StringIO()
        call_command(
            'recalculate_quotas',
            '--user',
            other_user.email,
            stdout=out,
        )

        assert UserQuota.objects.get(user=user).used_bytes == 999
        assert UserQuota.objects.get(user=other_user).used_bytes == 0

    def test_unknown_user(self, user):
        """Unknown e-mail fails the command."""
        with pytest.raises(CommandError):
            call_command('recalculate_quotas', '--user', 'nobody@example.com')
