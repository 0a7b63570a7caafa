"""Management command to rebuild storage usage from live files."""

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from server.apps.files.logic.quota_operations import (
    calculate_usage,
    get_or_create_quota,
    recalculate_usage,
)

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Reset every user's used bytes to the sum of their file sizes."""

    help = 'Recalculate storage usage from live files'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report drift without changing usage',
        )
        parser.add_argument(
            '--user',
            dest='email',
            default=None,
            help='Only recalculate the user with this e-mail',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the recalculation.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        dry_run = options['dry_run']
        users = get_user_model().objects.order_by('pk')
        if options['email']:
            users = users.filter(email__iexact=options['email'])
            if not users.exists():
                raise CommandError(f'No user with email {options["email"]}')

        checked = 0
        drifted = 0

        for user in users.iterator():
            checked += 1
            recorded = get_or_create_quota(user).used_bytes
            actual = calculate_usage(user)
            if recorded == actual:
                continue

            drifted += 1
            self.stdout.write(
                f'{user.get_username()}: recorded {recorded}, actual {actual}',
            )
            if not dry_run:
                recalculate_usage(user)

        if dry_run:
            summary = f'Checked {checked} users, {drifted} would be fixed'
        else:
            summary = f'Checked {checked} users, fixed {drifted}'
        logger.info(summary)
        self.stdout.write(self.style.SUCCESS(summary))
