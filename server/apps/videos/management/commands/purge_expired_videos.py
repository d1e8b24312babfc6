"""Management command to purge videos older than the retention age.

Intended for cron, e.g. ``python manage.py purge_expired_videos``.
"""

import logging
from typing import Any, final, override

from django.conf import settings
from django.core.files.storage import default_storage
from django.core.management.base import BaseCommand

from server.apps.videos.infrastructure.stores import get_store
from server.apps.videos.logic.retention_operations import (
    find_expired,
    purge_expired,
    retention_cutoff,
)

logger = logging.getLogger(__name__)


@final
class Command(BaseCommand):
    """Delete blobs and metadata of videos past the retention age."""

    help = 'Purge uploaded videos older than VIDEOS_RETENTION_DAYS'

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--days',
            type=int,
            default=None,
            help='Retention age in days (default: VIDEOS_RETENTION_DAYS)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the purge command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        retention_days = options['days']
        if retention_days is None:
            retention_days = settings.VIDEOS_RETENTION_DAYS

        if retention_days <= 0:
            self.stdout.write('Retention disabled. Nothing to do.')
            return

        store = get_store()
        self.stdout.write(
            f'Looking for videos uploaded before '
            f'{retention_cutoff(retention_days)} '
            f'(older than {retention_days} days)',
        )

        if options['dry_run']:
            expired = find_expired(store, retention_days)
            for record in expired:
                self.stdout.write(
                    f'Would delete: {record.stored_name} '
                    f'(id: {record.id}, uploaded: {record.uploaded_at})',
                )
            self.stdout.write(
                self.style.SUCCESS(f'Would purge {len(expired)} videos'),
            )
            return

        removed = purge_expired(store, default_storage, retention_days)
        for record in removed:
            logger.info(
                'Purged expired video: %s (ID: %s)',
                record.stored_name,
                record.id,
            )
        self.stdout.write(
            self.style.SUCCESS(f'Purged {len(removed)} videos'),
        )
