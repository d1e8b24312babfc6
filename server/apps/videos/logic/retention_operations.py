"""Business logic for the retention sweep."""

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from django.utils import timezone

from server.apps.videos.infrastructure.stores import MetadataStore, Record

if TYPE_CHECKING:
    from server.apps.videos.infrastructure.blobs import BlobStorage

logger = logging.getLogger(__name__)


def retention_cutoff(retention_days: int, now: datetime | None = None) -> datetime:
    """Moment before which uploads are expired.

    Args:
        retention_days: Retention age in days.
        now: Reference time, defaults to the current time.

    Returns:
        ``now - retention_days``.
    """
    reference = now or timezone.now()
    return reference - timedelta(days=retention_days)


def find_expired(
    store: MetadataStore,
    retention_days: int,
    now: datetime | None = None,
) -> list[Record]:
    """List records uploaded strictly before the retention cutoff.

    Args:
        store: Metadata store to scan.
        retention_days: Retention age in days; 0 or less disables.
        now: Reference time, defaults to the current time.

    Returns:
        Expired records in insertion order (empty if disabled).
    """
    if retention_days <= 0:
        return []
    cutoff = retention_cutoff(retention_days, now)
    return [record for record in store.all() if record.uploaded_at < cutoff]


def purge_expired(
    store: MetadataStore,
    storage: 'BlobStorage',
    retention_days: int,
    *,
    now: datetime | None = None,
) -> list[Record]:
    """Delete blobs and records older than the retention age.

    Each expired blob is deleted first (an already missing blob counts as
    deleted), then the records whose blobs are gone are removed from the
    store in one locked pass. A blob that cannot be deleted keeps its
    record, so the next run retries it.

    Args:
        store: Metadata store to purge.
        storage: Blob storage holding the file contents.
        retention_days: Retention age in days; 0 or less disables.
        now: Reference time, defaults to the current time.

    Returns:
        The removed records.
    """
    if retention_days <= 0:
        logger.info('Retention disabled, nothing to purge')
        return []

    now = now or timezone.now()
    cutoff = retention_cutoff(retention_days, now)
    expired = find_expired(store, retention_days, now)

    blobs_gone: set[str] = set()
    for record in expired:
        try:
            storage.discard(record.stored_name)
        except OSError:
            # Keep the record so the blob is retried on the next run
            logger.exception(
                'Failed to delete expired blob, keeping record: %s',
                record.id,
            )
            continue
        blobs_gone.add(record.id)

    removed = store.remove_where(
        lambda record: record.id in blobs_gone and record.uploaded_at < cutoff,
    )
    logger.info(
        'Purged %d of %d expired videos (uploaded before %s)',
        len(removed),
        len(expired),
        cutoff.isoformat(),
    )
    return removed
