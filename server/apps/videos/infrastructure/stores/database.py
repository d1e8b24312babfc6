"""Relational metadata store on top of the ``VideoRecord`` model."""

import logging
from typing import Final, final, override

from django.db import DatabaseError, transaction
from django.db.models import F

from server.apps.videos.exceptions import MetadataStoreError, RecordNotFoundError
from server.apps.videos.infrastructure.stores.base import (
    MetadataStore,
    Record,
    RecordPredicate,
)
from server.apps.videos.models import VideoRecord

# Field name constant to avoid string literal over-use
_DOWNLOADS_FIELD: Final = 'downloads'

logger = logging.getLogger(__name__)


def _to_record(row: VideoRecord) -> Record:
    return Record(
        id=row.id,
        original_name=row.original_name,
        stored_name=row.stored_name,
        size=row.size,
        mime=row.mime,
        uploaded_at=row.uploaded_at,
        downloads=row.downloads,
        title=row.title or None,
        password=row.password or None,
    )


@final
class DatabaseStore(MetadataStore):
    """Metadata store with one table row per record.

    Counter updates are a single ``UPDATE ... SET downloads = downloads + 1``
    so there is no read-modify-write race. Every database failure is
    raised as ``MetadataStoreError``.
    """

    @override
    def get(self, record_id: str) -> Record:
        try:
            row = VideoRecord.objects.get(pk=record_id)
        except VideoRecord.DoesNotExist:
            raise RecordNotFoundError(record_id) from None
        except DatabaseError as error:
            raise MetadataStoreError('Database lookup failed') from error
        return _to_record(row)

    @override
    def all(self) -> list[Record]:
        try:
            rows = list(VideoRecord.objects.order_by('uploaded_at', 'id'))
        except DatabaseError as error:
            raise MetadataStoreError('Database scan failed') from error
        return [_to_record(row) for row in rows]

    @override
    def append(self, record: Record) -> None:
        try:
            VideoRecord.objects.create(
                id=record.id,
                original_name=record.original_name,
                stored_name=record.stored_name,
                size=record.size,
                mime=record.mime,
                uploaded_at=record.uploaded_at,
                downloads=record.downloads,
                title=record.title or '',
                password=record.password or '',
            )
        except DatabaseError as error:
            raise MetadataStoreError(
                f'Database insert failed: {record.id}',
            ) from error
        logger.info('Inserted record into database: %s', record.id)

    @override
    def increment_downloads(self, record_id: str) -> int:
        try:
            with transaction.atomic():
                updated = VideoRecord.objects.filter(pk=record_id).update(
                    downloads=F(_DOWNLOADS_FIELD) + 1,
                )
                if not updated:
                    raise RecordNotFoundError(record_id)
                return VideoRecord.objects.values_list(
                    _DOWNLOADS_FIELD,
                    flat=True,
                ).get(pk=record_id)
        except DatabaseError as error:
            raise MetadataStoreError(
                f'Database counter update failed: {record_id}',
            ) from error

    @override
    def remove_where(self, predicate: RecordPredicate) -> list[Record]:
        try:
            with transaction.atomic():
                # Enumerate first so callers learn which blobs to delete
                candidates = [
                    record
                    for record in map(
                        _to_record,
                        VideoRecord.objects.select_for_update().order_by(
                            'uploaded_at',
                            'id',
                        ),
                    )
                    if predicate(record)
                ]
                VideoRecord.objects.filter(
                    pk__in=[record.id for record in candidates],
                ).delete()
        except DatabaseError as error:
            raise MetadataStoreError('Database bulk delete failed') from error

        if candidates:
            logger.info('Deleted %d records from database', len(candidates))
        return candidates
