"""Relational store with an explicit flat-file fallback.

Policy: a failed primary write is logged and repeated on the secondary
store, so a database outage degrades to the metadata file instead of
losing the write. Lookups consult the secondary when the primary fails or
does not know the id, because records written during an outage only exist
there.
"""

import logging
from collections.abc import Callable
from operator import attrgetter
from typing import TypeVar, final, override

from server.apps.videos.exceptions import MetadataStoreError, RecordNotFoundError
from server.apps.videos.infrastructure.stores.base import (
    MetadataStore,
    Record,
    RecordPredicate,
)

_Result = TypeVar('_Result')

logger = logging.getLogger(__name__)


@final
class FallbackStore(MetadataStore):
    """Composes a preferred store with a secondary used on its failure."""

    def __init__(self, primary: MetadataStore, secondary: MetadataStore) -> None:
        """Initialize FallbackStore.

        Args:
            primary: Preferred store (relational).
            secondary: Store taking over failed operations (flat file).
        """
        self.primary = primary
        self.secondary = secondary

    @override
    def get(self, record_id: str) -> Record:
        try:
            return self.primary.get(record_id)
        except RecordNotFoundError:
            logger.debug('Record %s not in primary store', record_id)
            return self.secondary.get(record_id)
        except MetadataStoreError as error:
            logger.exception(
                'Primary store lookup failed, using fallback: %s',
                record_id,
            )
            return self._on_secondary(self.secondary.get, record_id, error)

    @override
    def all(self) -> list[Record]:
        try:
            records = self.primary.all()
        except MetadataStoreError:
            logger.exception('Primary store scan failed, using fallback')
            return self.secondary.all()

        known = {record.id for record in records}
        records.extend(
            record
            for record in self.secondary.all()
            if record.id not in known
        )
        # Stable sort keeps insertion order among equal timestamps
        return sorted(records, key=attrgetter('uploaded_at'))

    @override
    def append(self, record: Record) -> None:
        try:
            self.primary.append(record)
        except MetadataStoreError:
            logger.exception(
                'Primary store write failed, writing to fallback: %s',
                record.id,
            )
            self.secondary.append(record)

    @override
    def increment_downloads(self, record_id: str) -> int:
        try:
            return self.primary.increment_downloads(record_id)
        except RecordNotFoundError:
            logger.debug('Record %s not in primary store', record_id)
            return self.secondary.increment_downloads(record_id)
        except MetadataStoreError as error:
            logger.exception(
                'Primary store counter update failed, using fallback: %s',
                record_id,
            )
            return self._on_secondary(
                self.secondary.increment_downloads,
                record_id,
                error,
            )

    @override
    def remove_where(self, predicate: RecordPredicate) -> list[Record]:
        removed: list[Record] = []
        try:
            removed.extend(self.primary.remove_where(predicate))
        except MetadataStoreError:
            logger.exception('Primary store removal failed, using fallback')
        removed.extend(self.secondary.remove_where(predicate))
        return removed

    def _on_secondary(
        self,
        operation: Callable[[str], _Result],
        record_id: str,
        primary_error: MetadataStoreError,
    ) -> _Result:
        """Repeat a keyed operation on the secondary after a primary failure.

        A record missing from the secondary most likely lives in the
        unreachable primary, so the primary failure is raised instead of
        reporting the record as absent. Callers may then retry.

        Args:
            operation: Bound secondary store method taking the record id.
            record_id: Public id of the record.
            primary_error: Failure raised by the primary store.

        Returns:
            Whatever the secondary operation returned.

        Raises:
            MetadataStoreError: If the secondary does not know the id.
        """
        try:
            return operation(record_id)
        except RecordNotFoundError:
            raise primary_error from None
