"""Flat-file metadata store: one JSON array guarded by ``flock``.

Every mutation holds an exclusive lock on the metadata file for the whole
read-modify-write cycle and rewrites the complete array, so concurrent
uploads, downloads and sweeps serialize on the file. Readers take a shared
lock so they never observe a writer's truncate-then-write window.
"""

import fcntl
import json
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import IO, Any, Final, TypeVar, final, override

from server.apps.videos.exceptions import MetadataStoreError, RecordNotFoundError
from server.apps.videos.infrastructure.stores.base import (
    MetadataStore,
    Record,
    RecordPredicate,
)

_FILE_MODE: Final = 0o644
_JSON_INDENT: Final = 4

_Result = TypeVar('_Result')
_Mutation = Callable[[list[Record]], tuple[list[Record], _Result]]

logger = logging.getLogger(__name__)


@final
class _Snapshot:
    """Decoded contents of the metadata file."""

    def __init__(self, entries: list[Any], *, corrupted: bool) -> None:
        # Records and, in their original positions, raw entries that are
        # not valid records; the latter are written back verbatim
        self.entries = entries
        self.corrupted = corrupted

    @property
    def records(self) -> list[Record]:
        """Valid records in file order."""
        return [entry for entry in self.entries if isinstance(entry, Record)]


@final
class JsonFileStore(MetadataStore):
    """Metadata store backed by a single JSON file.

    The file holds one array of records in insertion order. Empty or
    missing content is an empty collection (first run). Unparsable
    content is also read as empty, but it is logged and copied aside
    before the next write replaces it.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize JsonFileStore.

        Args:
            path: Location of the metadata file; created on first write.
        """
        self.path = Path(path)

    @override
    def get(self, record_id: str) -> Record:
        for record in self.all():
            if record.id == record_id:
                return record
        raise RecordNotFoundError(record_id)

    @override
    def all(self) -> list[Record]:
        try:
            handle = self.path.open('rb')
        except FileNotFoundError:
            return []
        except OSError as error:
            raise MetadataStoreError(
                f'Cannot open metadata file: {self.path}',
            ) from error

        with handle:
            with self._lock(handle, fcntl.LOCK_SH):
                raw = handle.read()
        return self._decode(raw).records

    @override
    def append(self, record: Record) -> None:
        def add(records: list[Record]) -> tuple[list[Record], None]:
            if any(existing.id == record.id for existing in records):
                raise MetadataStoreError(f'Duplicate record id: {record.id}')
            return [*records, record], None

        self._mutate(add)
        logger.info('Appended record to %s: %s', self.path, record.id)

    @override
    def increment_downloads(self, record_id: str) -> int:
        def bump(records: list[Record]) -> tuple[list[Record], int]:
            for index, record in enumerate(records):
                if record.id == record_id:
                    updated = record.with_downloads(record.downloads + 1)
                    records[index] = updated
                    return records, updated.downloads
            raise RecordNotFoundError(record_id)

        return self._mutate(bump)

    @override
    def remove_where(self, predicate: RecordPredicate) -> list[Record]:
        def prune(records: list[Record]) -> tuple[list[Record], list[Record]]:
            kept: list[Record] = []
            removed: list[Record] = []
            for record in records:
                (removed if predicate(record) else kept).append(record)
            return kept, removed

        removed = self._mutate(prune)
        if removed:
            logger.info(
                'Removed %d records from %s',
                len(removed),
                self.path,
            )
        return removed

    def _mutate(self, mutation: _Mutation[_Result]) -> _Result:
        """Run one locked read-modify-write cycle on the metadata file.

        Args:
            mutation: Receives the current records and returns the new
                collection plus a result for the caller. Raising inside
                the mutation leaves the file untouched.

        Returns:
            Whatever the mutation returned as its result.

        Raises:
            MetadataStoreError: If the file cannot be opened or written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_RDWR | os.O_CREAT, _FILE_MODE)
        except OSError as error:
            raise MetadataStoreError(
                f'Cannot open metadata file: {self.path}',
            ) from error

        with os.fdopen(fd, 'r+b') as handle:
            # Blocks until every other writer is done; no timeout
            with self._lock(handle, fcntl.LOCK_EX):
                try:
                    raw = handle.read()
                    snapshot = self._decode(raw)
                    records, result = mutation(list(snapshot.records))
                    if snapshot.corrupted:
                        self._preserve_corrupted(raw)
                    handle.seek(0)
                    handle.truncate()
                    handle.write(self._encode(records, snapshot.entries))
                    handle.flush()
                    os.fsync(handle.fileno())
                except OSError as error:
                    raise MetadataStoreError(
                        f'Cannot write metadata file: {self.path}',
                    ) from error
        return result

    @contextmanager
    def _lock(self, handle: IO[bytes], operation: int) -> Iterator[None]:
        fcntl.flock(handle.fileno(), operation)
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)

    def _decode(self, raw: bytes) -> _Snapshot:
        if not raw.strip():
            return _Snapshot([], corrupted=False)

        try:
            payload = json.loads(raw)
        except ValueError:
            payload = None
        if not isinstance(payload, list):
            # Known data-loss risk: the collection is read as empty
            logger.error(
                'Metadata file %s is not a JSON array; treating it as empty',
                self.path,
            )
            return _Snapshot([], corrupted=True)

        entries: list[Any] = []
        for entry in payload:
            try:
                entries.append(Record.from_dict(entry))
            except (KeyError, ValueError, TypeError):
                logger.warning(
                    'Skipping malformed entry in %s: %r',
                    self.path,
                    entry,
                )
                entries.append(entry)
        return _Snapshot(entries, corrupted=False)

    def _encode(self, records: list[Record], previous: list[Any]) -> bytes:
        """Serialize records, keeping every entry at its previous position.

        Args:
            records: Collection returned by the mutation.
            previous: Entries as decoded from the file.

        Returns:
            UTF-8 JSON array: surviving and malformed entries in file
            order, then records added by the mutation.
        """
        pending = {record.id: record for record in records}
        payload: list[Any] = []
        for entry in previous:
            if not isinstance(entry, Record):
                payload.append(entry)
            elif entry.id in pending:
                payload.append(pending.pop(entry.id).to_dict())
        payload.extend(
            record.to_dict() for record in records if record.id in pending
        )
        return json.dumps(
            payload,
            indent=_JSON_INDENT,
            ensure_ascii=False,
        ).encode('utf-8')

    def _preserve_corrupted(self, raw: bytes) -> None:
        timestamp = datetime.now(tz=UTC).strftime('%Y%m%dT%H%M%S%f')
        backup = self.path.with_name(f'{self.path.name}.corrupt-{timestamp}')
        backup.write_bytes(raw)
        logger.error(
            'Unparsable metadata preserved at %s before overwriting %s',
            backup,
            self.path,
        )
