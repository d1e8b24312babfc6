"""Record type and the interface every metadata store implements."""

import abc
import dataclasses
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any, Final, final

_OPTIONAL_FIELDS: Final = ('title', 'password')

RecordPredicate = Callable[['Record'], bool]


@final
@dataclasses.dataclass(frozen=True, slots=True)
class Record:
    """Metadata describing one stored blob.

    Everything except ``downloads`` is fixed at ingest. Optional
    ``title`` and ``password`` are ``None`` when absent, never ``''``.
    """

    id: str
    original_name: str
    stored_name: str
    size: int
    mime: str
    uploaded_at: datetime
    downloads: int = 0
    title: str | None = None
    password: str | None = None

    @property
    def is_protected(self) -> bool:
        """Whether the record carries its own download password."""
        return self.password is not None

    @property
    def display_title(self) -> str:
        """Title for listings, falling back to the original filename."""
        return self.title or self.original_name

    def with_downloads(self, downloads: int) -> 'Record':
        """Copy of the record with a new download counter."""
        return dataclasses.replace(self, downloads=downloads)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the flat-file representation.

        Returns:
            JSON-compatible dictionary; ``uploaded_at`` as ISO 8601.
        """
        payload = dataclasses.asdict(self)
        payload['uploaded_at'] = self.uploaded_at.isoformat()
        return payload

    def public_dict(self) -> dict[str, Any]:
        """Serialize for listings and API responses.

        Returns:
            Same as ``to_dict`` without the password, plus ``protected``.
        """
        payload = self.to_dict()
        payload.pop('password')
        payload['protected'] = self.is_protected
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> 'Record':
        """Build a record from its flat-file representation.

        Empty-string title/password written by older versions are read
        as absent. Naive timestamps are taken as UTC.

        Args:
            payload: Mapping as produced by ``to_dict``.

        Returns:
            Parsed record.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If a field has an unusable value.
            TypeError: If a field has an unusable type.
        """
        uploaded_at = payload['uploaded_at']
        if not isinstance(uploaded_at, datetime):
            uploaded_at = datetime.fromisoformat(uploaded_at)
        if uploaded_at.tzinfo is None:
            uploaded_at = uploaded_at.replace(tzinfo=UTC)

        optional = {
            field_name: payload.get(field_name) or None
            for field_name in _OPTIONAL_FIELDS
        }
        return cls(
            id=str(payload['id']),
            original_name=str(payload['original_name']),
            stored_name=str(payload['stored_name']),
            size=int(payload['size']),
            mime=str(payload['mime']),
            uploaded_at=uploaded_at,
            downloads=int(payload.get('downloads') or 0),
            **optional,
        )


class MetadataStore(abc.ABC):
    """Durable mapping from record id to ``Record``.

    Implementations must keep ``downloads`` increments of the same record
    from being lost under concurrency and must never expose a partially
    written record.
    """

    @abc.abstractmethod
    def get(self, record_id: str) -> Record:
        """Look up one record.

        Raises:
            RecordNotFoundError: If no record has this id.
            MetadataStoreError: If the store cannot be read.
        """

    @abc.abstractmethod
    def all(self) -> list[Record]:
        """Every record, in insertion order."""

    @abc.abstractmethod
    def append(self, record: Record) -> None:
        """Persist a new record.

        Raises:
            MetadataStoreError: If the record cannot be persisted.
        """

    @abc.abstractmethod
    def increment_downloads(self, record_id: str) -> int:
        """Atomically add one to the download counter.

        Returns:
            New counter value.

        Raises:
            RecordNotFoundError: If no record has this id.
            MetadataStoreError: If the store cannot be updated.
        """

    @abc.abstractmethod
    def remove_where(self, predicate: RecordPredicate) -> list[Record]:
        """Remove every record matching ``predicate``.

        Returns:
            The removed records.

        Raises:
            MetadataStoreError: If the store cannot be updated.
        """
