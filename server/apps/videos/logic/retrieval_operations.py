"""Business logic for video downloads."""

import enum
import logging
import secrets
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final, final

from server.apps.videos.exceptions import MetadataStoreError, RecordNotFoundError
from server.apps.videos.infrastructure.stores import MetadataStore, Record

if TYPE_CHECKING:
    from server.apps.videos.infrastructure.blobs import BlobStorage

_COUNTER_ATTEMPTS: Final = 3
_COUNTER_BACKOFF_SECONDS: Final = 0.05
_CHUNK_SIZE: Final = 8 * 1024 * 1024  # 8MB chunks

logger = logging.getLogger(__name__)


@final
class RetrievalStatus(enum.Enum):
    """Outcome of a download request that found its record."""

    GRANTED = 'granted'
    PASSWORD_REQUIRED = 'password_required'


@final
@dataclass(frozen=True, slots=True)
class Retrieval:
    """Resolved download: the record, its blob and whether access is granted."""

    status: RetrievalStatus
    record: Record
    blob_path: Path

    @property
    def granted(self) -> bool:
        """Whether the bytes may be streamed."""
        return self.status is RetrievalStatus.GRANTED


def required_password(record: Record, global_password: str | None) -> str | None:
    """Determine which password gates a record.

    Args:
        record: Record being downloaded.
        global_password: Shared download password, empty/None if disabled.

    Returns:
        The per-record password if set, else the global one if set,
        else None (no password required).
    """
    if record.password is not None:
        return record.password
    return global_password or None


def password_matches(expected: str, provided: str | None) -> bool:
    """Exact, constant-time comparison of a provided password.

    Args:
        expected: Password that gates the record.
        provided: Password sent by the client, if any.

    Returns:
        True only when ``provided`` equals ``expected`` exactly.
    """
    if provided is None:
        return False
    return secrets.compare_digest(
        expected.encode('utf-8'),
        provided.encode('utf-8'),
    )


def open_download(
    store: MetadataStore,
    storage: 'BlobStorage',
    record_id: str,
    provided_password: str | None = None,
    *,
    global_password: str | None = None,
) -> Retrieval:
    """Resolve a download request.

    A missing record and a record whose blob is gone are reported the
    same way so callers cannot tell them apart.

    Args:
        store: Metadata store to look the record up in.
        storage: Blob storage holding the file contents.
        record_id: Public id of the record.
        provided_password: Password sent by the client, if any.
        global_password: Shared download password, empty/None if disabled.

    Returns:
        Retrieval with status GRANTED or PASSWORD_REQUIRED.

    Raises:
        RecordNotFoundError: If the record or its blob does not exist.
        MetadataStoreError: If the store cannot be read.
    """
    record = store.get(record_id)

    blob_path = storage.blob_path(record.stored_name)
    if not blob_path.is_file():
        logger.warning(
            'Record %s points at missing blob: %s',
            record.id,
            record.stored_name,
        )
        raise RecordNotFoundError(record_id)

    expected = required_password(record, global_password)
    if expected is not None and not password_matches(expected, provided_password):
        logger.info('Password required for download: %s', record.id)
        return Retrieval(RetrievalStatus.PASSWORD_REQUIRED, record, blob_path)

    return Retrieval(RetrievalStatus.GRANTED, record, blob_path)


def record_download(
    store: MetadataStore,
    record_id: str,
    *,
    attempts: int = _COUNTER_ATTEMPTS,
    backoff: float = _COUNTER_BACKOFF_SECONDS,
) -> int | None:
    """Increment the download counter without ever failing the download.

    Retries a few times with a short linear backoff when the store is
    busy or failing; gives up with a log entry.

    Args:
        store: Metadata store holding the record.
        record_id: Public id of the record.
        attempts: Maximum number of tries.
        backoff: Seconds to wait after the first failure, growing linearly.

    Returns:
        New counter value, or None if the increment did not happen.
    """
    for attempt in range(1, attempts + 1):
        try:
            downloads = store.increment_downloads(record_id)
        except RecordNotFoundError:
            logger.warning(
                'Download counter not updated, record vanished: %s',
                record_id,
            )
            return None
        except MetadataStoreError:
            logger.warning(
                'Download counter update failed (attempt %d/%d): %s',
                attempt,
                attempts,
                record_id,
                exc_info=True,
            )
            if attempt < attempts:
                time.sleep(backoff * attempt)
        else:
            logger.debug('Download #%d of %s', downloads, record_id)
            return downloads

    logger.error('Gave up updating download counter: %s', record_id)
    return None


def iter_blob(
    blob_path: Path,
    on_started: Callable[[], object],
    chunk_size: int = _CHUNK_SIZE,
) -> Iterator[bytes]:
    """Yield blob contents, calling ``on_started`` once bytes are flowing.

    ``on_started`` runs after the first chunk has been handed to the
    server (or right away for an empty blob), so a download is counted
    once streaming has begun. Early client disconnects may leave it
    uncalled; under-counting is accepted.

    Args:
        blob_path: Path of the blob on disk.
        on_started: Callback run once streaming has begun.
        chunk_size: Bytes per chunk.

    Yields:
        Chunks of the blob in order.
    """
    started = False
    with blob_path.open('rb') as handle:
        for chunk in iter(lambda: handle.read(chunk_size), b''):
            yield chunk
            if not started:
                started = True
                on_started()
    if not started:
        on_started()
