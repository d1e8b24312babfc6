"""Business logic for video uploads."""

import logging
from collections.abc import Collection
from typing import TYPE_CHECKING, BinaryIO

from django.utils import timezone

from server.apps.videos.exceptions import (
    BlobStorageError,
    DisallowedMimeTypeError,
    FileTooLargeError,
)
from server.apps.videos.infrastructure.metadata import (
    bound_password,
    bound_title,
    build_stored_name,
    display_name,
    generate_record_id,
    get_file_size,
    sniff_mime_type,
)
from server.apps.videos.infrastructure.stores import MetadataStore, Record

if TYPE_CHECKING:
    from server.apps.videos.infrastructure.blobs import BlobStorage

logger = logging.getLogger(__name__)

_DEFAULT_TITLE_MAX_LENGTH = 250
_DEFAULT_PASSWORD_MAX_LENGTH = 100


def validate_upload(
    file_obj: BinaryIO,
    *,
    max_size: int,
    allowed_mime: Collection[str],
) -> tuple[int, str]:
    """Check size and sniffed MIME type of an upload.

    Args:
        file_obj: Uploaded content.
        max_size: Maximum accepted size in bytes.
        allowed_mime: Accepted MIME types.

    Returns:
        Tuple of (size in bytes, sniffed MIME type).

    Raises:
        FileTooLargeError: If the upload is larger than ``max_size``.
        DisallowedMimeTypeError: If the sniffed type is not allowed.
    """
    file_size = get_file_size(file_obj)
    if file_size > max_size:
        logger.warning(
            'Rejected upload: %d bytes exceeds limit of %d',
            file_size,
            max_size,
        )
        raise FileTooLargeError(max_bytes=max_size, actual_bytes=file_size)

    mime_type = sniff_mime_type(file_obj)
    if mime_type not in allowed_mime:
        logger.warning('Rejected upload with MIME type: %s', mime_type)
        raise DisallowedMimeTypeError(mime_type)

    return file_size, mime_type


def ingest_video(  # noqa: WPS211
    store: MetadataStore,
    storage: 'BlobStorage',
    file_obj: BinaryIO,
    original_name: str,
    *,
    max_size: int,
    allowed_mime: Collection[str],
    title: str | None = None,
    password: str | None = None,
    title_max_length: int = _DEFAULT_TITLE_MAX_LENGTH,
    password_max_length: int = _DEFAULT_PASSWORD_MAX_LENGTH,
) -> Record:
    """Store an uploaded video and commit its metadata record.

    Ordering: validate, then write the blob and confirm it exists, then
    append the record. A record therefore never points at a blob that
    was not there when it was created. If the record cannot be committed
    the blob is deleted again (best effort).

    Args:
        store: Metadata store to append the record to.
        storage: Blob storage for the file contents.
        file_obj: Uploaded content.
        original_name: Client supplied filename (display only).
        max_size: Maximum accepted size in bytes.
        allowed_mime: Accepted MIME types (checked against sniffed type).
        title: Optional display title.
        password: Optional per-file download password.
        title_max_length: Title is truncated to this many characters.
        password_max_length: Password is truncated to this many characters.

    Returns:
        The committed record.

    Raises:
        FileTooLargeError: If the upload is too large.
        DisallowedMimeTypeError: If the sniffed type is not allowed.
        BlobStorageError: If the blob cannot be written.
        MetadataStoreError: If the record cannot be committed.
    """
    file_size, mime_type = validate_upload(
        file_obj,
        max_size=max_size,
        allowed_mime=allowed_mime,
    )

    record_id = generate_record_id()
    stored_name = build_stored_name(record_id, original_name)

    # Step 1: Write blob first
    try:
        stored_name = storage.save(stored_name, file_obj)
    except OSError as error:
        raise BlobStorageError('Failed to store uploaded file.') from error
    if not storage.exists(stored_name):
        logger.error('Blob missing right after save: %s', stored_name)
        raise BlobStorageError('Failed to store uploaded file.')

    record = Record(
        id=record_id,
        original_name=display_name(original_name),
        stored_name=stored_name,
        size=file_size,
        mime=mime_type,
        uploaded_at=timezone.now(),
        downloads=0,
        title=bound_title(title, title_max_length),
        password=bound_password(password, password_max_length),
    )

    # Step 2: Commit metadata record
    try:
        store.append(record)
    except Exception:
        logger.exception(
            'Metadata commit failed, rolling back blob: %s',
            stored_name,
        )
        storage.rollback_upload(stored_name)
        raise

    logger.info(
        'Ingested video %s (%s, %d bytes, %s)',
        record.id,
        record.original_name,
        record.size,
        record.mime,
    )
    return record
