"""Tests for video ingest logic."""

import io
import re

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from server.apps.videos.exceptions import (
    BlobStorageError,
    DisallowedMimeTypeError,
    FileTooLargeError,
    MetadataStoreError,
)
from server.apps.videos.logic import ingest_operations
from server.apps.videos.logic.ingest_operations import ingest_video, validate_upload

_ALLOWED = ('video/mp4', 'video/webm')
_MAX_SIZE = 1024 * 1024


def _ingest(store, storage, file_obj, name='clip.mp4', **kwargs):
    kwargs.setdefault('max_size', _MAX_SIZE)
    kwargs.setdefault('allowed_mime', _ALLOWED)
    return ingest_video(store, storage, file_obj, name, **kwargs)


def test_validate_upload(mp4_upload):
    """Test size and sniffed type of a genuine MP4."""
    assert validate_upload(
        mp4_upload,
        max_size=_MAX_SIZE,
        allowed_mime=_ALLOWED,
    ) == (mp4_upload.size, 'video/mp4')


def test_ingest_video(json_store, blob_storage, mp4_upload, mp4_bytes):
    """Test successful ingest stores blob and record."""
    record = _ingest(json_store, blob_storage, mp4_upload, title=' Trip ')

    assert re.fullmatch('[0-9a-f]{20}', record.id)
    assert record.stored_name == f'{record.id}.mp4'
    assert record.original_name == 'clip.mp4'
    assert record.size == len(mp4_bytes)
    assert record.mime == 'video/mp4'
    assert record.downloads == 0
    assert record.title == 'Trip'
    assert record.password is None
    assert blob_storage.blob_path(record.stored_name).read_bytes() == mp4_bytes
    assert json_store.all() == [record]


def test_ingest_keeps_only_basename(json_store, blob_storage, mp4_upload):
    """Test client supplied paths are reduced to their last component."""
    record = _ingest(
        json_store,
        blob_storage,
        mp4_upload,
        name='C:\\Users\\me\\Videos\\../holiday.final.MP4',
    )

    assert record.original_name == 'holiday.final.MP4'
    assert record.stored_name == f'{record.id}.MP4'


def test_ingest_bounds_title_and_password(json_store, blob_storage, mp4_upload):
    """Test optional fields are truncated to their limits."""
    record = _ingest(
        json_store,
        blob_storage,
        mp4_upload,
        title='t' * 300,
        password='p' * 150,
        title_max_length=250,
        password_max_length=100,
    )

    assert record.title == 't' * 250
    assert record.password == 'p' * 100


def test_ingest_ids_are_unique(json_store, blob_storage, mp4_bytes):
    """Test each ingest gets a fresh id and blob."""
    records = [
        _ingest(json_store, blob_storage, io.BytesIO(mp4_bytes))
        for _ in range(5)
    ]

    assert len({record.id for record in records}) == 5
    assert len({record.stored_name for record in records}) == 5


def test_oversized_upload_persists_nothing(
    json_store,
    metadata_file,
    blob_storage,
    media_root,
    mp4_upload,
):
    """Test too large uploads are rejected before any write."""
    with pytest.raises(FileTooLargeError) as exc_info:
        _ingest(json_store, blob_storage, mp4_upload, max_size=10)

    assert exc_info.value.max_bytes == 10
    assert not metadata_file.exists()
    assert not media_root.exists() or not any(media_root.iterdir())


def test_disguised_upload_persists_nothing(
    json_store,
    metadata_file,
    blob_storage,
    media_root,
    text_bytes,
):
    """Test declared type and extension are ignored in favour of content."""
    upload = SimpleUploadedFile('movie.mp4', text_bytes, content_type='video/mp4')

    with pytest.raises(DisallowedMimeTypeError) as exc_info:
        _ingest(json_store, blob_storage, upload, name='movie.mp4')

    assert exc_info.value.mime_type == 'text/plain'
    assert str(exc_info.value) == 'Invalid file type: text/plain'
    assert not metadata_file.exists()
    assert not media_root.exists() or not any(media_root.iterdir())


def test_store_failure_rolls_back_blob(
    json_store,
    blob_storage,
    media_root,
    mp4_upload,
    monkeypatch,
):
    """Test failed metadata commit deletes the freshly written blob."""
    def broken_append(record):
        raise MetadataStoreError('disk full')

    monkeypatch.setattr(json_store, 'append', broken_append)

    with pytest.raises(MetadataStoreError):
        _ingest(json_store, blob_storage, mp4_upload)

    assert list(media_root.iterdir()) == []


def test_blob_failure_writes_no_record(
    json_store,
    metadata_file,
    blob_storage,
    mp4_upload,
    monkeypatch,
):
    """Test unwritable upload directory leaves metadata untouched."""
    def broken_save(name, content, max_length=None):
        raise PermissionError('read-only filesystem')

    monkeypatch.setattr(blob_storage, 'save', broken_save)

    with pytest.raises(BlobStorageError):
        _ingest(json_store, blob_storage, mp4_upload)

    assert not metadata_file.exists()


def test_tiny_upload_with_known_type(
    json_store,
    blob_storage,
    monkeypatch,
):
    """Test a 10 byte upload within limits is accepted."""
    monkeypatch.setattr(
        ingest_operations,
        'sniff_mime_type',
        lambda file_obj: 'video/mp4',
    )
    upload = SimpleUploadedFile('a.mp4', b'0123456789')

    record = _ingest(json_store, blob_storage, upload, name='a.mp4')

    assert record.stored_name == f'{record.id}.mp4'
    assert record.size == 10
    assert record.downloads == 0


def test_ingest_long_extension(json_store, blob_storage, mp4_bytes):
    """Test an overlong extension is cut instead of failing the write."""
    upload = SimpleUploadedFile('clip.mp4', mp4_bytes)

    record = _ingest(json_store, blob_storage, upload, name='clip.' + 'm' * 300)

    assert record.stored_name == f'{record.id}.{"m" * 16}'
    assert blob_storage.exists(record.stored_name)
