"""Shared fixtures for videos app tests."""

from datetime import UTC, datetime

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from server.apps.videos.infrastructure.blobs import BlobStorage
from server.apps.videos.infrastructure.stores import JsonFileStore, Record

# Smallest MP4 libmagic recognises: ftyp (isom) + free + mdat boxes
MP4_BYTES = (
    b'\x00\x00\x00\x20ftypisom\x00\x00\x02\x00isomiso2avc1mp41'
    + b'\x00\x00\x00\x08free'
    + b'\x00\x00\x00\x10mdat'
    + b'\x00' * 8
)
TEXT_BYTES = b'this is just plain text, not a video at all\n'


@pytest.fixture
def media_root(settings, tmp_path):
    """Point blob storage at a temporary upload directory.

    Returns:
        Path of the (not yet created) upload directory.
    """
    upload_dir = tmp_path / 'uploads'
    settings.MEDIA_ROOT = upload_dir
    settings.MEDIA_URL = '/uploads/'
    return upload_dir


@pytest.fixture
def metadata_file(settings, tmp_path):
    """Point the flat-file metadata store at a temporary file.

    Returns:
        Path of the (not yet created) metadata file.
    """
    path = tmp_path / 'metadata.json'
    settings.VIDEOS_METADATA_FILE = path
    settings.VIDEOS_METADATA_BACKEND = 'json'
    return path


@pytest.fixture
def json_store(metadata_file):
    """Flat-file store on the temporary metadata file.

    Returns:
        JsonFileStore instance.
    """
    return JsonFileStore(metadata_file)


@pytest.fixture
def blob_storage(media_root):
    """Blob storage on the temporary upload directory.

    Returns:
        BlobStorage instance.
    """
    return BlobStorage(location=media_root, base_url='/uploads/')


@pytest.fixture
def mp4_bytes():
    """Raw bytes of a tiny but genuine MP4 container.

    Returns:
        Bytes libmagic sniffs as video/mp4.
    """
    return MP4_BYTES


@pytest.fixture
def text_bytes():
    """Raw bytes of a plain text file.

    Returns:
        Bytes libmagic sniffs as text/plain.
    """
    return TEXT_BYTES


@pytest.fixture
def mp4_upload():
    """Uploaded MP4 file as Django hands it to views.

    Returns:
        SimpleUploadedFile with real MP4 magic bytes.
    """
    return SimpleUploadedFile('clip.mp4', MP4_BYTES, content_type='video/mp4')


@pytest.fixture
def make_record():
    """Factory for records with sensible defaults.

    Returns:
        Callable building a Record from keyword overrides.
    """
    counter = iter(range(1, 1000))

    def factory(**overrides):
        number = next(counter)
        record_id = overrides.pop('id', f'{number:020x}')
        defaults = {
            'id': record_id,
            'original_name': f'video{number}.mp4',
            'stored_name': f'{record_id}.mp4',
            'size': 100,
            'mime': 'video/mp4',
            'uploaded_at': datetime(2026, 1, 1, 12, 0, tzinfo=UTC),
        }
        defaults.update(overrides)
        return Record(**defaults)

    return factory
