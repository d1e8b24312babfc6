"""Metadata stores for video records.

- `JsonFileStore`: one JSON array in a single ``flock``-guarded file.
- `DatabaseStore`: one row per record in the ``videos`` table.
- `FallbackStore`: database first, metadata file when the database fails.

Use `get_store` to build the variant selected in settings; stores are
cheap and are created per request or job.
"""

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from server.apps.videos.infrastructure.stores.base import (
    MetadataStore,
    Record,
    RecordPredicate,
)
from server.apps.videos.infrastructure.stores.database import DatabaseStore
from server.apps.videos.infrastructure.stores.fallback import FallbackStore
from server.apps.videos.infrastructure.stores.json_file import JsonFileStore

__all__ = [
    'DatabaseStore',
    'FallbackStore',
    'JsonFileStore',
    'MetadataStore',
    'Record',
    'RecordPredicate',
    'get_store',
]


def get_store() -> MetadataStore:
    """Build the metadata store configured by ``VIDEOS_METADATA_BACKEND``.

    Returns:
        ``JsonFileStore`` for ``'json'``; ``FallbackStore`` over the
        database and the metadata file for ``'database'``.

    Raises:
        ImproperlyConfigured: For any other backend name.
    """
    backend = settings.VIDEOS_METADATA_BACKEND
    json_store = JsonFileStore(settings.VIDEOS_METADATA_FILE)
    if backend == 'json':
        return json_store
    if backend == 'database':
        return FallbackStore(DatabaseStore(), json_store)
    raise ImproperlyConfigured(
        f'Unknown VIDEOS_METADATA_BACKEND: {backend!r}',
    )
