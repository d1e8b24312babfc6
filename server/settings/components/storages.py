"""Django storage configuration for uploaded video blobs.

Blobs live on the local filesystem so a conventional static file server
can serve them directly (with Range support) for preview playback.
The blob storage reads its location from ``MEDIA_ROOT``/``MEDIA_URL``.
"""

from typing import Any, Final

from server.settings.components.videos import (
    VIDEOS_MEDIA_URL,
    VIDEOS_UPLOAD_DIR,
)

MEDIA_ROOT = VIDEOS_UPLOAD_DIR
MEDIA_URL = VIDEOS_MEDIA_URL

# Storage configuration dictionary
# Uses the blob storage for uploads, local storage for static files
STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'server.apps.videos.infrastructure.blobs.BlobStorage',
        'OPTIONS': {
            'file_permissions_mode': 0o644,
            'directory_permissions_mode': 0o755,
        },
    },
    'staticfiles': {
        # Keep static files separate from user files
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}
