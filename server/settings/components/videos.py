"""Video hosting settings: storage locations, upload limits, retention."""

from pathlib import Path
from typing import Final

from decouple import Csv

from server.settings.components import BASE_DIR, config

_DEFAULT_MAX_FILESIZE_BYTES: Final = 500 * 1024 * 1024  # 500 MB
_DEFAULT_ALLOWED_MIME: Final = ','.join((
    'video/mp4',
    'video/webm',
    'video/ogg',
    'video/quicktime',  # mov
    'video/x-msvideo',  # avi
    'video/x-matroska',  # mkv
))


def _project_path(raw_path: str) -> Path:
    """Resolve a configured path relative to the project root."""
    path = Path(raw_path)
    if path.is_absolute():
        return path
    return BASE_DIR.joinpath(path)


# Directory holding uploaded blobs, served as-is by the web server
VIDEOS_UPLOAD_DIR = _project_path(config('VIDEOS_UPLOAD_DIR', default='uploads'))
VIDEOS_MEDIA_URL = config('VIDEOS_MEDIA_URL', default='/uploads/')

# 'json' or 'database' (relational with flat-file fallback)
VIDEOS_METADATA_BACKEND = config('VIDEOS_METADATA_BACKEND', default='json')
VIDEOS_METADATA_FILE = _project_path(
    config('VIDEOS_METADATA_FILE', default='metadata.json'),
)

# Upload restrictions
VIDEOS_MAX_FILESIZE_BYTES = config(
    'VIDEOS_MAX_FILESIZE_BYTES',
    cast=int,
    default=_DEFAULT_MAX_FILESIZE_BYTES,
)
VIDEOS_ALLOWED_MIME = config(
    'VIDEOS_ALLOWED_MIME',
    cast=Csv(post_process=tuple),
    default=_DEFAULT_ALLOWED_MIME,
)
VIDEOS_TITLE_MAX_LENGTH: Final = 250
VIDEOS_PASSWORD_MAX_LENGTH: Final = 100

# Empty string disables the shared download password
VIDEOS_GLOBAL_DOWNLOAD_PASSWORD = config(
    'VIDEOS_GLOBAL_DOWNLOAD_PASSWORD',
    default='',
)

# Used by purge_expired_videos; 0 or less disables retention
VIDEOS_RETENTION_DAYS = config('VIDEOS_RETENTION_DAYS', cast=int, default=30)

# Django must not hold big uploads in memory
FILE_UPLOAD_MAX_MEMORY_SIZE = 10 * 1024 * 1024
DATA_UPLOAD_MAX_MEMORY_SIZE = None
