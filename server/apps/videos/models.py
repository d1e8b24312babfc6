"""Database models for videos app."""

from typing import Final, final, override

from django.db import models

# Constants for field max lengths
_ID_MAX_LENGTH: Final = 64
_NAME_MAX_LENGTH: Final = 512
_MIME_TYPE_MAX_LENGTH: Final = 128
_TITLE_MAX_LENGTH: Final = 255
_PASSWORD_MAX_LENGTH: Final = 255


@final
class VideoRecord(models.Model):
    """Metadata row for one uploaded video.

    Relational counterpart of the flat-file metadata collection. Rows are
    only touched through ``DatabaseStore``; absent title and password are
    stored as empty strings and exposed as ``None`` by the store.
    """

    id = models.CharField(
        max_length=_ID_MAX_LENGTH,
        primary_key=True,
        help_text='Opaque random hex token',
    )

    original_name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
        help_text='Client supplied filename, display only',
    )

    stored_name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
        unique=True,
        help_text='Blob name inside the upload directory',
    )

    size = models.BigIntegerField(
        help_text='File size in bytes',
    )

    mime = models.CharField(
        max_length=_MIME_TYPE_MAX_LENGTH,
        help_text='MIME type sniffed via python-magic',
    )

    uploaded_at = models.DateTimeField(db_index=True)

    downloads = models.PositiveBigIntegerField(default=0)

    title = models.CharField(
        max_length=_TITLE_MAX_LENGTH,
        blank=True,
        default='',
    )

    password = models.CharField(
        max_length=_PASSWORD_MAX_LENGTH,
        blank=True,
        default='',
        help_text='Optional per-file download password',
    )

    class Meta:
        """Model metadata."""

        db_table = 'videos'
        verbose_name = 'Video'  # type: ignore[mutable-override]
        verbose_name_plural = 'Videos'  # type: ignore[mutable-override]
        ordering = ['uploaded_at', 'id']

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.id}:{self.original_name}'
