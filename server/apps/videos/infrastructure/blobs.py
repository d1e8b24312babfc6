"""Filesystem storage backend for uploaded video blobs."""

import logging
from pathlib import Path
from typing import Any, final, override

from django.core.files.storage import FileSystemStorage

logger = logging.getLogger(__name__)


@final
class BlobStorage(FileSystemStorage):
    """Local filesystem storage for video blobs.

    Extends Django's FileSystemStorage with:
    - Enhanced error logging
    - Best-effort rollback for uploads whose metadata never got committed
    - Deletion that treats an already missing blob as success
    """

    @override
    def save(
        self,
        name: str | None,
        content: Any,
        max_length: int | None = None,
    ) -> str:
        """Save blob to the upload directory with error handling and logging.

        Args:
            name: Blob name inside the upload directory.
            content: File content (file-like object).
            max_length: Optional maximum length for the filename.

        Returns:
            Actual blob name used.

        Raises:
            OSError: If the blob cannot be written.
        """
        try:
            logger.info('Writing blob to storage: %s', name)
            saved_name = super().save(name, content, max_length)
            logger.info('Successfully wrote blob: %s', saved_name)
        except Exception:
            logger.exception('Failed to write blob to storage: %s', name)
            raise
        else:
            return saved_name

    @override
    def delete(self, name: str) -> None:
        """Delete blob with error handling and logging.

        Args:
            name: Blob name inside the upload directory.

        Raises:
            OSError: If the blob exists but cannot be removed.
        """
        try:
            logger.info('Deleting blob from storage: %s', name)
            super().delete(name)
            logger.info('Successfully deleted blob: %s', name)
        except Exception:
            logger.exception('Failed to delete blob from storage: %s', name)
            raise

    def discard(self, name: str) -> bool:
        """Delete blob, treating an already missing blob as success.

        Args:
            name: Blob name inside the upload directory.

        Returns:
            True if the blob was present and got deleted, False if it
            was already gone.

        Raises:
            OSError: If the blob exists but cannot be removed.
        """
        if not self.exists(name):
            logger.warning('Blob not found in storage (already deleted?): %s', name)
            return False
        self.delete(name)
        return True

    def rollback_upload(self, name: str) -> None:
        """Delete uploaded blob after the metadata commit failed.

        This is a best-effort operation - if deletion fails, the error
        is logged but not raised, as the caller is already propagating
        the original failure.

        Args:
            name: Blob name inside the upload directory.
        """
        try:
            logger.warning('Rolling back upload, deleting blob: %s', name)
            self.delete(name)
            logger.info('Successfully rolled back blob upload: %s', name)
        except Exception:
            # The blob stays on disk without a record
            logger.exception(
                'Failed to rollback upload, orphaned blob: %s',
                name,
            )

    def blob_path(self, name: str) -> Path:
        """Absolute filesystem path of a blob.

        Args:
            name: Blob name inside the upload directory.

        Returns:
            Path to the blob (which may not exist).
        """
        return Path(self.path(name))
