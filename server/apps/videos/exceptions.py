"""Exceptions for videos app."""


class UploadRejectedError(Exception):
    """Raised when an upload fails validation; nothing has been persisted."""


class FileTooLargeError(UploadRejectedError):
    """Raised when an upload exceeds the configured maximum size."""

    def __init__(self, max_bytes: int, actual_bytes: int) -> None:
        """Initialize FileTooLargeError.

        Args:
            max_bytes: Configured upload limit in bytes.
            actual_bytes: Size of the rejected upload in bytes.
        """
        self.max_bytes = max_bytes
        self.actual_bytes = actual_bytes
        super().__init__('File exceeds the maximum allowed size.')


class DisallowedMimeTypeError(UploadRejectedError):
    """Raised when the sniffed MIME type is not in the allow-list."""

    def __init__(self, mime_type: str) -> None:
        """Initialize DisallowedMimeTypeError.

        Args:
            mime_type: MIME type detected from the file contents.
        """
        self.mime_type = mime_type
        super().__init__(f'Invalid file type: {mime_type}')


class RecordNotFoundError(LookupError):
    """Raised when no record (or no blob behind it) exists for an id."""

    def __init__(self, record_id: str) -> None:
        """Initialize RecordNotFoundError.

        Args:
            record_id: The id that was looked up.
        """
        self.record_id = record_id
        super().__init__(f'Video record not found: {record_id}')


class MetadataStoreError(Exception):
    """Raised when a metadata store cannot complete an operation."""


class BlobStorageError(Exception):
    """Raised when an uploaded blob cannot be written or confirmed."""
