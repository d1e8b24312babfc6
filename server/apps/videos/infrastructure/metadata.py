"""Metadata extraction utilities for uploaded videos."""

import os
import re
import secrets
from pathlib import PurePosixPath, PureWindowsPath
from typing import BinaryIO, Final

import magic

_SNIFF_SAMPLE_SIZE: Final = 8192  # libmagic only needs the container header
_RECORD_ID_BYTES: Final = 10  # 80 bits -> 20 hex characters
_EXTENSION_DISALLOWED: Final = re.compile(r'[^A-Za-z0-9]')
_EXTENSION_MAX_LENGTH: Final = 16  # keeps stored names far below NAME_MAX
_LINE_BREAKS: Final = re.compile(r'[\r\n]')


def sniff_mime_type(file_obj: BinaryIO) -> str:
    """Detect MIME type from the file contents.

    Inspects magic bytes with libmagic; the client supplied content type
    and the filename extension are never consulted. The file pointer is
    reset to the beginning afterwards.

    Args:
        file_obj: File-like object to inspect.

    Returns:
        MIME type string (e.g., 'video/mp4').
    """
    file_obj.seek(0)
    sample = file_obj.read(_SNIFF_SAMPLE_SIZE)
    file_obj.seek(0)
    return magic.from_buffer(sample, mime=True)


def get_file_size(file_obj: BinaryIO) -> int:
    """Get file size from file object.

    Args:
        file_obj: File-like object; Django uploads carry ``size``.

    Returns:
        File size in bytes.
    """
    size = getattr(file_obj, 'size', None)
    if size is not None:
        return size
    file_obj.seek(0, os.SEEK_END)
    size = file_obj.tell()
    file_obj.seek(0)
    return size


def generate_record_id() -> str:
    """Generate an opaque record id.

    Returns:
        20 lowercase hex characters from a CSPRNG.
    """
    return secrets.token_hex(_RECORD_ID_BYTES)


def display_name(filename: str) -> str:
    """Reduce a client supplied filename to its last path component.

    Handles both ``/`` and ``\\`` separators since browsers on Windows
    may send full paths.

    Args:
        filename: Filename as sent by the client.

    Returns:
        Basename (e.g., 'clip.mp4').
    """
    return PureWindowsPath(PurePosixPath(filename).name).name


def sanitize_extension(filename: str) -> str:
    """Get a filesystem safe extension from filename.

    Args:
        filename: Filename (e.g., 'clip.MP4').

    Returns:
        Text after the last dot with everything outside ``[A-Za-z0-9]``
        removed and cut to 16 characters (e.g., 'MP4'). Empty string if
        there is no extension.
    """
    name = display_name(filename)
    if '.' not in name:
        return ''
    extension = name.rsplit('.', 1)[1]
    return _EXTENSION_DISALLOWED.sub('', extension)[:_EXTENSION_MAX_LENGTH]


def build_stored_name(record_id: str, filename: str) -> str:
    """Derive the blob name for a record.

    Args:
        record_id: Opaque record id.
        filename: Client supplied filename.

    Returns:
        ``<id>.<ext>``, or just ``<id>`` when there is no usable extension.
    """
    extension = sanitize_extension(filename)
    if extension:
        return f'{record_id}.{extension}'
    return record_id


def bound_title(title: str | None, max_length: int) -> str | None:
    """Normalize optional display title.

    Args:
        title: Raw title from the upload form.
        max_length: Maximum number of characters kept.

    Returns:
        Stripped and truncated title, or None if nothing is left.
    """
    if title is None:
        return None
    return title.strip()[:max_length] or None


def bound_password(password: str | None, max_length: int) -> str | None:
    """Normalize optional per-file password.

    Whitespace is significant in passwords and is kept as is.

    Args:
        password: Raw password from the upload form.
        max_length: Maximum number of characters kept.

    Returns:
        Truncated password, or None if empty.
    """
    if not password:
        return None
    return password[:max_length]


def sanitize_disposition_filename(filename: str) -> str:
    """Make a filename safe for a Content-Disposition header.

    Args:
        filename: Original filename of the record.

    Returns:
        Basename with carriage returns and newlines removed.
    """
    return display_name(_LINE_BREAKS.sub('', filename))
