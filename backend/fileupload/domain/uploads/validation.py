"""File validation utilities for uploads

Pure functions: no filesystem access. The acceptor combines them with the
configured UploadPolicy.
"""

import os
import re
from typing import Mapping, Optional, Sequence, Tuple


MAX_FILENAME_LENGTH = 255


def normalize_mime_type(mime_type: Optional[str]) -> str:
    """Lower-case a MIME type and strip its parameters

    Example:
        >>> normalize_mime_type('Image/PNG; charset=binary')
        'image/png'
        >>> normalize_mime_type(None)
        ''
    """
    if not mime_type:
        return ""
    return mime_type.split(';', 1)[0].strip().lower()


def file_extension(filename: str) -> str:
    """Lower-cased extension including the dot, '' if none

    Example:
        >>> file_extension('Cat.PNG')
        '.png'
    """
    return os.path.splitext(filename)[1].lower()


def is_allowed_type(
    mime_type: Optional[str],
    filename: str,
    allowed_types: Mapping[str, Sequence[str]],
) -> bool:
    """Check MIME type and extension against the allow-list

    The declared MIME type must be an allow-list key and the extension must
    be one of the extensions registered for that key.

    Example:
        >>> is_allowed_type('image/jpeg', 'cat.jpg', {'image/jpeg': ('.jpg', '.jpeg')})
        True
        >>> is_allowed_type('image/jpeg', 'cat.exe', {'image/jpeg': ('.jpg', '.jpeg')})
        False
    """
    extensions = allowed_types.get(normalize_mime_type(mime_type))
    if not extensions:
        return False
    return file_extension(filename) in {ext.lower() for ext in extensions}


def validate_file_type(
    mime_type: Optional[str],
    filename: str,
    allowed_types: Mapping[str, Sequence[str]],
) -> Tuple[bool, Optional[str]]:
    """Validate file type against the allow-list

    Returns:
        Tuple of (is_valid, error_message)
    """
    if is_allowed_type(mime_type, filename, allowed_types):
        return True, None

    allowed = sorted({ext.lstrip('.').upper() for exts in allowed_types.values() for ext in exts})
    return False, (
        f"Invalid file type. Only {', '.join(allowed)} are allowed "
        f"(got {normalize_mime_type(mime_type) or 'unknown type'}, "
        f"extension {file_extension(filename) or 'none'})."
    )


def validate_file_size(size_bytes: int, max_size: Optional[int]) -> Tuple[bool, Optional[str]]:
    """Validate file size is within limits

    Args:
        size_bytes: File size in bytes
        max_size: Maximum allowed size, None for unbounded

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> validate_file_size(1024, 2048)
        (True, None)
        >>> validate_file_size(4096, None)
        (True, None)
    """
    if size_bytes < 0:
        return False, f"Invalid file size ({size_bytes} bytes)"

    if max_size is not None and size_bytes > max_size:
        return False, f"File exceeds maximum size of {max_size} bytes"

    return True, None


def validate_filename(filename: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Validate a client-supplied filename

    Path components are not rejected here; sanitize_filename strips them.

    Validation rules:
    - Not empty
    - Max 255 characters
    - No null bytes
    - No control characters

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> validate_filename('order.pdf')
        (True, None)
        >>> validate_filename('')
        (False, 'Filename cannot be empty')
    """
    if not filename or len(filename.strip()) == 0:
        return False, "Filename cannot be empty"

    if len(filename) > MAX_FILENAME_LENGTH:
        return False, f"Filename exceeds {MAX_FILENAME_LENGTH} characters (got {len(filename)})"

    if '\x00' in filename:
        return False, "Filename contains null bytes"

    if any(ord(c) < 32 for c in filename):
        return False, "Filename contains control characters"

    return True, None


def sanitize_filename(filename: str, max_length: int = MAX_FILENAME_LENGTH) -> str:
    """Sanitize filename for safe storage

    Drops every directory component (both / and \\ separators), leading dots
    and characters outside [\\w\\s.-]. May return '' for names such as '..'.

    Example:
        >>> sanitize_filename('../../order.pdf')
        'order.pdf'
        >>> sanitize_filename('order (copy).pdf')
        'order_copy.pdf'
    """
    # Remove path components
    filename = filename.replace('\\', '/').rsplit('/', 1)[-1]

    # Replace problematic characters with underscore
    filename = re.sub(r'[^\w\s.-]', '_', filename)

    # Collapse multiple spaces/underscores
    filename = re.sub(r'[\s_]+', '_', filename)

    # No hidden files, no '..'
    filename = filename.lstrip('.')

    name, ext = os.path.splitext(filename)
    name = name.strip('_')
    if not name:
        return ""
    filename = name + ext

    if len(filename) > max_length:
        ext = ext[:max_length // 2]
        filename = name[:max_length - len(ext)] + ext

    return filename
