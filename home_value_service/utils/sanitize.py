# home_value_service/utils/sanitize.py
import mimetypes
import os
from typing import Optional


def sanitize_filename(filename: str) -> str:
    """Strip path components and reject dangerous filenames.

    Returns the basename of the provided filename, raising ValueError
    if the result is empty, hidden, or contains path traversal.
    """
    basename = os.path.basename(filename.replace("\\", "/"))
    if not basename or basename.startswith(".") or ".." in basename:
        raise ValueError("Invalid filename")
    return basename


def image_extension(filename: Optional[str], content_type: str) -> str:
    """Pick a lowercase file extension for a stored image.

    The uploaded name wins when it has a usable extension; otherwise the
    extension is guessed from the content type. Returns "" if neither helps.
    """
    if filename:
        try:
            _, ext = os.path.splitext(sanitize_filename(filename))
        except ValueError:
            ext = ""
        if ext and ext[1:].isalnum():
            return ext.lower()
    return mimetypes.guess_extension(content_type) or ""
