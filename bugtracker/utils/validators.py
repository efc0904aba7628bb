"""Input validation utilities."""

import re
from typing import Iterable

MAX_TAGS = 20
MAX_TAG_LENGTH = 30


def validate_path_traversal(path: str) -> bool:
    """
    Check if a path contains potential path traversal patterns.

    Args:
        path: Path string to validate

    Returns:
        True if path is safe, False if it contains traversal patterns
    """
    if not path:
        return True

    dangerous_patterns = [
        "..",
        "%2e%2e",  # URL encoded ..
        "%252e%252e",  # Double URL encoded ..
    ]

    path_lower = path.lower()
    if any(pattern in path_lower for pattern in dangerous_patterns):
        return False

    # Null bytes
    if "\x00" in path:
        return False

    return True


def sanitize_filename(filename: str) -> str:
    """
    Sanitize a filename to prevent path traversal and other attacks.

    Args:
        filename: Original filename

    Returns:
        Sanitized filename safe for use
    """
    if not filename:
        return "unnamed"

    # Remove path separators and null bytes
    filename = filename.replace("/", "_").replace("\\", "_").replace("\x00", "")

    # Only allow safe characters
    filename = re.sub(r"[^\w\-_\. ]", "", filename)
    filename = filename.strip()[:255]

    # Prevent empty or dot-only filenames
    if not filename or set(filename) == {"."}:
        return "unnamed"

    return filename


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """
    Normalize bug tags: trimmed, lower-cased, de-duplicated, order kept.

    Raises:
        ValueError: If there are too many tags or a tag is too long
    """
    result: list[str] = []
    for tag in tags:
        tag = tag.strip().lower()
        if not tag or tag in result:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"Tags cannot be longer than {MAX_TAG_LENGTH} characters")
        result.append(tag)

    if len(result) > MAX_TAGS:
        raise ValueError(f"A bug cannot have more than {MAX_TAGS} tags")
    return result
