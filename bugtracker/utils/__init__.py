"""Utility functions and helpers."""

from bugtracker.utils.markdown_sanitizer import sanitize_markdown, strip_all_html
from bugtracker.utils.validators import (
    normalize_tags,
    sanitize_filename,
    validate_path_traversal,
)

__all__ = [
    "sanitize_markdown",
    "strip_all_html",
    "normalize_tags",
    "sanitize_filename",
    "validate_path_traversal",
]
