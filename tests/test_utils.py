"""Tests for utility functions."""

import pytest

from bugtracker.utils.markdown_sanitizer import sanitize_markdown, strip_all_html
from bugtracker.utils.validators import (
    MAX_TAGS,
    normalize_tags,
    sanitize_filename,
    validate_path_traversal,
)


class TestMarkdownSanitizer:
    """Tests for markdown sanitization."""

    def test_sanitize_basic_html(self):
        """Test that basic safe HTML is preserved."""
        result = sanitize_markdown("<p>Hello <strong>World</strong></p>")
        assert "<p>" in result
        assert "<strong>" in result

    def test_sanitize_script_tags(self):
        result = sanitize_markdown("<script>alert('xss')</script>Hello")
        assert "<script>" not in result
        assert "Hello" in result

    def test_sanitize_event_handlers(self):
        result = sanitize_markdown("<div onclick='alert(1)'>Click me</div>")
        assert "onclick" not in result

    def test_sanitize_javascript_urls(self):
        result = sanitize_markdown("<a href='javascript:alert(1)'>Link</a>")
        assert "javascript:" not in result

    def test_links_get_noopener(self):
        result = sanitize_markdown('<a href="https://example.com">docs</a>')
        assert 'rel="noopener noreferrer"' in result

    def test_sanitize_empty_content(self):
        assert sanitize_markdown("") == ""
        assert sanitize_markdown(None) is None

    def test_strip_all_html(self):
        result = strip_all_html("<p>Hello <strong>World</strong></p>")
        assert "<" not in result
        assert result == "Hello World"

    def test_strip_all_html_keeps_plain_text_characters(self):
        assert strip_all_html("A & B < C") == "A & B < C"
        assert strip_all_html("<i>r&d</i>") == "r&d"


class TestValidators:
    """Tests for input validators."""

    @pytest.mark.parametrize(
        "path",
        ["../etc/passwd", "uploads/%2e%2e/secret", "uploads/%252e%252e/x", "file\x00.png"],
    )
    def test_path_traversal_detected(self, path: str):
        assert not validate_path_traversal(path)

    @pytest.mark.parametrize("path", ["uploads/screenshot.png", "a/b/c.txt", ""])
    def test_safe_paths(self, path: str):
        assert validate_path_traversal(path)

    def test_sanitize_filename(self):
        assert sanitize_filename("../../etc/passwd") == ".._.._etc_passwd"
        assert sanitize_filename("report (final).pdf") == "report final.pdf"
        assert sanitize_filename("...") == "unnamed"
        assert sanitize_filename("") == "unnamed"

    def test_normalize_tags(self):
        assert normalize_tags([" UI ", "ui", "", "Login"]) == ["ui", "login"]

    def test_too_many_tags(self):
        with pytest.raises(ValueError):
            normalize_tags(f"tag{i}" for i in range(MAX_TAGS + 1))

    def test_tag_too_long(self):
        with pytest.raises(ValueError):
            normalize_tags(["x" * 31])
