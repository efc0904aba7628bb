"""Sanitization for user-supplied bug text.

Descriptions and comments keep the small HTML subset markdown renders to
(steps lists, code blocks, links). Titles and tags are plain text.
"""

import html
from functools import partial

from bleach.linkifier import LinkifyFilter
from bleach.sanitizer import Cleaner

RICH_TEXT_TAGS = frozenset({
    "p", "br", "hr",
    "h3", "h4", "h5", "h6",
    "ul", "ol", "li",
    "strong", "em", "b", "i", "u", "s", "del",
    "code", "pre", "blockquote",
    "a",
})

RICH_TEXT_ATTRIBUTES = {
    "a": ["href", "title", "rel", "target"],
    # Language hint for highlighted stack traces and snippets
    "code": ["class"],
    "pre": ["class"],
}

LINK_PROTOCOLS = frozenset({"http", "https", "mailto"})


def _harden_link(attrs: dict, new: bool = False) -> dict:
    attrs[(None, "rel")] = "noopener noreferrer"
    if attrs.get((None, "href"), "").startswith(("http://", "https://")):
        attrs[(None, "target")] = "_blank"
    return attrs


_rich_text_cleaner = Cleaner(
    tags=RICH_TEXT_TAGS,
    attributes=RICH_TEXT_ATTRIBUTES,
    protocols=LINK_PROTOCOLS,
    strip=True,
    filters=[partial(LinkifyFilter, callbacks=[_harden_link], skip_tags={"pre", "code"})],
)

_plain_text_cleaner = Cleaner(tags=set(), strip=True)


def sanitize_markdown(content: str) -> str:
    """
    Clean a bug description or comment.

    Disallowed tags are stripped (their text kept), scripts and event
    handlers removed, and every link gets ``rel="noopener noreferrer"``.
    """
    if not content:
        return content
    return _rich_text_cleaner.clean(content)


def strip_all_html(content: str) -> str:
    """Reduce content to plain text, e.g. for bug titles and tags.

    The result is stored and returned as text, not HTML, so entities the
    cleaner produces are decoded again (``A & B`` stays ``A & B``).
    """
    if not content:
        return content
    return html.unescape(_plain_text_cleaner.clean(content))
