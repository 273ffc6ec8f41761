"""Plain-text helpers shared by fetchers, extractors and the answerer."""

from __future__ import annotations

import html
import re

TAG_PATTERN = re.compile(r"<[^>]+>")
WHITESPACE_PATTERN = re.compile(r"\s+")
ELLIPSIS = "…"


def strip_markup(text: str) -> str:
    return TAG_PATTERN.sub(" ", text)


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def clean_text(text: str | None) -> str:
    """Return ``text`` as plain single-spaced text.

    Markup tags are removed and HTML/XML entities decoded. Decoding runs
    twice so double-escaped upstream payloads (``&amp;lt;i&amp;gt;``) end up
    as plain text too.
    """

    if not text:
        return ""
    cleaned = strip_markup(html.unescape(text))
    cleaned = strip_markup(html.unescape(cleaned))
    return collapse_whitespace(cleaned)


def clamp(text: str | None, limit: int) -> str:
    if not text:
        return ""
    return text[:limit]


def truncate_with_ellipsis(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + ELLIPSIS


def join_names(names: list[str], default: str = "Unknown Authors") -> str:
    cleaned = [collapse_whitespace(name) for name in names if name and name.strip()]
    if not cleaned:
        return default
    return ", ".join(cleaned)
