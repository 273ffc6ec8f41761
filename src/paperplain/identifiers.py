"""Extract canonical paper identifiers from user-supplied references."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import parse_qs, urlparse

from .exceptions import InvalidIdentifierError

if TYPE_CHECKING:
    from collections.abc import Callable

ARXIV_ID = r"(\d{4}\.\d{4,5})(?:v\d+)?"

ARXIV_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"arxiv\.org/abs/{ARXIV_ID}", re.IGNORECASE),
    re.compile(rf"arxiv\.org/pdf/{ARXIV_ID}", re.IGNORECASE),
    re.compile(rf"arxiv\s*:\s*{ARXIV_ID}", re.IGNORECASE),
    re.compile(rf"(?<![\d.]){ARXIV_ID}(?![\d])"),
)

DOI_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"doi\.org/(10\.\d{4,}/\S+)", re.IGNORECASE),
    re.compile(r"DOI[:\s]*(10\.\d{4,}/\S+)", re.IGNORECASE),
    re.compile(r"(10\.\d{4,}/\S+)"),
)

PMID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"pubmed(?:\.ncbi\.nlm\.nih\.gov)?/(\d{7,9})\b", re.IGNORECASE),
    re.compile(r"pmid[:\s]*(\d{7,9})\b", re.IGNORECASE),
    re.compile(r"^\s*(\d{7,9})\s*$", re.MULTILINE),
)

BARE_ARXIV_PATTERN = re.compile(rf"^{ARXIV_ID}$")
BARE_DOI_PATTERN = re.compile(r"^10\.\d{4,}/\S+$")
BARE_PMID_PATTERN = re.compile(r"^\d{7,9}$")
S2_PREFIX_PATTERN = re.compile(
    r"^(?:arxiv|doi|pmid|pmcid|corpusid|mag|acl|url):", re.IGNORECASE
)

_DOI_TRAILING_PUNCTUATION = ".,;:)]}>\"'"


def _first_match(patterns: tuple[re.Pattern[str], ...], raw: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(raw)
        if match:
            return match.group(1)
    return None


def extract_arxiv_id(raw: str | None) -> str:
    """Return the version-less ArXiv id found in a URL, label or bare id."""

    if raw:
        arxiv_id = _first_match(ARXIV_PATTERNS, raw.strip())
        if arxiv_id:
            return arxiv_id
    raise InvalidIdentifierError("Invalid ArXiv URL format")


def extract_doi(raw: str | None) -> str:
    if raw:
        doi = _first_match(DOI_PATTERNS, raw.strip())
        if doi:
            doi = doi.rstrip(_DOI_TRAILING_PUNCTUATION)
            if BARE_DOI_PATTERN.match(doi):
                return doi
    raise InvalidIdentifierError("Invalid DOI format")


def extract_pmid(raw: str | None) -> str:
    if raw:
        pmid = _first_match(PMID_PATTERNS, raw)
        if pmid:
            return pmid
    raise InvalidIdentifierError("Invalid PMID format")


def is_arxiv_id(raw: str | None) -> bool:
    return _matches(extract_arxiv_id, raw)


def is_doi(raw: str | None) -> bool:
    return _matches(extract_doi, raw)


def is_pmid(raw: str | None) -> bool:
    return _matches(extract_pmid, raw)


def _matches(extractor: Callable[[str | None], str], raw: str | None) -> bool:
    try:
        extractor(raw)
    except InvalidIdentifierError:
        return False
    return True


def extract_scholar_query(raw: str | None) -> str:
    """Return the search text for a Google Scholar URL or a free-text query."""

    text = (raw or "").strip()
    if not text:
        raise InvalidIdentifierError("Search query is required")

    if "scholar.google." in text:
        query = parse_qs(urlparse(text).query).get("q")
        if query and query[0].strip():
            return query[0].strip()

    if BARE_DOI_PATTERN.match(text) or BARE_PMID_PATTERN.match(text):
        raise InvalidIdentifierError(
            "Looks like a DOI or PMID; use the matching lookup instead"
        )
    if text.startswith(("http://", "https://")):
        raise InvalidIdentifierError("Invalid Google Scholar URL or search query")
    return text


def to_semantic_scholar_id(raw: str | None) -> str:
    """Map a reference to the id syntax accepted by the Semantic Scholar API."""

    text = (raw or "").strip()
    if not text:
        raise InvalidIdentifierError("Semantic Scholar paper id is required")
    if text.lower().startswith("arxiv:"):
        return f"ARXIV:{extract_arxiv_id(text)}"
    if S2_PREFIX_PATTERN.match(text):
        return text
    if BARE_ARXIV_PATTERN.match(text) or "arxiv.org/" in text.lower():
        return f"ARXIV:{extract_arxiv_id(text)}"
    if BARE_PMID_PATTERN.match(text):
        return f"PMID:{text}"
    if "doi.org/" in text.lower() or BARE_DOI_PATTERN.match(text):
        return f"DOI:{extract_doi(text)}"
    return text
