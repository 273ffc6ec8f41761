"""Recover a canonical paper record from uploaded PDF bytes."""

from __future__ import annotations

import io
import logging
import re
from typing import TYPE_CHECKING

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from .exceptions import LLMRequestError, UnreadablePdfError
from .models import (
    ABSTRACT_MAX_CHARS,
    AUTHORS_MAX_CHARS,
    TITLE_MAX_CHARS,
    UNKNOWN_AUTHORS,
    MetadataExtraction,
    Paper,
    PartialMetadata,
    SourceType,
)
from .prompts import PDF_METADATA_SYSTEM_PROMPT, build_pdf_metadata_prompt
from .text_utils import clamp, collapse_whitespace

if TYPE_CHECKING:
    from collections.abc import Callable

    from .llm_client import ChatClient

logger = logging.getLogger(__name__)

MIN_TEXT_CHARS = 200
LLM_INPUT_CHARS = 28_000
PSEUDO_ABSTRACT_CHARS = 1800
TITLE_MIN_CHARS = 10
TITLE_MAX_LINE_CHARS = 180
AUTHOR_SCAN_LINES = 5
UNTITLED_PDF = "Untitled PDF"

METADATA_TEMPERATURE = 0.1
METADATA_MAX_TOKENS = 1200

CONTROL_CHAR_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
LABEL_PATTERN = re.compile(
    r"^[ \t]*(?:[*#]+[ \t]*)?(TITLE|AUTHORS|ABSTRACT)[ \t]*\**[ \t]*:[ \t]*\**",
    re.IGNORECASE | re.MULTILINE,
)
UNKNOWN_VALUES = {"", "unknown", "n/a", "na", "none", "not found", "not available"}
LETTER_PATTERN = re.compile(r"[A-Za-z]")
AND_PATTERN = re.compile(r"\band\b", re.IGNORECASE)
CAPITALIZED_WORD_PATTERN = re.compile(r"\b[A-Z][a-z]+")
ABSTRACT_HEADING_PATTERN = re.compile(
    r"^[ \t]*(?:\d+[.)]?[ \t]*)?abstract[ \t]*(?:[:.–—-]|$)",
    re.IGNORECASE | re.MULTILINE,
)
SECTION_END_PATTERN = re.compile(
    r"^[ \t]*(?:"
    r"(?:key[ \t]*words?|index[ \t]+terms)[ \t]*(?:[:.–—-]|$)"
    r"|(?:(?:\d+|[ivx]+)[.)]?[ \t]+)?(?:introduction|contents)[ \t]*[:.]?[ \t]*$"
    r")",
    re.IGNORECASE | re.MULTILINE,
)


def sanitize_text(text: str) -> str:
    return CONTROL_CHAR_PATTERN.sub("", text.replace("\u0000", ""))


def extract_pdf_text(content: bytes) -> str:
    """Return the concatenated page text of a PDF.

    Raises ``UnreadablePdfError`` when the bytes are not a parseable PDF or
    yield fewer than ``MIN_TEXT_CHARS`` characters.
    """

    try:
        reader = PdfReader(io.BytesIO(content))
        raw_text = "\n".join(page.extract_text() or "" for page in reader.pages)
    except (PyPdfError, ValueError) as exc:
        raise UnreadablePdfError(f"Could not read PDF: {exc}") from exc

    text = sanitize_text(raw_text).strip()
    if len(text) < MIN_TEXT_CHARS:
        raise UnreadablePdfError(
            "Could not extract enough text from the PDF. Is it a scanned image?"
        )
    return text


def parse_labeled_metadata(response: str) -> PartialMetadata:
    """Read ``TITLE:`` / ``AUTHORS:`` / ``ABSTRACT:`` blocks, label to label."""

    matches = list(LABEL_PATTERN.finditer(response or ""))
    values: dict[str, str | None] = {}
    for index, match in enumerate(matches):
        label = match.group(1).upper()
        if label in values:
            continue
        end = matches[index + 1].start() if index + 1 < len(matches) else len(response)
        value = collapse_whitespace(response[match.end() : end]).strip(" *")
        values[label] = None if value.lower() in UNKNOWN_VALUES else value
    return PartialMetadata(
        title=values.get("TITLE"),
        authors=values.get("AUTHORS"),
        abstract=values.get("ABSTRACT"),
    )


def guess_title_and_authors(text: str) -> tuple[str | None, str | None]:
    lines = [line.strip() for line in text.splitlines()]

    title_index = None
    for index, line in enumerate(lines):
        if TITLE_MIN_CHARS <= len(line) <= TITLE_MAX_LINE_CHARS and LETTER_PATTERN.search(line):
            title_index = index
            break
    if title_index is None:
        return None, None

    authors = None
    following = [line for line in lines[title_index + 1 :] if line][:AUTHOR_SCAN_LINES]
    for line in following:
        if line.lower().startswith("abstract"):
            continue
        if "," in line or AND_PATTERN.search(line) or CAPITALIZED_WORD_PATTERN.search(line):
            authors = line
            break
    return lines[title_index], authors


def guess_abstract(text: str) -> str | None:
    heading = ABSTRACT_HEADING_PATTERN.search(text)
    if heading is None:
        return None
    section_end = SECTION_END_PATTERN.search(text, heading.end())
    stop = section_end.start() if section_end else len(text)
    abstract = collapse_whitespace(text[heading.end() : stop])
    return abstract or None


def pseudo_abstract(text: str) -> str:
    return collapse_whitespace(text[:PSEUDO_ABSTRACT_CHARS])


class PdfExtractor:
    """Turn raw PDF bytes into a ``Paper``.

    Metadata comes from a labeled-extraction LLM call when a chat client is
    configured, with line heuristics filling whatever that call misses.
    """

    def __init__(
        self,
        chat_client: ChatClient | None = None,
        text_extractor: Callable[[bytes], str] = extract_pdf_text,
    ) -> None:
        self.chat_client = chat_client
        self.text_extractor = text_extractor

    def extract(self, content: bytes) -> Paper:
        text = self.text_extractor(content)
        extraction = self.extract_metadata(text)
        metadata = extraction.metadata
        return Paper(
            title=clamp(metadata.title, TITLE_MAX_CHARS) or UNTITLED_PDF,
            authors=clamp(metadata.authors, AUTHORS_MAX_CHARS) or UNKNOWN_AUTHORS,
            abstract=clamp(metadata.abstract, ABSTRACT_MAX_CHARS),
            source_type=SourceType.PDF,
        )

    def extract_metadata(self, text: str) -> MetadataExtraction:
        from_llm = self._extract_with_llm(text)
        if from_llm.title and from_llm.authors and from_llm.abstract:
            return MetadataExtraction(metadata=from_llm, used_fallback=False)

        guessed_title, guessed_authors = guess_title_and_authors(text)
        abstract = from_llm.abstract or guess_abstract(text) or pseudo_abstract(text)
        metadata = PartialMetadata(
            title=from_llm.title or guessed_title,
            authors=from_llm.authors or guessed_authors,
            abstract=abstract,
        )
        logger.warning(
            "PDF metadata used heuristics (llm title=%s authors=%s abstract=%s)",
            bool(from_llm.title),
            bool(from_llm.authors),
            bool(from_llm.abstract),
        )
        return MetadataExtraction(metadata=metadata, used_fallback=True)

    def _extract_with_llm(self, text: str) -> PartialMetadata:
        if self.chat_client is None:
            return PartialMetadata()
        try:
            response = self.chat_client.complete(
                system_prompt=PDF_METADATA_SYSTEM_PROMPT,
                user_prompt=build_pdf_metadata_prompt(text[:LLM_INPUT_CHARS]),
                temperature=METADATA_TEMPERATURE,
                max_tokens=METADATA_MAX_TOKENS,
            )
        except LLMRequestError as exc:
            logger.warning("PDF metadata extraction call failed: %s", exc)
            return PartialMetadata()
        return parse_labeled_metadata(response)
