"""Typed models used across the pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .text_utils import clamp, clean_text, collapse_whitespace, join_names

TITLE_MAX_CHARS = 400
AUTHORS_MAX_CHARS = 600
ABSTRACT_MAX_CHARS = 4000

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_AUTHORS = "Unknown Authors"

_YEAR_PATTERN = re.compile(r"(\d{4})")


class SourceType(str, Enum):
    ARXIV = "arxiv"
    CROSSREF = "crossref"
    PUBMED = "pubmed"
    SEMANTIC_SCHOLAR = "semanticscholar"
    PDF = "pdf"
    MANUAL = "manual"


@dataclass(frozen=True)
class Paper:
    """Canonical paper record exchanged by every component."""

    title: str
    authors: str
    abstract: str
    source_type: SourceType
    source_id: str | None = None
    pdf_url: str | None = None
    year: int | None = None
    journal: str | None = None
    citation_count: int = 0
    summary: str | None = None
    style: str | None = None
    url: str | None = None
    mesh_terms: tuple[str, ...] = ()
    pmcid: str | None = None
    fields_of_study: tuple[str, ...] = ()
    external_ids: dict[str, str] = field(default_factory=dict, hash=False)

    @property
    def arxiv_id(self) -> str | None:
        return self.source_id if self.source_type is SourceType.ARXIV else None

    @property
    def doi(self) -> str | None:
        return self.source_id if self.source_type is SourceType.CROSSREF else None

    @property
    def pmid(self) -> str | None:
        return self.source_id if self.source_type is SourceType.PUBMED else None

    def clamped(self) -> Paper:
        """Apply the persisted-form length limits."""

        return replace(
            self,
            title=clamp(self.title, TITLE_MAX_CHARS) or UNKNOWN_TITLE,
            authors=clamp(self.authors, AUTHORS_MAX_CHARS) or UNKNOWN_AUTHORS,
            abstract=clamp(self.abstract, ABSTRACT_MAX_CHARS),
        )

    def with_summary(self, summary: str, style: str) -> Paper:
        return replace(self, summary=summary, style=style)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "authors": self.authors,
            "abstract": self.abstract,
            "sourceType": self.source_type.value,
            "sourceId": self.source_id,
            "arxivId": self.arxiv_id,
            "doi": self.doi,
            "pmid": self.pmid,
            "pdfUrl": self.pdf_url,
            "year": self.year,
            "journal": self.journal,
            "citationCount": self.citation_count,
            "summary": self.summary,
            "style": self.style,
            "url": self.url,
            "meshTerms": list(self.mesh_terms),
            "pmcid": self.pmcid,
            "fieldsOfStudy": list(self.fields_of_study),
            "externalIds": dict(self.external_ids),
        }


@dataclass(frozen=True)
class SummaryStyle:
    """Prompt configuration for one summary style."""

    name: str
    description: str
    max_tokens: int
    system_prompt: str
    template: str
    requires_key_terms: bool = True


@dataclass(frozen=True)
class QaSource:
    label: str
    text: str


@dataclass(frozen=True)
class QaExchange:
    """One answered question with its supporting snippets."""

    question: str
    answer: str
    sources: list[QaSource]

    def to_dict(self) -> dict[str, Any]:
        return {
            "question": self.question,
            "answer": self.answer,
            "sources": [
                {"label": source.label, "text": source.text} for source in self.sources
            ],
        }


@dataclass(frozen=True)
class PartialMetadata:
    """Title/authors/abstract recovered from raw PDF text; any may be missing."""

    title: str | None = None
    authors: str | None = None
    abstract: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.title or self.authors or self.abstract)


@dataclass(frozen=True)
class MetadataExtraction:
    """Outcome of PDF metadata recovery and which path produced it."""

    metadata: PartialMetadata
    used_fallback: bool


def _parse_year(raw: Any) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, int):
        return raw
    match = _YEAR_PATTERN.search(str(raw))
    if match is None:
        return None
    return int(match.group(1))


def _first_str(value: Any) -> str | None:
    if isinstance(value, list):
        value = value[0] if value else None
    if value is None:
        return None
    text = collapse_whitespace(str(value))
    return text or None


def _date_parts_year(value: Any) -> int | None:
    if not isinstance(value, dict):
        return None
    parts = value.get("date-parts")
    if isinstance(parts, list) and parts and isinstance(parts[0], list) and parts[0]:
        return _parse_year(parts[0][0])
    return None


def _to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class ArxivEntry:
    """One entry of the ArXiv Atom query API."""

    arxiv_id: str
    title: str | None
    authors: list[str]
    summary: str | None
    published: str | None
    doi: str | None = None
    journal_ref: str | None = None

    @classmethod
    def from_feed_entry(cls, arxiv_id: str, entry: Any) -> ArxivEntry:
        return cls(
            arxiv_id=arxiv_id,
            title=entry.get("title"),
            authors=[
                author.get("name", "")
                for author in entry.get("authors", [])
                if isinstance(author, dict)
            ],
            summary=entry.get("summary"),
            published=entry.get("published"),
            doi=entry.get("arxiv_doi"),
            journal_ref=entry.get("arxiv_journal_ref"),
        )

    def to_paper(self) -> Paper:
        external_ids = {"DOI": self.doi} if self.doi else {}
        return Paper(
            title=clean_text(self.title) or UNKNOWN_TITLE,
            authors=join_names(self.authors),
            abstract=clean_text(self.summary),
            source_type=SourceType.ARXIV,
            source_id=self.arxiv_id,
            pdf_url=f"https://arxiv.org/pdf/{self.arxiv_id}.pdf",
            year=_parse_year(self.published),
            journal=clean_text(self.journal_ref) or None,
            url=f"https://arxiv.org/abs/{self.arxiv_id}",
            external_ids=external_ids,
        )


@dataclass(frozen=True)
class CrossrefWork:
    """The ``message`` object of a Crossref ``/works/<doi>`` response."""

    doi: str
    title: str | None
    authors: list[str]
    abstract: str | None
    container_title: str | None
    year: int | None
    url: str | None
    referenced_by_count: int

    @classmethod
    def from_payload(cls, doi: str, message: dict[str, Any]) -> CrossrefWork:
        authors = []
        for author in message.get("author") or []:
            if not isinstance(author, dict):
                continue
            name = " ".join(
                part for part in (author.get("given"), author.get("family")) if part
            ).strip()
            authors.append(name or str(author.get("name") or ""))

        year = None
        for key in ("published", "published-print", "published-online"):
            year = _date_parts_year(message.get(key))
            if year is not None:
                break

        return cls(
            doi=str(message.get("DOI") or doi),
            title=_first_str(message.get("title")),
            authors=authors,
            abstract=message.get("abstract"),
            container_title=_first_str(message.get("container-title")),
            year=year,
            url=message.get("URL"),
            referenced_by_count=_to_int(message.get("is-referenced-by-count")),
        )

    def to_paper(self) -> Paper:
        return Paper(
            title=clean_text(self.title) or UNKNOWN_TITLE,
            authors=join_names(self.authors),
            abstract=clean_text(self.abstract),
            source_type=SourceType.CROSSREF,
            source_id=self.doi,
            year=self.year,
            journal=self.container_title,
            citation_count=self.referenced_by_count,
            url=self.url or f"https://doi.org/{self.doi}",
        )


@dataclass(frozen=True)
class PubMedSummary:
    """One record from PubMed ``esummary`` plus the ``efetch`` abstract text."""

    pmid: str
    title: str | None
    authors: list[str]
    pubdate: str | None
    source: str | None
    abstract: str
    mesh_terms: list[str]
    pmcid: str | None
    cited_by_count: int

    @classmethod
    def from_payload(
        cls, pmid: str, record: dict[str, Any], abstract: str
    ) -> PubMedSummary:
        authors = []
        for author in record.get("authors") or []:
            if not isinstance(author, dict):
                continue
            name = author.get("name") or " ".join(
                part for part in (author.get("forename"), author.get("surname")) if part
            )
            authors.append(str(name or ""))

        mesh_terms = []
        for term in record.get("mesh_terms") or []:
            name = term.get("name") if isinstance(term, dict) else term
            if name:
                mesh_terms.append(str(name))

        pmcid = record.get("pmcid")
        if not pmcid:
            for article_id in record.get("articleids") or []:
                if isinstance(article_id, dict) and article_id.get("idtype") == "pmc":
                    pmcid = article_id.get("value")
                    break

        return cls(
            pmid=str(record.get("uid") or pmid),
            title=record.get("title"),
            authors=authors,
            pubdate=record.get("pubdate"),
            source=record.get("source"),
            abstract=abstract,
            mesh_terms=mesh_terms,
            pmcid=pmcid or None,
            cited_by_count=_to_int(record.get("citedby_count")),
        )

    def to_paper(self) -> Paper:
        return Paper(
            title=clean_text(self.title) or UNKNOWN_TITLE,
            authors=join_names(self.authors),
            abstract=clean_text(self.abstract),
            source_type=SourceType.PUBMED,
            source_id=self.pmid,
            year=_parse_year(self.pubdate),
            journal=clean_text(self.source) or None,
            citation_count=self.cited_by_count,
            url=f"https://pubmed.ncbi.nlm.nih.gov/{self.pmid}/",
            mesh_terms=tuple(self.mesh_terms),
            pmcid=self.pmcid,
        )


@dataclass(frozen=True)
class SemanticScholarRecord:
    """A paper object from the Semantic Scholar Graph API."""

    paper_id: str
    title: str | None
    authors: list[str]
    abstract: str | None
    year: int | None
    citation_count: int
    venue: str | None
    open_access_pdf: str | None
    url: str | None
    fields_of_study: list[str]
    external_ids: dict[str, str]

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> SemanticScholarRecord:
        authors = [
            str(author.get("name") or author.get("authorId") or "")
            for author in data.get("authors") or []
            if isinstance(author, dict)
        ]
        journal = data.get("journal")
        venue = journal.get("name") if isinstance(journal, dict) else None
        pdf = data.get("openAccessPdf")
        external_ids = {
            str(key): str(value)
            for key, value in (data.get("externalIds") or {}).items()
            if value is not None
        }
        return cls(
            paper_id=str(data.get("paperId") or ""),
            title=data.get("title"),
            authors=authors,
            abstract=data.get("abstract"),
            year=_parse_year(data.get("year")),
            citation_count=_to_int(data.get("citationCount")),
            venue=venue or data.get("venue") or None,
            open_access_pdf=pdf.get("url") if isinstance(pdf, dict) else None,
            url=data.get("url"),
            fields_of_study=[str(item) for item in data.get("fieldsOfStudy") or []],
            external_ids=external_ids,
        )

    def to_paper(self) -> Paper:
        return Paper(
            title=clean_text(self.title) or UNKNOWN_TITLE,
            authors=join_names(self.authors),
            abstract=clean_text(self.abstract),
            source_type=SourceType.SEMANTIC_SCHOLAR,
            source_id=self.paper_id or None,
            pdf_url=self.open_access_pdf,
            year=self.year,
            journal=self.venue,
            citation_count=self.citation_count,
            url=self.url,
            fields_of_study=tuple(self.fields_of_study),
            external_ids=dict(self.external_ids),
        )


@dataclass(frozen=True)
class RelatedPaper:
    """Compact paper entry returned by citation/reference/related listings."""

    paper_id: str | None
    title: str
    authors: str
    year: int | None
    citation_count: int
    url: str | None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> RelatedPaper:
        return cls(
            paper_id=data.get("paperId"),
            title=clean_text(data.get("title")) or UNKNOWN_TITLE,
            authors=join_names(
                [
                    str(author.get("name") or "")
                    for author in data.get("authors") or []
                    if isinstance(author, dict)
                ]
            ),
            year=_parse_year(data.get("year")),
            citation_count=_to_int(data.get("citationCount")),
            url=data.get("url"),
        )
