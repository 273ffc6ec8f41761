"""Fetch-or-extract, then summarize or answer: the request-level flow."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .arxiv_client import ArxivClient
from .crossref_client import CrossrefClient
from .identifiers import extract_arxiv_id, extract_doi, extract_pmid, extract_scholar_query
from .llm_client import ChatClient
from .pdf_extractor import PdfExtractor
from .pubmed_client import PubMedClient
from .qa import Answerer
from .semantic_scholar_client import SemanticScholarClient
from .summarizer import Summarizer

if TYPE_CHECKING:
    from .config import Settings
    from .models import Paper, QaExchange

logger = logging.getLogger(__name__)


class PaperPlainPipeline:
    """Coordinates identifier normalization, source fetchers and the LLM steps.

    Holds no per-request state; every method is safe to call concurrently
    for different papers.
    """

    def __init__(
        self,
        arxiv: ArxivClient,
        crossref: CrossrefClient,
        pubmed: PubMedClient,
        semantic_scholar: SemanticScholarClient,
        pdf_extractor: PdfExtractor,
        summarizer: Summarizer,
        answerer: Answerer,
        default_style: str = "simple",
    ) -> None:
        self.arxiv = arxiv
        self.crossref = crossref
        self.pubmed = pubmed
        self.semantic_scholar = semantic_scholar
        self.pdf_extractor = pdf_extractor
        self.summarizer = summarizer
        self.answerer = answerer
        self.default_style = default_style

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        model: str | None = None,
    ) -> PaperPlainPipeline:
        chat_client = ChatClient(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            model=model or settings.llm_model,
            timeout_sec=settings.llm_timeout_sec,
            trust_env=settings.network_trust_env,
        )
        http_options = {
            "timeout_sec": settings.http_timeout_sec,
            "trust_env": settings.network_trust_env,
        }
        return cls(
            arxiv=ArxivClient(**http_options),
            crossref=CrossrefClient(contact_email=settings.contact_email, **http_options),
            pubmed=PubMedClient(api_key=settings.pubmed_api_key, **http_options),
            semantic_scholar=SemanticScholarClient(
                api_key=settings.semantic_scholar_api_key, **http_options
            ),
            pdf_extractor=PdfExtractor(chat_client=chat_client),
            summarizer=Summarizer(chat_client=chat_client),
            answerer=Answerer(chat_client=chat_client),
            default_style=settings.default_style,
        )

    def fetch_arxiv(self, reference: str) -> Paper:
        return self.arxiv.fetch(extract_arxiv_id(reference))

    def fetch_doi(self, reference: str) -> Paper:
        return self.crossref.fetch(extract_doi(reference))

    def fetch_pmid(self, reference: str) -> Paper:
        return self.pubmed.fetch(extract_pmid(reference))

    def fetch_semantic_scholar(self, reference: str) -> Paper:
        return self.semantic_scholar.fetch(reference)

    def fetch_query(self, reference: str) -> Paper:
        return self.semantic_scholar.find_paper(extract_scholar_query(reference))

    def summarize_arxiv(self, reference: str, style: str | None = None) -> Paper:
        return self.summarize(self.fetch_arxiv(reference), style)

    def summarize_doi(self, reference: str, style: str | None = None) -> Paper:
        return self.summarize(self.fetch_doi(reference), style)

    def summarize_pmid(self, reference: str, style: str | None = None) -> Paper:
        return self.summarize(self.fetch_pmid(reference), style)

    def summarize_semantic_scholar(
        self, reference: str, style: str | None = None
    ) -> Paper:
        return self.summarize(self.fetch_semantic_scholar(reference), style)

    def summarize_query(self, reference: str, style: str | None = None) -> Paper:
        return self.summarize(self.fetch_query(reference), style)

    def summarize_pdf(self, content: bytes, style: str | None = None) -> Paper:
        return self.summarize(self.pdf_extractor.extract(content), style)

    def summarize(self, paper: Paper, style: str | None = None) -> Paper:
        paper = paper.clamped()
        resolved = self.summarizer.resolve_style(style or self.default_style)
        logger.info(
            "Summarizing %s paper %r (style=%s)",
            paper.source_type.value,
            paper.title,
            resolved.name,
        )
        summary = self.summarizer.summarize(paper, resolved.name)
        return paper.with_summary(summary, resolved.name)

    def ask(self, question: str, paper: Paper) -> QaExchange:
        return self.answerer.answer(question, paper)
