"""Semantic Scholar Graph and Recommendations API client."""

from __future__ import annotations

from urllib.parse import quote

import requests

from .exceptions import PaperNotFoundError
from .identifiers import to_semantic_scholar_id
from .models import Paper, RelatedPaper, SemanticScholarRecord
from .source_client import SourceClient

SEMANTIC_SCHOLAR_API_BASE = "https://api.semanticscholar.org/graph/v1"
RECOMMENDATIONS_API_BASE = "https://api.semanticscholar.org/recommendations/v1"

DEFAULT_FIELDS = ",".join(
    [
        "paperId",
        "title",
        "authors",
        "abstract",
        "year",
        "citationCount",
        "referenceCount",
        "fieldsOfStudy",
        "openAccessPdf",
        "url",
        "venue",
        "journal",
        "externalIds",
    ]
)
LINK_FIELDS = "paperId,title,authors,year,citationCount,url"

MAX_SEARCH_LIMIT = 100
MAX_LINK_LIMIT = 1000
MAX_RELATED_LIMIT = 100


class SemanticScholarClient(SourceClient):
    """Thin wrappers over the Semantic Scholar paper endpoints.

    All calls share the header construction in ``_build_headers`` so the
    optional ``x-api-key`` is sent everywhere once configured.
    """

    source_name = "Semantic Scholar"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = SEMANTIC_SCHOLAR_API_BASE,
        recommendations_url: str = RECOMMENDATIONS_API_BASE,
        timeout_sec: int = 20,
        trust_env: bool = False,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url,
            timeout_sec=timeout_sec,
            trust_env=trust_env,
            session=session,
        )
        self.api_key = api_key
        self.recommendations_url = recommendations_url.rstrip("/")

    def _build_headers(self) -> dict[str, str]:
        headers = super()._build_headers()
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    def fetch(self, paper_id: str, fields: str = DEFAULT_FIELDS) -> Paper:
        s2_id = to_semantic_scholar_id(paper_id)
        payload = self._get_json(
            f"paper/{quote(s2_id, safe=':/')}", {"fields": fields}
        )
        return SemanticScholarRecord.from_payload(payload).to_paper()

    def search_papers(
        self,
        query: str,
        limit: int = 10,
        fields: str = DEFAULT_FIELDS,
    ) -> list[Paper]:
        payload = self._get_json(
            "paper/search",
            {
                "query": query,
                "limit": min(limit, MAX_SEARCH_LIMIT),
                "fields": fields,
            },
        )
        return [
            SemanticScholarRecord.from_payload(item).to_paper()
            for item in payload.get("data") or []
            if isinstance(item, dict)
        ]

    def find_paper(self, query: str) -> Paper:
        """Return the best search hit for a free-text query."""

        results = self.search_papers(query, limit=5)
        if not results:
            raise PaperNotFoundError("Paper not found. Try a more specific search.")
        return results[0]

    def get_citations(self, paper_id: str, limit: int = 100) -> list[RelatedPaper]:
        return self._list_links(paper_id, "citations", "citingPaper", limit)

    def get_references(self, paper_id: str, limit: int = 100) -> list[RelatedPaper]:
        return self._list_links(paper_id, "references", "citedPaper", limit)

    def get_related_papers(self, paper_id: str, limit: int = 10) -> list[RelatedPaper]:
        s2_id = to_semantic_scholar_id(paper_id)
        payload = self._get_json(
            f"{self.recommendations_url}/papers/forpaper/{quote(s2_id, safe=':/')}",
            {"fields": LINK_FIELDS, "limit": min(limit, MAX_RELATED_LIMIT)},
        )
        return [
            RelatedPaper.from_payload(item)
            for item in payload.get("recommendedPapers") or []
            if isinstance(item, dict)
        ]

    def _list_links(
        self,
        paper_id: str,
        endpoint: str,
        item_key: str,
        limit: int,
    ) -> list[RelatedPaper]:
        s2_id = to_semantic_scholar_id(paper_id)
        payload = self._get_json(
            f"paper/{quote(s2_id, safe=':/')}/{endpoint}",
            {"fields": LINK_FIELDS, "limit": min(limit, MAX_LINK_LIMIT)},
        )
        papers: list[RelatedPaper] = []
        for item in payload.get("data") or []:
            linked = item.get(item_key) if isinstance(item, dict) else None
            if isinstance(linked, dict) and (linked.get("paperId") or linked.get("title")):
                papers.append(RelatedPaper.from_payload(linked))
        return papers
