"""PubMed E-utilities client (esummary + efetch)."""

from __future__ import annotations

import logging
import re
from typing import Any

import requests

from .exceptions import InvalidIdentifierError, PaperNotFoundError, UpstreamError
from .models import Paper, PubMedSummary
from .source_client import SourceClient

logger = logging.getLogger(__name__)

PUBMED_API_BASE = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
PMID_PATTERN = re.compile(r"^\d{7,9}$")
ABSTRACT_PREFIX_PATTERN = re.compile(r"^\s*Abstract\s*\n", re.IGNORECASE)


class PubMedClient(SourceClient):
    """Fetch a PubMed record and its abstract with two sequential calls."""

    source_name = "PubMed"
    not_found_message = "PMID not found"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = PUBMED_API_BASE,
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

    def _params(self, **params: str) -> dict[str, str]:
        merged = {"db": "pubmed", **params}
        if self.api_key:
            merged["api_key"] = self.api_key
        return merged

    def fetch(self, pmid: str) -> Paper:
        pmid = (pmid or "").strip()
        if not PMID_PATTERN.match(pmid):
            raise InvalidIdentifierError("Invalid PMID format")

        record = self._fetch_summary(pmid)
        abstract = self._fetch_abstract(pmid)
        return PubMedSummary.from_payload(pmid, record, abstract).to_paper()

    def _fetch_summary(self, pmid: str) -> dict[str, Any]:
        payload = self._get_json(
            "esummary.fcgi", self._params(id=pmid, retmode="json")
        )
        result = payload.get("result") or {}
        record = result.get(pmid) if isinstance(result, dict) else None
        if not isinstance(record, dict) or record.get("error"):
            raise PaperNotFoundError(self.not_found_message)
        return record

    def _fetch_abstract(self, pmid: str) -> str:
        try:
            response = self._get(
                "efetch.fcgi",
                self._params(id=pmid, rettype="abstract", retmode="text"),
            )
        except (UpstreamError, PaperNotFoundError) as exc:
            # The summary already identified the paper; keep it without abstract.
            logger.warning("PubMed efetch failed for %s: %s", pmid, exc)
            return ""
        return ABSTRACT_PREFIX_PATTERN.sub("", response.text).replace("\n\n", " ")
