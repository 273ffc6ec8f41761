"""ArXiv Atom query API client."""

from __future__ import annotations

import logging

import feedparser
import requests

from .exceptions import PaperNotFoundError
from .models import ArxivEntry, Paper
from .source_client import SourceClient

logger = logging.getLogger(__name__)

ARXIV_API_BASE = "https://export.arxiv.org/api"


class ArxivClient(SourceClient):
    """Fetch one paper's metadata from the ArXiv export API."""

    source_name = "ArXiv"

    def __init__(
        self,
        base_url: str = ARXIV_API_BASE,
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

    def fetch(self, arxiv_id: str) -> Paper:
        response = self._get("query", {"id_list": arxiv_id})
        return self.parse_feed(arxiv_id, response.text)

    def parse_feed(self, arxiv_id: str, feed_text: str) -> Paper:
        feed = feedparser.parse(feed_text)
        entries = feed.get("entries") or []
        if not entries:
            raise PaperNotFoundError("Paper not found")

        entry = entries[0]
        # ArXiv reports bad ids as a single entry pointing at /api/errors.
        if "/api/errors" in str(entry.get("id", "")) or (
            str(entry.get("title", "")).strip().lower() == "error"
        ):
            raise PaperNotFoundError("Paper not found")

        logger.debug("Parsed ArXiv entry %s", arxiv_id)
        return ArxivEntry.from_feed_entry(arxiv_id, entry).to_paper()
