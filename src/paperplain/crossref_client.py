"""Crossref REST API client for DOI lookup."""

from __future__ import annotations

from urllib.parse import quote

import requests

from .config import DEFAULT_CONTACT_EMAIL
from .exceptions import PaperNotFoundError
from .models import CrossrefWork, Paper
from .source_client import SourceClient

CROSSREF_API_BASE = "https://api.crossref.org/v1"


class CrossrefClient(SourceClient):
    """Service for interacting with the Crossref API."""

    source_name = "Crossref"
    not_found_message = "DOI not found"

    def __init__(
        self,
        contact_email: str = DEFAULT_CONTACT_EMAIL,
        base_url: str = CROSSREF_API_BASE,
        timeout_sec: int = 20,
        trust_env: bool = False,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the Crossref client.

        Args:
            contact_email: Email sent as ``mailto`` for polite pool access
        """
        super().__init__(
            base_url=base_url,
            timeout_sec=timeout_sec,
            trust_env=trust_env,
            session=session,
        )
        self.contact_email = contact_email

    def fetch(self, doi: str) -> Paper:
        """Look up paper metadata by DOI.

        Raises:
            PaperNotFoundError: Crossref has no work for this DOI
            UpstreamError: Any other non-2xx response
        """
        payload = self._get_json(
            f"works/{quote(doi, safe='')}",
            {"mailto": self.contact_email},
        )
        message = payload.get("message")
        if not isinstance(message, dict) or not message:
            raise PaperNotFoundError(self.not_found_message)
        return CrossrefWork.from_payload(doi, message).to_paper()
