"""Shared HTTP plumbing for the metadata source clients."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urljoin

import requests

from .exceptions import PaperNotFoundError, UpstreamError

logger = logging.getLogger(__name__)

USER_AGENT = "PaperPlain/1.0"


class SourceClient:
    """Base class for one external metadata API.

    Every call is a single GET with no retry and no caching; a 404 becomes
    ``PaperNotFoundError`` and any other non-2xx status an ``UpstreamError``
    carrying that status.
    """

    source_name = "source"
    not_found_message = "Paper not found"

    def __init__(
        self,
        base_url: str,
        timeout_sec: int = 20,
        trust_env: bool = False,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self.session = session or requests.Session()
        self.session.trust_env = trust_env

    def _build_url(self, path: str) -> str:
        return urljoin(f"{self.base_url}/", path.lstrip("/"))

    def _build_headers(self) -> dict[str, str]:
        return {"User-Agent": USER_AGENT}

    def _get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        not_found_message: str | None = None,
    ) -> requests.Response:
        url = self._build_url(path)
        logger.debug("GET %s params=%s", url, params)
        try:
            response = self.session.get(
                url,
                params=params,
                headers=self._build_headers(),
                timeout=self.timeout_sec,
            )
        except requests.RequestException as exc:
            raise UpstreamError(
                f"{self.source_name} request failed: {exc}"
            ) from exc

        if response.status_code == 404:
            raise PaperNotFoundError(not_found_message or self.not_found_message)

        if not response.ok:
            raise UpstreamError(
                f"{self.source_name} API error: {response.status_code}",
                status_code=response.status_code,
                retry_after=response.headers.get("retry-after"),
            )
        return response

    def _get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        not_found_message: str | None = None,
    ) -> dict[str, Any]:
        response = self._get(path, params, not_found_message=not_found_message)
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"Non-JSON response from {self.source_name} on {path}",
                status_code=response.status_code,
            ) from exc
        if not isinstance(payload, dict):
            raise UpstreamError(
                f"Unexpected payload from {self.source_name} on {path}",
                status_code=response.status_code,
            )
        return payload
