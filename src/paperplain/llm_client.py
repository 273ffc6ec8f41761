"""OpenAI-compatible chat completion client."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from openai import OpenAI

from .exceptions import LLMRequestError

logger = logging.getLogger(__name__)

UNIT_TEMPERATURE_MODELS = ("kimi-k2.5",)


class ChatClient:
    """Send one system+user exchange to a chat completions endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        timeout_sec: int = 120,
        trust_env: bool = False,
        client: OpenAI | None = None,
    ) -> None:
        self.model = model
        self.client = client or OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_sec,
            http_client=httpx.Client(
                timeout=timeout_sec,
                trust_env=trust_env,
            ),
        )

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        response = self._request_completion(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        if not response.choices:
            raise LLMRequestError("LLM returned no choices")

        content = self._extract_content(response.choices[0].message.content)
        if not content.strip():
            raise LLMRequestError("LLM returned empty content")
        return content.strip()

    def _request_completion(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> Any:
        logger.debug(
            "Chat completion model=%s temperature=%s max_tokens=%s",
            self.model,
            temperature,
            max_tokens,
        )
        try:
            return self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self._resolve_temperature(temperature),
                max_tokens=max_tokens,
            )
        except Exception as exc:
            raise LLMRequestError(f"LLM request failed: {exc}") from exc

    def _resolve_temperature(self, requested_temperature: float) -> float:
        normalized_model = self.model.strip().lower()
        for fixed_model in UNIT_TEMPERATURE_MODELS:
            if normalized_model == fixed_model or normalized_model.startswith(
                f"{fixed_model}-"
            ):
                return 1.0
        return requested_temperature

    def _extract_content(self, content: Any) -> str:
        if isinstance(content, str):
            return content

        if isinstance(content, list):
            chunks: list[str] = []
            for item in content:
                if isinstance(item, dict) and "text" in item:
                    chunks.append(str(item["text"]))
            return "\n".join(chunks)

        return ""
