"""Style-driven paper summarizer with a key-terms repair pass."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from .exceptions import LLMRequestError, SummarizationFailedError
from .prompts import (
    DEFAULT_STYLE,
    KEY_TERMS_HEADING,
    KEY_TERMS_REPAIR_SYSTEM_PROMPT,
    SUMMARY_STYLES,
    build_key_terms_prompt,
    build_summary_prompt,
    resolve_style,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .llm_client import ChatClient
    from .models import Paper, SummaryStyle

logger = logging.getLogger(__name__)

# "**Key Terms:**", "**Key Terms**:", "## Key Terms", "4. KEY TERMS:", ...
KEY_TERMS_HEADING_PATTERN = re.compile(
    r"^[ \t]*(?:\d+[.)][ \t]*)?"
    r"(?:"
    r"(?:\*\*|__)[ \t]*(?:\d+[.)][ \t]*)?key[ \t]*terms[ \t]*:?[ \t]*(?:\*\*|__)[ \t]*:?"
    r"|#{1,6}[ \t]*(?:\d+[.)][ \t]*)?key[ \t]*terms\b[ \t]*:?"
    r"|key[ \t]*terms[ \t]*:"
    r")",
    re.IGNORECASE | re.MULTILINE,
)

REPAIR_TEMPERATURE = 0.2
REPAIR_MAX_TOKENS = 300


def has_key_terms(text: str) -> bool:
    return (
        KEY_TERMS_HEADING in text
        or KEY_TERMS_HEADING_PATTERN.search(text) is not None
    )


def normalize_key_terms_heading(text: str) -> str:
    """Rewrite every Key Terms heading variant to ``**Key Terms:**``.

    Only the first heading survives; later duplicates are dropped so the
    body/key-terms split stays unambiguous.
    """

    seen = False

    def _replace(match: re.Match[str]) -> str:
        nonlocal seen
        if seen:
            return ""
        seen = True
        return KEY_TERMS_HEADING

    return KEY_TERMS_HEADING_PATTERN.sub(_replace, text)


def split_summary(text: str) -> tuple[str, str]:
    """Split a summary into its body and its ``**Key Terms:**`` block."""

    normalized = normalize_key_terms_heading(text or "")
    index = normalized.find(KEY_TERMS_HEADING)
    if index < 0:
        return normalized.strip(), ""
    return normalized[:index].strip(), normalized[index:].strip()


class Summarizer:
    """Generate a styled plain-language summary for a canonical paper."""

    def __init__(
        self,
        chat_client: ChatClient,
        styles: Mapping[str, SummaryStyle] = SUMMARY_STYLES,
        temperature: float = 0.7,
    ) -> None:
        if DEFAULT_STYLE not in styles:
            raise ValueError(f"Style table must define the '{DEFAULT_STYLE}' style")
        self.chat_client = chat_client
        self.styles = styles
        self.temperature = temperature

    def resolve_style(self, name: str | None) -> SummaryStyle:
        return resolve_style(name, self.styles)

    def summarize(self, paper: Paper, style: str | None = None) -> str:
        summary_style = self.resolve_style(style)
        user_prompt = build_summary_prompt(
            template=summary_style.template,
            title=paper.title,
            abstract=paper.abstract or "",
        )

        try:
            raw_summary = self.chat_client.complete(
                system_prompt=summary_style.system_prompt,
                user_prompt=user_prompt,
                temperature=self.temperature,
                max_tokens=summary_style.max_tokens,
            )
        except LLMRequestError as exc:
            raise SummarizationFailedError(
                f"Failed to generate summary: {exc}"
            ) from exc

        summary = normalize_key_terms_heading(raw_summary).strip()
        if not summary_style.requires_key_terms or has_key_terms(summary):
            return summary

        key_terms = self._repair_key_terms(paper, summary)
        if not key_terms:
            return summary
        return f"{summary}\n\n{key_terms}"

    def _repair_key_terms(self, paper: Paper, summary: str) -> str:
        logger.info("Summary for %r lacks key terms; requesting them", paper.title)
        try:
            raw_block = self.chat_client.complete(
                system_prompt=KEY_TERMS_REPAIR_SYSTEM_PROMPT,
                user_prompt=build_key_terms_prompt(
                    title=paper.title,
                    abstract=paper.abstract or "",
                    summary=summary,
                ),
                temperature=REPAIR_TEMPERATURE,
                max_tokens=REPAIR_MAX_TOKENS,
            )
        except LLMRequestError as exc:
            logger.warning("Key terms repair failed: %s", exc)
            return ""

        block = normalize_key_terms_heading(raw_block).strip()
        index = block.find(KEY_TERMS_HEADING)
        if index >= 0:
            block = block[index:]
        else:
            block = f"{KEY_TERMS_HEADING}\n{block}"
        return block.strip()
