"""Question answering over one paper's abstract and summary."""

from __future__ import annotations

import logging
import math
import re
from typing import TYPE_CHECKING

from .exceptions import AnswerFailedError, LLMRequestError
from .models import QaExchange, QaSource
from .prompts import QA_SYSTEM_PROMPT, build_qa_prompt
from .text_utils import collapse_whitespace, truncate_with_ellipsis

if TYPE_CHECKING:
    from .llm_client import ChatClient
    from .models import Paper

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"[a-z0-9-]+")
MIN_TOKEN_LENGTH = 3
BLANK_LINE_PATTERN = re.compile(r"\n[ \t]*\n")
SENTENCE_BOUNDARY_PATTERN = re.compile(r"(?<=[.!?])\s+")
MARKDOWN_NOISE_PATTERN = re.compile(r"\*\*|__|^[ \t]*[•*-][ \t]+", re.MULTILINE)

MAX_SOURCES = 3
MAX_SOURCE_CHARS = 220
MIN_SCORE_DIVISOR = 8.0

QA_TEMPERATURE = 0.2
QA_MAX_TOKENS = 400


def tokenize(text: str) -> list[str]:
    return [
        token
        for token in TOKEN_PATTERN.findall((text or "").lower())
        if len(token) >= MIN_TOKEN_LENGTH
    ]


def _candidate_pool(abstract: str, summary: str) -> list[QaSource]:
    pool: list[QaSource] = []
    abstract_text = collapse_whitespace(abstract or "")
    if abstract_text:
        pool.append(QaSource(label="Abstract", text=abstract_text))

    for block in BLANK_LINE_PATTERN.split(summary or ""):
        for sentence in SENTENCE_BOUNDARY_PATTERN.split(block):
            text = collapse_whitespace(MARKDOWN_NOISE_PATTERN.sub("", sentence))
            if text:
                pool.append(QaSource(label="Summary", text=text))
    return pool


def score_candidate(question_tokens: set[str], text: str) -> float:
    """Overlap count damped so short, dense snippets outrank long ones."""

    tokens = tokenize(text)
    if not tokens:
        return 0.0
    overlap = sum(1 for token in tokens if token in question_tokens)
    return overlap / max(MIN_SCORE_DIVISOR, math.sqrt(len(tokens)))


def find_supporting_sources(
    question: str,
    abstract: str,
    summary: str,
    limit: int = MAX_SOURCES,
) -> list[QaSource]:
    question_tokens = set(tokenize(question))
    if not question_tokens:
        return []

    scored: list[tuple[float, QaSource]] = []
    for candidate in _candidate_pool(abstract, summary):
        score = score_candidate(question_tokens, candidate.text)
        if score > 0:
            scored.append((score, candidate))
    scored.sort(key=lambda item: item[0], reverse=True)

    sources: list[QaSource] = []
    seen: set[str] = set()
    for _, candidate in scored:
        key = collapse_whitespace(candidate.text).lower()
        if key in seen:
            continue
        seen.add(key)
        sources.append(
            QaSource(
                label=candidate.label,
                text=truncate_with_ellipsis(candidate.text, MAX_SOURCE_CHARS),
            )
        )
        if len(sources) >= limit:
            break
    return sources


class Answerer:
    """Answer a question strictly from a paper's text and cite snippets."""

    def __init__(
        self,
        chat_client: ChatClient,
        temperature: float = QA_TEMPERATURE,
        max_tokens: int = QA_MAX_TOKENS,
        max_sources: int = MAX_SOURCES,
    ) -> None:
        self.chat_client = chat_client
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_sources = max_sources

    def answer(self, question: str, paper: Paper) -> QaExchange:
        question = (question or "").strip()
        if not question:
            raise ValueError("question is required")

        title = paper.title or ""
        authors = paper.authors or ""
        abstract = paper.abstract or ""
        summary = paper.summary or ""

        try:
            answer_text = self.chat_client.complete(
                system_prompt=QA_SYSTEM_PROMPT,
                user_prompt=build_qa_prompt(
                    question=question,
                    title=title,
                    authors=authors,
                    abstract=abstract,
                    summary=summary,
                ),
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except LLMRequestError as exc:
            raise AnswerFailedError(f"Failed to answer question: {exc}") from exc

        sources = find_supporting_sources(
            question, abstract, summary, limit=self.max_sources
        )
        logger.debug("Answered %r with %d sources", question, len(sources))
        return QaExchange(question=question, answer=answer_text, sources=sources)
