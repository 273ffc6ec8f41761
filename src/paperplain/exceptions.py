"""Custom exceptions for PaperPlain."""

from __future__ import annotations


class PaperPlainError(Exception):
    """Base exception for the project."""

    http_status = 500


class ConfigError(PaperPlainError):
    """Raised when required configuration is missing or invalid."""


class LLMRequestError(PaperPlainError):
    """Raised when a chat completion call fails or returns nothing usable."""

    http_status = 502


class InvalidIdentifierError(PaperPlainError):
    """Raised when a paper reference matches no known identifier pattern."""

    http_status = 400


class PaperNotFoundError(PaperPlainError):
    """Raised when an upstream source reports no such paper."""

    http_status = 404


class UpstreamError(PaperPlainError):
    """Raised when a metadata source answers with a non-2xx status."""

    http_status = 502

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retry_after: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retry_after = retry_after
        if status_code is not None and status_code >= 400:
            self.http_status = status_code


class UnreadablePdfError(PaperPlainError):
    """Raised when an uploaded PDF yields too little text to be a paper."""

    http_status = 400


class SummarizationFailedError(PaperPlainError):
    """Raised when the LLM summary call fails."""

    http_status = 502


class AnswerFailedError(PaperPlainError):
    """Raised when the LLM question-answering call fails."""

    http_status = 502
