"""Exception types raised by the trend research pipeline."""

from __future__ import annotations


class ResearchError(Exception):
    """Base class for all pipeline errors."""


class InvalidRequestError(ResearchError):
    """The request was rejected before any call to the model was made."""


class UpstreamError(ResearchError):
    """The model provider failed during a research or formatting phase.

    ``status_code`` is the provider's own 5xx status when it sent one,
    otherwise 502 (Bad Gateway).
    """

    def __init__(self, message: str, status_code: int = 502) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ReportParseError(ResearchError):
    """Model output could not be parsed as a report JSON object."""
