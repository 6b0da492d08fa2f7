"""
Model provider adapter for Trend Insight.

A phase call needs four capabilities from the provider: role-tagged
directives, an optional web_search tool, optional JSON-schema constrained
output, and a reasoning-effort hint. ``PhaseConfig`` fixes those per phase;
``AnthropicProvider`` maps them onto the Claude Messages API.

Any object with a ``generate(phase, directives)`` method returning a
response that ``core.extractor.extract_text`` understands can stand in for
the Anthropic adapter (tests use a recording stub).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import anthropic

from core.directives import Directives
from core.errors import UpstreamError
from core.models import TREND_REPORT_SCHEMA

logger = logging.getLogger(__name__)

WEB_SEARCH_BETA = "web-search-2025-03-05"

#: Extended-thinking budget per effort hint; ``0`` disables thinking.
EFFORT_THINKING_BUDGET: dict[str, int] = {
    "low": 0,
    "medium": 2048,
    "high": 8192,
}


@dataclass(frozen=True)
class PhaseConfig:
    """Capability configuration of one phase call."""

    name: str
    web_search: bool
    structured_output: bool
    effort: str = "low"

    def __post_init__(self) -> None:
        if self.web_search and self.structured_output:
            raise ValueError(
                f"phase {self.name!r}: web_search and structured output "
                "cannot be enabled in the same call"
            )
        if self.effort not in EFFORT_THINKING_BUDGET:
            raise ValueError(f"phase {self.name!r}: unknown effort {self.effort!r}")


class Provider(Protocol):
    def generate(self, phase: PhaseConfig, directives: Directives) -> Any: ...


def _upstream_error(exc: anthropic.APIError) -> UpstreamError:
    status = getattr(exc, "status_code", None)
    if not isinstance(status, int) or status < 500:
        status = 502
    return UpstreamError(str(getattr(exc, "message", "") or exc), status_code=status)


class AnthropicProvider:
    """Runs phase calls against the Claude Messages API.

    The Anthropic client is lazy-initialised so that the class can be
    instantiated in tests without requiring a live API key.
    """

    def __init__(self, settings) -> None:
        self.settings = settings
        self._client: anthropic.Anthropic | None = None

    @property
    def client(self) -> anthropic.Anthropic:
        if self._client is None:
            self._client = anthropic.Anthropic(
                api_key=self.settings.anthropic_api_key,
                max_retries=self.settings.max_retries,
            )
        return self._client

    def _model_for(self, phase: PhaseConfig) -> str:
        if phase.web_search:
            return self.settings.research_model
        if phase.structured_output:
            return self.settings.format_model
        return self.settings.repair_model

    def request_kwargs(self, phase: PhaseConfig, directives: Directives) -> dict:
        """Build the ``messages.create`` keyword arguments for *phase*."""
        max_tokens = self.settings.max_output_tokens
        kwargs: dict[str, Any] = {
            "model": self._model_for(phase),
            "system": directives.system,
            "messages": [{"role": "user", "content": directives.user}],
        }

        budget = EFFORT_THINKING_BUDGET[phase.effort]
        if budget:
            kwargs["thinking"] = {"type": "enabled", "budget_tokens": budget}
            max_tokens = max(max_tokens, budget + 1024)
        kwargs["max_tokens"] = max_tokens

        if phase.web_search:
            kwargs["betas"] = [WEB_SEARCH_BETA]
            kwargs["tools"] = [
                {
                    "type": "web_search_20250305",
                    "name": "web_search",
                    "max_uses": self.settings.max_web_searches,
                }
            ]
        if phase.structured_output:
            kwargs["output_config"] = {
                "format": {"type": "json_schema", "schema": TREND_REPORT_SCHEMA}
            }
        return kwargs

    def generate(self, phase: PhaseConfig, directives: Directives) -> Any:
        """Run one phase call and return the raw SDK response.

        Raises:
            UpstreamError: On any Anthropic API or connection error.
        """
        kwargs = self.request_kwargs(phase, directives)
        logger.info("Calling %s for phase=%s", kwargs["model"], phase.name)
        try:
            if phase.web_search:
                response = self.client.beta.messages.create(**kwargs)
            else:
                response = self.client.messages.create(**kwargs)
        except anthropic.APIError as exc:
            raise _upstream_error(exc) from exc

        stop_reason = getattr(response, "stop_reason", None)
        if phase.web_search and stop_reason != "end_turn":
            # pause_turn: the server paused a long search loop; the draft may be partial.
            logger.warning(
                "Phase %s stopped with stop_reason=%r; using the text as a possibly incomplete draft",
                phase.name,
                stop_reason,
            )
        return response
