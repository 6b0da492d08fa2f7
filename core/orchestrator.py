"""
Trend research orchestrator.

Runs one research request through a fixed chain of model calls and always
hands back a report dict with an ``id`` and ``generated_at``.

Flow
────
            ┌─ use_web_search ─┐
  start ───►│ SEARCH           │──► FORMAT ──► parse ok ──────────► DONE
            └──────────────────┘      ▲   │
  start (no search) ──────────────────┘   └─► parse failed ─► REPAIR
                                                                 │
                                     parse ok ◄──────────────────┤
                                       DONE      parse failed /  │
                                                 any error ──────┴─► FAILED

* SEARCH  web_search on, constrained output off, medium effort.
* FORMAT  web_search off, constrained output on. Transcodes the search
          draft, or does the whole job in one call when search is disabled.
* REPAIR  both off, low effort. Runs at most once, only after a failed parse.
* FAILED  returns the Empty Result.

Provider errors in SEARCH or FORMAT propagate as ``UpstreamError``; nothing
is retried here.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from enum import Enum
from typing import Optional

from pydantic import ValidationError

from core.directives import (
    format_directives,
    repair_directives,
    report_directives,
    research_directives,
)
from core.errors import InvalidRequestError, ReportParseError
from core.extractor import extract_text
from core.finalizer import finalize_report
from core.models import ResearchRequest, TrendReport
from core.providers import AnthropicProvider, PhaseConfig, Provider
from core.repair import empty_report, parse_report

logger = logging.getLogger(__name__)


class State(str, Enum):
    SEARCH = "search"
    FORMAT = "format"
    REPAIR = "repair"
    DONE = "done"
    FAILED = "failed"


SEARCH_PHASE = PhaseConfig("search", web_search=True, structured_output=False, effort="medium")
FORMAT_PHASE = PhaseConfig("format", web_search=False, structured_output=True, effort="low")
COMBINED_PHASE = PhaseConfig("combined", web_search=False, structured_output=True, effort="medium")
REPAIR_PHASE = PhaseConfig("repair", web_search=False, structured_output=False, effort="low")

#: Event emitted by ``iter_run``: ``("phase", State)`` or ``("report", dict)``.
Event = tuple[str, object]


class TrendResearcher:
    """Runs research requests against a model provider.

    Holds no per-request state, so one instance can serve concurrent
    requests.
    """

    def __init__(self, settings, provider: Optional[Provider] = None) -> None:
        self.settings = settings
        self._provider = provider

    @property
    def provider(self) -> Provider:
        """Lazy-initialise and return the default Anthropic provider."""
        if self._provider is None:
            self._provider = AnthropicProvider(self.settings)
        return self._provider

    def _call(self, phase: PhaseConfig, directives) -> str:
        response = self.provider.generate(phase, directives)
        text = extract_text(response)
        logger.info("Phase %s returned %d chars", phase.name, len(text))
        return text

    # ── Parse / repair ─────────────────────────────────────────────────────

    def _settle(self, state: State, text: str) -> tuple[State, dict]:
        """Apply the parse policy to *text* from FORMAT or REPAIR.

        FORMAT parses *text* and moves to DONE or REPAIR. REPAIR runs the
        repair phase once; any failure there moves to FAILED with the
        Empty Result, since repair is the last recovery step.
        """
        if state is State.FORMAT:
            try:
                return State.DONE, parse_report(text)
            except ReportParseError as exc:
                logger.warning("Parse failed (%s); running repair phase", exc)
                return State.REPAIR, {}

        try:
            report = parse_report(self._call(REPAIR_PHASE, repair_directives(text)))
        except Exception as exc:
            logger.warning("Repair phase failed (%r); falling back to empty report", exc)
            return State.FAILED, empty_report()
        logger.info("Repair phase produced a valid report")
        return State.DONE, report

    def parse_or_repair(self, text: str) -> dict:
        """Parse *text*, repairing it once with the model if needed.

        Never raises on malformed model output: falls back to the Empty
        Result when the repair phase fails or its output is unparseable too.
        """
        state, report = self._settle(State.FORMAT, text)
        if state is State.REPAIR:
            state, report = self._settle(State.REPAIR, text)
        return report

    @staticmethod
    def _log_shape_drift(report: dict) -> None:
        try:
            TrendReport.model_validate(report)
        except ValidationError as exc:
            logger.info(
                "Report deviates from the TrendReport shape (%d issues); returned as-is",
                exc.error_count(),
            )

    # ── Full run ───────────────────────────────────────────────────────────

    def iter_run(self, request: ResearchRequest) -> Generator[Event, None, None]:
        """Run *request*, yielding progress events.

        Yields ``("phase", State)`` as each phase starts, ``("phase",
        State.FAILED)`` if every parse attempt failed, and finally
        ``("report", dict)`` with the finalised report.

        Raises:
            InvalidRequestError: If the topic is blank (before any call).
            UpstreamError: If the search or format call fails.
        """
        topic = request.topic.strip()
        if not topic:
            raise InvalidRequestError("topic is required")

        draft: Optional[str] = None
        text = ""
        report: dict = {}
        state = State.SEARCH if self.settings.use_web_search else State.FORMAT

        while state not in (State.DONE, State.FAILED):
            yield ("phase", state)

            if state is State.SEARCH:
                draft = self._call(SEARCH_PHASE, research_directives(request))
                state = State.FORMAT

            elif state is State.FORMAT:
                if draft is None:
                    text = self._call(COMBINED_PHASE, report_directives(request))
                else:
                    text = self._call(FORMAT_PHASE, format_directives(draft))
                state, report = self._settle(state, text)

            elif state is State.REPAIR:
                state, report = self._settle(state, text)

        if state is State.FAILED:
            yield ("phase", State.FAILED)
        else:
            self._log_shape_drift(report)

        yield ("report", finalize_report(report, topic))

    def run(self, request: ResearchRequest) -> dict:
        """Blocking research call — returns the finalised report dict."""
        report: dict = {}
        for event_type, payload in self.iter_run(request):
            if event_type == "report":
                report = payload
        return report
