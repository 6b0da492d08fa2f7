"""
Pydantic models shared across the Trend Insight core.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from core.errors import InvalidRequestError


# ── Period selectors ───────────────────────────────────────────────────────


class PresetPeriod(BaseModel):
    """A rolling window of the last ``preset_days`` days."""

    preset_days: int = 7


class CustomPeriod(BaseModel):
    """An explicit date range; endpoints are kept verbatim."""

    start_date: str = ""
    end_date: str = ""


Period = Union[PresetPeriod, CustomPeriod]


def parse_period(raw: Any) -> Period:
    """Build a period from the request payload.

    Accepts ``{preset_days}`` / ``{start_date, end_date}`` as well as the
    browser client's ``{type: "days", days}`` / ``{type: "custom", start, end}``.
    A missing period means the last 7 days.

    Raises:
        InvalidRequestError: If the payload is not an object or the day
            count is not an integer.
    """
    if raw is None:
        return PresetPeriod()
    if not isinstance(raw, dict):
        raise InvalidRequestError("period must be an object")

    custom_keys = ("start_date", "end_date", "start", "end")
    if raw.get("type") == "custom" or any(k in raw for k in custom_keys):
        start = raw.get("start_date", raw.get("start"))
        end = raw.get("end_date", raw.get("end"))
        return CustomPeriod(
            start_date="" if start is None else str(start),
            end_date="" if end is None else str(end),
        )

    days = raw.get("preset_days") or raw.get("days") or 7
    try:
        return PresetPeriod(preset_days=int(days))
    except (TypeError, ValueError):
        raise InvalidRequestError(f"period day count must be an integer, got {days!r}")


# ── Request ────────────────────────────────────────────────────────────────


class FactcheckLevel(str, Enum):
    """How many self-check passes the model is asked to perform."""

    QUICK = "quick"
    STANDARD = "standard"
    STRICT = "strict"


class ResearchSettings(BaseModel):
    """Per-request tuning sent by the client's settings panel."""

    factcheck_level: FactcheckLevel = Field(
        default=FactcheckLevel.STANDARD,
        validation_alias=AliasChoices("factcheck_level", "factcheckLevel"),
    )
    credibility_threshold: int = Field(
        default=3,
        validation_alias=AliasChoices("credibility_threshold", "credibilityThreshold"),
    )

    @field_validator("factcheck_level", mode="before")
    @classmethod
    def _unknown_level_is_standard(cls, value: Any) -> Any:
        if isinstance(value, FactcheckLevel):
            return value
        if isinstance(value, str) and value in {level.value for level in FactcheckLevel}:
            return value
        return FactcheckLevel.STANDARD

    @field_validator("credibility_threshold", mode="before")
    @classmethod
    def _clamp_threshold(cls, value: Any) -> int:
        try:
            number = int(float(value))
        except (TypeError, ValueError):
            return 3
        return min(5, max(1, number))


class ResearchRequest(BaseModel):
    """One research run: a topic plus the filters chosen in the form."""

    topic: str
    period: Union[PresetPeriod, CustomPeriod] = Field(default_factory=PresetPeriod)
    industries: list[str] = Field(default_factory=list)
    channels: list[str] = Field(default_factory=list)
    mode: str = "auto"
    settings: ResearchSettings = Field(default_factory=ResearchSettings)

    @field_validator("industries", "channels")
    @classmethod
    def _dedupe_tags(cls, tags: list[str]) -> list[str]:
        return list(dict.fromkeys(t.strip() for t in tags if t and t.strip()))

    @classmethod
    def from_payload(cls, payload: Any) -> "ResearchRequest":
        """Validate a decoded JSON body from ``POST /api/research``.

        Raises:
            InvalidRequestError: On a missing topic, an incomplete custom
                period, or any malformed field.
        """
        if not isinstance(payload, dict):
            raise InvalidRequestError("request body must be a JSON object")

        topic = payload.get("topic")
        if not isinstance(topic, str) or not topic.strip():
            raise InvalidRequestError("topic is required")

        period = parse_period(payload.get("period"))
        if isinstance(period, CustomPeriod) and not (period.start_date and period.end_date):
            raise InvalidRequestError("custom period requires both start and end dates")

        try:
            return cls(
                topic=topic.strip(),
                period=period,
                industries=payload.get("industries") or [],
                channels=payload.get("channels") or [],
                mode=payload.get("mode") or "auto",
                settings=payload.get("settings") or {},
            )
        except ValidationError as exc:
            raise InvalidRequestError(f"invalid request: {exc.errors()[0]['msg']}") from exc


# ── Report ─────────────────────────────────────────────────────────────────


class SourceRef(BaseModel):
    """A single source cited by a trend report."""

    title: str = ""
    publisher: str = ""
    date: str = ""
    url: str = ""
    credibility: float = 0
    notes: str = ""


class TrendReport(BaseModel):
    """Canonical report shape returned to the presentation layer.

    The pipeline itself passes parsed reports around as plain dicts so that
    minor shape drift in a good-faith model answer survives untouched; the
    orchestrator checks finished reports against this model and logs any
    drift without altering the report.
    """

    id: str = ""
    generated_at: str = ""
    title: str = ""
    summary: str = ""
    trends: list[str] = Field(default_factory=list)
    implications: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    next_actions: list[str] = Field(default_factory=list)
    credibility_score: float = 0
    sources: list[SourceRef] = Field(default_factory=list)


_STRING_LIST: dict = {"type": "array", "items": {"type": "string"}}

#: JSON schema used for schema-constrained output.
TREND_REPORT_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "generated_at": {"type": "string", "description": "ISO-8601 timestamp."},
        "title": {"type": "string"},
        "summary": {"type": "string"},
        "trends": {**_STRING_LIST, "description": "5-8 key trends."},
        "implications": _STRING_LIST,
        "risks": _STRING_LIST,
        "next_actions": _STRING_LIST,
        "credibility_score": {"type": "number", "description": "Overall credibility, 1-5."},
        "sources": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "publisher": {"type": "string"},
                    "date": {"type": "string"},
                    "url": {"type": "string"},
                    "credibility": {"type": "number"},
                    "notes": {"type": "string"},
                },
                "required": ["title", "publisher", "date", "url", "credibility", "notes"],
                "additionalProperties": False,
            },
        },
    },
    "required": [
        "title",
        "summary",
        "trends",
        "implications",
        "risks",
        "next_actions",
        "credibility_score",
        "sources",
    ],
    "additionalProperties": False,
}
