"""Period normalisation: turn a period selector into a label and a directive note."""

from __future__ import annotations

from typing import NamedTuple

from core.models import CustomPeriod, Period

#: Canonical labels/notes for the preset buttons in the research form.
PRESET_PERIODS: dict[int, tuple[str, str]] = {
    7: ("直近7日", "過去7日を中心に"),
    30: ("直近1ヶ月", "過去30日を中心に"),
    90: ("直近3ヶ月", "過去90日を中心に"),
}


class PeriodQuery(NamedTuple):
    label: str
    """Short human-readable phrase, shown in the report and the user directive."""

    note: str
    """Directive fragment prefixed to the research instructions."""


def normalize_period(period: Period) -> PeriodQuery:
    """Return the display label and directive note for *period*.

    Never raises: a custom range with a missing endpoint keeps an empty
    string in its place.

    Examples:
        >>> normalize_period(PresetPeriod(preset_days=30)).label
        '直近1ヶ月'
        >>> normalize_period(CustomPeriod(start_date="2025-01-01")).label
        'カスタム: 2025-01-01〜'
    """
    if isinstance(period, CustomPeriod):
        start = period.start_date or ""
        end = period.end_date or ""
        return PeriodQuery(label=f"カスタム: {start}〜{end}", note=f"期間は {start}〜{end} とし、")

    days = period.preset_days
    if days in PRESET_PERIODS:
        label, note = PRESET_PERIODS[days]
        return PeriodQuery(label=label, note=note)
    return PeriodQuery(label=f"直近{days}日", note=f"過去{days}日を中心に")
