"""Tests for core/models.py — request payload validation."""

from __future__ import annotations

import pytest

from core.errors import InvalidRequestError
from core.models import (
    CustomPeriod,
    FactcheckLevel,
    PresetPeriod,
    ResearchRequest,
    TrendReport,
    parse_period,
)


class TestParsePeriod:
    def test_missing_period_is_seven_days(self):
        assert parse_period(None) == PresetPeriod(preset_days=7)

    def test_preset_days(self):
        assert parse_period({"preset_days": 30}) == PresetPeriod(preset_days=30)

    def test_browser_days_form(self):
        assert parse_period({"type": "days", "days": "90"}) == PresetPeriod(preset_days=90)

    def test_custom_range(self):
        period = parse_period({"start_date": "2025-01-01", "end_date": "2025-02-01"})
        assert period == CustomPeriod(start_date="2025-01-01", end_date="2025-02-01")

    def test_browser_custom_form_with_missing_end(self):
        period = parse_period({"type": "custom", "start": "2025-01-01", "end": None})
        assert period == CustomPeriod(start_date="2025-01-01", end_date="")

    @pytest.mark.parametrize("raw", [{"type": "days", "days": None}, {"days": 0}, {"preset_days": ""}])
    def test_falsy_day_count_is_seven_days(self, raw):
        assert parse_period(raw) == PresetPeriod(preset_days=7)

    def test_non_numeric_days_rejected(self):
        with pytest.raises(InvalidRequestError):
            parse_period({"days": "soon"})

    def test_non_object_rejected(self):
        with pytest.raises(InvalidRequestError):
            parse_period("7")


class TestResearchRequestFromPayload:
    def test_minimal_payload_uses_defaults(self):
        req = ResearchRequest.from_payload({"topic": "  抹茶スイーツ "})
        assert req.topic == "抹茶スイーツ"
        assert req.period == PresetPeriod(preset_days=7)
        assert req.mode == "auto"
        assert req.settings.factcheck_level is FactcheckLevel.STANDARD
        assert req.settings.credibility_threshold == 3

    @pytest.mark.parametrize("topic", ["", "   ", None, 42])
    def test_missing_topic_rejected(self, topic):
        with pytest.raises(InvalidRequestError, match="topic"):
            ResearchRequest.from_payload({"topic": topic})

    def test_non_object_body_rejected(self):
        with pytest.raises(InvalidRequestError):
            ResearchRequest.from_payload(None)

    def test_incomplete_custom_period_rejected(self):
        with pytest.raises(InvalidRequestError, match="custom period"):
            ResearchRequest.from_payload(
                {"topic": "x", "period": {"type": "custom", "start": "2025-01-01"}}
            )

    def test_camel_case_settings_accepted(self):
        req = ResearchRequest.from_payload(
            {"topic": "x", "settings": {"factcheckLevel": "strict", "credibilityThreshold": 4}}
        )
        assert req.settings.factcheck_level is FactcheckLevel.STRICT
        assert req.settings.credibility_threshold == 4

    def test_unknown_level_falls_back_to_standard(self):
        req = ResearchRequest.from_payload({"topic": "x", "settings": {"factcheck_level": "paranoid"}})
        assert req.settings.factcheck_level is FactcheckLevel.STANDARD

    @pytest.mark.parametrize("raw, expected", [(0, 1), (9, 5), ("4", 4), ("abc", 3)])
    def test_threshold_clamped(self, raw, expected):
        req = ResearchRequest.from_payload({"topic": "x", "settings": {"credibility_threshold": raw}})
        assert req.settings.credibility_threshold == expected

    def test_tags_deduplicated_in_order(self):
        req = ResearchRequest.from_payload(
            {"topic": "x", "industries": ["confectionery", "bakery", "confectionery"]}
        )
        assert req.industries == ["confectionery", "bakery"]

    def test_bad_tag_type_rejected(self):
        with pytest.raises(InvalidRequestError):
            ResearchRequest.from_payload({"topic": "x", "channels": "retail"})


class TestTrendReport:
    def test_accepts_pipeline_output(self):
        report = TrendReport.model_validate(
            {"id": "r1", "title": "t", "sources": [{"title": "s", "url": "https://e.com"}]}
        )
        assert report.sources[0].publisher == ""
        assert report.trends == []
