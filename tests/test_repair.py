"""Tests for core/repair.py — strict parsing and the Empty Result."""

from __future__ import annotations

import pytest

from core.errors import ReportParseError
from core.repair import PARSE_FAILURE_RISK, REVIEW_ACTION, empty_report, parse_report


class TestParseReport:
    def test_valid_object_returned_unchanged(self):
        report = parse_report('{"title": "t", "trends": "not-a-list"}')
        assert report == {"title": "t", "trends": "not-a-list"}

    def test_surrounding_whitespace_tolerated(self):
        assert parse_report('\n  {"a": 1}\n') == {"a": 1}

    def test_code_fence_tolerated(self):
        assert parse_report('```json\n{"a": 1}\n```') == {"a": 1}

    @pytest.mark.parametrize(
        "text",
        ["", "   ", "not json", '{"title": "x",', "[1, 2]", '"string"', "以下が結果です {\"a\": 1}"],
    )
    def test_rejects_non_objects(self, text):
        with pytest.raises(ReportParseError):
            parse_report(text)


class TestEmptyReport:
    def test_shape(self):
        report = empty_report()
        assert report["id"]
        assert report["generated_at"]
        assert report["title"] == ""
        assert report["summary"] == ""
        assert report["trends"] == []
        assert report["implications"] == []
        assert report["risks"] == [PARSE_FAILURE_RISK]
        assert report["next_actions"] == [REVIEW_ACTION]
        assert report["credibility_score"] == 0
        assert report["sources"] == []

    def test_fresh_id_each_call(self):
        assert empty_report()["id"] != empty_report()["id"]
