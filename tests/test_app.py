"""Tests for web/app.py — HTTP contract.

The researcher is replaced with one backed by a stub provider, so no API
key or network access is needed.
"""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from core.errors import UpstreamError
from core.orchestrator import TrendResearcher
from web.app import app

REPORT_JSON = json.dumps(
    {
        "title": "抹茶スイーツ最新動向",
        "summary": "s",
        "trends": ["t1"],
        "implications": [],
        "risks": [],
        "next_actions": [],
        "credibility_score": 4,
        "sources": [],
    },
    ensure_ascii=False,
)

MATCHA_BODY = {
    "topic": "抹茶スイーツ",
    "period": {"preset_days": 7},
    "industries": ["confectionery"],
    "channels": ["retail"],
    "mode": "auto",
    "settings": {"factcheck_level": "standard"},
}


class StubProvider:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.phases: list[str] = []

    def generate(self, phase, directives):
        self.phases.append(phase.name)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def text_response(text: str) -> SimpleNamespace:
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


def researcher_with(provider) -> TrendResearcher:
    settings = MagicMock()
    settings.use_web_search = False
    return TrendResearcher(settings, provider)


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


class TestHealth:
    def test_ok(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json() == {"ok": True}


class TestResearch:
    def test_end_to_end_with_stub_provider(self, client):
        provider = StubProvider(text_response(REPORT_JSON))
        with patch("web.app._get_researcher", return_value=researcher_with(provider)):
            resp = client.post("/api/research", json=MATCHA_BODY)

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["title"] == "抹茶スイーツ最新動向"
        assert data["trends"] == ["t1"]
        assert data["id"]
        assert data["generated_at"]
        assert "repair" not in provider.phases

    @pytest.mark.parametrize("body", [{}, {"topic": ""}, {"topic": "   "}])
    def test_missing_topic_is_400_without_calls(self, client, body):
        provider = StubProvider()
        with patch("web.app._get_researcher", return_value=researcher_with(provider)):
            resp = client.post("/api/research", json=body)

        assert resp.status_code == 400
        assert "topic" in resp.get_json()["error"]
        assert provider.phases == []

    def test_non_json_body_is_400(self, client):
        resp = client.post("/api/research", data="topic=x", content_type="text/plain")
        assert resp.status_code == 400

    def test_incomplete_custom_period_is_400(self, client):
        body = {"topic": "x", "period": {"type": "custom", "start": "2025-01-01", "end": ""}}
        resp = client.post("/api/research", json=body)
        assert resp.status_code == 400

    def test_upstream_failure_carries_provider_message(self, client):
        provider = StubProvider(UpstreamError("Overloaded", status_code=529))
        with patch("web.app._get_researcher", return_value=researcher_with(provider)):
            resp = client.post("/api/research", json=MATCHA_BODY)

        assert resp.status_code == 529
        assert resp.get_json() == {"error": "Overloaded"}

    def test_unparseable_output_is_still_200(self, client):
        provider = StubProvider(text_response("oops"), text_response("oops again"))
        with patch("web.app._get_researcher", return_value=researcher_with(provider)):
            resp = client.post("/api/research", json=MATCHA_BODY)

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["credibility_score"] == 0
        assert len(data["risks"]) == 1
        assert len(data["next_actions"]) == 1

    def test_missing_api_key_is_500(self, client):
        with patch("web.app._get_researcher", side_effect=ValueError("ANTHROPIC_API_KEY missing")):
            resp = client.post("/api/research", json=MATCHA_BODY)
        assert resp.status_code == 500
        assert "ANTHROPIC_API_KEY" in resp.get_json()["error"]


class TestResearchStream:
    def _events(self, resp) -> list:
        body = resp.get_data(as_text=True)
        return [line[len("data: "):] for line in body.splitlines() if line.startswith("data: ")]

    def test_streams_phases_then_report(self, client):
        provider = StubProvider(text_response(REPORT_JSON))
        with patch("web.app._get_researcher", return_value=researcher_with(provider)):
            resp = client.post("/api/research/stream", json=MATCHA_BODY)
            events = self._events(resp)

        assert resp.mimetype == "text/event-stream"
        assert events[-1] == "[DONE]"
        payloads = [json.loads(e) for e in events[:-1]]
        assert payloads[0] == {"type": "phase", "phase": "format"}
        assert payloads[-1]["type"] == "report"
        assert payloads[-1]["data"]["id"]

    def test_streams_error_event(self, client):
        provider = StubProvider(UpstreamError("boom"))
        with patch("web.app._get_researcher", return_value=researcher_with(provider)):
            resp = client.post("/api/research/stream", json=MATCHA_BODY)
            events = self._events(resp)

        payloads = [json.loads(e) for e in events[:-1]]
        assert payloads[-1] == {"type": "error", "message": "boom"}

    def test_invalid_request_is_400(self, client):
        resp = client.post("/api/research/stream", json={"topic": ""})
        assert resp.status_code == 400
