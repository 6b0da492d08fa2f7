"""
Flask web server for Trend Insight.

Routes
──────
GET  /health                 Liveness probe
POST /api/research           Run a research request, return the report (JSON)
POST /api/research/stream    SSE: phase progress + final report
"""

from __future__ import annotations

import json
import logging
import os
import sys

from dotenv import load_dotenv
from flask import Flask, Response, jsonify, request, stream_with_context

# Allow running as `python web/app.py` from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

from config.settings import Settings
from core.errors import InvalidRequestError, UpstreamError
from core.models import ResearchRequest
from core.orchestrator import TrendResearcher

settings = Settings()

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.json.ensure_ascii = False

_researcher: TrendResearcher | None = None


def _get_researcher() -> TrendResearcher:
    """Create the shared researcher on first use (validates the API key)."""
    global _researcher
    if _researcher is None:
        settings.validate()
        _researcher = TrendResearcher(settings)
    return _researcher


def _error(message: str, status: int):
    return jsonify({"error": message}), status


# ── Health ─────────────────────────────────────────────────────────────────

@app.route("/health")
def health():
    return jsonify({"ok": True})


# ── Research ───────────────────────────────────────────────────────────────

@app.route("/api/research", methods=["POST"])
def research_endpoint():
    """Run a full research request and return the finalised report.

    Body: {topic, period, industries, channels, mode, settings}
    Returns 200 with the report, 400 on invalid input, 5xx on upstream failure.
    """
    try:
        research_request = ResearchRequest.from_payload(request.get_json(silent=True))
    except InvalidRequestError as exc:
        return _error(str(exc), 400)

    try:
        report = _get_researcher().run(research_request)
    except InvalidRequestError as exc:
        return _error(str(exc), 400)
    except UpstreamError as exc:
        logger.error("Upstream failure for topic=%r: %s", research_request.topic, exc)
        return _error(exc.message, exc.status_code)
    except Exception as exc:
        logger.exception("Research error for topic=%r", research_request.topic)
        return _error(str(exc), 500)

    logger.info("Report %s ready for topic=%r", report["id"], research_request.topic)
    return jsonify(report)


@app.route("/api/research/stream", methods=["POST"])
def research_stream_endpoint():
    """SSE endpoint that streams a research run.

    SSE events emitted:
      {"type": "phase",  "phase": "search"}   a phase started
      {"type": "report", "data": {...}}       final report JSON
      {"type": "error",  "message": "..."}    on failure
    """
    try:
        research_request = ResearchRequest.from_payload(request.get_json(silent=True))
    except InvalidRequestError as exc:
        return _error(str(exc), 400)

    def generate():
        try:
            for event_type, payload in _get_researcher().iter_run(research_request):
                if event_type == "phase":
                    data = json.dumps({"type": "phase", "phase": payload.value})
                else:
                    data = json.dumps({"type": "report", "data": payload}, ensure_ascii=False)
                yield f"data: {data}\n\n"

        except Exception as exc:
            logger.exception("Research stream error for topic=%r", research_request.topic)
            data = json.dumps({"type": "error", "message": str(exc)}, ensure_ascii=False)
            yield f"data: {data}\n\n"

        yield "data: [DONE]\n\n"

    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


# ── Entry point ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app.run(debug=settings.debug, host="0.0.0.0", port=settings.port)
