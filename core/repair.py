"""
Strict report parsing and the Empty Result fallback.

The repair call itself is made by the orchestrator; this module only
decides whether text is a report and what to return when nothing is.
"""

from __future__ import annotations

import json
import re
import uuid
from datetime import datetime, timezone

from core.errors import ReportParseError

PARSE_FAILURE_RISK = "AI出力をレポート形式として解析できませんでした。内容は未検証です。"
REVIEW_ACTION = "入力条件を確認して再実行するか、担当者が結果をレビューしてください。"

_FENCE_RE = re.compile(r"^```(?:json)?\s*\n(.*)\n```$", re.DOTALL)


def parse_report(text: str) -> dict:
    """Parse *text* as a report JSON object.

    Only surrounding whitespace and a single enclosing code fence are
    tolerated. Field types are not checked: a good-faith object is returned
    unchanged.

    Raises:
        ReportParseError: If *text* is empty, is not JSON, or is JSON but
            not an object.
    """
    body = (text or "").strip()
    fenced = _FENCE_RE.match(body)
    if fenced:
        body = fenced.group(1).strip()
    if not body:
        raise ReportParseError("empty model output")

    try:
        value = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ReportParseError(f"invalid JSON: {exc}") from exc

    if not isinstance(value, dict):
        raise ReportParseError(f"expected a JSON object, got {type(value).__name__}")
    return value


def empty_report() -> dict:
    """Return the degraded report used when every parse attempt failed."""
    return {
        "id": str(uuid.uuid4()),
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "title": "",
        "summary": "",
        "trends": [],
        "implications": [],
        "risks": [PARSE_FAILURE_RISK],
        "next_actions": [REVIEW_ACTION],
        "credibility_score": 0,
        "sources": [],
    }
