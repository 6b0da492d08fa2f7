"""Fill in the identity fields every returned report must carry."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone


def _absent(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def finalize_report(report: dict, topic: str) -> dict:
    """Ensure *report* has an ``id``, a ``generated_at`` and a ``title``.

    Missing or blank values are replaced by a fresh UUID, the current UTC
    time and *topic* respectively; present values are left alone, so
    finalising twice changes nothing. Returns a new dict.
    """
    out = dict(report)
    if _absent(out.get("id")):
        out["id"] = str(uuid.uuid4())
    if _absent(out.get("generated_at")):
        out["generated_at"] = datetime.now(timezone.utc).isoformat()
    if _absent(out.get("title")):
        out["title"] = topic
    return out
