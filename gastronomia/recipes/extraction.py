"""
Recover a JSON object from free-form model output.

Models asked for "JSON only" still wrap it in prose or code fences, and
occasionally leave trailing commas or typographic quotes behind.
"""

from __future__ import annotations

import json
import re
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_SMART_QUOTES = str.maketrans({"“": '"', "”": '"', "‘": "'", "’": "'"})


def _outer_object(text: str) -> str | None:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def _repair(candidate: str) -> str:
    candidate = _FENCE_RE.sub("", candidate)
    candidate = candidate.translate(_SMART_QUOTES)
    return _TRAILING_COMMA_RE.sub(r"\1", candidate)


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the outermost JSON object in ``text``, or None.

    The span from the first ``{`` to the last ``}`` is parsed as-is first;
    if that fails, light repairs are applied and parsing is retried.
    """
    if not text:
        return None

    candidate = _outer_object(text)
    if candidate is None:
        return None

    for attempt in (candidate, _repair(candidate)):
        try:
            parsed = json.loads(attempt)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    logger.warning("Could not recover JSON from model output", preview=candidate[:120])
    return None
