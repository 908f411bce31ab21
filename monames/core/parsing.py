"""Pull a JSON payload out of free-form model output."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from .errors import PayloadParseError

logger = logging.getLogger(__name__)


def extract_json(text: str | None) -> str | None:
    """Find the JSON object text inside a model response.

    Checked in order: the whole (trimmed) text is an object, a fenced
    code block, then everything between the first "{" and the last "}".

    Examples:
        >>> extract_json('{"clue": "WATER", "count": 2}')
        '{"clue": "WATER", "count": 2}'
        >>> extract_json('Sure!\\n```json\\n{"reveal": []}\\n```')
        '{"reveal": []}'
        >>> extract_json("no json here") is None
        True
    """
    if not text:
        return None
    trimmed = text.strip()

    if trimmed.startswith("{") and trimmed.endswith("}"):
        return trimmed

    fenced = re.search(r"```(?:json)?\s*([\s\S]*?)```", trimmed, re.IGNORECASE)
    if fenced:
        return fenced.group(1).strip()

    first = trimmed.find("{")
    last = trimmed.rfind("}")
    if first != -1 and last > first:
        return trimmed[first:last + 1]

    return None


def _loads(candidate: str, raw_text: str) -> Any:
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse extracted JSON: {candidate[:200]!r}")
        raise PayloadParseError(f"JSON parsing failed: {e}", raw_text=raw_text) from e


def parse_ai_payload(text: str | None) -> dict[str, Any] | None:
    """Parse a model response into a payload dict.

    Handles plain JSON, fenced JSON, JSON inside prose and one level of
    double encoding (a JSON string literal whose content is JSON).

    Returns:
        The payload, or None when the response holds no JSON object at all.

    Raises:
        PayloadParseError: JSON was found but is malformed.
    """
    if not text:
        return None

    body = text.strip()
    if body.startswith('"'):
        # Double-encoded: unwrap the string literal once
        try:
            decoded = json.loads(body)
        except json.JSONDecodeError:
            decoded = None
        if isinstance(decoded, str):
            body = decoded

    candidate = extract_json(body)
    if candidate is None:
        return None

    parsed = _loads(candidate, text)
    return parsed if isinstance(parsed, dict) else None
