"""JSON extraction and repair for model responses.

Model output may wrap JSON in markdown fences, surround it with prose, or
leave trailing commas.
"""
from __future__ import annotations

import json
import re
from typing import Any

_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def extract_json_object(text: str) -> str | None:
    """Extract the first complete JSON object from text.

    Handles:
    - Markdown code fences (```json ... ``` or ``` ... ```)
    - Leading/trailing non-JSON text
    - Braces inside string values
    - Trailing commas before ] or }

    Returns the extracted JSON string, or None if no complete object is found.
    """
    if not text or not text.strip():
        return None
    t = text.strip()
    # Strip markdown code fences
    if "```json" in t:
        t = t.split("```json", 1)[1].split("```", 1)[0].strip()
    elif "```" in t:
        t = t.split("```", 1)[1].split("```", 1)[0].strip()
    # Find first '{' and match braces
    start = t.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escape_next = False
    for i in range(start, len(t)):
        c = t[i]
        if escape_next:
            escape_next = False
            continue
        if c == "\\":
            escape_next = True
            continue
        if c == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return _TRAILING_COMMA_RE.sub(r"\1", t[start : i + 1])
    # Unmatched braces
    return None


def parse_json_object(text: str) -> dict[str, Any] | None:
    """Extract and decode the first JSON object; None when absent or invalid."""
    raw = extract_json_object(text)
    if raw is None:
        return None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None
