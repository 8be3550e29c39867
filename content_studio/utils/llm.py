"""Shared helpers for talking to chat models and reading their replies."""

import json
from typing import Any

from content_studio.core.errors import UpstreamFormatError


def message_text(message: Any) -> str:
    """Return the text of a LangChain message (or a bare string).

    Some providers hand back content as a list of parts rather than a string.
    """
    content = getattr(message, "content", message)
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, dict):
                parts.append(part.get("text", ""))
            else:
                parts.append(str(part))
        return "".join(parts)
    return content or ""


def parse_json_response(text: str) -> dict:
    """Extract and parse a JSON object from an LLM response that may contain extra text.

    Tries three strategies in order:
    1. Direct json.loads on the stripped text
    2. Extract JSON from markdown code fences (```json ... ```)
    3. Find the outermost { ... } brace pair

    Raises UpstreamFormatError (a ValueError) if no JSON object can be found.
    """
    stripped = (text or "").strip()

    # Strategy 1: direct parse
    try:
        parsed = json.loads(stripped)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    # Strategy 2: markdown code fences
    if "```" in stripped:
        for block in stripped.split("```"):
            block = block.strip()
            if block.startswith("json"):
                block = block[4:].strip()
            try:
                parsed = json.loads(block)
            except json.JSONDecodeError:
                continue
            if isinstance(parsed, dict):
                return parsed

    # Strategy 3: outermost braces
    start = stripped.find("{")
    end = stripped.rfind("}")
    if start != -1 and end > start:
        try:
            parsed = json.loads(stripped[start : end + 1])
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass

    raise UpstreamFormatError(f"Could not parse JSON from LLM response: {stripped[:200]}")


def parse_json_object(text: str) -> dict:
    """Parse a reply that must be exactly one JSON object, nothing around it."""
    try:
        parsed = json.loads((text or "").strip())
    except json.JSONDecodeError as e:
        raise UpstreamFormatError(f"Reply is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise UpstreamFormatError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed
