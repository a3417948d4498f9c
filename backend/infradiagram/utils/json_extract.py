import json
import re
from typing import Any

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_fences(text: str) -> str:
    text = _FENCE_OPEN.sub("", text.strip())
    return _FENCE_CLOSE.sub("", text.strip())


def extract_json(text: Any) -> dict:
    """
    Extract the first JSON object from model output.
    Returns {} if nothing parses to an object or `text` is not a string.
    """
    if not isinstance(text, str) or not text:
        return {}
    text = strip_fences(text)

    try:
        parsed = json.loads(text)
        return parsed if isinstance(parsed, dict) else {}
    except json.JSONDecodeError:
        pass

    # Fall back to the outermost brace span
    match = re.search(r"\{.*\}", text, re.DOTALL)
    if not match:
        return {}

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}
