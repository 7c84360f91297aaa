"""Pull structured JSON out of free-form LLM completions."""

import json
import re
from typing import Any

from ..domain.exceptions import LLMResponseParseError

_FENCE_RE = re.compile(r"^\s*```(?:json|JSON)?\s*|\s*```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json fence and a trailing ``` fence."""
    return _FENCE_RE.sub("", text or "").strip()


def _balanced_spans(text: str, opener: str, closer: str):
    """Yield every balanced ``opener``...``closer`` span, skipping string literals."""
    for start, char in enumerate(text):
        if char != opener:
            continue
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            current = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif current == "\\":
                    escaped = True
                elif current == '"':
                    in_string = False
                continue
            if current == '"':
                in_string = True
            elif current == opener:
                depth += 1
            elif current == closer:
                depth -= 1
                if depth == 0:
                    yield text[start : index + 1]
                    break


def _extract(text: str, expected: type, opener: str, closer: str) -> Any:
    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, expected):
        return parsed

    for span in _balanced_spans(cleaned, opener, closer):
        try:
            parsed = json.loads(span)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, expected):
            return parsed

    raise LLMResponseParseError(
        f"Could not find a JSON {expected.__name__} in the completion",
        context={"preview": cleaned[:200]},
    )


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the completion as a JSON object.

    Tries the fence-stripped text first, then the first balanced ``{...}``
    block that parses.

    Raises:
        LLMResponseParseError: No JSON object could be recovered.
    """
    return _extract(text, dict, "{", "}")


def extract_json_array(text: str) -> list[Any]:
    """Same as ``extract_json_object`` for a top-level JSON array."""
    return _extract(text, list, "[", "]")
