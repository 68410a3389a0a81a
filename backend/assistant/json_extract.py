"""
Pull the first top-level JSON array or object out of model output.

Models like to wrap JSON in prose or markdown fences, so instead of
json.loads on the whole text we scan for the first balanced [...] or {...}
(ignoring brackets inside string literals) and parse that.
"""
import json
from typing import Any

from .errors import JSONExtractionError

_CLOSERS = {"[": "]", "{": "}"}


def find_json_span(text: str) -> str:
    """
    Return the first balanced top-level JSON array/object substring.

    Raises:
        JSONExtractionError: No opening bracket, or brackets never balance
    """
    start = -1
    for i, ch in enumerate(text):
        if ch in _CLOSERS:
            start = i
            break
    if start < 0:
        raise JSONExtractionError("No JSON array or object found in response")

    stack = []
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("]", "}"):
            if not stack or stack.pop() != ch:
                raise JSONExtractionError("Mismatched brackets in response")
            if not stack:
                return text[start:i + 1]

    raise JSONExtractionError("Unterminated JSON payload in response")


def extract_json(text: str) -> Any:
    """
    Extract and parse the first JSON array/object in ``text``.

    Raises:
        JSONExtractionError: Nothing extractable, or the span is not valid JSON
    """
    if not text:
        raise JSONExtractionError("Empty response")
    span = find_json_span(text)
    try:
        return json.loads(span)
    except json.JSONDecodeError as e:
        raise JSONExtractionError(f"Invalid JSON payload: {e}")
