"""Recover a JSON object from raw language model output.

Model responses may wrap the object in prose or code fences, and long
responses are cut off at the output token limit. ``recover_json`` always
returns a dict: the parsed object, a repaired version of a truncated
object, or a minimal fallback flagged with ``PARSE_WARNING_KEY``.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)

PARSE_WARNING_KEY = "_parseWarning"
PARSE_ERROR_KEY = "_parseError"

FENCE_PATTERN = re.compile(r"```[\w-]*[ \t]*\n?(.*?)(?:```|$)", re.S)

CLOSERS = {"{": "}", "[": "]"}

# Scalar fields pulled out of unparseable text
FALLBACK_STRING_FIELDS = ["customerName", "industry", "category"]
FALLBACK_SCORE_PATTERN = re.compile(r'"fitScore"\s*:\s*"?(\d+)')
USER_COUNT_PATTERN = re.compile(r'"userCount"\s*:\s*\{([^{}]*)')
USER_COUNT_FIELDS = ["total", "backOffice", "field"]


@dataclass
class ScanState:
    """Result of scanning a JSON candidate outside of string literals."""

    open_stack: list[str] = field(default_factory=list)
    in_string: bool = False
    last_boundary: Optional[int] = None


def strip_code_fences(text: str) -> str:
    """Return the body of the first fenced block holding an object, or the text unchanged."""
    if "```" not in text:
        return text
    for match in FENCE_PATTERN.finditer(text):
        if "{" in match.group(1):
            return match.group(1)
    return text


def extract_candidate(text: str) -> Optional[str]:
    """Slice from the first opening brace to the last closing brace.

    When the braces inside that slice don't balance, the object was cut off
    and the last closing brace belongs to a nested value, so the whole tail
    is kept instead.
    """
    start = text.find("{")
    if start == -1:
        return None

    end = text.rfind("}")
    if end < start:
        return text[start:]

    candidate = text[start:end + 1]
    if scan(candidate).open_stack:
        return text[start:]
    return candidate


def scan(text: str) -> ScanState:
    """Track open brackets and the last complete property boundary.

    A boundary is a comma outside strings whose preceding significant
    character closed a string, array or object.
    """
    state = ScanState()
    escaped = False
    previous = ""

    for index, char in enumerate(text):
        if state.in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                state.in_string = False
                previous = '"'
            continue

        if char.isspace():
            continue

        if char == '"':
            state.in_string = True
        elif char in CLOSERS:
            state.open_stack.append(char)
        elif char in ("}", "]"):
            if state.open_stack:
                state.open_stack.pop()
        elif char == "," and previous in ('"', "}", "]") and state.open_stack:
            state.last_boundary = index

        previous = char

    return state


def repair_truncated(candidate: str) -> Optional[dict]:
    """Truncate at the last complete property and close open brackets."""
    state = scan(candidate)

    if state.in_string:
        # An unterminated string leaf can't be completed
        return None

    if state.last_boundary is not None:
        candidate = candidate[:state.last_boundary]
        state = scan(candidate)

    closers = "".join(CLOSERS[opener] for opener in reversed(state.open_stack))
    repaired = candidate + closers

    try:
        result = json.loads(repaired)
    except json.JSONDecodeError as e:
        logger.debug(f"Repaired JSON still invalid: {e}")
        return None

    if not isinstance(result, dict):
        return None

    logger.info(f"Repaired truncated JSON by appending {closers!r}")
    return result


def extract_fallback_fields(text: str, reason: str) -> dict:
    """Build a minimal object from fixed-pattern scalar searches."""
    result: dict[str, Any] = {}

    for name in FALLBACK_STRING_FIELDS:
        match = re.search(rf'"{name}"\s*:\s*"([^"\\]*)"', text)
        if match and match.group(1).strip():
            result[name] = match.group(1).strip()

    score_match = FALLBACK_SCORE_PATTERN.search(text)
    if score_match:
        result["fitScore"] = int(score_match.group(1))

    counts_match = USER_COUNT_PATTERN.search(text)
    if counts_match:
        counts = {}
        for name in USER_COUNT_FIELDS:
            count_match = re.search(rf'"{name}"\s*:\s*"?(\d+)', counts_match.group(1))
            if count_match:
                counts[name] = int(count_match.group(1))
        if counts:
            result["userCount"] = counts

    result[PARSE_WARNING_KEY] = True
    result[PARSE_ERROR_KEY] = reason
    return result


def recover_json(text: Any) -> dict:
    """Return a structured object from raw model text. Never raises."""
    raw = text if isinstance(text, str) else str(text or "")

    try:
        body = strip_code_fences(raw)
        candidate = extract_candidate(body)
        if candidate is None:
            logger.warning("No JSON object found in model output")
            return extract_fallback_fields(raw, "No JSON object found in model output")

        try:
            result = json.loads(candidate)
            if isinstance(result, dict):
                return result
        except json.JSONDecodeError as e:
            logger.warning(f"Model output is not valid JSON ({e}), attempting repair")

        repaired = repair_truncated(candidate)
        if repaired is not None:
            return repaired

        logger.warning(f"Could not repair model output ({len(raw)} chars), using fallback fields")
        return extract_fallback_fields(candidate, "Unrecoverable JSON in model output")

    except Exception as e:
        logger.error(f"JSON recovery failed unexpectedly: {e}")
        return extract_fallback_fields("", f"JSON recovery error: {e}")
