"""Recover a JSON payload from a raw model response.

Models are usually schema-compliant in content but not in framing: replies
arrive wrapped in markdown fences, surrounded by prose, or with arithmetic
expressions ("2535.0 * 18.0 / 100") where a literal number belongs. The
helpers here undo those three failure modes before json.loads sees the text.
"""

import json
import logging
import re
from typing import Any

from snaptosheet.extraction.errors import RepairFailure

logger = logging.getLogger(__name__)

LEADING_FENCE = re.compile(r"^```\s*(?:json)?\s*", re.IGNORECASE)
TRAILING_FENCE = re.compile(r"```\s*$")

# ": a * b / c" and ": a * b" before a comma, newline or closing brace
PRODUCT_QUOTIENT_EXPR = re.compile(
    r":\s*([0-9.]+)\s*\*\s*([0-9.]+)\s*/\s*([0-9.]+)\s*([,\n}])"
)
PRODUCT_EXPR = re.compile(r":\s*([0-9.]+)\s*\*\s*([0-9.]+)\s*([,\n}])")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```/```json fence and a trailing ``` fence."""
    text = LEADING_FENCE.sub("", text.strip())
    return TRAILING_FENCE.sub("", text).strip()


def _product_quotient(match: re.Match[str]) -> str:
    a, b, c, end = match.groups()
    try:
        value = float(a) * float(b) / float(c)
    except (ValueError, ZeroDivisionError):
        return match.group(0)
    return f": {value:.2f}{end}"


def _product(match: re.Match[str]) -> str:
    a, b, end = match.groups()
    try:
        value = float(a) * float(b)
    except ValueError:
        return match.group(0)
    return f": {value:.2f}{end}"


def rewrite_arithmetic(text: str) -> str:
    """Evaluate inline multiplication/division expressions to two-decimal literals.

    Example: '"tax": 2535.0 * 18.0 / 100,' becomes '"tax": 456.30,'.
    """
    text = PRODUCT_QUOTIENT_EXPR.sub(_product_quotient, text)
    return PRODUCT_EXPR.sub(_product, text)


def find_json_object_span(text: str) -> tuple[int, int] | None:
    """Locate the first top-level JSON object in text.

    Braces inside double-quoted strings (including escaped quotes) are
    ignored. If the object never closes, the span runs to the last '}'.

    Returns:
        (start, end) slice bounds, or None when no object can be delimited
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return start, index + 1

    last = text.rfind("}")
    if last < start:
        return None
    return start, last + 1


def extract_json_object(content: Any) -> Any:
    """Turn raw model content into a parsed JSON value.

    Args:
        content: Message content; already-structured values pass through

    Returns:
        Parsed JSON (normally a dict)

    Raises:
        RepairFailure: If no object can be located or it is not valid JSON
    """
    if not isinstance(content, str):
        return content

    raw = rewrite_arithmetic(strip_code_fences(content))

    if "{" not in raw:
        raise RepairFailure("No JSON object found in response", content)
    span = find_json_object_span(raw)
    if span is None:
        raise RepairFailure("Could not find closing brace in JSON", content)

    start, end = span
    try:
        return json.loads(raw[start:end])
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse model response as JSON: {e}")
        raise RepairFailure(f"Invalid JSON: {e}", content) from e


def extract_json_array(content: Any) -> list[Any]:
    """Recover a JSON array (e.g. line items) from raw model content.

    The slice runs from the first '[' to the last ']', so both a bare array
    and an object wrapping a single array are accepted.

    Raises:
        RepairFailure: If no array can be located or parsed
    """
    if isinstance(content, list):
        return content
    if isinstance(content, dict):
        items = content.get("line_items")
        if isinstance(items, list):
            return items
        raise RepairFailure("No JSON array found in response", json.dumps(content))
    if not isinstance(content, str):
        raise RepairFailure("No JSON array found in response", str(content))

    raw = rewrite_arithmetic(strip_code_fences(content))
    start = raw.find("[")
    end = raw.rfind("]")
    if start == -1 or end < start:
        raise RepairFailure("No JSON array found in response", content)

    try:
        parsed = json.loads(raw[start : end + 1])
    except json.JSONDecodeError as e:
        raise RepairFailure(f"Invalid JSON: {e}", content) from e
    if not isinstance(parsed, list):
        raise RepairFailure("Recovered JSON is not an array", content)
    return parsed
