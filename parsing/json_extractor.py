"""Extract and validate JSON embedded in free-form model output.

Objects are located with a brace/string-aware scan; arrays are located by the
first '[' and the last ']' only. Parsers in this module never raise: on any
failure they log a warning and return the caller's fallback unchanged.
"""

import copy
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


def extract_json(text: str) -> Optional[str]:
    """Return the first balanced {...} substring, or None.

    Braces inside string literals are ignored and backslash escapes are honored.
    """
    if not text:
        return None

    depth = 0
    start = -1
    in_string = False
    escape_next = False

    for i, char in enumerate(text):
        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if char == "{":
            if start == -1:
                start = i
            depth += 1
        elif char == "}" and start != -1:
            depth -= 1
            if depth == 0:
                return text[start:i + 1]

    return None


def extract_json_array(text: str) -> Optional[str]:
    """Return the substring from the first '[' to the last ']', or None."""
    if not text:
        return None
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end == -1 or end <= start:
        return None
    return text[start:end + 1]


def safe_parse_json(json_string: str, fallback: T) -> Union[Any, T]:
    """json.loads with a fallback instead of an exception."""
    try:
        return json.loads(json_string)
    except (TypeError, ValueError) as e:
        logger.warning("JSON parse error: %s", e)
        return fallback


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def validate_fields(obj: Any, required_fields: Iterable[str]) -> bool:
    """True if obj is a dict whose required fields are present, not None and not ''."""
    if not isinstance(obj, dict):
        return False
    return all(field in obj and not _is_empty(obj[field]) for field in required_fields)


def parse_json_from_text(text: str, required_fields: Iterable[str], fallback: T) -> Union[dict, T]:
    """Extract, parse and validate a JSON object from text.

    Returns the parsed dict, or a deep copy of `fallback` if any step fails.
    """
    required_fields = list(required_fields)
    result = parse_structured(text, required_fields)
    if isinstance(result, Ok):
        return result.value
    logger.warning("Using fallback: %s", result.reason)
    return copy.deepcopy(fallback)


def parse_json_array_from_text(
    text: str,
    item_required_fields: Iterable[str],
    fallback: List[T],
) -> Union[List[dict], List[T]]:
    """Extract a JSON array and keep only dict items with every required field.

    Returns a deep copy of `fallback` when nothing usable remains.
    """
    item_required_fields = list(item_required_fields)
    array_string = extract_json_array(text)
    if array_string is None:
        logger.warning("No JSON array found in text, using fallback")
        return copy.deepcopy(fallback)

    parsed = safe_parse_json(array_string, None)
    if not isinstance(parsed, list):
        logger.warning("JSON array could not be parsed, using fallback")
        return copy.deepcopy(fallback)

    items = [item for item in parsed if validate_fields(item, item_required_fields)]
    if not items:
        logger.warning("JSON array has no valid items, using fallback")
        return copy.deepcopy(fallback)
    return items


@dataclass(frozen=True)
class Ok:
    """Structured output parsed and validated."""
    value: dict


@dataclass(frozen=True)
class Malformed:
    """Structured output could not be used."""
    raw_text: str
    reason: str


ParseResult = Union[Ok, Malformed]


def parse_structured(text: str, required_fields: Iterable[str] = ()) -> ParseResult:
    """Tagged-result form of parse_json_from_text."""
    json_string = extract_json(text or "")
    if json_string is None:
        return Malformed(text or "", "no JSON object found in text")

    sentinel = object()
    parsed = safe_parse_json(json_string, sentinel)
    if parsed is sentinel:
        return Malformed(text, "JSON object could not be parsed")
    if not isinstance(parsed, dict):
        return Malformed(text, "JSON value is not an object")

    missing = [f for f in required_fields if f not in parsed or _is_empty(parsed[f])]
    if missing:
        return Malformed(text, f"missing required fields: {', '.join(missing)}")
    return Ok(parsed)


def unwrap_or(result: ParseResult, default: Callable[[], T]) -> Union[dict, T]:
    """Value of an Ok, otherwise default()."""
    if isinstance(result, Ok):
        return result.value
    return default()
