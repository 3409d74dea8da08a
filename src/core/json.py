"""Fast, tolerant JSON handling for specification documents and backend replies."""

from typing import Any
import json

import msgspec
import orjson
from json_repair import repair_json

# Nesting limit for specification documents (component trees are shallow)
MAX_JSON_DEPTH = 32


class JSONParseError(Exception):
    """JSON parsing failed."""

    def __init__(self, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.original = original


def extract_json_boundaries(text: str) -> tuple[str, int, int] | None:
    """
    Extract JSON string and boundaries from text.

    Args:
        text: Text potentially containing JSON (raw, fenced, or with prose around it)

    Returns:
        (working_text, start, end) or None if not found
    """
    working_text = text

    # Remove markdown code blocks
    if "```" in working_text:
        if "```json" in working_text:
            start_marker = working_text.find("```json") + 7
        else:
            start_marker = working_text.find("```") + 3

        end_marker = working_text.find("```", start_marker)
        if end_marker != -1:
            working_text = working_text[start_marker:end_marker].strip()

    start = working_text.find("{")
    end = working_text.rfind("}")

    if start == -1 or end == -1 or end < start:
        return None

    return (working_text, start, end + 1)


def _expect_object(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        raise JSONParseError(f"Expected object, got {type(result).__name__}")
    return result


def extract_json(text: str, repair: bool = True) -> dict[str, Any]:
    """
    Extract and parse a JSON object from text with multiple fallbacks.

    Args:
        text: Text containing JSON
        repair: Attempt to repair invalid JSON with json_repair

    Returns:
        Parsed JSON object

    Raises:
        JSONParseError: If parsing fails
    """
    boundaries = extract_json_boundaries(text.strip())
    if boundaries is None:
        raise JSONParseError("No JSON object found in text")

    extracted_text, start, end = boundaries
    json_str = extracted_text[start:end]

    # msgspec first (fastest, strict)
    try:
        return _expect_object(msgspec.json.decode(json_str.encode("utf-8")))
    except msgspec.DecodeError as e:
        if not repair:
            raise JSONParseError(f"Invalid JSON: {e}", e) from e

    # Last resort: json_repair (trailing commas, single quotes, truncation)
    try:
        repaired = repair_json(json_str)
        return _expect_object(json.loads(repaired))
    except JSONParseError:
        raise
    except Exception as repair_error:
        raise JSONParseError(f"JSON repair failed: {repair_error}", repair_error) from repair_error


def safe_json_dumps(obj: Any, indent: int = 0) -> str:
    """
    Encode object to JSON string using the fastest available library.

    Args:
        obj: Object to encode
        indent: 0 for compact output, 2 for orjson pretty output, anything else via stdlib

    Returns:
        JSON string
    """
    try:
        if indent == 0:
            return orjson.dumps(obj).decode("utf-8")
        if indent == 2:
            return orjson.dumps(obj, option=orjson.OPT_INDENT_2).decode("utf-8")
    except (TypeError, ValueError):
        # Fallback for edge cases (e.g., integers outside 64-bit range)
        pass

    return json.dumps(obj, indent=indent if indent > 0 else None, default=str)


def validate_json_depth(obj: Any, max_depth: int = MAX_JSON_DEPTH, current_depth: int = 0) -> None:
    """
    Validate JSON nesting depth to prevent runaway recursion.

    Raises:
        JSONParseError: If depth exceeds limit
    """
    if current_depth > max_depth:
        raise JSONParseError(f"JSON nesting depth {current_depth} exceeds maximum {max_depth}")

    if isinstance(obj, dict):
        for value in obj.values():
            validate_json_depth(value, max_depth, current_depth + 1)
    elif isinstance(obj, list):
        for item in obj:
            validate_json_depth(item, max_depth, current_depth + 1)


__all__ = [
    "JSONParseError",
    "extract_json",
    "extract_json_boundaries",
    "safe_json_dumps",
    "validate_json_depth",
    "MAX_JSON_DEPTH",
]
