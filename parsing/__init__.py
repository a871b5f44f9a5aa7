"""Structured-output parsing for model responses."""

from .json_extractor import (
    Malformed,
    Ok,
    ParseResult,
    extract_json,
    extract_json_array,
    parse_json_array_from_text,
    parse_json_from_text,
    parse_structured,
    safe_parse_json,
    unwrap_or,
    validate_fields,
)
from .markdown import extract_markdown_section, section_items, strip_code_fences
from .paths import safe_relative_path

__all__ = [
    "Malformed",
    "Ok",
    "ParseResult",
    "extract_json",
    "extract_json_array",
    "parse_json_array_from_text",
    "parse_json_from_text",
    "parse_structured",
    "safe_parse_json",
    "unwrap_or",
    "validate_fields",
    "extract_markdown_section",
    "section_items",
    "strip_code_fences",
    "safe_relative_path",
]
