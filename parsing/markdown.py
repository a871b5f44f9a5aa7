"""Helpers for markdown-shaped model output."""

import re
from typing import List, Optional

_FENCED_BLOCK = re.compile(r"```[\w+-]*[ \t]*\n?([\s\S]*?)\n?```")


def strip_code_fences(text: str) -> str:
    """Return the body of the first fenced code block, or the trimmed text if there is none."""
    if not text:
        return ""
    match = _FENCED_BLOCK.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def extract_markdown_section(markdown: str, heading_pattern: str) -> Optional[str]:
    """Body of the first '#'/'##' section whose heading matches `heading_pattern`.

    The section ends at the next '##' or at the end of the text. Case-insensitive.
    """
    pattern = re.compile(
        r"##?\s*" + heading_pattern + r"[:\n]*(.+?)(?=##|$)",
        re.IGNORECASE | re.DOTALL,
    )
    match = pattern.search(markdown or "")
    if not match:
        return None
    body = match.group(1).strip()
    return body or None


def section_items(body: Optional[str]) -> List[str]:
    """Split a section body into list items, dropping bullets and blank lines."""
    if not body:
        return []
    items = []
    for line in body.splitlines():
        item = re.sub(r"^\s*(?:[-*+]|\d+[.)])\s*", "", line).strip()
        if item:
            items.append(item)
    return items
