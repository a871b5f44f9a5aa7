"""Normalization of file paths proposed by model output."""

import re
from typing import Optional

_DRIVE = re.compile(r"^[A-Za-z]:$")


def safe_relative_path(path: Optional[str]) -> Optional[str]:
    """Normalize `path` to a project-relative POSIX path.

    Leading slashes and `.` segments are dropped and backslashes become `/`.
    Returns None for empty paths and for paths with `..` segments or a drive
    prefix, which could point outside the project.
    """
    if not isinstance(path, str):
        return None
    parts = [p for p in path.strip().replace("\\", "/").split("/") if p and p != "."]
    if not parts or ".." in parts or _DRIVE.match(parts[0]):
        return None
    return "/".join(parts)
