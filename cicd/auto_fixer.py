"""Parse external build logs (tsc, vite) and repair the files they name."""

import logging
import re
from typing import Dict, List, Tuple

from contracts import BuildError, BuildErrorKind, CodeIssue, IssueType, Severity

logger = logging.getLogger(__name__)

_TSC_LINE = re.compile(r"^(.+?)\((\d+),\d+\):\s*(.+)$")
_VITE_LINE = re.compile(r"^(.+?):(\d+):(\d+):\s*(.+)$")


def parse_build_log(log: str) -> List[BuildError]:
    errors: List[BuildError] = []
    for line in log.split("\n"):
        match = _TSC_LINE.match(line)
        if match:
            errors.append(BuildError(
                file=match.group(1),
                line=int(match.group(2)),
                message=match.group(3),
                type=BuildErrorKind.SYNTAX,
            ))
            continue

        match = _VITE_LINE.match(line)
        if match:
            errors.append(BuildError(
                file=match.group(1),
                line=int(match.group(2)),
                message=match.group(4),
                type=BuildErrorKind.SYNTAX,
            ))
            continue

        if "error" in line.lower() and ":" in line:
            file_part, message = line.split(":", 1)
            errors.append(BuildError(
                file=file_part.strip(),
                message=message.strip(),
                type=BuildErrorKind.OTHER,
            ))
    return errors


async def fix_build_errors(
    files: Dict[str, str],
    errors: List[BuildError],
    qa_agent,
) -> Tuple[Dict[str, str], List[BuildError]]:
    """Repair each file named in `errors`. Returns (files, errors left unaddressed)."""
    fixed_files = dict(files)
    remaining: List[BuildError] = []

    by_file: Dict[str, List[BuildError]] = {}
    for error in errors:
        by_file.setdefault(error.file, []).append(error)

    for path, file_errors in by_file.items():
        if path not in fixed_files:
            remaining.extend(file_errors)
            continue

        issues = [
            CodeIssue(
                type=IssueType.ERROR,
                severity=Severity.HIGH,
                file=path,
                line=error.line,
                message=error.message,
                suggestion=f"Fix {error.type.value} error: {error.message}",
            )
            for error in file_errors
        ]
        try:
            fixed = await qa_agent.fix_code(fixed_files[path], path, issues)
        except Exception as e:
            logger.error("Failed to fix %s: %s", path, e)
            remaining.extend(file_errors)
            continue
        if fixed == fixed_files[path]:
            logger.warning("Fix left %s unchanged", path)
            remaining.extend(file_errors)
            continue
        fixed_files[path] = fixed

    return fixed_files, remaining
