"""Deterministic source checks and code metrics for generated projects.

Findings are "path: message" strings so the auto-fixer can group them by file.
Pattern checks only apply to script sources; the empty-file check applies to all.
"""

import re
from typing import Dict

from contracts import BuildMetrics, CodeQuality, StaticAnalysis

SCRIPT_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")
TYPED_EXTENSIONS = (".ts", ".tsx")

REACT_HOOKS = ["useState", "useEffect", "useRef", "useCallback", "useMemo", "useContext"]
LUCIDE_ICONS = ["Send", "Loader2", "Settings", "Key", "CreditCard", "X", "Check"]

_ANY_TYPE = re.compile(r"\bany\b")
_FUNCTION_TOKENS = re.compile(r"(function|const|=>)")
_CONDITIONAL_TOKENS = re.compile(r"(if|else|switch|case)")
_LOOP_TOKENS = re.compile(r"(for|while|forEach|map)")


def _imports_from(content: str, module: str) -> bool:
    return f"from '{module}'" in content or f'from "{module}"' in content


def is_script(path: str) -> bool:
    return path.endswith(SCRIPT_EXTENSIONS)


class StaticAnalyzer:
    """Pattern and balance checks over a map of path -> content."""

    def __init__(self, any_type_threshold: int = 5):
        self.any_type_threshold = any_type_threshold

    def check_file(self, path: str, content: str, result: StaticAnalysis) -> None:
        if is_script(path):
            self._check_script(path, content, result)
        if not content.strip():
            result.warnings.append(f"{path}: Empty file")

    def _check_script(self, path: str, content: str, result: StaticAnalysis) -> None:
        if not _imports_from(content, "react"):
            for hook in REACT_HOOKS:
                if hook in content:
                    result.errors.append(f"{path}: {hook} is used but not imported")

        if not _imports_from(content, "lucide-react"):
            for icon in LUCIDE_ICONS:
                if f"<{icon}" in content:
                    result.warnings.append(f"{path}: {icon} icon used but possibly not imported")

        open_braces, close_braces = content.count("{"), content.count("}")
        if open_braces != close_braces:
            result.errors.append(
                f"{path}: unequal braces ({open_braces} open, {close_braces} close)"
            )

        if content.count("(") != content.count(")"):
            result.errors.append(f"{path}: unequal parentheses")

        if path.endswith(TYPED_EXTENSIONS):
            any_count = len(_ANY_TYPE.findall(content))
            if any_count > self.any_type_threshold:
                result.warnings.append(
                    f"{path}: many 'any' types found ({any_count}), use specific types"
                )

        if "useEffect" in content and "useEffect(() =>" not in content:
            result.warnings.append(f"{path}: useEffect should be used with a dependency array")

        if "dangerouslySetInnerHTML" in content or "innerHTML" in content:
            result.warnings.append(f"{path}: potential XSS risk through innerHTML")

    def analyze(self, files: Dict[str, str]) -> StaticAnalysis:
        result = StaticAnalysis()
        for path, content in files.items():
            self.check_file(path, content, result)
        return result


def file_complexity(content: str) -> int:
    """functions + 2*conditionals + 2*loops, counted as raw token matches."""
    functions = len(_FUNCTION_TOKENS.findall(content))
    conditionals = len(_CONDITIONAL_TOKENS.findall(content))
    loops = len(_LOOP_TOKENS.findall(content))
    return functions + conditionals * 2 + loops * 2


def quality_for(average_complexity: float) -> CodeQuality:
    if average_complexity > 50:
        return CodeQuality.POOR
    if average_complexity > 30:
        return CodeQuality.FAIR
    if average_complexity > 15:
        return CodeQuality.GOOD
    return CodeQuality.EXCELLENT


def has_security_smell(content: str) -> bool:
    return "eval(" in content or "innerHTML" in content or "dangerouslySetInnerHTML" in content


def calculate_metrics(files: Dict[str, str]) -> BuildMetrics:
    if not files:
        return BuildMetrics()

    total_lines = sum(len(content.split("\n")) for content in files.values())
    complexity = sum(file_complexity(content) for content in files.values())
    security_issues = sum(1 for content in files.values() if has_security_smell(content))

    average = complexity / len(files)
    return BuildMetrics(
        total_files=len(files),
        total_lines=total_lines,
        complexity=round(average),
        security_issues=security_issues,
        code_quality=quality_for(average),
    )
