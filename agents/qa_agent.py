"""QA agent: code review, code repair, design compliance and build fixing.

A review's `passed` flag is always recomputed from its issues, whatever the
model claims. When no model is configured the review degrades to a local
pattern check instead of failing.
"""

import json
import logging
import re
from typing import Dict, List, Optional

from contracts import (
    BuildFixResult,
    CodeIssue,
    CodeReview,
    Complexity,
    DesignCompliance,
    DesignSystem,
    FileFix,
    IssueType,
    ReviewContext,
    Severity,
    TaskType,
    compute_passed,
    compute_score,
)
from parsing import parse_json_from_text, strip_code_fences

from .base_agent import BaseAgent

logger = logging.getLogger(__name__)


_SECRET_LITERAL = re.compile(r"""['"](sk-|hf_|AIza)""")

NO_BUILD_MODEL_ERROR = "No available model for build fix"


def simple_code_check(code: str, file_name: str) -> CodeReview:
    """Local pattern checks used when no model can review."""
    issues: List[CodeIssue] = []

    if "console.log(" in code and ".test." not in file_name:
        issues.append(CodeIssue(
            type=IssueType.WARNING,
            severity=Severity.LOW,
            file=file_name,
            message="console.log statement found",
            suggestion="Remove console.log before production",
        ))

    if _SECRET_LITERAL.search(code):
        issues.append(CodeIssue(
            type=IssueType.ERROR,
            severity=Severity.CRITICAL,
            file=file_name,
            message="Possible hardcoded API key",
            suggestion="Move secrets to environment variables",
        ))

    if "await" in code and "try" not in code and "catch" not in code:
        issues.append(CodeIssue(
            type=IssueType.WARNING,
            severity=Severity.MEDIUM,
            file=file_name,
            message="Async code without error handling",
            suggestion="Wrap await calls in try/catch",
        ))

    return CodeReview(
        issues=issues,
        score=compute_score(issues),
        passed=compute_passed(issues),
        suggestions=[i.suggestion for i in issues if i.suggestion],
    )


def _parse_issues(raw_issues, file_name: str) -> List[CodeIssue]:
    issues = []
    if not isinstance(raw_issues, list):
        return issues
    for raw in raw_issues:
        if not isinstance(raw, dict):
            continue
        raw = dict(raw)
        raw.setdefault("file", file_name)
        if raw.get("type") not in {t.value for t in IssueType}:
            raw["type"] = IssueType.WARNING.value
        if raw.get("severity") not in {s.value for s in Severity}:
            raw["severity"] = Severity.MEDIUM.value
        if not isinstance(raw.get("line"), int):
            raw["line"] = None
        try:
            issues.append(CodeIssue.model_validate(raw))
        except ValueError as e:
            logger.debug("Dropping malformed review issue: %s", e)
    return issues


def _context_lines(context: Optional[ReviewContext]) -> str:
    if context is None:
        return ""
    lines = []
    if context.project_files:
        lines.append("Project files:")
        lines.extend(f"- {path}" for path in context.project_files)
    if context.design_system is not None:
        lines.append("Design system:")
        lines.append(json.dumps(context.design_system.to_json_dict(), indent=2))
    return "\n" + "\n".join(lines) + "\n" if lines else ""


class QAAgent(BaseAgent):
    """Reviews and repairs generated code."""

    ROLE = "qa_agent"
    SYSTEM_INSTRUCTION = (
        "You are an experienced code reviewer. Respond ONLY with valid JSON, no additional text."
    )

    async def review(self, code: str, file_name: str, context: Optional[ReviewContext] = None) -> CodeReview:
        """Review one file. Never raises for model problems.

        `context` adds the project's file list and design system to the prompt.
        """
        config = self._select(TaskType.REASONING, Complexity.HIGH)
        if config is None:
            logger.warning("No review model available, using simple check for %s", file_name)
            return simple_code_check(code, file_name)

        prompt = f"""You are an experienced code reviewer. Review this code:

File: {file_name}

```typescript
{code}
```
{_context_lines(context)}
Check for:
1. TypeScript errors
2. Security problems (API keys, XSS, SQL injection)
3. Performance problems
4. Best practices
5. Design consistency (dark mode, glassmorphism)
6. Accessibility

Respond as JSON:
{{
  "issues": [
    {{
      "type": "error | warning | info",
      "severity": "critical | high | medium | low",
      "file": "{file_name}",
      "line": 42,
      "message": "...",
      "suggestion": "..."
    }}
  ],
  "score": 85,
  "passed": true,
  "suggestions": ["..."]
}}"""

        try:
            response = await self._call(config, prompt)
        except Exception as e:
            logger.warning("Review call failed for %s, using simple check: %s", file_name, e)
            return simple_code_check(code, file_name)

        data = parse_json_from_text(response.content, ["issues"], None)
        if data is None:
            return simple_code_check(code, file_name)

        issues = _parse_issues(data.get("issues"), file_name)
        score = data.get("score")
        if not isinstance(score, (int, float)) or isinstance(score, bool):
            score = compute_score(issues)
        suggestions = data.get("suggestions")
        review = CodeReview(
            issues=issues,
            score=max(0, min(100, int(score))),
            passed=bool(data.get("passed", True)),
            suggestions=[str(s) for s in suggestions] if isinstance(suggestions, list) else [],
        )
        return review.recompute()

    async def fix_code(self, code: str, file_name: str, issues: List[CodeIssue]) -> str:
        """Return repaired code, or the input unchanged when repair is not possible."""
        config = self._select(TaskType.CODING, Complexity.HIGH)
        if config is None:
            return code

        issue_lines = "\n".join(
            f"- {i.message}" + (f" (line {i.line})" if i.line else "") for i in issues
        )
        prompt = f"""Fix these issues in the code:

File: {file_name}

Issues:
{issue_lines}

Original code:
```typescript
{code}
```

Return ONLY the fixed code, without explanations."""

        try:
            response = await self._call(
                config,
                prompt,
                "You are an experienced developer. Fix code issues precisely and efficiently.",
            )
        except Exception as e:
            logger.warning("Code fix failed for %s: %s", file_name, e)
            return code

        fixed = strip_code_fences(response.content)
        return fixed or code

    async def validate_design_compliance(self, code: str, design_system: DesignSystem) -> DesignCompliance:
        """Check code against the design system; compliant when no model is configured."""
        config = self._select(TaskType.REASONING, Complexity.LOW)
        if config is None:
            return DesignCompliance()

        prompt = f"""Check whether this code follows the design system:

Design system:
{json.dumps(design_system.to_json_dict(), indent=2)}

Code:
```typescript
{code}
```

Check:
- Are the correct colors used?
- Is the typography correct?
- Are glassmorphism effects present?
- Is dark mode implemented?

Respond as JSON:
{{
  "compliant": true,
  "violations": ["..."]
}}"""

        try:
            response = await self._call(
                config,
                prompt,
                "You are a design system expert. Respond ONLY with valid JSON.",
            )
        except Exception as e:
            logger.warning("Design compliance check failed: %s", e)
            return DesignCompliance()

        data = parse_json_from_text(response.content, ["compliant"], {"compliant": True, "violations": []})
        violations = data.get("violations")
        return DesignCompliance(
            compliant=data["compliant"] if isinstance(data.get("compliant"), bool) else True,
            violations=[str(v) for v in violations] if isinstance(violations, list) else [],
        )

    async def fix_build_errors(self, build_log: str, files: Dict[str, str]) -> BuildFixResult:
        """Propose whole-file replacements for the errors in a build log."""
        config = self._select(TaskType.CODING, Complexity.HIGH)
        if config is None:
            return BuildFixResult(fixed=False, remaining_errors=[NO_BUILD_MODEL_ERROR])

        listing = "\n\n".join(f"=== {path} ===\n{content}" for path, content in files.items())
        prompt = f"""Fix these build errors:

Build log:
{build_log}

Files:
{listing}

Respond as JSON:
{{
  "fixed": true,
  "fixes": [
    {{
      "file": "path/to/file.tsx",
      "changes": "full new file content"
    }}
  ],
  "remainingErrors": []
}}"""

        try:
            response = await self._call(
                config,
                prompt,
                "You are a build engineer. Fix build errors precisely. Respond ONLY with valid JSON.",
            )
        except Exception as e:
            logger.error("Build fix call failed: %s", e)
            return BuildFixResult(fixed=False, remaining_errors=[str(e)])

        data = parse_json_from_text(
            response.content,
            ["fixes"],
            {"fixed": False, "fixes": [], "remainingErrors": ["Could not parse build fix response"]},
        )

        fixes = []
        for raw in data.get("fixes") or []:
            if isinstance(raw, dict) and raw.get("file") and isinstance(raw.get("changes"), str):
                fixes.append(FileFix(file=str(raw["file"]), changes=raw["changes"]))
        remaining = data.get("remainingErrors")
        remaining = [str(r) for r in remaining] if isinstance(remaining, list) else []
        fixed = data.get("fixed")
        return BuildFixResult(
            fixed=fixed if isinstance(fixed, bool) else bool(fixes) and not remaining,
            fixes=fixes,
            remaining_errors=remaining,
        )
