"""Build-analyze-fix loop over generated project files.

Each cycle runs static analysis, model-assisted analysis of a few critical
files and metrics. Errors trigger an auto-fix pass through the QA agent and
another cycle, up to the retry bound. The loop always terminates: success as
soon as a cycle finds no errors, failure after the last cycle or as soon as
auto-fix leaves errors it cannot address.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from contracts import (
    AIAnalysis,
    AutoFixResult,
    BuildResult,
    CodeIssue,
    Complexity,
    IssueType,
    Severity,
    TaskType,
)
from parsing import parse_json_from_text

from .performance import BuildCache, BuildProfile, analyze_files_in_parallel
from .static_analysis import StaticAnalyzer, calculate_metrics

logger = logging.getLogger(__name__)


CRITICAL_PATH_MARKERS = ("App", "index", "main", "component")

_ERROR_LINE = re.compile(r"^([^:]+):\s*(.+)$")


def is_critical_file(path: str) -> bool:
    return any(marker in path for marker in CRITICAL_PATH_MARKERS)


def group_errors_by_file(errors: List[str]) -> Dict[str, List[str]]:
    """Group "path: message" strings by path; other strings are dropped."""
    grouped: Dict[str, List[str]] = {}
    for error in errors:
        match = _ERROR_LINE.match(error)
        if match:
            grouped.setdefault(match.group(1), []).append(match.group(2))
    return grouped


class BuildSystem:
    """Runs the build loop. Holds the cache and counts analysis cycles."""

    def __init__(
        self,
        gateway,
        qa_agent,
        cache: Optional[BuildCache] = None,
        analyzer: Optional[StaticAnalyzer] = None,
        settings=None,
    ):
        if settings is None:
            from config import settings
        self.settings = settings
        self.gateway = gateway
        self.qa_agent = qa_agent
        self.cache = cache if cache is not None else BuildCache.from_settings(settings)
        self.analyzer = analyzer or StaticAnalyzer(any_type_threshold=settings.any_type_threshold)
        self.analysis_cycles = 0

    async def analyze_with_ai(self, path: str, content: str, file_count: int) -> AIAnalysis:
        """Model review of one file's head; empty when no model is available or the call fails."""
        config = self.gateway.select_model(TaskType.REASONING, Complexity.MEDIUM)
        if config is None:
            return AIAnalysis()

        limit = self.settings.ai_analysis_char_limit
        snippet = content[:limit] + ("\n... (truncated)" if len(content) > limit else "")
        prompt = f"""Analyze this code for errors, warnings and optimization opportunities:

File: {path}
Code:
```
{snippet}
```

Project context:
- {file_count} files in the project
- React with TypeScript
- TailwindCSS for styling
- Supabase backend

Check for:
1. Syntax errors
2. TypeScript type errors
3. Missing imports
4. Performance problems
5. Security problems
6. Code quality (DRY, SOLID)
7. React best practices
8. Accessibility problems

Respond as JSON:
{{
  "errors": ["..."],
  "warnings": ["..."],
  "suggestions": ["..."]
}}"""

        try:
            response = await self.gateway.call(
                config,
                prompt,
                "You are a senior code reviewer and software architect. Respond ONLY with valid JSON.",
            )
        except Exception as e:
            logger.warning("AI analysis of %s skipped: %s", path, e)
            return AIAnalysis()

        data = parse_json_from_text(response.content, [], {})

        def as_list(key: str) -> List[str]:
            value = data.get(key)
            return [str(v) for v in value] if isinstance(value, list) else []

        return AIAnalysis(errors=as_list("errors"), warnings=as_list("warnings"), suggestions=as_list("suggestions"))

    async def run_build(self, files: Dict[str, str], skip_ai_analysis: bool = False) -> BuildResult:
        """One analysis cycle. Does not modify files."""
        self.analysis_cycles += 1
        optimizations: List[str] = []
        log = [f"Starting build analysis of {len(files)} files", ""]

        log.append("Phase 1: static analysis")
        static = self.analyzer.analyze(files)
        errors = list(static.errors)
        warnings = list(static.warnings)
        log.append(f"Static analysis done: {len(errors)} errors, {len(warnings)} warnings")
        log.append("")

        if not skip_ai_analysis:
            log.append("Phase 2: AI-assisted analysis")
            critical = dict(
                [(p, c) for p, c in files.items() if is_critical_file(p)][: self.settings.ai_analysis_max_files]
            )

            async def analyze(path: str, content: str) -> Tuple[List[str], List[str]]:
                analysis = await self.analyze_with_ai(path, content, len(files))
                if analysis.suggestions:
                    optimizations.append(f"{path}: {len(analysis.suggestions)} optimization suggestions")
                return (
                    [f"{path}: {e}" for e in analysis.errors],
                    [f"{path}: {w}" for w in analysis.warnings],
                )

            ai_errors, ai_warnings = await analyze_files_in_parallel(
                critical, analyze, self.settings.ai_analysis_concurrency
            )
            errors.extend(ai_errors)
            warnings.extend(ai_warnings)
            log.append(f"AI analysis done ({len(critical)} files analyzed in parallel)")
            log.append("")

        log.append("Phase 3: code quality metrics")
        metrics = calculate_metrics(files)
        log += [
            f"- Files: {metrics.total_files}",
            f"- Lines: {metrics.total_lines}",
            f"- Complexity: {metrics.complexity}",
            f"- Quality: {metrics.code_quality.value}",
            f"- Security issues: {metrics.security_issues}",
            "",
            f"Summary: {len(errors)} errors, {len(warnings)} warnings, {len(optimizations)} optimization notes",
        ]

        if errors:
            log.append(f"Build failed with {len(errors)} error(s)")
            return BuildResult(
                success=False,
                errors=errors,
                warnings=warnings,
                build_log="\n".join(log) + "\n",
                metrics=metrics,
            )

        log.append("Build analysis succeeded")
        return BuildResult(
            success=True,
            warnings=warnings,
            build_log="\n".join(log) + "\n",
            metrics=metrics,
            optimizations=optimizations or None,
        )

    async def auto_fix_build(self, files: Dict[str, str], errors: List[str]) -> AutoFixResult:
        """Ask the QA agent to repair every file named in `errors`."""
        fixed_files = dict(files)
        remaining: List[str] = []
        optimizations: List[str] = []

        for path, messages in group_errors_by_file(errors).items():
            if path not in fixed_files:
                remaining.extend(f"{path}: {m}" for m in messages)
                continue

            issues = [
                CodeIssue(
                    type=IssueType.ERROR,
                    severity=Severity.HIGH,
                    file=path,
                    message=message,
                    suggestion="Repair the error automatically",
                )
                for message in messages
            ]
            try:
                fixed = await self.qa_agent.fix_code(fixed_files[path], path, issues)
            except Exception as e:
                logger.error("Auto-fix of %s failed: %s", path, e)
                remaining.extend(f"{path}: {m}" for m in messages)
                continue
            # fix_code returns its input when it cannot repair the file
            if fixed == fixed_files[path]:
                logger.warning("Auto-fix left %s unchanged", path)
                remaining.extend(f"{path}: {m}" for m in messages)
                continue
            fixed_files[path] = fixed
            optimizations.append(f"{path}: {len(messages)} errors auto-fixed")

        return AutoFixResult(
            fixed=not remaining,
            fixed_files=fixed_files,
            remaining_errors=remaining,
            optimizations=optimizations,
        )

    async def run_cicd_pipeline(
        self,
        files: Dict[str, str],
        max_retries: Optional[int] = None,
        profile: Optional[BuildProfile] = None,
    ) -> BuildResult:
        """Build, auto-fix and retry for at most `max_retries` cycles."""
        cached = self.cache.get(files)
        if cached is not None:
            logger.info("Build cache hit for %d files", len(files))
            return cached

        if max_retries is None:
            max_retries = profile.max_retries if profile else self.settings.build_max_retries
        max_retries = max(1, max_retries)
        skip_ai = profile.skip_ai_analysis if profile else False

        result = await self._run_cycles(dict(files), max_retries, skip_ai)
        self.cache.put(files, result)
        return result

    async def _run_cycles(self, current: Dict[str, str], max_retries: int, skip_ai: bool) -> BuildResult:
        all_optimizations: List[str] = []
        last: Optional[BuildResult] = None

        for attempt in range(1, max_retries + 1):
            last = await self.run_build(current, skip_ai_analysis=skip_ai)

            if last.success:
                return last.model_copy(update={
                    "fixed": attempt > 1,
                    "build_log": f"Build succeeded after {attempt} attempt(s)\n\n{last.build_log}",
                    "fixed_files": dict(current) if attempt > 1 else None,
                    "optimizations": all_optimizations or last.optimizations,
                    "attempts": attempt,
                })

            if attempt == max_retries:
                break

            fix = await self.auto_fix_build(current, last.errors)
            current = fix.fixed_files
            all_optimizations.extend(fix.optimizations)

            if not fix.fixed:
                return BuildResult(
                    success=False,
                    errors=fix.remaining_errors,
                    warnings=last.warnings,
                    build_log=(
                        f"Build failed after {attempt} attempt(s). "
                        f"{len(fix.remaining_errors)} errors could not be fixed\n\n{last.build_log}"
                    ),
                    fixed_files=dict(current),
                    metrics=last.metrics,
                    optimizations=all_optimizations or None,
                    attempts=attempt,
                )

        return BuildResult(
            success=False,
            errors=last.errors,
            warnings=last.warnings,
            build_log=f"Build failed after {max_retries} attempt(s)\n\n{last.build_log}",
            fixed_files=dict(current),
            metrics=last.metrics,
            optimizations=all_optimizations or None,
            attempts=max_retries,
        )
