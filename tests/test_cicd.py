"""Tests for static analysis, caching and the build-analyze-fix loop."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from agents import QAAgent
from cicd import (
    BuildCache,
    BuildProfile,
    BuildSystem,
    CICDMonitor,
    StaticAnalyzer,
    analyze_files_in_parallel,
    calculate_metrics,
    fix_build_errors,
    group_errors_by_file,
    hash_project_files,
    is_critical_file,
    parse_build_log,
    rolling_hash,
)
from cicd.static_analysis import file_complexity, quality_for
from contracts import (
    BuildError,
    BuildErrorKind,
    BuildMetrics,
    BuildResult,
    CodeQuality,
    MonitorConfig,
    StaticAnalysis,
)
from fakes import FakeProvider


SCENARIO_FILES = {
    "src/App.tsx": "function App() { return <div>",
    "src/util.ts": "",
}


def make_build_system(gateway, test_settings, qa_agent=None, **kwargs):
    return BuildSystem(gateway, qa_agent or QAAgent(gateway), settings=test_settings, **kwargs)


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


class TestStaticAnalyzer:
    """Test the deterministic source checks."""

    def test_scenario(self):
        result = StaticAnalyzer().analyze(SCENARIO_FILES)
        assert result.errors == ["src/App.tsx: unequal braces (1 open, 0 close)"]
        assert result.warnings == ["src/util.ts: Empty file"]

    def test_hook_without_import(self):
        content = "export function A() { const [a] = useState(0); return a; }"
        result = StaticAnalyzer().analyze({"src/A.tsx": content})
        assert result.errors == ["src/A.tsx: useState is used but not imported"]

        imported = "import { useState } from 'react';\n" + content
        assert StaticAnalyzer().analyze({"src/A.tsx": imported}).errors == []

    def test_icon_without_import(self):
        result = StaticAnalyzer().analyze({"src/B.tsx": "const b = () => <Send />;"})
        assert result.warnings == ["src/B.tsx: Send icon used but possibly not imported"]

    def test_unequal_parentheses(self):
        result = StaticAnalyzer().analyze({"src/c.js": "call(a, b"})
        assert result.errors == ["src/c.js: unequal parentheses"]

    def test_any_threshold(self):
        content = "let a: any; " * 6
        result = StaticAnalyzer(any_type_threshold=5).analyze({"src/d.ts": content})
        assert result.warnings == ["src/d.ts: many 'any' types found (6), use specific types"]
        assert StaticAnalyzer(any_type_threshold=6).analyze({"src/d.ts": content}).warnings == []

    def test_effect_and_inner_html(self):
        content = "import { useEffect } from 'react';\nuseEffect(load);\nel.innerHTML = html;"
        warnings = StaticAnalyzer().analyze({"src/e.tsx": content}).warnings
        assert "src/e.tsx: useEffect should be used with a dependency array" in warnings
        assert "src/e.tsx: potential XSS risk through innerHTML" in warnings

    def test_non_script_files_only_get_empty_check(self):
        result = StaticAnalyzer().analyze({"src/index.css": "body {", "README.md": "  "})
        assert result.errors == []
        assert result.warnings == ["README.md: Empty file"]


class TestMetrics:
    """Test the heuristic metrics."""

    def test_empty_project(self):
        assert calculate_metrics({}) == BuildMetrics()

    def test_metrics(self):
        files = {
            "a.ts": "if (x) { for (;;) {} }",
            "b.ts": "eval(code)\n",
        }
        metrics = calculate_metrics(files)
        assert file_complexity(files["a.ts"]) == 4
        assert metrics.total_files == 2
        assert metrics.total_lines == 3
        assert metrics.security_issues == 1
        assert metrics.complexity == 2
        assert metrics.code_quality == CodeQuality.EXCELLENT

    @pytest.mark.parametrize("average,quality", [
        (15, CodeQuality.EXCELLENT),
        (16, CodeQuality.GOOD),
        (31, CodeQuality.FAIR),
        (51, CodeQuality.POOR),
    ])
    def test_quality_bands(self, average, quality):
        assert quality_for(average) == quality


class TestHashingAndCache:
    """Test project hashing and the TTL cache."""

    def test_rolling_hash(self):
        assert rolling_hash("") == "0"
        assert rolling_hash("a") == "2p"

    def test_hash_is_order_independent(self):
        a = {"x.ts": "1", "y.ts": "2"}
        b = {"y.ts": "2", "x.ts": "1"}
        assert hash_project_files(a) == hash_project_files(b)
        assert hash_project_files(a) != hash_project_files({"x.ts": "1", "y.ts": "3"})
        assert len(hash_project_files(a, "sha256")) == 64

    def test_ttl(self):
        now = [0.0]
        cache = BuildCache(ttl_seconds=10, clock=lambda: now[0])
        result = BuildResult(success=True)
        cache.put({"a": "1"}, result)
        now[0] = 9.9
        assert cache.get({"a": "1"}) is result
        now[0] = 10.0
        assert cache.get({"a": "1"}) is None
        assert len(cache) == 0

    def test_eviction_of_oldest(self):
        cache = BuildCache(max_entries=2)
        for i in range(3):
            cache.put({"f": str(i)}, BuildResult(success=True, attempts=i + 1))
        assert len(cache) == 2
        assert cache.get({"f": "0"}) is None
        assert cache.get({"f": "2"}).attempts == 3

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError):
            BuildCache(hash_algorithm="md5")

    def test_profiles(self, test_settings):
        assert BuildProfile.optimize_for_speed(test_settings).max_retries == 2
        assert BuildProfile.optimize_for_quality(test_settings).max_retries == 3


class TestParallelAnalysis:
    """Test bounded-concurrency analysis."""

    @pytest.mark.asyncio
    async def test_merges_in_order_with_bounded_concurrency(self):
        active = [0]
        peak = [0]

        async def analyzer(path, content):
            active[0] += 1
            peak[0] = max(peak[0], active[0])
            await asyncio.sleep(0)
            active[0] -= 1
            return [f"{path}: error"], [f"{path}: warning"]

        files = {f"f{i}.ts": "" for i in range(5)}
        errors, warnings = await analyze_files_in_parallel(files, analyzer, max_concurrent=2)
        assert errors == [f"f{i}.ts: error" for i in range(5)]
        assert len(warnings) == 5
        assert peak[0] == 2


class TestBuildSystem:
    """Test the build-analyze-fix loop."""

    def test_helpers(self):
        assert is_critical_file("src/App.tsx")
        assert is_critical_file("src/components/Card.tsx")
        assert not is_critical_file("src/lib/util.ts")
        assert group_errors_by_file(["a.ts: one", "a.ts: two", "b.ts: three", "no path"]) == {
            "a.ts": ["one", "two"],
            "b.ts": ["three"],
        }

    @pytest.mark.asyncio
    async def test_scenario_without_model_stops_after_first_cycle(self, empty_gateway, test_settings):
        build_system = make_build_system(empty_gateway, test_settings)
        result = await build_system.run_cicd_pipeline(SCENARIO_FILES, max_retries=3)
        assert result.success is False
        assert result.errors == ["src/App.tsx: unequal braces (1 open, 0 close)"]
        assert "src/util.ts: Empty file" in result.warnings
        assert result.attempts == 1
        assert build_system.analysis_cycles == 1
        assert result.build_log.startswith("Build failed after 1 attempt(s). 1 errors could not be fixed")
        assert result.optimizations is None

    @pytest.mark.asyncio
    async def test_fails_within_bound(self, empty_gateway, test_settings):
        qa_agent = MagicMock()
        qa_agent.fix_code = AsyncMock(side_effect=lambda code, path, issues: code + "\n// retry")
        build_system = make_build_system(empty_gateway, test_settings, qa_agent)
        result = await build_system.run_cicd_pipeline(SCENARIO_FILES, max_retries=3)
        assert result.success is False
        assert result.errors == ["src/App.tsx: unequal braces (1 open, 0 close)"]
        assert result.attempts == 3
        assert build_system.analysis_cycles == 3
        assert qa_agent.fix_code.await_count == 2
        assert result.build_log.startswith("Build failed after 3 attempt(s)")
        assert result.fixed_files["src/App.tsx"].endswith("// retry\n// retry")

    @pytest.mark.asyncio
    async def test_cache_hit_skips_analysis(self, empty_gateway, test_settings):
        build_system = make_build_system(empty_gateway, test_settings)
        first = await build_system.run_cicd_pipeline(SCENARIO_FILES, max_retries=2)
        second = await build_system.run_cicd_pipeline(dict(reversed(list(SCENARIO_FILES.items()))), max_retries=2)
        assert second is first
        assert build_system.analysis_cycles == 1

    @pytest.mark.asyncio
    async def test_auto_fix_then_success(self, empty_gateway, test_settings):
        qa_agent = MagicMock()
        qa_agent.fix_code = AsyncMock(return_value="function App() { return 1; }")
        build_system = make_build_system(empty_gateway, test_settings, qa_agent)

        result = await build_system.run_cicd_pipeline({"src/App.tsx": "function App() { return 1;"})
        assert result.success
        assert result.fixed
        assert result.attempts == 2
        assert result.fixed_files == {"src/App.tsx": "function App() { return 1; }"}
        assert result.optimizations == ["src/App.tsx: 1 errors auto-fixed"]
        path, = {call.args[1] for call in qa_agent.fix_code.await_args_list}
        assert path == "src/App.tsx"

    @pytest.mark.asyncio
    async def test_unfixable_errors_stop_early(self, empty_gateway, test_settings):
        analyzer = MagicMock()
        analyzer.analyze.return_value = StaticAnalysis(errors=["src/missing.ts: cannot resolve module"])
        build_system = make_build_system(empty_gateway, test_settings, analyzer=analyzer)

        result = await build_system.run_cicd_pipeline({"src/App.tsx": "x"}, max_retries=3)
        assert not result.success
        assert result.attempts == 1
        assert result.errors == ["src/missing.ts: cannot resolve module"]
        assert build_system.analysis_cycles == 1

    @pytest.mark.asyncio
    async def test_ai_analysis_findings(self, make_gateway, test_settings):
        reply = '{"errors": [], "warnings": ["Prefer memo"], "suggestions": ["a", "b"]}'
        provider = FakeProvider(replies=[reply])
        gateway = make_gateway(provider)
        build_system = make_build_system(gateway, test_settings)

        files = {"src/App.tsx": "export default function App() { return null; }", "src/lib/x.ts": "export const x = 1;"}
        result = await build_system.run_build(files)
        assert result.success
        assert result.warnings == ["src/App.tsx: Prefer memo"]
        assert result.optimizations == ["src/App.tsx: 2 optimization suggestions"]
        assert len(provider.calls) == 1
        assert "Analyze this code for errors" in provider.calls[0]["user"]

    @pytest.mark.asyncio
    async def test_skip_ai_analysis(self, make_gateway, test_settings):
        provider = FakeProvider(replies=['{"errors": ["boom"]}'])
        build_system = make_build_system(make_gateway(provider), test_settings)
        result = await build_system.run_build({"src/App.tsx": "const a = 1;"}, skip_ai_analysis=True)
        assert result.success
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_auto_fix_reports_missing_files(self, empty_gateway, test_settings):
        qa_agent = MagicMock()
        qa_agent.fix_code = AsyncMock(return_value="y")
        build_system = make_build_system(empty_gateway, test_settings, qa_agent)
        fix = await build_system.auto_fix_build({"a.ts": "x"}, ["a.ts: bad", "ghost.ts: gone"])
        assert not fix.fixed
        assert fix.remaining_errors == ["ghost.ts: gone"]
        assert fix.fixed_files == {"a.ts": "y"}

    @pytest.mark.asyncio
    async def test_unchanged_fix_is_not_counted(self, empty_gateway, test_settings):
        build_system = make_build_system(empty_gateway, test_settings)
        fix = await build_system.auto_fix_build({"a.ts": "x"}, ["a.ts: bad"])
        assert not fix.fixed
        assert fix.remaining_errors == ["a.ts: bad"]
        assert fix.optimizations == []
        assert fix.fixed_files == {"a.ts": "x"}


class TestBuildLogFixing:
    """Test external build log parsing and repair."""

    def test_parse_build_log(self):
        log = "\n".join([
            "src/App.tsx(12,5): error TS2304: Cannot find name 'foo'.",
            "src/main.tsx:3:10: Unexpected token",
            "Build error: something broke",
            "All good here",
        ])
        errors = parse_build_log(log)
        assert [(e.file, e.line, e.type) for e in errors] == [
            ("src/App.tsx", 12, BuildErrorKind.SYNTAX),
            ("src/main.tsx", 3, BuildErrorKind.SYNTAX),
            ("Build error", None, BuildErrorKind.OTHER),
        ]
        assert errors[0].message == "error TS2304: Cannot find name 'foo'."
        assert errors[2].message == "something broke"

    @pytest.mark.asyncio
    async def test_fix_build_errors(self):
        qa_agent = MagicMock()
        qa_agent.fix_code = AsyncMock(return_value="fixed")
        errors = [
            BuildError(file="src/App.tsx", line=1, message="x"),
            BuildError(file="src/Gone.tsx", message="y"),
        ]
        files, remaining = await fix_build_errors({"src/App.tsx": "broken"}, errors, qa_agent)
        assert files == {"src/App.tsx": "fixed"}
        assert [e.file for e in remaining] == ["src/Gone.tsx"]
        issues = qa_agent.fix_code.await_args.args[2]
        assert issues[0].line == 1

    @pytest.mark.asyncio
    async def test_fix_build_errors_unchanged_file_remains(self):
        qa_agent = MagicMock()
        qa_agent.fix_code = AsyncMock(side_effect=lambda code, path, issues: code)
        errors = [BuildError(file="src/App.tsx", message="x")]
        files, remaining = await fix_build_errors({"src/App.tsx": "broken"}, errors, qa_agent)
        assert files == {"src/App.tsx": "broken"}
        assert remaining == errors


class TestMonitor:
    """Test the interval monitor."""

    @pytest.fixture
    def build_system(self):
        build_system = MagicMock()
        build_system.run_cicd_pipeline = AsyncMock(return_value=BuildResult(success=True))
        return build_system

    @pytest.mark.asyncio
    async def test_start_runs_a_check_immediately(self, build_system, test_settings):
        monitor = CICDMonitor(build_system, settings=test_settings, clock=lambda: 123.0)
        statuses, results = [], []
        files = {"src/App.tsx": "x"}

        monitor.start(lambda: files, statuses.append, results.append)
        await settle()
        status = monitor.status
        await monitor.stop()

        assert status.active
        assert status.total_checks == 1
        assert status.successful_builds == 1
        assert status.last_check == 123.0
        assert len(results) == 1
        assert statuses[-1].active is False
        build_system.run_cicd_pipeline.assert_awaited_with(files, profile=monitor.profile)
        assert monitor.profile.max_retries == 2

    @pytest.mark.asyncio
    async def test_empty_snapshot_is_skipped(self, build_system, test_settings):
        monitor = CICDMonitor(build_system, settings=test_settings)
        monitor.start(dict)
        await settle()
        await monitor.stop()
        assert monitor.status.total_checks == 0
        build_system.run_cicd_pipeline.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exception_counts_as_failure(self, build_system, test_settings):
        build_system.run_cicd_pipeline.side_effect = RuntimeError("boom")
        monitor = CICDMonitor(build_system, settings=test_settings)
        monitor.start(lambda: {"a.ts": "x"})
        await settle()
        await monitor.stop()
        assert monitor.status.total_checks == 1
        assert monitor.status.failed_builds == 1
        assert monitor.status.last_result is None

    @pytest.mark.asyncio
    async def test_files_getter_error_counts_as_failure(self, build_system, test_settings):
        def broken_getter():
            raise OSError("workspace gone")

        statuses = []
        monitor = CICDMonitor(build_system, settings=test_settings, clock=lambda: 7.0)
        monitor.start(broken_getter, statuses.append)
        await settle()
        task = monitor._task
        status = monitor.status

        assert status.active
        assert not task.done()
        assert status.total_checks == 1
        assert status.failed_builds == 1
        assert status.last_check == 7.0
        assert statuses[-1].failed_builds == 1
        build_system.run_cicd_pipeline.assert_not_awaited()
        await monitor.stop()

    @pytest.mark.asyncio
    async def test_raising_callbacks_do_not_stop_monitor(self, build_system, test_settings):
        def broken_callback(_):
            raise RuntimeError("ui closed")

        monitor = CICDMonitor(build_system, settings=test_settings)
        monitor.start(lambda: {"a.ts": "x"}, broken_callback, broken_callback)
        await settle()
        task = monitor._task

        assert not task.done()
        assert monitor.status.active
        assert monitor.status.total_checks == 1
        assert monitor.status.successful_builds == 1

        await monitor.perform_check()
        assert monitor.status.total_checks == 2
        await monitor.stop()
        assert not monitor.status.active

    @pytest.mark.asyncio
    async def test_failed_build_notifies_only_when_enabled(self, build_system, test_settings):
        build_system.run_cicd_pipeline.return_value = BuildResult(success=False, errors=["a.ts: bad"])
        results = []
        monitor = CICDMonitor(build_system, MonitorConfig(notify_on_error=False), settings=test_settings)
        monitor.start(lambda: {"a.ts": "x"}, on_result=results.append)
        await settle()
        await monitor.stop()
        assert monitor.status.failed_builds == 1
        assert results == []

    @pytest.mark.asyncio
    async def test_update_config_restarts(self, build_system, test_settings):
        monitor = CICDMonitor(build_system, settings=test_settings)
        monitor.start(lambda: {"a.ts": "x"})
        await settle()
        await monitor.update_config(check_interval=5.0)
        await settle()
        assert monitor.status.active
        assert monitor.config.enabled
        assert monitor.config.check_interval == 5.0
        assert monitor.status.total_checks == 2
        await monitor.stop()

    @pytest.mark.asyncio
    async def test_status_is_a_copy(self, build_system, test_settings):
        monitor = CICDMonitor(build_system, settings=test_settings)
        monitor.status.total_checks = 99
        assert monitor.status.total_checks == 0
        assert await monitor.manual_check() is None
