"""Tests for the orchestrator, its control token, file tree and terminal log."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from brain import InMemoryKnowledgeBackend, KnowledgeStore
from contracts import EntryType, InterviewAnswers, LogLevel, PipelineStage
from embeddings import EmbeddingGenerator
from errors import PipelineCancelledError
from fakes import FakeProvider
from orchestrator import (
    CONCEPT_PATH,
    DATABASE_PATH,
    DESIGN_PATH,
    MARKETING_PATH,
    FileTree,
    Orchestrator,
    PipelineControl,
    TerminalLog,
    build_orchestrator,
)


APP_TSX = (
    "import { useState } from 'react';\n"
    "export default function App() {\n"
    "  const [items] = useState([]);\n"
    "  return <main className=\"bg-[#020408]\">{items.length}</main>;\n"
    "}\n"
)
MAIN_TSX = "import App from './App';\nexport { App };\n"

CONCEPT_MARKDOWN = """# Business Concept
## Business Summary
A todo app for small teams
## Target Audience
Small teams
## Features
- Tasks
- Labels
## Tech Stack
- React 18
- Supabase
"""

SCHEMA = {
    "tables": [{"name": "tasks", "columns": [{"name": "id", "type": "uuid"}]}],
    "migrations": ["CREATE TABLE tasks (id uuid primary key);"],
}


def scripted_replies(**overrides):
    """Responder keyed on a phrase each agent prompt contains."""
    replies = {
        "You are the Prompt Expert": json.dumps({
            "intent": "Team task tracking",
            "missingDetails": [],
            "designRequirements": ["Dark"],
            "technicalRequirements": ["Supabase"],
            "optimizedPrompt": "Build a team todo app with Supabase persistence",
        }),
        "You are the Chief Product Officer": CONCEPT_MARKDOWN,
        "Create a marketing strategy for": "# Marketing\n\nLaunch on Product Hunt",
        "Create a complete design system for": "no design today",
        "Create optimized image prompts": "[]",
        "Create a detailed Supabase database schema": json.dumps(SCHEMA),
        "Implement the app": json.dumps([
            {"path": "src/App.tsx", "content": APP_TSX},
            {"path": "src/main.tsx", "content": MAIN_TSX},
        ]),
        "Review this code": '{"issues": [], "score": 95, "passed": true}',
        "Analyze this code for errors": '{"errors": [], "warnings": [], "suggestions": []}',
    }
    replies.update(overrides)

    def respond(system, user):
        for marker, reply in replies.items():
            if marker in user:
                return reply(user) if callable(reply) else reply
        return "{}"

    return respond


@pytest.fixture
def store(test_settings):
    return KnowledgeStore(
        backend=InMemoryKnowledgeBackend(),
        embeddings=EmbeddingGenerator(dimension=8),
        settings=test_settings,
    )


@pytest.fixture
def make_orchestrator(make_gateway, store, test_settings):
    def factory(provider, **kwargs):
        return Orchestrator(make_gateway(provider), kwargs.pop("store", store), settings=test_settings, **kwargs)

    return factory


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


class TestOrchestrate:
    """End-to-end runs with a scripted provider."""

    @pytest.mark.asyncio
    async def test_no_credentials(self, test_settings):
        orchestrator = build_orchestrator(test_settings)
        result = await orchestrator.orchestrate("Build a simple todo app")

        assert result.success is False
        assert result.stage == PipelineStage.FAILED
        assert result.failed_stage == PipelineStage.OPTIMIZING
        assert "No available model" in result.error
        assert not any(path.startswith("brain/") for path in result.files)
        assert result.logs[-1].level == LogLevel.ERROR
        assert orchestrator.stage == PipelineStage.FAILED

    @pytest.mark.asyncio
    async def test_happy_path(self, make_orchestrator):
        provider = FakeProvider(replies=scripted_replies())
        orchestrator = make_orchestrator(provider)
        streamed = []

        result = await orchestrator.orchestrate("Build a simple todo app", on_log=streamed.append)

        assert result.success, result.error
        assert result.stage == PipelineStage.SUCCESS
        assert set(result.files) == {
            CONCEPT_PATH,
            MARKETING_PATH,
            DESIGN_PATH,
            DATABASE_PATH,
            "src/App.tsx",
            "src/main.tsx",
        }
        assert result.generated_paths == ["src/App.tsx", "src/main.tsx"]
        assert result.concept.summary == "A todo app for small teams"
        assert result.concept.marketing_strategy.startswith("# Marketing")
        assert json.loads(result.files[DESIGN_PATH])["theme"] == "NeXify Dark Premium"
        assert "## tasks" in result.files[DATABASE_PATH]
        assert result.build_result.success
        assert result.build_result.attempts == 1
        assert [e.message for e in streamed] == [e.message for e in result.logs]
        assert orchestrator.stage == PipelineStage.SUCCESS

    @pytest.mark.asyncio
    async def test_existing_files_and_answers_reach_the_prompt(self, make_orchestrator):
        provider = FakeProvider(replies=scripted_replies())
        orchestrator = make_orchestrator(provider)
        answers = InterviewAnswers(design_style="Minimal", colors=["#112233"])

        result = await orchestrator.orchestrate(
            "Build a simple todo app",
            interview_answers=answers,
            files={"src/legacy.ts": "export const legacy = 1;"},
        )

        assert result.success, result.error
        first_prompt = provider.calls[0]["user"]
        assert "Design style: Minimal" in first_prompt
        assert "Color scheme: #112233" in first_prompt
        assert "Existing files: src/legacy.ts" in first_prompt
        assert result.files["src/legacy.ts"] == "export const legacy = 1;"

    @pytest.mark.asyncio
    async def test_brain_context_is_prepended(self, make_orchestrator):
        provider = FakeProvider(replies=scripted_replies())
        store = MagicMock()
        store.relevant_context = AsyncMock(return_value="[CONCEPT] Earlier todo concept\nSource: architect")
        orchestrator = make_orchestrator(provider, store=store)

        await orchestrator.orchestrate("Add labels")

        assert "Relevant project knowledge:" in provider.calls[0]["user"]
        assert "[CONCEPT] Earlier todo concept" in provider.calls[0]["user"]

    @pytest.mark.asyncio
    async def test_persistence_only_for_real_projects(self, make_orchestrator, store):
        orchestrator = make_orchestrator(FakeProvider(replies=scripted_replies()))

        await orchestrator.orchestrate("Build a simple todo app")
        assert await store.load_entries("default") == []

        result = await orchestrator.orchestrate("Build a simple todo app", project_id="todo-app")
        assert result.success, result.error
        entries = await store.load_entries("todo-app")
        assert {e.entry_type for e in entries} == {
            EntryType.CONCEPT,
            EntryType.MARKETING,
            EntryType.DESIGN,
            EntryType.DOCUMENTATION,
            EntryType.DECISION,
        }
        assert all(e.source != "unknown" for e in entries)
        assert all(e.has_placeholder_embedding for e in entries)
        decisions = [e for e in entries if e.entry_type == EntryType.DECISION]
        assert {e.metadata["agent"] for e in decisions} == {"architect", "designer"}

    @pytest.mark.asyncio
    async def test_failed_review_gets_a_fix_pass(self, make_orchestrator):
        review = json.dumps({"issues": [{"severity": "high", "message": "Missing key prop"}], "passed": True})
        provider = FakeProvider(replies=scripted_replies(**{
            "Review this code": review,
            "Fix these issues in the code": lambda user: f"```tsx\n{APP_TSX}// reviewed\n```",
        }))
        result = await make_orchestrator(provider).orchestrate("Build a simple todo app")

        assert result.success, result.error
        assert result.files["src/App.tsx"].endswith("// reviewed")
        assert result.files["src/main.tsx"].endswith("// reviewed")
        assert any(e.level == LogLevel.WARNING and e.source == "QA" for e in result.logs)

    @pytest.mark.asyncio
    async def test_review_sees_project_files_and_design(self, make_orchestrator):
        provider = FakeProvider(replies=scripted_replies())
        await make_orchestrator(provider).orchestrate("Build a simple todo app")

        review_prompts = [c["user"] for c in provider.calls if "Review this code" in c["user"]]
        assert len(review_prompts) == 2
        for prompt in review_prompts:
            assert "- src/App.tsx" in prompt
            assert f"- {CONCEPT_PATH}" in prompt
            assert "NeXify Dark Premium" in prompt

    @pytest.mark.asyncio
    async def test_build_failure_keeps_files(self, make_orchestrator):
        broken = "export default function App() { return <div>"
        provider = FakeProvider(replies=scripted_replies(**{
            "Implement the app": json.dumps([{"path": "src/App.tsx", "content": broken}]),
            "Fix these issues in the code": broken,
        }))
        result = await make_orchestrator(provider).orchestrate("Build a simple todo app")

        assert result.success is False
        assert result.failed_stage == PipelineStage.BUILDING
        assert result.build_result.attempts == 1
        assert "unequal braces" in result.build_result.errors[0]
        assert result.files["src/App.tsx"] == broken
        assert CONCEPT_PATH in result.files

    @pytest.mark.asyncio
    async def test_unparseable_coder_output(self, make_orchestrator):
        provider = FakeProvider(replies=scripted_replies(**{
            "Implement the app": "I could not do it",
            "Fix these issues in the code": "still nothing",
        }))
        result = await make_orchestrator(provider).orchestrate("Build a simple todo app")

        assert result.success is False
        assert result.failed_stage == PipelineStage.CODING
        assert DATABASE_PATH in result.files
        assert result.generated_paths == []


class TestControl:
    """Pause, resume and abort between stages."""

    @pytest.mark.asyncio
    async def test_abort_before_start(self, make_orchestrator):
        provider = FakeProvider(replies=scripted_replies())
        control = PipelineControl()
        control.abort()

        result = await make_orchestrator(provider).orchestrate("todo", control=control)
        assert not result.success
        assert result.failed_stage == PipelineStage.IDLE
        assert result.message == "Cancelled"
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_abort_between_stages_keeps_artifacts(self, make_orchestrator):
        control = PipelineControl()

        def concept_then_abort(user):
            control.abort()
            return CONCEPT_MARKDOWN

        provider = FakeProvider(replies=scripted_replies(**{"You are the Chief Product Officer": concept_then_abort}))
        result = await make_orchestrator(provider).orchestrate("todo", control=control)

        assert not result.success
        assert result.failed_stage == PipelineStage.PLANNING_CONCEPT
        assert CONCEPT_PATH in result.files
        assert MARKETING_PATH not in result.files
        assert result.concept is not None

    @pytest.mark.asyncio
    async def test_pause_and_resume(self, make_orchestrator):
        provider = FakeProvider(replies=scripted_replies())
        orchestrator = make_orchestrator(provider)
        control = PipelineControl()
        control.pause()

        task = asyncio.create_task(orchestrator.orchestrate("todo", control=control))
        await settle()
        assert control.is_paused
        assert provider.calls == []
        assert not task.done()

        control.resume()
        result = await asyncio.wait_for(task, timeout=5)
        assert result.success, result.error

    @pytest.mark.asyncio
    async def test_abort_wakes_paused_checkpoint(self):
        control = PipelineControl()
        control.pause()
        waiter = asyncio.create_task(control.checkpoint())
        await settle()
        control.abort()
        with pytest.raises(PipelineCancelledError):
            await asyncio.wait_for(waiter, timeout=1)
        assert control.is_aborted
        control.pause()
        assert not control.is_paused


class TestFileTree:
    """Copy-on-write tree updates."""

    def test_updates_return_new_trees(self):
        tree = FileTree.from_files({"src/App.tsx": "a"})
        updated = tree.with_file("src/components/Card.tsx", "card")

        assert "src/components/Card.tsx" not in tree
        assert updated.read("src/components/Card.tsx") == "card"
        assert updated.root.child("src") is not tree.root.child("src")
        assert len(tree) == 1
        assert len(updated) == 2

    def test_overwrite_and_listing_order(self):
        tree = FileTree.from_files({"b.ts": "1", "a/x.ts": "2"}).with_file("b.ts", "3")
        assert tree.files() == {"a/x.ts": "2", "b.ts": "3"}
        assert tree.paths() == ["a/x.ts", "b.ts"]
        assert tree.get("a").is_directory

    def test_without(self):
        tree = FileTree.from_files({"a/x.ts": "1", "a/y.ts": "2"})
        assert tree.without("a/x.ts").paths() == ["a/y.ts"]
        assert tree.without("missing/file.ts").paths() == tree.paths()
        assert len(tree) == 2

    def test_invalid_path(self):
        with pytest.raises(ValueError):
            FileTree().with_file("//", "x")
        assert FileTree().read("nope.ts") is None

    @pytest.mark.parametrize("path", ["../escaped.txt", "src/../../x.ts", ".."])
    def test_parent_segments_are_rejected(self, path):
        with pytest.raises(ValueError):
            FileTree().with_file(path, "x")

    def test_dot_segments_are_dropped(self):
        assert FileTree().with_file("./src/./a.ts", "x").paths() == ["src/a.ts"]


class TestTerminalLog:
    """Log entries are recorded, streamed and isolated from subscriber errors."""

    def test_entries_and_subscribers(self):
        log = TerminalLog()
        seen = []

        def broken(entry):
            raise RuntimeError("subscriber bug")

        log.subscribe(broken)
        log.subscribe(seen.append)
        log.info("Architect", "start")
        log.error("Build", "failed")

        assert len(log) == 2
        assert [e.level for e in log.entries] == [LogLevel.INFO, LogLevel.ERROR]
        assert [e.message for e in seen] == ["start", "failed"]
        log.entries.clear()
        assert len(log) == 2
