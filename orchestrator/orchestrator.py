"""Orchestrator: runs the agents and the build loop for one user request.

Stages run strictly in order:
optimizing -> planning_concept -> planning_marketing -> designing ->
planning_schema -> coding -> reviewing -> building.

Every stage writes its output into the project file tree (brain/*.md,
brain/design.json), persists it to the brain when a real project id is in use
and reports to the terminal log. Any exception ends the run in the failed
state; artifacts written before the failure are kept in the result.
"""

import asyncio
import json
import logging
from typing import Callable, Dict, List, Optional

from agents import (
    ArchitectAgent,
    AssetStorage,
    CoderAgent,
    DesignerAgent,
    DocuBot,
    ImageGenerator,
    PromptExpert,
    QAAgent,
    render_concept_markdown,
    render_schema_markdown,
)
from brain import InMemoryKnowledgeBackend, KnowledgeStore, SupabaseKnowledgeBackend, has_context
from cicd import BuildCache, BuildSystem
from contracts import (
    CodeReview,
    EntryType,
    InterviewAnswers,
    LogEntry,
    PipelineResult,
    PipelineStage,
    PromptContext,
    ReviewContext,
)
from embeddings import EmbeddingGenerator
from errors import NoAvailableModelError, PipelineCancelledError
from providers import ModelGateway

from .control import PipelineControl
from .file_tree import FileTree
from .terminal_log import TerminalLog

logger = logging.getLogger(__name__)


CONCEPT_PATH = "brain/concept.md"
MARKETING_PATH = "brain/marketing.md"
DESIGN_PATH = "brain/design.json"
DATABASE_PATH = "brain/database.md"
BRAIN_PREFIX = "brain/"

CREDENTIAL_HINT = "Check your provider API keys and configuration."


class Orchestrator:
    """Sequences the agents for one request at a time per project."""

    def __init__(
        self,
        gateway: ModelGateway,
        store: KnowledgeStore,
        prompt_expert: Optional[PromptExpert] = None,
        architect: Optional[ArchitectAgent] = None,
        designer: Optional[DesignerAgent] = None,
        coder: Optional[CoderAgent] = None,
        qa_agent: Optional[QAAgent] = None,
        build_system: Optional[BuildSystem] = None,
        docubot: Optional[DocuBot] = None,
        settings=None,
    ):
        if settings is None:
            from config import settings
        self.settings = settings
        self.gateway = gateway
        self.store = store
        self.qa_agent = qa_agent or QAAgent(gateway)
        self.prompt_expert = prompt_expert or PromptExpert(gateway)
        self.architect = architect or ArchitectAgent(gateway)
        self.designer = designer or DesignerAgent(gateway)
        self.coder = coder or CoderAgent(
            gateway, self.qa_agent, existing_files_in_prompt=settings.existing_files_in_prompt
        )
        self.build_system = build_system or BuildSystem(gateway, self.qa_agent, settings=settings)
        self.docubot = docubot or DocuBot(store)
        self.stage = PipelineStage.IDLE

    def _persisting(self, project_id: str) -> bool:
        return project_id != self.settings.default_project_id

    async def _enter(self, stage: PipelineStage, control: PipelineControl) -> None:
        await control.checkpoint()
        self.stage = stage

    def _optimizer_input(self, user_input: str, answers: Optional[InterviewAnswers], context: str) -> str:
        parts = []
        if has_context(context):
            parts += ["Relevant project knowledge:", context, "", "User request:"]
        parts.append(user_input)
        if answers:
            lines = answers.to_prompt_lines()
            if lines:
                parts += ["", "Interview answers:", *lines]
        return "\n".join(parts)

    async def _review_files(
        self,
        files: Dict[str, str],
        project_id: str,
        log: TerminalLog,
        context: Optional[ReviewContext] = None,
    ) -> Dict[str, str]:
        """Review every file with bounded concurrency; failed reviews get one fix pass."""
        semaphore = asyncio.Semaphore(max(1, self.settings.review_concurrency))
        persisting = self._persisting(project_id)

        async def review_one(path: str, content: str) -> Optional[str]:
            async with semaphore:
                review: CodeReview = await self.qa_agent.review(content, path, context)
                fixes: List[str] = []
                fixed_content = None
                if not review.passed:
                    log.warning("QA", f"{path}: score {review.score}, {len(review.blocking_issues)} blocking issues")
                    fixed_content = await self.qa_agent.fix_code(content, path, review.blocking_issues)
                    if fixed_content != content:
                        fixes.append(f"{path}: applied fix for {len(review.blocking_issues)} issues")
                    else:
                        fixed_content = None
                if persisting and review.issues:
                    await self.docubot.document_qa_findings(project_id, path, review.issues, fixes)
                return fixed_content

        paths = list(files)
        results = await asyncio.gather(*(review_one(p, files[p]) for p in paths))
        return {path: fixed for path, fixed in zip(paths, results) if fixed is not None}

    async def orchestrate(
        self,
        user_input: str,
        interview_answers: Optional[InterviewAnswers] = None,
        project_id: Optional[str] = None,
        files: Optional[Dict[str, str]] = None,
        control: Optional[PipelineControl] = None,
        on_log: Optional[Callable[[LogEntry], None]] = None,
    ) -> PipelineResult:
        """Run the whole pipeline. Always returns; failures come back as a failed result."""
        project_id = project_id or self.settings.default_project_id
        control = control or PipelineControl()
        log = TerminalLog()
        if on_log is not None:
            log.subscribe(on_log)

        persisting = self._persisting(project_id)
        tree = FileTree.from_files(files or {})
        generated_paths: List[str] = []
        concept = design = schema = build_result = None
        self.stage = PipelineStage.IDLE

        try:
            # 1. Prompt optimization
            await self._enter(PipelineStage.OPTIMIZING, control)
            log.info("Prompt Expert", "Analyzing request...")
            context = await self.store.relevant_context(project_id, user_input)
            if has_context(context):
                log.info("Brain", "Relevant project knowledge found")
            answers = interview_answers or InterviewAnswers()
            analysis = await self.prompt_expert.optimize(
                self._optimizer_input(user_input, interview_answers, context),
                PromptContext(
                    existing_files=tree.paths(),
                    color_scheme=", ".join(answers.colors) or None,
                    reference_url=answers.reference_url,
                ),
            )
            optimized_prompt = analysis.optimized_prompt
            log.success("Prompt Expert", f"Intent: {analysis.intent}")

            # 2. Business concept
            await self._enter(PipelineStage.PLANNING_CONCEPT, control)
            log.info("Architect", "Creating business concept...")
            concept = await self.architect.create_concept(optimized_prompt)
            concept_markdown = render_concept_markdown(concept)
            tree = tree.with_file(CONCEPT_PATH, concept_markdown)
            if persisting:
                await self.store.save_concept(project_id, concept_markdown)
                await self.docubot.document_business_concept(project_id, concept)
            log.success("Architect", f"Concept written to {CONCEPT_PATH} ({len(concept.features)} features)")

            # 3. Marketing
            await self._enter(PipelineStage.PLANNING_MARKETING, control)
            log.info("Architect", "Creating marketing strategy...")
            marketing = await self.architect.create_marketing(concept)
            concept = concept.model_copy(update={"marketing_strategy": marketing})
            tree = tree.with_file(MARKETING_PATH, marketing)
            if persisting:
                await self.store.save_marketing(project_id, marketing)
            log.success("Architect", f"Marketing strategy written to {MARKETING_PATH}")

            # 4. Design
            await self._enter(PipelineStage.DESIGNING, control)
            log.info("Designer", "Creating design system...")
            design = await self.designer.create_design_system(concept)
            design_json = design.to_json_dict()
            tree = tree.with_file(DESIGN_PATH, json.dumps(design_json, indent=2))
            if persisting:
                await self.store.save_design_system(project_id, design_json)
                await self.docubot.document_design_decision(project_id, design, "Generated from business concept")
            image_prompts = await self.designer.generate_image_prompts(design, concept)
            assets = await self.designer.generate_images(image_prompts, project_id)
            log.success("Designer", f"Design system '{design.theme}' ready, {len(assets)} assets stored")

            # 5. Database schema
            await self._enter(PipelineStage.PLANNING_SCHEMA, control)
            log.info("DB Architect", "Designing database schema...")
            schema = await self.architect.create_schema(concept)
            schema_markdown = render_schema_markdown(schema)
            tree = tree.with_file(DATABASE_PATH, schema_markdown)
            if persisting:
                await self.store.save(project_id, schema_markdown, EntryType.DOCUMENTATION, {"source": "architect"})
            log.success("DB Architect", f"{len(schema.tables)} tables written to {DATABASE_PATH}")

            # 6. Code generation
            await self._enter(PipelineStage.CODING, control)
            log.info("Coder", "Generating files...")
            generated = await self.coder.generate_files(concept, design, tree.paths(), optimized_prompt)
            tree = tree.with_files({f.path: f.content for f in generated})
            generated_paths = [f.path for f in generated]
            if persisting:
                await self.docubot.document_code_generation(project_id, generated, design)
            log.success("Coder", f"{len(generated)} files generated")

            # 7. Review
            await self._enter(PipelineStage.REVIEWING, control)
            log.info("QA", f"Reviewing {len(generated_paths)} files...")
            fixed = await self._review_files(
                {p: tree.read(p) or "" for p in generated_paths},
                project_id,
                log,
                ReviewContext(project_files=tree.paths(), design_system=design),
            )
            tree = tree.with_files(fixed)
            log.success("QA", f"Review done, {len(fixed)} files fixed")

            # 8. Build loop
            await self._enter(PipelineStage.BUILDING, control)
            log.info("Build", "Running build-analyze-fix loop...")
            sources = {p: c for p, c in tree.files().items() if not p.startswith(BRAIN_PREFIX)}
            build_result = await self.build_system.run_cicd_pipeline(sources)
            if build_result.fixed_files:
                tree = tree.with_files(build_result.fixed_files)
            for warning in build_result.warnings:
                log.warning("Build", warning)

            if not build_result.success:
                for error in build_result.errors:
                    log.error("Build", error)
                message = f"Build failed with {len(build_result.errors)} errors after {build_result.attempts} attempt(s)"
                log.error("Orchestrator", message)
                failed_stage = self.stage
                self.stage = PipelineStage.FAILED
                return PipelineResult(
                    success=False,
                    stage=PipelineStage.FAILED,
                    message=message,
                    files=tree.files(),
                    generated_paths=generated_paths,
                    concept=concept,
                    design_system=design,
                    database_schema=schema,
                    build_result=build_result,
                    logs=log.entries,
                    error=message,
                    failed_stage=failed_stage,
                )

            log.success("Build", f"Build succeeded after {build_result.attempts} attempt(s)")
            self.stage = PipelineStage.SUCCESS
            message = (
                f"App generated: {len(generated_paths)} files plus "
                f"{CONCEPT_PATH}, {MARKETING_PATH}, {DESIGN_PATH}, {DATABASE_PATH}"
            )
            log.success("Orchestrator", message)
            return PipelineResult(
                success=True,
                stage=PipelineStage.SUCCESS,
                message=message,
                files=tree.files(),
                generated_paths=generated_paths,
                concept=concept,
                design_system=design,
                database_schema=schema,
                build_result=build_result,
                logs=log.entries,
            )

        except PipelineCancelledError as e:
            message = str(e)
            log.warning("Orchestrator", f"Run aborted during {self.stage.value}")
        except NoAvailableModelError as e:
            message = f"{e} {CREDENTIAL_HINT}"
            log.error("Orchestrator", message)
        except Exception as e:
            logger.exception("Pipeline failed during %s", self.stage.value)
            message = f"{e} {CREDENTIAL_HINT}"
            log.error("Orchestrator", f"Critical failure: {e}")

        failed_stage = self.stage
        self.stage = PipelineStage.FAILED
        return PipelineResult(
            success=False,
            stage=PipelineStage.FAILED,
            message=message,
            files=tree.files(),
            generated_paths=generated_paths,
            concept=concept,
            design_system=design,
            database_schema=schema,
            build_result=build_result,
            logs=log.entries,
            error=message,
            failed_stage=failed_stage,
        )


def build_orchestrator(settings=None) -> Orchestrator:
    """Composition root: wire every collaborator from settings."""
    if settings is None:
        from config import settings

    gateway = ModelGateway(settings=settings)

    if settings.supabase_url and settings.supabase_key:
        backend = SupabaseKnowledgeBackend(
            settings.supabase_url,
            settings.supabase_key,
            timeout=settings.supabase_timeout_seconds,
        )
    else:
        backend = InMemoryKnowledgeBackend()
    store = KnowledgeStore(backend=backend, embeddings=EmbeddingGenerator.from_settings(settings), settings=settings)

    qa_agent = QAAgent(gateway)
    designer = DesignerAgent(
        gateway,
        image_generator=ImageGenerator.from_settings(settings),
        asset_storage=AssetStorage(settings.get_asset_path()),
    )
    build_system = BuildSystem(gateway, qa_agent, cache=BuildCache.from_settings(settings), settings=settings)

    return Orchestrator(
        gateway,
        store,
        designer=designer,
        qa_agent=qa_agent,
        build_system=build_system,
        settings=settings,
    )
