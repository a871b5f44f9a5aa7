"""DocuBot: records agent decisions in the brain as markdown."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from brain import KnowledgeStore
from contracts import BusinessConcept, CodeIssue, DesignSystem, GeneratedFile

logger = logging.getLogger(__name__)


def render_decision(
    agent: str,
    decision: str,
    context: Optional[Dict[str, Any]] = None,
    reasoning: Optional[str] = None,
    timestamp: Optional[str] = None,
) -> str:
    timestamp = timestamp or datetime.now(timezone.utc).isoformat()
    doc = f"# Decision documented by {agent}\n\n"
    doc += f"**Timestamp:** {timestamp}\n\n"
    doc += f"**Decision:**\n{decision}\n\n"
    if reasoning:
        doc += f"**Reasoning:**\n{reasoning}\n\n"
    if context:
        doc += f"**Context:**\n```json\n{json.dumps(context, indent=2, default=str)}\n```\n\n"
    return doc


class DocuBot:
    """Pure recorder; failures are logged and never propagate."""

    def __init__(self, store: KnowledgeStore):
        self.store = store

    async def document_decision(
        self,
        project_id: str,
        agent: str,
        decision: str,
        context: Optional[Dict[str, Any]] = None,
        reasoning: Optional[str] = None,
    ) -> None:
        try:
            documentation = render_decision(agent, decision, context, reasoning)
            await self.store.save_decision(project_id, documentation, agent, context)
        except Exception as e:
            logger.warning("Failed to document decision from %s: %s", agent, e)

    async def document_code_generation(
        self,
        project_id: str,
        files: Sequence[GeneratedFile],
        design_system: Optional[DesignSystem] = None,
    ) -> None:
        paths = [f.path for f in files]
        decision = f"Code generation complete. {len(paths)} files created:\n" + "\n".join(f"- {p}" for p in paths)
        await self.document_decision(project_id, "architect", decision, {
            "filesGenerated": len(paths),
            "filePaths": paths,
            "designSystem": "used" if design_system else "not used",
        })

    async def document_design_decision(self, project_id: str, design_system: DesignSystem, rationale: str) -> None:
        decision = f"Design system created: {design_system.theme}"
        await self.document_decision(project_id, "designer", decision, {
            "designSystem": design_system.to_json_dict(),
            "rationale": rationale,
        })

    async def document_business_concept(self, project_id: str, concept: BusinessConcept) -> None:
        decision = (
            "Business concept created:\n"
            f"Summary: {concept.summary}\n"
            f"Features: {', '.join(concept.features)}\n"
            f"Target audience: {concept.target_audience}"
        )
        await self.document_decision(project_id, "architect", decision, {"concept": concept.model_dump()})

    async def document_qa_findings(
        self,
        project_id: str,
        file_path: str,
        issues: List[CodeIssue],
        fixes: List[str],
    ) -> None:
        decision = f"QA review of {file_path}: {len(issues)} issues found, {len(fixes)} fixes applied"
        await self.document_decision(project_id, "qa_agent", decision, {
            "filePath": file_path,
            "issuesCount": len(issues),
            "fixesCount": len(fixes),
            "issues": [f"{i.severity.value}: {i.message}" for i in issues],
            "fixes": fixes,
        })
