"""Coder agent: turns concept, design and prompt into project files."""

import logging
from typing import List, Optional, Sequence

from contracts import (
    BusinessConcept,
    CodeIssue,
    Complexity,
    DesignSystem,
    GeneratedFile,
    IssueType,
    Severity,
    TaskType,
)
from errors import CoderOutputError
from parsing import extract_json_array, safe_parse_json, safe_relative_path

from .base_agent import BaseAgent
from .qa_agent import QAAgent

logger = logging.getLogger(__name__)


REPAIR_FILE_NAME = "generated_files.json"


def parse_generated_files(text: str) -> Optional[List[GeneratedFile]]:
    """Parse a JSON array of {path, content}; None when nothing usable is found."""
    array_string = extract_json_array(text or "")
    if array_string is None:
        return None
    parsed = safe_parse_json(array_string, None)
    if not isinstance(parsed, list):
        return None

    files = []
    for item in parsed:
        if not isinstance(item, dict):
            continue
        content = item.get("content")
        if not isinstance(content, str):
            continue
        path = safe_relative_path(item.get("path"))
        if path is None:
            logger.warning("Dropping generated file with unsafe path: %r", item.get("path"))
            continue
        files.append(GeneratedFile(path=path, content=content))
    return files or None


class CoderAgent(BaseAgent):
    """Lead coder: implements the planned app as a set of files."""

    ROLE = "coder"
    SYSTEM_INSTRUCTION = (
        "You are a Senior Full-Stack Developer. Write production-ready, complete code. "
        "Respond ONLY with a JSON array."
    )

    def __init__(self, gateway, qa_agent: Optional[QAAgent] = None, existing_files_in_prompt: int = 20):
        super().__init__(gateway)
        self.qa_agent = qa_agent or QAAgent(gateway)
        self.existing_files_in_prompt = existing_files_in_prompt

    def build_prompt(
        self,
        concept: BusinessConcept,
        design_system: DesignSystem,
        existing_paths: Sequence[str],
        optimized_prompt: str,
    ) -> str:
        colors = design_system.colors
        existing = ", ".join(list(existing_paths)[: self.existing_files_in_prompt]) or "(none)"
        return f"""You are a Senior Full-Stack Developer. Implement the app:

Concept: {concept.summary}
Features: {', '.join(concept.features)}
Design: {colors.background} background, {colors.primary} primary, glassmorphism
Existing files: {existing}

Task:
{optimized_prompt}

Rules:
- React 18 with TypeScript and TailwindCSS
- Icons only from 'lucide-react'
- Every component has a default export
- Supabase via import.meta.env.VITE_SUPABASE_URL and VITE_SUPABASE_ANON_KEY
- No placeholders like "// ...rest of code"; every file must be complete

Respond with a JSON array of files:
[
  {{
    "path": "src/components/Example.tsx",
    "content": "full file content"
  }}
]"""

    async def generate_files(
        self,
        concept: BusinessConcept,
        design_system: DesignSystem,
        existing_paths: Sequence[str],
        optimized_prompt: str,
    ) -> List[GeneratedFile]:
        """Generate the project files.

        Raises:
            NoAvailableModelError: no coding model is configured
            CoderOutputError: the output is not a usable file list, even after repair
        """
        prompt = self.build_prompt(concept, design_system, existing_paths, optimized_prompt)
        response = await self._complete(TaskType.CODING, Complexity.HIGH, prompt, purpose="code generation")

        files = parse_generated_files(response.content)
        if files is not None:
            return files

        logger.warning("Coder output is not a valid file array, attempting repair")
        repaired = await self.qa_agent.fix_code(response.content, REPAIR_FILE_NAME, [
            CodeIssue(
                type=IssueType.ERROR,
                severity=Severity.HIGH,
                file=REPAIR_FILE_NAME,
                message="Output must be a valid JSON array of objects with 'path' and 'content' strings",
            )
        ])
        files = parse_generated_files(repaired)
        if files is None:
            raise CoderOutputError("Coder output could not be parsed as a file list")
        return files
