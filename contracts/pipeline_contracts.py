"""Orchestrator contracts: stages, interview answers, log entries and the final result."""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .build_contracts import BuildResult
from .concept_contracts import BusinessConcept, DatabaseSchema
from .design_contracts import DesignSystem


class PipelineStage(str, Enum):
    """Orchestrator states, in execution order."""
    IDLE = "idle"
    OPTIMIZING = "optimizing"
    PLANNING_CONCEPT = "planning_concept"
    PLANNING_MARKETING = "planning_marketing"
    DESIGNING = "designing"
    PLANNING_SCHEMA = "planning_schema"
    CODING = "coding"
    REVIEWING = "reviewing"
    BUILDING = "building"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineStage.SUCCESS, PipelineStage.FAILED)


class InterviewAnswers(BaseModel):
    """Optional answers collected from the user before the run."""
    design_style: Optional[str] = Field(None)
    target_audience: Optional[str] = Field(None)
    colors: List[str] = Field(default_factory=list)
    reference_url: Optional[str] = Field(None)
    features: List[str] = Field(default_factory=list)

    def to_prompt_lines(self) -> List[str]:
        lines = []
        if self.design_style:
            lines.append(f"Design style: {self.design_style}")
        if self.target_audience:
            lines.append(f"Target audience: {self.target_audience}")
        if self.colors:
            lines.append(f"Preferred colors: {', '.join(self.colors)}")
        if self.reference_url:
            lines.append(f"Reference website: {self.reference_url}")
        if self.features:
            lines.append(f"Must-have features: {', '.join(self.features)}")
        return lines


class LogLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class LogEntry(BaseModel):
    """One line of the user-visible terminal log."""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = Field(...)
    message: str = Field(...)
    level: LogLevel = Field(default=LogLevel.INFO)


class PipelineResult(BaseModel):
    """Terminal outcome of one orchestration."""
    success: bool = Field(...)
    stage: PipelineStage = Field(..., description="SUCCESS or FAILED")
    message: str = Field(...)
    files: Dict[str, str] = Field(default_factory=dict, description="Project files after the run")
    generated_paths: List[str] = Field(default_factory=list)
    concept: Optional[BusinessConcept] = Field(None)
    design_system: Optional[DesignSystem] = Field(None)
    database_schema: Optional[DatabaseSchema] = Field(None)
    build_result: Optional[BuildResult] = Field(None)
    logs: List[LogEntry] = Field(default_factory=list)
    error: Optional[str] = Field(None)
    failed_stage: Optional[PipelineStage] = Field(None, description="Stage running when the run failed")
