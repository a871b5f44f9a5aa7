"""Build-analyze-fix loop contracts."""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from enum import Enum


class CodeQuality(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class BuildMetrics(BaseModel):
    """Deterministic metrics over a project's file contents."""
    total_files: int = Field(default=0)
    total_lines: int = Field(default=0)
    complexity: int = Field(default=0, description="Average heuristic complexity per file")
    security_issues: int = Field(default=0, description="Files using eval or raw HTML injection")
    code_quality: CodeQuality = Field(default=CodeQuality.EXCELLENT)


class StaticAnalysis(BaseModel):
    """Findings as "path: message" strings."""
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class AIAnalysis(BaseModel):
    """Model-assisted findings for one file."""
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class BuildResult(BaseModel):
    """Outcome of one build attempt, or of the whole retry loop."""
    success: bool = Field(...)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    fixed: bool = Field(default=False, description="True if auto-fix changed files before success")
    build_log: str = Field(default="")
    fixed_files: Optional[Dict[str, str]] = Field(None)
    metrics: Optional[BuildMetrics] = Field(None)
    optimizations: Optional[List[str]] = Field(None)
    attempts: int = Field(default=1, description="Analyze cycles used")


class AutoFixResult(BaseModel):
    fixed: bool = Field(...)
    fixed_files: Dict[str, str] = Field(default_factory=dict)
    remaining_errors: List[str] = Field(default_factory=list)
    optimizations: List[str] = Field(default_factory=list)


class BuildErrorKind(str, Enum):
    SYNTAX = "syntax"
    TYPE = "type"
    IMPORT = "import"
    RUNTIME = "runtime"
    OTHER = "other"


class BuildError(BaseModel):
    """One error parsed from an external build log."""
    file: str = Field(...)
    line: Optional[int] = Field(None)
    message: str = Field(...)
    type: BuildErrorKind = Field(default=BuildErrorKind.OTHER)


class MonitorConfig(BaseModel):
    enabled: bool = Field(default=False)
    check_interval: float = Field(default=60.0, gt=0, description="Seconds between checks")
    auto_fix: bool = Field(default=True)
    notify_on_error: bool = Field(default=True)


class MonitorStatus(BaseModel):
    active: bool = Field(default=False)
    last_check: Optional[float] = Field(None, description="Epoch seconds of the last check")
    last_result: Optional[BuildResult] = Field(None)
    total_checks: int = Field(default=0)
    successful_builds: int = Field(default=0)
    failed_builds: int = Field(default=0)
