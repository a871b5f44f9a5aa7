"""QA review and code generation contracts."""

from pydantic import BaseModel, Field
from typing import List, Optional
from enum import Enum

from .design_contracts import DesignSystem


class IssueType(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


BLOCKING_SEVERITIES = {Severity.CRITICAL, Severity.HIGH}


class CodeIssue(BaseModel):
    """A single finding from review or build analysis."""
    type: IssueType = Field(default=IssueType.WARNING)
    severity: Severity = Field(default=Severity.MEDIUM)
    file: str = Field(default="")
    line: Optional[int] = Field(None)
    message: str = Field(...)
    suggestion: Optional[str] = Field(None)


def compute_score(issues: List[CodeIssue]) -> int:
    """100 - 30*critical - 15*high - 5*total, floored at 0."""
    critical = sum(1 for i in issues if i.severity == Severity.CRITICAL)
    high = sum(1 for i in issues if i.severity == Severity.HIGH)
    return max(0, 100 - critical * 30 - high * 15 - len(issues) * 5)


def compute_passed(issues: List[CodeIssue]) -> bool:
    """True iff no issue is critical or high."""
    return not any(i.severity in BLOCKING_SEVERITIES for i in issues)


class CodeReview(BaseModel):
    """Review of one file."""
    issues: List[CodeIssue] = Field(default_factory=list)
    score: int = Field(default=100, ge=0, le=100)
    passed: bool = Field(default=True)
    suggestions: List[str] = Field(default_factory=list)

    def recompute(self) -> "CodeReview":
        """Return a copy whose `passed` is derived from the issues."""
        return self.model_copy(update={"passed": compute_passed(self.issues)})

    @property
    def blocking_issues(self) -> List[CodeIssue]:
        return [i for i in self.issues if i.severity in BLOCKING_SEVERITIES]


class ReviewContext(BaseModel):
    """Optional project context handed to a file review."""
    project_files: List[str] = Field(default_factory=list)
    design_system: Optional[DesignSystem] = Field(None)


class DesignCompliance(BaseModel):
    compliant: bool = Field(default=True)
    violations: List[str] = Field(default_factory=list)


class FileFix(BaseModel):
    """Replacement content for one file proposed by the build fixer."""
    file: str = Field(...)
    changes: str = Field(..., description="Full new file content")


class BuildFixResult(BaseModel):
    """Outcome of asking the QA agent to repair a build log."""
    fixed: bool = Field(default=False)
    fixes: List[FileFix] = Field(default_factory=list)
    remaining_errors: List[str] = Field(default_factory=list, alias="remainingErrors")

    model_config = {"populate_by_name": True}


class GeneratedFile(BaseModel):
    """One file emitted by the coder."""
    path: str = Field(..., min_length=1)
    content: str = Field(default="")
