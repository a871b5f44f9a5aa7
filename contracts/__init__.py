"""Pydantic contracts for the BuildMind pipeline.

All agent-to-agent handoffs are typed through these contracts.
"""

from .model_contracts import (
    TaskType,
    Complexity,
    ModelConfig,
    ModelResponse,
)

from .knowledge_contracts import (
    EntryType,
    SOURCED_ENTRY_TYPES,
    KnowledgeEntry,
)

from .concept_contracts import (
    PromptContext,
    PromptAnalysis,
    DesignRuleCheck,
    ReferenceAnalysis,
    BusinessConcept,
    Cardinality,
    Column,
    Relationship,
    Table,
    DatabaseSchema,
)

from .design_contracts import (
    ColorPalette,
    FontSizes,
    Typography,
    Spacing,
    BorderRadius,
    DesignSystem,
    ImagePrompt,
    GeneratedImage,
    SavedAsset,
)

from .review_contracts import (
    IssueType,
    Severity,
    BLOCKING_SEVERITIES,
    CodeIssue,
    CodeReview,
    ReviewContext,
    DesignCompliance,
    FileFix,
    BuildFixResult,
    GeneratedFile,
    compute_score,
    compute_passed,
)

from .build_contracts import (
    CodeQuality,
    BuildMetrics,
    StaticAnalysis,
    AIAnalysis,
    BuildResult,
    AutoFixResult,
    BuildErrorKind,
    BuildError,
    MonitorConfig,
    MonitorStatus,
)

from .pipeline_contracts import (
    PipelineStage,
    InterviewAnswers,
    LogLevel,
    LogEntry,
    PipelineResult,
)

__all__ = [
    # Model gateway
    "TaskType",
    "Complexity",
    "ModelConfig",
    "ModelResponse",
    # Knowledge store
    "EntryType",
    "SOURCED_ENTRY_TYPES",
    "KnowledgeEntry",
    # Concept
    "PromptContext",
    "PromptAnalysis",
    "DesignRuleCheck",
    "ReferenceAnalysis",
    "BusinessConcept",
    "Cardinality",
    "Column",
    "Relationship",
    "Table",
    "DatabaseSchema",
    # Design
    "ColorPalette",
    "FontSizes",
    "Typography",
    "Spacing",
    "BorderRadius",
    "DesignSystem",
    "ImagePrompt",
    "GeneratedImage",
    "SavedAsset",
    # Review
    "IssueType",
    "Severity",
    "BLOCKING_SEVERITIES",
    "CodeIssue",
    "CodeReview",
    "ReviewContext",
    "DesignCompliance",
    "FileFix",
    "BuildFixResult",
    "GeneratedFile",
    "compute_score",
    "compute_passed",
    # Build
    "CodeQuality",
    "BuildMetrics",
    "StaticAnalysis",
    "AIAnalysis",
    "BuildResult",
    "AutoFixResult",
    "BuildErrorKind",
    "BuildError",
    "MonitorConfig",
    "MonitorStatus",
    # Pipeline
    "PipelineStage",
    "InterviewAnswers",
    "LogLevel",
    "LogEntry",
    "PipelineResult",
]
