"""Orchestrator module for BuildMind pipeline execution control."""

from .control import PipelineControl
from .file_tree import FileNode, FileTree
from .terminal_log import TerminalLog
from .orchestrator import (
    CONCEPT_PATH,
    DATABASE_PATH,
    DESIGN_PATH,
    MARKETING_PATH,
    Orchestrator,
    build_orchestrator,
)

__all__ = [
    "PipelineControl",
    "FileNode",
    "FileTree",
    "TerminalLog",
    "Orchestrator",
    "build_orchestrator",
    "CONCEPT_PATH",
    "MARKETING_PATH",
    "DESIGN_PATH",
    "DATABASE_PATH",
]
