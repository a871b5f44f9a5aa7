"""Build-analyze-fix loop, result cache, build log fixer and monitor."""

from .static_analysis import StaticAnalyzer, calculate_metrics
from .performance import BuildCache, BuildProfile, analyze_files_in_parallel, hash_project_files, rolling_hash
from .build_system import BuildSystem, group_errors_by_file, is_critical_file
from .auto_fixer import fix_build_errors, parse_build_log
from .monitor import CICDMonitor

__all__ = [
    "StaticAnalyzer",
    "calculate_metrics",
    "BuildCache",
    "BuildProfile",
    "analyze_files_in_parallel",
    "hash_project_files",
    "rolling_hash",
    "BuildSystem",
    "group_errors_by_file",
    "is_critical_file",
    "fix_build_errors",
    "parse_build_log",
    "CICDMonitor",
]
