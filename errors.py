"""Exception hierarchy for the BuildMind pipeline.

Malformed model output is never an exception: the parsers return fallbacks.
Everything below is raised for conditions a stage cannot recover from locally.
"""

from typing import Optional


class BuildMindError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(BuildMindError):
    """Missing or invalid configuration (e.g. no provider credential)."""


class NoAvailableModelError(ConfigurationError):
    """No configured provider can serve the requested task."""

    def __init__(self, task_type: str, complexity: str, purpose: Optional[str] = None):
        self.task_type = task_type
        self.complexity = complexity
        self.purpose = purpose
        target = f" for {purpose}" if purpose else ""
        super().__init__(
            f"No available model{target} (task={task_type}, complexity={complexity}). "
            "Configure at least one provider API key."
        )


class ProviderError(BuildMindError):
    """A single provider call failed or returned an unusable response."""


class AllAttemptsExhaustedError(BuildMindError):
    """The gateway retried a call up to its bound and every attempt failed."""

    def __init__(self, attempts: int, last_error: Optional[BaseException]):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"All {attempts} attempts failed: {last_error}")


class PipelineCancelledError(BuildMindError):
    """The orchestration was aborted through its control token."""

    def __init__(self, message: str = "Cancelled"):
        super().__init__(message)


class CoderOutputError(BuildMindError):
    """The coder output could not be parsed, even after the repair pass."""
