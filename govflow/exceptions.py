"""
govflow Exceptions

Custom exception classes for the proposal workflow engine.
"""

from typing import Iterable, Optional


class GovflowException(Exception):
    """Base exception for govflow."""
    pass


class GovernanceError(GovflowException):
    """Base governance exception."""
    pass


class StateError(GovernanceError):
    """
    Operation attempted in the wrong stage.

    Attributes:
        required: Stage names the operation accepts
        actual:   Stage name the workflow was in
    """

    def __init__(self, operation: str, required: Iterable, actual):
        self.operation = operation
        self.required = tuple(getattr(s, "name", str(s)) for s in required)
        self.actual = getattr(actual, "name", str(actual))
        super().__init__(
            f"{operation} requires stage {' or '.join(self.required)} "
            f"(actual: {self.actual})"
        )


class ExpiredError(GovernanceError):
    """A time-boxed phase has passed its end time."""

    def __init__(self, phase: str, end_time: float, now: Optional[float] = None):
        self.phase = phase
        self.end_time = end_time
        self.now = now
        super().__init__(f"{phase} period has ended (end_time={end_time})")


class ConfigError(GovernanceError):
    """A precondition on configuration or proposal data is unmet."""
    pass
