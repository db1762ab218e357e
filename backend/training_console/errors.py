from __future__ import annotations


class WorkflowError(Exception):
    """Base class for caller-visible workflow failures.

    ``reason`` names the violated precondition in a stable, machine-readable form.
    """

    def __init__(self, message: str, *, reason: str) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason

    def __str__(self) -> str:
        return self.message


class InvalidTransitionError(WorkflowError):
    pass


class WorkflowValidationError(WorkflowError):
    pass


class ConcurrentModificationError(WorkflowError):
    def __init__(self, message: str, *, reason: str = "stale_version") -> None:
        super().__init__(message, reason=reason)
