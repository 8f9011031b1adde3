"""
Engine error taxonomy.

Legitimate business outcomes (eligibility verdicts, insufficient stock) are
returned as data. Only integration misuse and concurrency races are raised.
"""
from typing import Any, Optional


class DonationEngineError(Exception):
    """Base exception for engine errors."""

    retryable = False


class MissingAnswerError(DonationEngineError):
    """Exception raised when a questionnaire question has no answer."""

    def __init__(self, question_id: int, detail: str = ""):
        self.question_id = question_id
        message = f"Missing answer for question {question_id}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvalidTransitionError(DonationEngineError):
    """Exception raised when a state change is not reachable from the current state."""

    def __init__(self, current: Any, attempted: Any, detail: str = ""):
        self.current = current
        self.attempted = attempted
        message = f"Invalid transition: {_label(current)} -> {_label(attempted)}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class ConflictError(DonationEngineError):
    """
    Exception raised when an optimistic concurrency precondition fails.

    The caller should refetch the record and decide whether to retry.
    """

    retryable = True

    def __init__(self, subject_id: str, expected: Any, actual: Any):
        self.subject_id = subject_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Conflict on {subject_id}: expected {_label(expected)}, found {_label(actual)}"
        )


class InvalidInputError(DonationEngineError):
    """Exception raised for malformed volumes, unknown codes or identifiers."""
    pass


def _label(value: Optional[Any]) -> str:
    if value is None:
        return "none"
    return str(getattr(value, "value", value))
