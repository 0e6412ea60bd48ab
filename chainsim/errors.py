"""
Error kinds and operation results.

Engine operations that can fail for structural reasons (an index out of
range, an unknown consensus mechanism, an empty candidate pool) report
the failure as an OperationResult instead of raising, so a caller can
disable an action rather than crash. The exception classes are used
internally and by callers that prefer OperationResult.unwrap().
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Structural failures an engine operation can report."""
    INVALID_INDEX = "invalid_index"
    INVALID_MECHANISM = "invalid_mechanism"
    EMPTY_CANDIDATE_POOL = "empty_candidate_pool"
    INVALID_PARAMETER = "invalid_parameter"


class SimulatorError(Exception):
    """Base class for engine errors."""
    kind: ErrorKind = ErrorKind.INVALID_PARAMETER


class InvalidIndexError(SimulatorError, IndexError):
    """Raised when a block index is outside the chain."""
    kind = ErrorKind.INVALID_INDEX


class InvalidMechanismError(SimulatorError, ValueError):
    """Raised when a consensus mechanism is not recognised."""
    kind = ErrorKind.INVALID_MECHANISM


class EmptyCandidatePoolError(SimulatorError, ValueError):
    """Raised when a winner is requested from zero candidates."""
    kind = ErrorKind.EMPTY_CANDIDATE_POOL


class InvalidParameterError(SimulatorError, ValueError):
    """Raised for out-of-range counts and metric ranges."""
    kind = ErrorKind.INVALID_PARAMETER


_ERROR_CLASSES = {
    ErrorKind.INVALID_INDEX: InvalidIndexError,
    ErrorKind.INVALID_MECHANISM: InvalidMechanismError,
    ErrorKind.EMPTY_CANDIDATE_POOL: EmptyCandidatePoolError,
    ErrorKind.INVALID_PARAMETER: InvalidParameterError,
}


@dataclass(frozen=True)
class OperationResult:
    """
    Outcome of an engine operation.

    Attributes:
        success: Whether the operation took effect
        message: Human readable summary
        error: Failure kind, None on success
        value: Operation payload on success (report, block, candidate...)
    """
    success: bool
    message: str = ""
    error: Optional[ErrorKind] = None
    value: Any = None

    @classmethod
    def ok(cls, value: Any = None, message: str = "") -> 'OperationResult':
        return cls(success=True, message=message, value=value)

    @classmethod
    def fail(cls, error: SimulatorError) -> 'OperationResult':
        """Build a failed result from an engine exception."""
        return cls(success=False, message=str(error), error=error.kind)

    def unwrap(self) -> Any:
        """Return the value, or raise the error this result carries."""
        if self.success:
            return self.value
        raise _ERROR_CLASSES[self.error](self.message)

    def __bool__(self) -> bool:
        return self.success
