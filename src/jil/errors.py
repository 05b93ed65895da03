"""
Host-level error types for the JIL engine.

These are raised for faults that happen before or outside JIL-level
semantics: documents that cannot be classified, exhausted resource limits
and extension resolution failures. Faults inside evaluation are returned as
error values instead (see jil.error_values).

All host-level errors extend ExpressionError for consistent handling.
"""

from typing import Optional

from .path import Path, format_path


class ExpressionError(Exception):
    """
    Base error class for all host-level JIL errors.
    """

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def format_with_context(self) -> str:
        """
        Returns a formatted error message with the document path.
        """
        if self.path is None:
            return self.message

        return f"{self.message}\n  at {format_path(self.path)}"


class MalformedExpressionError(ExpressionError):
    """
    Error thrown when a JSON tree cannot be classified as an expression.
    """

    pass


class EvaluationError(ExpressionError):
    """
    Error thrown when evaluation cannot continue at the host level.
    """

    pass


class LimitExceededError(EvaluationError):
    """
    Error thrown when a resource limit is exceeded.
    """

    def __init__(
        self,
        limit_name: str,
        limit: int,
        actual: int,
        path: Optional[Path] = None,
    ):
        message = f"Limit exceeded: {limit_name} (limit: {limit}, actual: {actual})"
        super().__init__(message, path)
        self.limit_name = limit_name
        self.limit = limit
        self.actual = actual


class ExtensionResolutionError(EvaluationError):
    """
    Error thrown when a `using` extension cannot be resolved.
    """

    def __init__(self, uri: str, reason: str, path: Optional[Path] = None):
        super().__init__(f"Cannot resolve extension {uri!r}: {reason}", path)
        self.uri = uri
        self.reason = reason


class SerializationError(ExpressionError):
    """
    Error thrown when a value has no canonical encoding.
    """

    pass
