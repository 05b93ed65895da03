"""
Resource limits for classification and evaluation.

These limits protect against resource exhaustion from untrusted documents:
deeply nested input, runaway recursion through closures and oversized
collections.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import LimitExceededError
from .path import Path


@dataclass(frozen=True)
class EvaluationLimits:
    """Evaluation limits configuration."""

    # Maximum number of evaluation steps (one per evaluated node)
    max_steps: int = 100_000

    # Maximum nesting of active evaluations (includes function calls)
    max_evaluation_depth: int = 128

    # Maximum nesting of the input document
    max_document_depth: int = 128

    # Maximum number of expression nodes in a document
    max_document_nodes: int = 65_536

    # Maximum arguments in a single call
    max_call_args: int = 256

    # Maximum elements in a constructed array or object
    max_collection_length: int = 65_536


# Default evaluation limits.
#
# These values allow ordinary documents while keeping the evaluator well
# inside the host interpreter's recursion limit.
DEFAULT_EVALUATION_LIMITS = EvaluationLimits()


def check_step_count(
    steps: int, limits: Optional[EvaluationLimits] = None, path: Optional[Path] = None
) -> None:
    """Validates the evaluation step budget."""
    limits = limits or DEFAULT_EVALUATION_LIMITS
    if steps > limits.max_steps:
        raise LimitExceededError("max_steps", limits.max_steps, steps, path)


def check_evaluation_depth(
    depth: int, limits: Optional[EvaluationLimits] = None, path: Optional[Path] = None
) -> None:
    """Validates the active evaluation depth."""
    limits = limits or DEFAULT_EVALUATION_LIMITS
    if depth > limits.max_evaluation_depth:
        raise LimitExceededError(
            "max_evaluation_depth", limits.max_evaluation_depth, depth, path
        )


def check_document_depth(
    depth: int, limits: Optional[EvaluationLimits] = None, path: Optional[Path] = None
) -> None:
    """Validates document nesting during classification."""
    limits = limits or DEFAULT_EVALUATION_LIMITS
    if depth > limits.max_document_depth:
        raise LimitExceededError(
            "max_document_depth", limits.max_document_depth, depth, path
        )


def check_document_node_count(
    count: int, limits: Optional[EvaluationLimits] = None
) -> None:
    """Validates the expression node count of a classified document."""
    limits = limits or DEFAULT_EVALUATION_LIMITS
    if count > limits.max_document_nodes:
        raise LimitExceededError(
            "max_document_nodes", limits.max_document_nodes, count
        )


def check_call_arg_count(
    count: int, limits: Optional[EvaluationLimits] = None, path: Optional[Path] = None
) -> None:
    """Validates function argument count."""
    limits = limits or DEFAULT_EVALUATION_LIMITS
    if count > limits.max_call_args:
        raise LimitExceededError("max_call_args", limits.max_call_args, count, path)


def check_collection_length(
    length: int, limits: Optional[EvaluationLimits] = None, path: Optional[Path] = None
) -> None:
    """Validates the size of a constructed array or object."""
    limits = limits or DEFAULT_EVALUATION_LIMITS
    if length > limits.max_collection_length:
        raise LimitExceededError(
            "max_collection_length", limits.max_collection_length, length, path
        )
