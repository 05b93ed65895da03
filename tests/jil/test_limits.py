"""
Tests for resource limit checks.
"""

import pytest

from jil import EvaluationLimits, LimitExceededError
from jil.limits import (
    check_call_arg_count,
    check_collection_length,
    check_document_depth,
    check_document_node_count,
    check_evaluation_depth,
    check_step_count,
)

LIMITS = EvaluationLimits(
    max_steps=10,
    max_evaluation_depth=10,
    max_document_depth=10,
    max_document_nodes=10,
    max_call_args=10,
    max_collection_length=10,
)


@pytest.mark.parametrize(
    "check,limit_name",
    [
        (check_step_count, "max_steps"),
        (check_evaluation_depth, "max_evaluation_depth"),
        (check_document_depth, "max_document_depth"),
        (check_document_node_count, "max_document_nodes"),
        (check_call_arg_count, "max_call_args"),
        (check_collection_length, "max_collection_length"),
    ],
)
class TestChecks:
    """Tests shared by every limit check."""

    def test_at_limit_passes(self, check, limit_name):
        check(10, LIMITS)

    def test_over_limit_raises(self, check, limit_name):
        with pytest.raises(LimitExceededError) as exc_info:
            check(11, LIMITS)
        assert exc_info.value.limit_name == limit_name
        assert exc_info.value.limit == 10
        assert exc_info.value.actual == 11


class TestDefaults:
    """Tests for the default limits."""

    def test_defaults_are_used_without_limits(self):
        check_step_count(EvaluationLimits().max_steps)
        with pytest.raises(LimitExceededError):
            check_step_count(EvaluationLimits().max_steps + 1)

    def test_path_is_recorded(self):
        with pytest.raises(LimitExceededError) as exc_info:
            check_call_arg_count(11, LIMITS, (3, "x"))
        assert exc_info.value.path == (3, "x")
