"""
Operator engine.

Semantics per operator family:

- Arithmetic (+ - * /): integers only, operands evaluated eagerly left to
  right, combined left-associatively with 32-bit two's-complement
  wraparound; `/` truncates toward zero.
- Logical (& | !): booleans only; `&` and `|` evaluate one operand at a
  time and stop at the first short-circuiting value.
- Equality (== !=): total over all values; structural comparison, cross-kind
  operands are never equal.
- Ordering (< <= > >=): integers or booleans of one kind, evaluated on
  demand as a pairwise chain that stops at the first false comparison.
- Dot (.): property, method and key selection, see jil.methods.
"""

from typing import TYPE_CHECKING, Optional, Sequence, cast

from .ast import (
    ARITHMETIC_OPERATORS,
    EQUALITY_OPERATORS,
    LOGICAL_OPERATORS,
    ORDERING_OPERATORS,
    ExpressionNode,
    OperatorCallNode,
)
from .error_values import DIVISION_BY_ZERO, INVALID_ARITY, make_error, type_error
from .errors import SerializationError
from .functions import Function, NativeFunction
from .path import Path
from .values import (
    JilObject,
    Value,
    is_boolean,
    is_integer,
    kind_of,
    normalize_string,
    wrap_int32,
)

if TYPE_CHECKING:
    from .evaluator import Evaluator
    from .scope import Scope


def evaluate_operator(
    evaluator: "Evaluator", node: OperatorCallNode, scope: "Scope"
) -> Value:
    """Evaluates an operator call node."""
    operator = node.operator
    operands = node.operands

    arity_error = _check_arity(operator, len(operands), node.path)
    if arity_error is not None:
        return arity_error

    if operator in ARITHMETIC_OPERATORS:
        values = [evaluator.evaluate(operand, scope) for operand in operands]
        return evaluate_arithmetic(operator, values, node.path)

    if operator in LOGICAL_OPERATORS:
        return _evaluate_logical(evaluator, operator, operands, scope, node.path)

    if operator == "!":
        value = evaluator.evaluate(operands[0], scope)
        if not is_boolean(value):
            return type_error("boolean", value, node.path, operator=operator)
        return not value

    if operator in EQUALITY_OPERATORS:
        equal = _evaluate_equality_chain(evaluator, operands, scope)
        return equal if operator == "==" else not equal

    if operator in ORDERING_OPERATORS:
        return _evaluate_ordering_chain(evaluator, operator, operands, scope, node.path)

    # operator == "."
    return _evaluate_dot(evaluator, operands, scope, node.path)


# ============================================================
# Arity
# ============================================================


def _check_arity(operator: str, count: int, path: Path) -> Optional[JilObject]:
    if operator == "-":
        expected, valid = "at least 1", count >= 1
    elif operator == "!":
        expected, valid = "exactly 1", count == 1
    else:
        expected, valid = "at least 2", count >= 2

    if valid:
        return None
    return make_error(
        INVALID_ARITY, path=path, operator=operator, expected=expected, actual=count
    )


# ============================================================
# Arithmetic
# ============================================================


def evaluate_arithmetic(operator: str, values: Sequence[Value], path: Path) -> Value:
    """
    Combines already-evaluated operands of an arithmetic operator.

    The first non-integer operand (error values included) produces a type
    error that wraps it when it is an error.
    """
    for value in values:
        if not is_integer(value):
            return type_error("integer", value, path, operator=operator)

    if operator == "-" and len(values) == 1:
        return wrap_int32(-values[0])

    result = values[0]
    for value in values[1:]:
        if operator == "+":
            result = wrap_int32(result + value)
        elif operator == "-":
            result = wrap_int32(result - value)
        elif operator == "*":
            result = wrap_int32(result * value)
        else:
            if value == 0:
                return make_error(DIVISION_BY_ZERO, path=path, operator=operator)
            result = wrap_int32(truncating_divide(result, value))
    return result


def truncating_divide(dividend: int, divisor: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(dividend) // abs(divisor)
    if (dividend < 0) != (divisor < 0):
        return -quotient
    return quotient


# ============================================================
# Logical
# ============================================================


def _evaluate_logical(
    evaluator: "Evaluator",
    operator: str,
    operands: Sequence[ExpressionNode],
    scope: "Scope",
    path: Path,
) -> Value:
    # `|` stops at the first true, `&` at the first false
    stop_at = operator == "|"

    for operand in operands:
        value = evaluator.evaluate(operand, scope)
        if not is_boolean(value):
            return type_error("boolean", value, path, operator=operator)
        if value is stop_at:
            return stop_at

    return not stop_at


# ============================================================
# Equality
# ============================================================


def _evaluate_equality_chain(
    evaluator: "Evaluator", operands: Sequence[ExpressionNode], scope: "Scope"
) -> bool:
    previous = evaluator.evaluate(operands[0], scope)
    for operand in operands[1:]:
        current = evaluator.evaluate(operand, scope)
        if not values_equal(previous, current):
            return False
        previous = current
    return True


def values_equal(a: Value, b: Value) -> bool:
    """
    Structural equality over JIL values.

    Values of different kinds are never equal; strings compare in NFD;
    arrays compare element-wise; objects compare by key set and values,
    ignoring provenance.
    """
    if a is b:
        return True

    if kind_of(a) != kind_of(b):
        return False

    if isinstance(a, str):
        return normalize_string(a) == normalize_string(b)

    if isinstance(a, tuple):
        return len(a) == len(b) and all(
            values_equal(x, y) for x, y in zip(a, cast(tuple, b))
        )

    if isinstance(a, JilObject):
        b = cast(JilObject, b)
        if len(a) != len(b):
            return False
        for key, item in a.items():
            if key not in b or not values_equal(item, b[key]):
                return False
        return True

    if isinstance(a, Function):
        return _functions_equal(a, cast(Function, b))

    return a == b


def _functions_equal(a: Function, b: Function) -> bool:
    if a.mode != b.mode:
        return False

    if isinstance(a, NativeFunction) and isinstance(b, NativeFunction):
        if a.name == b.name and a.impl is b.impl:
            return True

    # Lazy import to avoid circular dependencies
    from .serializer import canonical_text

    try:
        return canonical_text(a) == canonical_text(b)
    except SerializationError:
        return False


# ============================================================
# Ordering
# ============================================================


def is_orderable(value: Value) -> bool:
    return is_integer(value) or is_boolean(value)


def compare_values(operator: str, a: Value, b: Value) -> bool:
    """Compares two orderable values of the same kind."""
    if operator == "<":
        return a < b
    if operator == "<=":
        return a <= b
    if operator == ">":
        return a > b
    return a >= b


def check_comparable(
    operator: str, left: Value, right: Value, path: Path
) -> Optional[JilObject]:
    """Returns a type error unless both values can be ordered together."""
    if not is_orderable(left):
        return type_error("integer or boolean", left, path, operator=operator)
    if not is_orderable(right):
        return type_error("integer or boolean", right, path, operator=operator)
    if kind_of(left) != kind_of(right):
        return type_error(kind_of(left), right, path, operator=operator)
    return None


def _evaluate_ordering_chain(
    evaluator: "Evaluator",
    operator: str,
    operands: Sequence[ExpressionNode],
    scope: "Scope",
    path: Path,
) -> Value:
    previous = evaluator.evaluate(operands[0], scope)
    if not is_orderable(previous):
        return type_error("integer or boolean", previous, path, operator=operator)

    for operand in operands[1:]:
        current = evaluator.evaluate(operand, scope)
        error = check_comparable(operator, previous, current, path)
        if error is not None:
            return error
        if not compare_values(operator, previous, current):
            return False
        previous = current

    return True


# ============================================================
# Dot
# ============================================================


def _evaluate_dot(
    evaluator: "Evaluator",
    operands: Sequence[ExpressionNode],
    scope: "Scope",
    path: Path,
) -> Value:
    # Lazy import to avoid circular dependencies
    from .methods import select_member

    value = evaluator.evaluate(operands[0], scope)
    for operand in operands[1:]:
        selector = evaluator.evaluate(operand, scope)
        value = select_member(value, selector, path)
    return value
