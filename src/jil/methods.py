"""
Built-in properties and methods reached through the dot operator.

Selection order for `[".", value, selector]`:

1. Built-in property names (`failed`, `ok`) evaluate immediately.
2. Built-in method names (`equals`, `lessThan`/`less`, `moreThan`/`more`,
   `is`, `cast`, `coerce`, `jil`) yield a method bound to the receiver.
3. Otherwise the selector is a key of an object or an index of an array.

`is`, `cast` and `coerce` dispatch to the corresponding function field of
the type object passed as argument, so custom types need no registration.
"""

from typing import Callable, Dict, Tuple

from .error_values import (
    INDEX_OUT_OF_RANGE,
    MISSING_KEY,
    NO_SUCH_PROPERTY,
    NOT_SERIALIZABLE,
    is_error,
    make_error,
    type_error,
)
from .errors import SerializationError
from .functions import (
    BoundConstructor,
    BoundMethod,
    BuiltinContext,
    Function,
    MethodFunction,
    apply_function,
)
from .operators import check_comparable, compare_values, values_equal
from .path import Path
from .type_registry import is_type_object
from .values import JilObject, Value, is_integer, kind_of


def _failed(value: Value) -> Value:
    return is_error(value)


def _ok(value: Value) -> Value:
    return not is_error(value)


def _equals(receiver: Value, args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    if len(args) != 1:
        return context.arity_error("equals", "exactly 1", len(args))
    return values_equal(receiver, args[0])


def _ordering_method(name: str, operator: str) -> MethodFunction:
    def method(receiver: Value, args: Tuple[Value, ...], context: BuiltinContext) -> Value:
        if len(args) != 1:
            return context.arity_error(name, "exactly 1", len(args))
        error = check_comparable(operator, receiver, args[0], context.path)
        if error is not None:
            return error
        return compare_values(operator, receiver, args[0])

    return method


def _type_method(field: str) -> MethodFunction:
    def method(receiver: Value, args: Tuple[Value, ...], context: BuiltinContext) -> Value:
        if len(args) != 1:
            return context.arity_error(field, "exactly 1", len(args))
        type_object = args[0]
        if not is_type_object(type_object):
            return context.type_error("type", type_object)
        return apply_function(
            context.evaluator, type_object[field], (receiver,), context.path
        )

    return method


def _jil(receiver: Value, args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    if args:
        return context.arity_error("jil", "exactly 0", len(args))

    # Lazy import to avoid circular dependencies
    from .serializer import canonical_text

    try:
        return canonical_text(receiver)
    except SerializationError as e:
        return context.error(NOT_SERIALIZABLE, reason=str(e))


_less_than = _ordering_method("lessThan", "<")
_more_than = _ordering_method("moreThan", ">")

PROPERTIES: Dict[str, Callable[[Value], Value]] = {
    "failed": _failed,
    "ok": _ok,
}

METHODS: Dict[str, MethodFunction] = {
    "equals": _equals,
    "lessThan": _less_than,
    "less": _less_than,
    "moreThan": _more_than,
    "more": _more_than,
    "is": _type_method("is"),
    "cast": _type_method("cast"),
    "coerce": _type_method("coerce"),
    "jil": _jil,
}


def select_member(value: Value, selector: Value, path: Path) -> Value:
    """
    Applies a single dot selector to a value.

    Args:
        value: The receiver
        selector: The evaluated selector
        path: Path of the dot expression, recorded on errors

    Returns:
        The selected property, bound method or member, or an error value
    """
    if isinstance(selector, str):
        if selector in PROPERTIES:
            return PROPERTIES[selector](value)
        if selector in METHODS:
            return BoundMethod(value, selector, METHODS[selector])

    if is_error(selector):
        return type_error("key", selector, path)

    if isinstance(value, JilObject):
        return _select_key(value, selector, path)

    if isinstance(value, tuple):
        return _select_index(value, selector, path)

    return make_error(NO_SUCH_PROPERTY, path=path, property=selector, kind=kind_of(value))


def _select_key(value: JilObject, selector: Value, path: Path) -> Value:
    if selector not in value:
        inner = value if is_error(value) else None
        return make_error(MISSING_KEY, inner=inner, path=path, key=selector)

    member = value[selector]
    if (
        selector == "new"
        and isinstance(member, Function)
        and not isinstance(member, BoundConstructor)
    ):
        return BoundConstructor(value, member)
    return member


def _select_index(value: Tuple[Value, ...], selector: Value, path: Path) -> Value:
    if not is_integer(selector):
        return type_error("integer", selector, path)
    if not 0 <= selector < len(value):
        return make_error(
            INDEX_OUT_OF_RANGE, path=path, index=selector, length=len(value)
        )
    return value[selector]
