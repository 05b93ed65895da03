"""
Type registry.

A type object is any object whose `new`, `is`, `cast` and `coerce` fields
are functions. The four built-in types are created per evaluator by
`create_builtin_types` and carry their global name as canonical source.

`cast` is exact: it only accepts values with an unambiguous representation
in the target type. `coerce` is lenient and accepts everything `cast`
accepts plus best-effort conversions. Casting or coercing an error value to
a non-error type wraps it.
"""

import re
from typing import Dict, Optional, Tuple

from .error_values import (
    CANNOT_CAST,
    CANNOT_COERCE,
    ERROR_KEY,
    is_error,
    make_error,
    wrap_error,
)
from .errors import SerializationError
from .functions import BuiltinContext, Function, NativeFunction, ValueFunction
from .values import (
    JilObject,
    Value,
    is_boolean,
    is_int32,
    is_integer,
    is_string,
    wrap_int32,
)

TYPE_FIELDS = ("new", "is", "cast", "coerce")

BUILTIN_TYPE_NAMES = ("integer", "string", "boolean", "error")

_STRICT_INTEGER = re.compile(r"-?[0-9]+")
_LENIENT_INTEGER = re.compile(r"[+-]?[0-9]+")


def is_type_object(value: Value) -> bool:
    """Checks whether a value has the four function fields of a type."""
    if not isinstance(value, JilObject) or is_error(value):
        return False
    return all(
        field in value and isinstance(value[field], Function) for field in TYPE_FIELDS
    )


def _unary(
    name: str, args: Tuple[Value, ...], context: BuiltinContext
) -> Tuple[Value, Optional[JilObject]]:
    if len(args) != 1:
        return None, context.arity_error(name, "exactly 1", len(args))
    return args[0], None


def _cannot(message: str, type_name: str, value: Value, context: BuiltinContext) -> JilObject:
    if is_error(value):
        return wrap_error(message, value, path=context.path, type=type_name)
    return context.error(message, type=type_name, value=value)


# ============================================================
# integer
# ============================================================


def _integer_new(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    if not args:
        return 0
    if len(args) > 1:
        return context.arity_error("integer.new", "0 or 1", len(args))
    return _integer_cast(args, context)


def _integer_is(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    value, error = _unary("integer.is", args, context)
    return error if error is not None else is_integer(value)


def _integer_cast(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    value, error = _unary("integer.cast", args, context)
    if error is not None:
        return error

    if is_integer(value):
        return value
    if is_string(value) and _STRICT_INTEGER.fullmatch(value):
        number = int(value)
        if is_int32(number):
            return number
    return _cannot(CANNOT_CAST, "integer", value, context)


def _integer_coerce(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    value, error = _unary("integer.coerce", args, context)
    if error is not None:
        return error

    if is_integer(value):
        return value
    if is_boolean(value):
        return int(value)
    if is_string(value):
        text = value.strip()
        if _LENIENT_INTEGER.fullmatch(text):
            return wrap_int32(int(text))
    return _cannot(CANNOT_COERCE, "integer", value, context)


# ============================================================
# string
# ============================================================


def _string_new(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    if not args:
        return ""
    if len(args) > 1:
        return context.arity_error("string.new", "0 or 1", len(args))
    return _string_cast(args, context)


def _string_is(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    value, error = _unary("string.is", args, context)
    return error if error is not None else is_string(value)


def _string_from_atom(value: Value) -> Optional[str]:
    if is_string(value):
        return value
    if is_boolean(value):
        return "true" if value else "false"
    if is_integer(value):
        return str(value)
    return None


def _string_cast(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    value, error = _unary("string.cast", args, context)
    if error is not None:
        return error

    text = _string_from_atom(value)
    if text is None:
        return _cannot(CANNOT_CAST, "string", value, context)
    return text


def _string_coerce(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    value, error = _unary("string.coerce", args, context)
    if error is not None:
        return error

    text = _string_from_atom(value)
    if text is not None:
        return text
    if is_error(value):
        return _cannot(CANNOT_COERCE, "string", value, context)

    # Lazy import to avoid circular dependencies
    from .serializer import canonical_text

    try:
        return canonical_text(value)
    except SerializationError:
        return _cannot(CANNOT_COERCE, "string", value, context)


# ============================================================
# boolean
# ============================================================


def _boolean_new(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    if not args:
        return False
    if len(args) > 1:
        return context.arity_error("boolean.new", "0 or 1", len(args))
    return _boolean_cast(args, context)


def _boolean_is(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    value, error = _unary("boolean.is", args, context)
    return error if error is not None else is_boolean(value)


def _boolean_cast(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    value, error = _unary("boolean.cast", args, context)
    if error is not None:
        return error

    if is_boolean(value):
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    return _cannot(CANNOT_CAST, "boolean", value, context)


def _boolean_coerce(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    value, error = _unary("boolean.coerce", args, context)
    if error is not None:
        return error

    if is_boolean(value):
        return value
    if is_integer(value):
        return value != 0
    if is_string(value):
        lowered = value.lower()
        if lowered in ("true", "false"):
            return lowered == "true"
        return len(value) > 0
    if is_error(value):
        return _cannot(CANNOT_COERCE, "boolean", value, context)
    if isinstance(value, tuple | JilObject):
        return len(value) > 0
    return _cannot(CANNOT_COERCE, "boolean", value, context)


# ============================================================
# error
# ============================================================


def _error_new(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    if not args or len(args) > 2:
        return context.arity_error("error.new", "1 or 2", len(args))

    message = args[0]
    if not is_string(message):
        return context.type_error("string", message)

    if len(args) == 1:
        return make_error(message)

    inner = args[1]
    if not is_error(inner):
        return context.type_error("error", inner)
    return make_error(message, inner=inner)


def _error_is(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    value, error = _unary("error.is", args, context)
    return error if error is not None else is_error(value)


def _error_cast(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    value, error = _unary("error.cast", args, context)
    if error is not None:
        return error

    if is_error(value):
        return value
    if is_string(value):
        return JilObject([(ERROR_KEY, value)])
    return context.error(CANNOT_CAST, type="error", value=value)


def _error_coerce(args: Tuple[Value, ...], context: BuiltinContext) -> Value:
    value, error = _unary("error.coerce", args, context)
    if error is not None:
        return error

    if is_error(value):
        return value
    if is_string(value):
        return JilObject([(ERROR_KEY, value)])
    return JilObject([(ERROR_KEY, "coerced value"), ("value", value)])


_BUILTIN_TYPE_FUNCTIONS: Dict[str, Dict[str, ValueFunction]] = {
    "integer": {
        "new": _integer_new,
        "is": _integer_is,
        "cast": _integer_cast,
        "coerce": _integer_coerce,
    },
    "string": {
        "new": _string_new,
        "is": _string_is,
        "cast": _string_cast,
        "coerce": _string_coerce,
    },
    "boolean": {
        "new": _boolean_new,
        "is": _boolean_is,
        "cast": _boolean_cast,
        "coerce": _boolean_coerce,
    },
    "error": {
        "new": _error_new,
        "is": _error_is,
        "cast": _error_cast,
        "coerce": _error_coerce,
    },
}


def create_builtin_types() -> Dict[str, JilObject]:
    """
    Creates the built-in type objects.

    Returns:
        Mapping of global name to type object
    """
    types: Dict[str, JilObject] = {}
    for type_name in BUILTIN_TYPE_NAMES:
        functions = _BUILTIN_TYPE_FUNCTIONS[type_name]
        types[type_name] = JilObject(
            [
                (field, NativeFunction(f"{type_name}.{field}", functions[field]))
                for field in TYPE_FIELDS
            ],
            source=[type_name],
        )
    return types
