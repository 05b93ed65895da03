"""
Error values.

An error value is any object with a string `error` field whose `inner`
field, when present, is itself an error value. Errors are ordinary data:
they flow through evaluation like any other value and never unwind the
host call stack.

Operators and functions that receive an error they do not introspect
return a new error whose `inner` field is the received one.
"""

from typing import List, Optional

from .path import Path, format_path, path_from_value
from .values import JilObject, Value, kind_of

ERROR_KEY = "error"
INNER_KEY = "inner"
PATH_KEY = "path"

# Messages of the error values produced by the core.
UNRESOLVED_IDENTIFIER = "unresolved identifier"
INVALID_ARITY = "invalid arity"
TYPE_ERROR = "type error"
NAME_VALIDATION_ERROR = "name validation error"
DIVISION_BY_ZERO = "division by zero"
MISSING_KEY = "missing key"
INDEX_OUT_OF_RANGE = "index out of range"
NO_SUCH_PROPERTY = "no such property"
DUPLICATE_KEY = "duplicate key"
CIRCULAR_DEFINITION = "circular definition"
CANNOT_CAST = "cannot cast"
CANNOT_COERCE = "cannot coerce"
NOT_SERIALIZABLE = "not serializable"


def is_error(value: Value) -> bool:
    """Checks the structural error predicate, following `inner` links."""
    while True:
        if not isinstance(value, JilObject):
            return False
        if not isinstance(value.get(ERROR_KEY), str):
            return False
        if INNER_KEY not in value:
            return True
        value = value[INNER_KEY]


def describe_kind(value: Value) -> str:
    """Kind name for diagnostics; error values are reported as `error`."""
    if is_error(value):
        return "error"
    return kind_of(value)


def make_error(
    message: str,
    inner: Optional[Value] = None,
    path: Optional[Path] = None,
    **fields: Value,
) -> JilObject:
    """
    Creates an error value.

    Args:
        message: The `error` field
        inner: Optional error value being wrapped
        path: Optional document path where the error was produced
        **fields: Extra diagnostic fields (must be JIL values)
    """
    items = [(ERROR_KEY, message)]
    items.extend(fields.items())
    if path is not None:
        items.append((PATH_KEY, tuple(path)))
    if inner is not None:
        items.append((INNER_KEY, inner))
    return JilObject(items)


def wrap_error(
    message: str, inner: Value, path: Optional[Path] = None, **fields: Value
) -> JilObject:
    """Creates an error value wrapping a received error."""
    return make_error(message, inner=inner, path=path, **fields)


def type_error(
    expected: str,
    actual: Value,
    path: Optional[Path] = None,
    **fields: Value,
) -> JilObject:
    """
    Creates a type error for an offending value.

    If the offending value is itself an error it is wrapped, otherwise a
    fresh type error is produced.
    """
    inner = actual if is_error(actual) else None
    return make_error(
        TYPE_ERROR,
        inner=inner,
        path=path,
        expected=expected,
        actual=describe_kind(actual),
        **fields,
    )


def error_message(value: Value) -> Optional[str]:
    """Gets the message of an error value, or None for other values."""
    if not is_error(value):
        return None
    return value[ERROR_KEY]


def error_path(value: Value) -> Optional[Path]:
    """Gets the document path recorded on an error value."""
    if not is_error(value) or PATH_KEY not in value:
        return None
    return path_from_value(value[PATH_KEY])


def error_chain(value: Value) -> List[JilObject]:
    """Lists an error and its wrapped errors, outermost first."""
    chain: List[JilObject] = []
    if not is_error(value):
        return chain
    while True:
        chain.append(value)
        if INNER_KEY not in value:
            return chain
        value = value[INNER_KEY]


def format_error_value(value: Value) -> str:
    """
    Returns a readable multi-line report of an error chain.

    Example:
        type error (expected: integer, actual: error) at $[2]
          caused by: unresolved identifier (name: x) at $[2][0]
    """
    lines = []
    for depth, error in enumerate(error_chain(value)):
        details = ", ".join(
            f"{key}: {item}"
            for key, item in error.items()
            if key not in (ERROR_KEY, INNER_KEY, PATH_KEY) and isinstance(item, str | int)
        )
        line = error[ERROR_KEY]
        if details:
            line += f" ({details})"
        path = error_path(error)
        if path is not None:
            line += f" at {format_path(path)}"
        prefix = "" if depth == 0 else "  caused by: "
        lines.append(prefix + line)
    return "\n".join(lines)
