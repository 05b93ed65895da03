"""
Runtime value model for JIL.

Values use plain Python types wherever one fits:

- Integer -> int (never bool), always inside the signed 32-bit range
- Boolean -> bool
- String  -> str, NFD-normalized
- Array   -> tuple
- Object  -> JilObject
- Function -> jil.functions.Function

Type objects are ordinary JilObject values, and error values are JilObject
values recognized structurally (see jil.error_values).

Values built by a type's `new` carry their constructor call: objects through
JilObject.provenance, arrays, integers and strings through the Constructed*
subclasses. The tag never takes part in equality.
"""

import unicodedata
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Hashable, Iterable, Iterator, Optional, Tuple, Union

if TYPE_CHECKING:
    from .functions import Function

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

_INT32_SPAN = 2**32

# Runtime value types for the expression language.
Value = Union[bool, int, str, Tuple["Value", ...], "JilObject", "Function"]


def normalize_string(value: str) -> str:
    """Returns the NFD form of a string."""
    return unicodedata.normalize("NFD", value)


def is_int32(value: int) -> bool:
    """Checks whether an integer fits in a signed 32-bit slot."""
    return INT32_MIN <= value <= INT32_MAX


def wrap_int32(value: int) -> int:
    """Keeps the low 32 bits of an integer, interpreted as two's complement."""
    return ((value - INT32_MIN) % _INT32_SPAN) + INT32_MIN


def is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_boolean(value: Any) -> bool:
    return isinstance(value, bool)


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_array(value: Any) -> bool:
    return isinstance(value, tuple)


def is_object(value: Any) -> bool:
    return isinstance(value, JilObject)


def kind_of(value: Value) -> str:
    """Gets the kind name of a value."""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, str):
        return "string"
    if isinstance(value, tuple):
        return "array"
    if isinstance(value, JilObject):
        return "object"

    # Lazy import to avoid circular dependencies
    from .functions import Function

    if isinstance(value, Function):
        return "function"
    return type(value).__name__


def value_key(value: Value) -> Hashable:
    """
    Builds the hashable key used to index object entries.

    Keys are tagged by kind so that 1, true and "1" never collide, and
    strings are compared in NFD form.
    """
    if isinstance(value, bool):
        return ("boolean", value)
    if isinstance(value, int):
        return ("integer", value)
    if isinstance(value, str):
        return ("string", normalize_string(value))
    if isinstance(value, tuple):
        return ("array", tuple(value_key(item) for item in value))
    if isinstance(value, JilObject):
        return (
            "object",
            frozenset(
                (key, value_key(item)) for key, (_, item) in value._entries.items()
            ),
        )
    return ("function",) + _function_key(value)


def _function_key(function: "Function") -> Tuple[Hashable, ...]:
    # Must agree with values_equal on functions.
    # Lazy import to avoid circular dependencies
    from .errors import SerializationError
    from .functions import NativeFunction
    from .serializer import canonical_text

    if isinstance(function, NativeFunction) and function.source is None:
        return (function.mode, "native", function.name, id(function.impl))
    try:
        return (function.mode, "text", canonical_text(function))
    except SerializationError:
        return (function.mode, "identity", id(function))


@dataclass(frozen=True)
class Provenance:
    """Constructor call that produced a custom-typed value."""

    constructor: "JilObject"
    """Type object whose `new` produced the value."""

    args: Tuple[Value, ...]
    """Arguments passed to `new`."""


class JilObject(Mapping):
    """
    Immutable mapping from values to values.

    `provenance` records the constructor call for values produced by a type's
    `new`, and `source` holds the canonical JSON tree of pre-registered global
    objects such as the built-in types. Neither takes part in equality.
    """

    __slots__ = ("_entries", "provenance", "source")

    def __init__(
        self,
        items: Union[Iterable[Tuple[Value, Value]], Mapping, None] = None,
        *,
        provenance: Optional[Provenance] = None,
        source: Any = None,
    ):
        if isinstance(items, Mapping):
            items = items.items()
        entries = {}
        for key, item in items or ():
            if isinstance(key, str):
                key = normalize_string(key)
            entries[value_key(key)] = (key, item)
        self._entries = entries
        self.provenance = provenance
        self.source = source

    def __getitem__(self, key: Value) -> Value:
        try:
            return self._entries[value_key(key)][1]
        except KeyError:
            raise KeyError(key) from None

    def __contains__(self, key: object) -> bool:
        return value_key(key) in self._entries

    def __iter__(self) -> Iterator[Value]:
        for key, _ in self._entries.values():
            yield key

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JilObject):
            return NotImplemented

        # Lazy import to avoid circular dependencies
        from .operators import values_equal

        return values_equal(self, other)

    __hash__ = None  # type: ignore[assignment]

    def with_provenance(self, provenance: Provenance) -> "JilObject":
        """Returns a copy of this object tagged with constructor provenance."""
        copy = JilObject(provenance=provenance)
        copy._entries = self._entries
        return copy

    def __repr__(self) -> str:
        inner = ", ".join(f"{key!r}: {item!r}" for key, item in self.items())
        return f"JilObject({{{inner}}})"


# ============================================================
# Constructed atoms and arrays
# ============================================================


class ConstructedArray(tuple):
    """Array produced by a type's `new`, tagged with the constructor call."""

    provenance: Optional[Provenance] = None


class ConstructedInteger(int):
    """Integer produced by a type's `new`, tagged with the constructor call."""

    provenance: Optional[Provenance] = None


class ConstructedString(str):
    """String produced by a type's `new`, tagged with the constructor call."""

    provenance: Optional[Provenance] = None


_CONSTRUCTED_TYPES = (ConstructedArray, ConstructedInteger, ConstructedString)


def with_provenance(value: Value, provenance: Provenance) -> Value:
    """
    Tags a value produced by a type's `new` with its constructor call.

    Objects, arrays, integers and strings are tagged. Booleans and functions
    are returned unchanged: `bool` cannot be subclassed, and both already
    encode canonically as themselves or their own expression.
    """
    if isinstance(value, JilObject):
        return value.with_provenance(provenance)

    if isinstance(value, bool):
        return value

    if isinstance(value, tuple):
        tagged: Any = ConstructedArray(value)
    elif isinstance(value, int):
        tagged = ConstructedInteger(value)
    elif isinstance(value, str):
        tagged = ConstructedString(value)
    else:
        return value

    tagged.provenance = provenance
    return tagged


def provenance_of(value: Value) -> Optional[Provenance]:
    """Gets the constructor call recorded on a value, if any."""
    if isinstance(value, (JilObject,) + _CONSTRUCTED_TYPES):
        return value.provenance
    return None


def to_value(obj: Any) -> Value:
    """
    Converts a host Python value to a JIL value.

    Rules:
    - bool/str -> as-is (strings normalized to NFD)
    - int -> as-is when it fits in 32 bits
    - float -> int when integral and in range
    - list/tuple -> tuple, elements converted recursively
    - dict/Mapping -> JilObject, keys and values converted recursively
    - JIL functions, objects and constructed values -> as-is
    - anything else (including None) -> ValueError
    """
    if isinstance(obj, _CONSTRUCTED_TYPES):
        return obj

    if isinstance(obj, bool):
        return obj

    if isinstance(obj, int):
        if not is_int32(obj):
            raise ValueError(f"Integer {obj} is outside the signed 32-bit range")
        return obj

    if isinstance(obj, float):
        if not obj.is_integer() or not is_int32(int(obj)):
            raise ValueError(f"Number {obj} is not a signed 32-bit integer")
        return int(obj)

    if isinstance(obj, str):
        return normalize_string(obj)

    if isinstance(obj, JilObject):
        return obj

    if isinstance(obj, list | tuple):
        return tuple(to_value(item) for item in obj)

    if isinstance(obj, Mapping):
        return JilObject((to_value(key), to_value(item)) for key, item in obj.items())

    # Lazy import to avoid circular dependencies
    from .functions import Function

    if isinstance(obj, Function):
        return obj

    raise ValueError(f"Cannot convert {type(obj).__name__} to a JIL value")


def to_python(value: Value) -> Any:
    """
    Converts a JIL value to plain Python data.

    Arrays become lists and objects become dicts. Only atomic object keys
    can be represented; array and object keys raise ValueError. Functions
    are returned unchanged.
    """
    if isinstance(value, tuple):
        return [to_python(item) for item in value]

    if isinstance(value, JilObject):
        result = {}
        for key, item in value.items():
            if isinstance(key, tuple | JilObject):
                raise ValueError(
                    f"Cannot convert {kind_of(key)} key to a Python dict key"
                )
            result[key] = to_python(item)
        return result

    return value
