"""
Canonical serialization (the `jil` method).

The canonical form of a value is a JSON tree that, classified and
evaluated with only the global built-ins in scope, yields an equal value:

- integers, booleans and strings encode as themselves
- arrays encode as `[["array"], item, ...]`
- objects with only string keys encode as JSON objects, others as
  `[["object"], key, value, ...]`; entries are sorted by key text
- values built by a type's `new` encode as the constructor call
- closures encode as their `func` form with captured free identifiers
  replaced by the canonical forms of their values
- built-in functions encode as the expression that names them
"""

import json
from typing import Any, List, Optional, Tuple

from .ast import node_to_json
from .errors import SerializationError
from .functions import ARGS_NAME, BoundConstructor, BoundMethod, Closure, Function, NativeFunction
from .values import JilObject, Provenance, Value, normalize_string, provenance_of


def canonical_tree(value: Value) -> Any:
    """
    Builds the canonical JSON tree of a value.

    Raises:
        SerializationError: If the value (or a value inside it) has no
            canonical form
    """
    if not isinstance(value, JilObject):
        provenance = provenance_of(value)
        if provenance is not None:
            return _constructor_tree(provenance)

    if isinstance(value, bool | int):
        return value

    if isinstance(value, str):
        return normalize_string(value)

    if isinstance(value, tuple):
        return [["array"], *(canonical_tree(item) for item in value)]

    if isinstance(value, JilObject):
        return _object_tree(value)

    if isinstance(value, Function):
        return _function_tree(value)

    raise SerializationError(f"Cannot serialize {type(value).__name__}")


def canonical_text(value: Value) -> str:
    """Returns the canonical JSON text of a value."""
    return dump_tree(canonical_tree(value))


def dump_tree(tree: Any) -> str:
    """Encodes a JSON tree compactly and deterministically."""
    return json.dumps(tree, ensure_ascii=False, separators=(",", ":"), sort_keys=True)


def _object_tree(value: JilObject) -> Any:
    if value.source is not None:
        return value.source

    if value.provenance is not None:
        return _constructor_tree(value.provenance)

    entries: List[Tuple[str, Any, Any]] = []
    for key, item in value.items():
        key_tree = canonical_tree(key)
        entries.append((dump_tree(key_tree), key_tree, canonical_tree(item)))
    entries.sort(key=lambda entry: entry[0])

    if all(isinstance(key_tree, str) for _, key_tree, _ in entries):
        return {key_tree: item_tree for _, key_tree, item_tree in entries}

    encoded: List[Any] = [["object"]]
    for _, key_tree, item_tree in entries:
        encoded.append(key_tree)
        encoded.append(item_tree)
    return encoded


def _constructor_tree(provenance: Provenance) -> Any:
    constructor = [".", canonical_tree(provenance.constructor), "new"]
    return [constructor, *(canonical_tree(arg) for arg in provenance.args)]


def _function_tree(function: Function) -> Any:
    if isinstance(function, Closure):
        return [["func"], closure_body_tree(function)]

    if isinstance(function, BoundMethod):
        return [".", canonical_tree(function.receiver), function.name]

    if isinstance(function, BoundConstructor):
        return [".", canonical_tree(function.type_object), "new"]

    if isinstance(function, NativeFunction) and function.source is not None:
        return function.source

    raise SerializationError(f"Function {function!r} has no canonical form")


def closure_body_tree(closure: Closure) -> Any:
    """
    Encodes a closure body with its captured environment inlined.

    Every identifier bound in the captured scope, host bindings and custom
    types included, is replaced by the canonical form of its value; the
    built-ins encode back to their own names. `args` always refers to the
    arguments of the innermost call, so it is never replaced. Unbound names
    are kept as written.
    """

    def resolve(name: str) -> Optional[Any]:
        if name == ARGS_NAME:
            return None
        scope = closure.scope.find(name)
        if scope is None:
            return None
        return canonical_tree(scope.lookup(name).force())

    return node_to_json(closure.body, resolve=resolve, encode_literal=canonical_tree)


# Canonical text of a value; the host-side counterpart of `[[".", v, "jil"]]`.
to_jil = canonical_text
