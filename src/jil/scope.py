"""
Lexical scopes and `where` validation.

A scope is a frame of name -> thunk bindings linked to its enclosing scope.
Lookup walks outward only. Frames are created per `where` clause, per
function invocation and per `using` extension, and are never modified
once evaluation inside them has started.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence, Tuple

from .ast import ExpressionNode, referenced_identifiers
from .error_values import CIRCULAR_DEFINITION, make_error
from .values import Value

if TYPE_CHECKING:
    from .evaluator import Evaluator

_UNFORCED = object()


class Thunk:
    """
    Deferred, memoized computation of a binding.

    A thunk evaluates its definition in its defining scope the first time it
    is forced and caches the result for every later reference.
    """

    __slots__ = ("_node", "_scope", "_evaluator", "_value", "_forcing")

    def __init__(
        self,
        node: Optional[ExpressionNode],
        scope: Optional["Scope"],
        evaluator: Optional["Evaluator"],
    ):
        self._node = node
        self._scope = scope
        self._evaluator = evaluator
        self._value = _UNFORCED
        self._forcing = False

    @classmethod
    def resolved(cls, value: Value) -> "Thunk":
        """Creates an already-forced thunk holding a value."""
        thunk = cls(None, None, None)
        thunk._value = value
        return thunk

    @property
    def is_forced(self) -> bool:
        return self._value is not _UNFORCED

    def force(self) -> Value:
        """Evaluates the definition once and returns the cached value."""
        if self._value is not _UNFORCED:
            return self._value

        if self._forcing:
            # where validation rules out cycles; this only guards against
            # re-entry through host-provided scopes.
            return make_error(CIRCULAR_DEFINITION, path=self._node.path)

        self._forcing = True
        try:
            value = self._evaluator.evaluate(self._node, self._scope)
        finally:
            self._forcing = False

        self._value = value
        self._node = None
        self._scope = None
        self._evaluator = None
        return value


class Scope:
    """Binding frame with a link to its enclosing scope."""

    __slots__ = ("_bindings", "parent", "is_global")

    def __init__(
        self,
        bindings: Optional[Mapping[str, Thunk]] = None,
        parent: Optional["Scope"] = None,
        is_global: bool = False,
    ):
        self._bindings: Dict[str, Thunk] = dict(bindings or {})
        self.parent = parent
        self.is_global = is_global

    @classmethod
    def of_values(
        cls,
        values: Mapping[str, Value],
        parent: Optional["Scope"] = None,
        is_global: bool = False,
    ) -> "Scope":
        """Creates a scope binding already-evaluated values."""
        return cls(
            {name: Thunk.resolved(value) for name, value in values.items()},
            parent,
            is_global,
        )

    @classmethod
    def for_definitions(
        cls,
        definitions: Sequence[Tuple[str, ExpressionNode]],
        parent: "Scope",
        evaluator: "Evaluator",
    ) -> "Scope":
        """
        Creates the frame of a validated `where` clause.

        Each definition is evaluated lazily in the new frame, so sibling
        definitions see each other.
        """
        frame = cls(parent=parent)
        for name, definition in definitions:
            frame._bindings[name] = Thunk(definition, frame, evaluator)
        return frame

    @property
    def names(self) -> Tuple[str, ...]:
        """Names bound directly in this frame."""
        return tuple(self._bindings)

    def find(self, name: str) -> Optional["Scope"]:
        """Finds the nearest scope in the chain that binds `name`."""
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope._bindings:
                return scope
            scope = scope.parent
        return None

    def lookup(self, name: str) -> Optional[Thunk]:
        """Looks up the thunk bound to `name`, walking outward."""
        scope = self.find(name)
        if scope is None:
            return None
        return scope._bindings[name]

    def is_visible(self, name: str) -> bool:
        return self.find(name) is not None

    def child(self, values: Mapping[str, Value]) -> "Scope":
        """Creates a child scope binding the given values."""
        return Scope.of_values(values, parent=self)


# ============================================================
# where Validation
# ============================================================


@dataclass(frozen=True)
class NameViolation:
    """A rejected `where` clause."""

    reason: str
    """One of `duplicate`, `shadowed` or `cycle`."""

    names: Tuple[str, ...]
    """Names involved; for cycles, the names along the cycle."""


_WHITE, _GRAY, _BLACK = 0, 1, 2


def find_duplicate(names: Sequence[str]) -> Optional[str]:
    """Returns the first name bound twice, if any."""
    seen = set()
    for name in names:
        if name in seen:
            return name
        seen.add(name)
    return None


def find_cycle(
    definitions: Sequence[Tuple[str, ExpressionNode]],
) -> Optional[Tuple[str, ...]]:
    """
    Detects a reference cycle among a clause's own definitions.

    Nodes are the definitions indexed by position; an edge i -> j means
    definition i references the name of definition j. Uses an iterative
    depth-first search with white/gray/black coloring; reaching a gray node
    is a back edge.

    Returns:
        The names along the cycle (first name repeated at the end), or None
    """
    index = {name: i for i, (name, _) in enumerate(definitions)}
    edges: List[List[int]] = [
        sorted(index[ref] for ref in referenced_identifiers(node) if ref in index)
        for _, node in definitions
    ]
    color = [_WHITE] * len(definitions)

    for start in range(len(definitions)):
        if color[start] != _WHITE:
            continue

        color[start] = _GRAY
        trail = [start]
        stack = [(start, iter(edges[start]))]

        while stack:
            current, successors = stack[-1]
            advanced = False
            for successor in successors:
                if color[successor] == _GRAY:
                    cycle = trail[trail.index(successor):] + [successor]
                    return tuple(definitions[i][0] for i in cycle)
                if color[successor] == _WHITE:
                    color[successor] = _GRAY
                    trail.append(successor)
                    stack.append((successor, iter(edges[successor])))
                    advanced = True
                    break
            if not advanced:
                color[current] = _BLACK
                trail.pop()
                stack.pop()

    return None


def validate_definitions(
    definitions: Sequence[Tuple[str, ExpressionNode]], enclosing: Scope
) -> Optional[NameViolation]:
    """
    Validates a `where` clause before any of it is evaluated.

    Checks, in order: duplicate names, names shadowing a binding visible
    from the enclosing scope, and reference cycles among the definitions.
    Nested `where` clauses are not validated here.
    """
    names = [name for name, _ in definitions]

    duplicate = find_duplicate(names)
    if duplicate is not None:
        return NameViolation("duplicate", (duplicate,))

    shadowed = tuple(name for name in names if enclosing.is_visible(name))
    if shadowed:
        return NameViolation("shadowed", shadowed)

    cycle = find_cycle(definitions)
    if cycle is not None:
        return NameViolation("cycle", cycle)

    return None
