"""
Expression node types for JIL.

Nodes are produced by the classifier from a decoded JSON tree and consumed
by the evaluator. Every node records its path in the source document; the
path is diagnostic only and does not take part in node equality.
"""

from abc import ABC
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Literal, Optional, Sequence, Set, Tuple, Union

from .path import Path

# ============================================================
# Operator and Keyword Tables
# ============================================================

Operator = Literal[
    "+",
    "-",
    "*",
    "/",
    "&",
    "|",
    "!",
    "==",
    "!=",
    "<",
    "<=",
    ">",
    ">=",
    ".",
]

ARITHMETIC_OPERATORS = ("+", "-", "*", "/")
LOGICAL_OPERATORS = ("&", "|")
EQUALITY_OPERATORS = ("==", "!=")
ORDERING_OPERATORS = ("<", "<=", ">", ">=")

OPERATOR_TOKENS = frozenset(
    ARITHMETIC_OPERATORS
    + LOGICAL_OPERATORS
    + EQUALITY_OPERATORS
    + ORDERING_OPERATORS
    + ("!", ".")
)

SpecialForm = Literal["if", "when", "where", "func", "using", "object"]

SPECIAL_FORMS = frozenset(("if", "when", "where", "func", "using", "object"))


# ============================================================
# Node Types
# ============================================================


@dataclass(frozen=True)
class ExpressionNodeBase(ABC):
    """Base class for all expression nodes."""

    path: Path = field(compare=False)
    """Path of the node in the source document (for diagnostics)."""


@dataclass(frozen=True)
class LiteralNode(ExpressionNodeBase):
    """Literal value node."""

    value: Any

    @property
    def type(self) -> Literal["Literal"]:
        return "Literal"


@dataclass(frozen=True)
class IdentifierNode(ExpressionNodeBase):
    """Identifier node, e.g. `["x"]`."""

    name: str

    @property
    def type(self) -> Literal["Identifier"]:
        return "Identifier"


@dataclass(frozen=True)
class OperatorCallNode(ExpressionNodeBase):
    """Operator call node, e.g. `["+", 1, 2]`."""

    operator: Operator
    operands: Sequence["ExpressionNode"]

    @property
    def type(self) -> Literal["OperatorCall"]:
        return "OperatorCall"


@dataclass(frozen=True)
class CallNode(ExpressionNodeBase):
    """Generic function call node, e.g. `[["f"], 1, 2]`."""

    callee: "ExpressionNode"
    args: Sequence["ExpressionNode"]

    @property
    def type(self) -> Literal["Call"]:
        return "Call"


@dataclass(frozen=True)
class ObjectLiteralNode(ExpressionNodeBase):
    """Object literal node written as a JSON object (string keys)."""

    entries: Sequence[Tuple[str, "ExpressionNode"]]

    @property
    def type(self) -> Literal["ObjectLiteral"]:
        return "ObjectLiteral"


@dataclass(frozen=True)
class ObjectFormNode(ExpressionNodeBase):
    """`object` form node with evaluated keys, e.g. `[["object"], 1, "one"]`."""

    entries: Sequence[Tuple["ExpressionNode", "ExpressionNode"]]

    @property
    def type(self) -> Literal["ObjectForm"]:
        return "ObjectForm"


@dataclass(frozen=True)
class IfNode(ExpressionNodeBase):
    """`if` form node."""

    condition: "ExpressionNode"
    consequent: "ExpressionNode"
    alternate: "ExpressionNode"

    @property
    def type(self) -> Literal["If"]:
        return "If"


@dataclass(frozen=True)
class WhenNode(ExpressionNodeBase):
    """`when` form node: condition/result pairs and a trailing fallback."""

    clauses: Sequence[Tuple["ExpressionNode", "ExpressionNode"]]
    otherwise: "ExpressionNode"

    @property
    def type(self) -> Literal["When"]:
        return "When"


@dataclass(frozen=True)
class WhereNode(ExpressionNodeBase):
    """`where` form node; definitions keep duplicates for validation."""

    body: "ExpressionNode"
    definitions: Sequence[Tuple[str, "ExpressionNode"]]

    @property
    def type(self) -> Literal["Where"]:
        return "Where"


@dataclass(frozen=True)
class FuncNode(ExpressionNodeBase):
    """`func` form node."""

    body: "ExpressionNode"

    @property
    def type(self) -> Literal["Func"]:
        return "Func"


@dataclass(frozen=True)
class UsingNode(ExpressionNodeBase):
    """`using` form node."""

    uri: "ExpressionNode"
    body: "ExpressionNode"

    @property
    def type(self) -> Literal["Using"]:
        return "Using"


# Union type for all expression nodes
ExpressionNode = Union[
    LiteralNode,
    IdentifierNode,
    OperatorCallNode,
    CallNode,
    ObjectLiteralNode,
    ObjectFormNode,
    IfNode,
    WhenNode,
    WhereNode,
    FuncNode,
    UsingNode,
]


# ============================================================
# Node Utilities
# ============================================================


def iter_children(node: ExpressionNode) -> Iterator[ExpressionNode]:
    """Yields the direct sub-expressions of a node in evaluation order."""
    node_type = node.type

    if node_type in ("Literal", "Identifier"):
        return

    if node_type == "OperatorCall":
        yield from node.operands
    elif node_type == "Call":
        yield node.callee
        yield from node.args
    elif node_type == "ObjectLiteral":
        for _, value in node.entries:
            yield value
    elif node_type == "ObjectForm":
        for key, value in node.entries:
            yield key
            yield value
    elif node_type == "If":
        yield node.condition
        yield node.consequent
        yield node.alternate
    elif node_type == "When":
        for condition, result in node.clauses:
            yield condition
            yield result
        yield node.otherwise
    elif node_type == "Where":
        yield node.body
        for _, definition in node.definitions:
            yield definition
    elif node_type == "Func":
        yield node.body
    elif node_type == "Using":
        yield node.uri
        yield node.body


def count_nodes(node: ExpressionNode) -> int:
    """Counts the total number of nodes in an expression tree."""
    count = 0
    stack = [node]
    while stack:
        current = stack.pop()
        count += 1
        stack.extend(iter_children(current))
    return count


def referenced_identifiers(node: ExpressionNode) -> Set[str]:
    """Collects every identifier name referenced anywhere below a node."""
    names: Set[str] = set()
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "Identifier":
            names.add(current.name)
        else:
            stack.extend(iter_children(current))
    return names


# Replaces an identifier by a JSON tree, or returns None to keep it.
IdentifierResolver = Callable[[str], Optional[Any]]


def _is_keyword_head(tree: Any) -> bool:
    return (
        isinstance(tree, list)
        and len(tree) == 1
        and isinstance(tree[0], str)
        and tree[0] in SPECIAL_FORMS
    )


def node_to_json(
    node: ExpressionNode,
    resolve: Optional[IdentifierResolver] = None,
    encode_literal: Optional[Callable[[Any], Any]] = None,
) -> Any:
    """
    Re-encodes an expression node as a JSON tree.

    Args:
        node: The node to encode
        resolve: Optional substitution for identifiers (e.g. captured values)
        encode_literal: Encoder for literal values that are not JSON atoms
    """

    def encode(current: ExpressionNode) -> Any:
        node_type = current.type

        if node_type == "Literal":
            value = current.value
            if isinstance(value, bool | int | str):
                return value
            if encode_literal is None:
                raise ValueError(f"Cannot encode literal {value!r} as JSON")
            return encode_literal(value)

        if node_type == "Identifier":
            if resolve is not None:
                replacement = resolve(current.name)
                if replacement is not None:
                    return replacement
            return [current.name]

        if node_type == "OperatorCall":
            return [current.operator, *(encode(o) for o in current.operands)]

        if node_type == "Call":
            callee = encode(current.callee)
            if isinstance(callee, str) and (
                not current.args or callee in OPERATOR_TOKENS
            ):
                # A bare string here would read back as an identifier or
                # operator token, so spell the literal through `if`.
                callee = [["if"], True, callee, callee]
            elif _is_keyword_head(callee):
                # `[["if"], ...]` would read back as the special form itself
                callee = [["if"], True, callee, callee]
            return [callee, *(encode(a) for a in current.args)]

        if node_type == "ObjectLiteral":
            return {key: encode(value) for key, value in current.entries}

        if node_type == "ObjectForm":
            encoded = [["object"]]
            for key, value in current.entries:
                encoded.append(encode(key))
                encoded.append(encode(value))
            return encoded

        if node_type == "If":
            return [
                ["if"],
                encode(current.condition),
                encode(current.consequent),
                encode(current.alternate),
            ]

        if node_type == "When":
            encoded = [["when"]]
            for condition, result in current.clauses:
                encoded.append(encode(condition))
                encoded.append(encode(result))
            encoded.append(encode(current.otherwise))
            return encoded

        if node_type == "Where":
            return [
                ["where"],
                encode(current.body),
                {name: encode(d) for name, d in current.definitions},
            ]

        if node_type == "Func":
            return [["func"], encode(current.body)]

        if node_type == "Using":
            return [["using"], encode(current.uri), encode(current.body)]

        raise ValueError(f"Unknown node type: {node_type}")

    return encode(node)
