"""
Classifier for JIL documents.

Maps a decoded JSON tree onto expression nodes. Rules, in priority order:

1. String: string literal
2. Boolean: boolean literal
3. Number: integer literal (must fit in 32 bits)
4. One-element array holding a string: identifier
5. Array headed by an operator token: operator call
6. Array headed by a one-element keyword array: special form
7. Any other non-empty array: generic call (head is the callee)
8. Object: object literal
"""

from collections.abc import Mapping
from typing import Any, List, Optional, Sequence, Tuple

from .ast import (
    OPERATOR_TOKENS,
    SPECIAL_FORMS,
    CallNode,
    ExpressionNode,
    FuncNode,
    IdentifierNode,
    IfNode,
    LiteralNode,
    ObjectFormNode,
    ObjectLiteralNode,
    OperatorCallNode,
    UsingNode,
    WhenNode,
    WhereNode,
    count_nodes,
)
from .document import JsonObject
from .errors import LimitExceededError, MalformedExpressionError
from .limits import (
    DEFAULT_EVALUATION_LIMITS,
    EvaluationLimits,
    check_document_depth,
    check_document_node_count,
)
from .path import ROOT_PATH, Path, extend_path
from .values import is_int32, normalize_string


class Classifier:
    """Classifier for decoded JSON trees."""

    def __init__(self, limits: EvaluationLimits = DEFAULT_EVALUATION_LIMITS):
        self._limits = limits
        self._max_depth = 0
        self._deepest_path: Path = ROOT_PATH

    def classify(self, tree: Any, path: Path = ROOT_PATH) -> ExpressionNode:
        """Classifies a JSON tree into an expression node."""
        try:
            node = self._classify(tree, path, 1)
        except RecursionError as e:
            # The nesting limit is set above what the interpreter stack can hold
            raise LimitExceededError(
                "max_document_depth",
                self._limits.max_document_depth,
                self._max_depth,
                self._deepest_path,
            ) from e

        # Validate document limits
        check_document_node_count(count_nodes(node), self._limits)

        return node

    # ============================================================
    # Dispatch
    # ============================================================

    def _classify(self, tree: Any, path: Path, depth: int) -> ExpressionNode:
        check_document_depth(depth, self._limits, path)
        if depth > self._max_depth:
            self._max_depth = depth
            self._deepest_path = path

        if isinstance(tree, str):
            return LiteralNode(path=path, value=tree)

        if isinstance(tree, bool):
            return LiteralNode(path=path, value=tree)

        if isinstance(tree, int):
            if not is_int32(tree):
                raise MalformedExpressionError(
                    f"Integer {tree} is outside the signed 32-bit range", path
                )
            return LiteralNode(path=path, value=tree)

        if isinstance(tree, float):
            if not tree.is_integer() or not is_int32(int(tree)):
                raise MalformedExpressionError(
                    f"Number {tree!r} is not a signed 32-bit integer", path
                )
            return LiteralNode(path=path, value=int(tree))

        if tree is None:
            raise MalformedExpressionError("null is not a JIL expression", path)

        if isinstance(tree, JsonObject) or isinstance(tree, Mapping):
            return ObjectLiteralNode(
                path=path, entries=self._members(tree, path, depth)
            )

        if isinstance(tree, list | tuple):
            return self._classify_array(tree, path, depth)

        raise MalformedExpressionError(
            f"Unsupported JSON value of type {type(tree).__name__}", path
        )

    def _classify_array(
        self, tree: Sequence[Any], path: Path, depth: int
    ) -> ExpressionNode:
        if not tree:
            raise MalformedExpressionError("Empty array is not an expression", path)

        head = tree[0]

        if len(tree) == 1 and isinstance(head, str):
            return IdentifierNode(path=path, name=normalize_string(head))

        if isinstance(head, str) and head in OPERATOR_TOKENS:
            return OperatorCallNode(
                path=path,
                operator=head,
                operands=self._elements(tree, 1, path, depth),
            )

        keyword = _special_form_keyword(head)
        if keyword is not None:
            return self._classify_special_form(keyword, tree, path, depth)

        return CallNode(
            path=path,
            callee=self._classify(head, extend_path(path, 0), depth + 1),
            args=self._elements(tree, 1, path, depth),
        )

    # ============================================================
    # Special Forms
    # ============================================================

    def _classify_special_form(
        self, keyword: str, tree: Sequence[Any], path: Path, depth: int
    ) -> ExpressionNode:
        args = self._elements(tree, 1, path, depth)
        count = len(args)

        if keyword == "if":
            self._require(count == 3, "if requires exactly 3 arguments", count, path)
            return IfNode(
                path=path, condition=args[0], consequent=args[1], alternate=args[2]
            )

        if keyword == "when":
            self._require(
                count % 2 == 1,
                "when requires condition/result pairs and a final else",
                count,
                path,
            )
            clauses = tuple(
                (args[i], args[i + 1]) for i in range(0, count - 1, 2)
            )
            return WhenNode(path=path, clauses=clauses, otherwise=args[-1])

        if keyword == "where":
            self._require(count == 2, "where requires exactly 2 arguments", count, path)
            definitions = tree[2]
            definitions_path = extend_path(path, 2)
            if not (isinstance(definitions, JsonObject) or isinstance(definitions, Mapping)):
                raise MalformedExpressionError(
                    "where definitions must be a JSON object", definitions_path
                )
            # Definitions were already classified as an object literal above;
            # reuse those nodes under their binding names.
            return WhereNode(
                path=path,
                body=args[0],
                definitions=tuple(
                    (normalize_string(name), node) for name, node in args[1].entries
                ),
            )

        if keyword == "func":
            self._require(count == 1, "func requires exactly 1 argument", count, path)
            return FuncNode(path=path, body=args[0])

        if keyword == "using":
            self._require(count == 2, "using requires exactly 2 arguments", count, path)
            return UsingNode(path=path, uri=args[0], body=args[1])

        # keyword == "object"
        self._require(
            count % 2 == 0, "object requires key/value pairs", count, path
        )
        entries = tuple((args[i], args[i + 1]) for i in range(0, count, 2))
        return ObjectFormNode(path=path, entries=entries)

    # ============================================================
    # Helpers
    # ============================================================

    def _elements(
        self, tree: Sequence[Any], start: int, path: Path, depth: int
    ) -> Tuple[ExpressionNode, ...]:
        return tuple(
            self._classify(tree[i], extend_path(path, i), depth + 1)
            for i in range(start, len(tree))
        )

    def _members(
        self, tree: Any, path: Path, depth: int
    ) -> Tuple[Tuple[str, ExpressionNode], ...]:
        members = tree if isinstance(tree, JsonObject) else tuple(tree.items())
        entries: List[Tuple[str, ExpressionNode]] = []
        for key, value in members:
            if not isinstance(key, str):
                raise MalformedExpressionError(
                    f"Object keys must be strings, got {type(key).__name__}", path
                )
            entries.append(
                (key, self._classify(value, extend_path(path, key), depth + 1))
            )
        return tuple(entries)

    @staticmethod
    def _require(condition: bool, message: str, count: int, path: Path) -> None:
        if not condition:
            raise MalformedExpressionError(f"{message}, got {count}", path)


def _special_form_keyword(head: Any) -> Optional[str]:
    """Returns the keyword when `head` is a one-element keyword array."""
    if (
        isinstance(head, list | tuple)
        and not isinstance(head, JsonObject)
        and len(head) == 1
        and isinstance(head[0], str)
        and head[0] in SPECIAL_FORMS
    ):
        return head[0]
    return None


def classify(
    tree: Any, limits: Optional[EvaluationLimits] = None
) -> ExpressionNode:
    """
    Classifies a decoded JSON tree into an expression node.

    Args:
        tree: The decoded JSON document
        limits: Optional document limits

    Returns:
        The root expression node

    Raises:
        MalformedExpressionError: If the tree violates the expression grammar
        LimitExceededError: If the document exceeds size or nesting limits
    """
    classifier = Classifier(limits or DEFAULT_EVALUATION_LIMITS)
    return classifier.classify(tree)
