"""
Expression evaluator.

Evaluates a classified expression against a scope chain and returns a
value. Evaluation is pure: JIL-level faults come back as error values and
only host-level faults (resource limits, extension resolution) raise.

Each evaluator owns its global scope (built-in types, `array`, the special
forms as functions, then custom types and host bindings) and a step budget
shared by every evaluation it performs.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union, cast

from .ast import (
    CallNode,
    ExpressionNode,
    ExpressionNodeBase,
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
)
from .builtins import create_global_bindings, is_builtin_name
from .classifier import classify
from .document import loads
from .error_values import (
    DUPLICATE_KEY,
    NAME_VALIDATION_ERROR,
    UNRESOLVED_IDENTIFIER,
    error_path,
    format_error_value,
    is_error,
    make_error,
    type_error,
)
from .errors import LimitExceededError
from .extensions import (
    ExtensionResolver,
    extension_bindings,
    resolve_extension,
    rewrite_body,
)
from .functions import Closure, Function, call_function
from .limits import (
    DEFAULT_EVALUATION_LIMITS,
    EvaluationLimits,
    check_collection_length,
    check_evaluation_depth,
    check_step_count,
)
from .operators import evaluate_operator
from .path import ROOT_PATH, Path, format_path
from .scope import Scope, validate_definitions
from .type_registry import is_type_object
from .values import JilObject, Value, is_string, normalize_string, to_value, value_key

logger = logging.getLogger("jil.evaluator")


@dataclass
class EvaluationContext:
    """Evaluation context with host bindings and limits."""

    bindings: Mapping[str, Any] = field(default_factory=dict)
    """Host values bound in the global scope (converted with `to_value`)."""

    limits: Optional[EvaluationLimits] = None
    """Resource limits."""

    extension_resolver: Optional[ExtensionResolver] = None
    """Collaborator consulted by the `using` form."""

    types: Mapping[str, Any] = field(default_factory=dict)
    """Custom type objects bound in the global scope."""


@dataclass
class EvaluationResult:
    """Result of evaluating a document."""

    value: Value
    """The evaluated value (possibly an error value)."""

    success: bool
    """Whether the value is not an error value."""

    error: Optional[str] = None
    """Readable error chain if the value is an error value."""

    path: Optional[Path] = None
    """Document path recorded on the outermost error, if any."""

    steps: int = 0
    """Evaluation steps consumed."""


class Evaluator:
    """Evaluates expression nodes and returns values."""

    def __init__(self, context: Optional[EvaluationContext] = None):
        context = context or EvaluationContext()
        self._context = context
        self._limits = context.limits or DEFAULT_EVALUATION_LIMITS
        self._extension_resolver = context.extension_resolver
        self._global_scope = self._create_global_scope(context)
        self._steps = 0
        self._depth = 0
        self._max_depth = 0
        self._deepest_path: Path = ROOT_PATH
        self._path: Path = ROOT_PATH

    @property
    def limits(self) -> EvaluationLimits:
        return self._limits

    @property
    def global_scope(self) -> Scope:
        return self._global_scope

    @property
    def path(self) -> Path:
        """Path of the node currently being evaluated."""
        return self._path

    @property
    def steps(self) -> int:
        return self._steps

    @property
    def max_depth(self) -> int:
        """Deepest evaluation nesting reached so far."""
        return self._max_depth

    @property
    def deepest_path(self) -> Path:
        """Path of the node evaluated at the deepest nesting."""
        return self._deepest_path

    def _create_global_scope(self, context: EvaluationContext) -> Scope:
        bindings: Dict[str, Value] = create_global_bindings()

        for name, type_object in context.types.items():
            type_object = to_value(type_object)
            if not is_type_object(type_object):
                raise ValueError(
                    f"Custom type {name!r} must have function fields new, is, cast and coerce"
                )
            self._bind(bindings, name, type_object)

        for name, host_value in context.bindings.items():
            self._bind(bindings, name, to_value(host_value))

        return Scope.of_values(bindings, is_global=True)

    @staticmethod
    def _bind(bindings: Dict[str, Value], name: str, value: Value) -> None:
        name = normalize_string(name)
        if is_builtin_name(name):
            logger.warning("host_binding_replaces_builtin", extra={"binding": name})
        bindings[name] = value

    def evaluate(self, node: ExpressionNode, scope: Optional[Scope] = None) -> Value:
        """
        Evaluates a node in a scope (the global scope by default).

        Raises:
            LimitExceededError: If the step budget or depth limit is exhausted
            ExtensionResolutionError: If a `using` extension cannot be resolved
        """
        if scope is None:
            scope = self._global_scope

        self._steps += 1
        self._depth += 1
        if self._depth > self._max_depth:
            self._max_depth = self._depth
            self._deepest_path = node.path
        previous_path = self._path
        self._path = node.path
        try:
            check_step_count(self._steps, self._limits, node.path)
            check_evaluation_depth(self._depth, self._limits, node.path)
            return self._evaluate_node(node, scope)
        finally:
            self._depth -= 1
            self._path = previous_path

    def _evaluate_node(self, node: ExpressionNode, scope: Scope) -> Value:
        node_type = node.type

        if node_type == "Literal":
            value = cast(LiteralNode, node).value
            if isinstance(value, str):
                return normalize_string(value)
            return value

        if node_type == "Identifier":
            return self._evaluate_identifier(cast(IdentifierNode, node), scope)

        if node_type == "OperatorCall":
            return evaluate_operator(self, cast(OperatorCallNode, node), scope)

        if node_type == "Call":
            return self._evaluate_call(cast(CallNode, node), scope)

        if node_type == "ObjectLiteral":
            return self._evaluate_object_literal(cast(ObjectLiteralNode, node), scope)

        if node_type == "ObjectForm":
            return self._evaluate_object_form(cast(ObjectFormNode, node), scope)

        if node_type == "If":
            n = cast(IfNode, node)
            if self.evaluate(n.condition, scope) is True:
                return self.evaluate(n.consequent, scope)
            return self.evaluate(n.alternate, scope)

        if node_type == "When":
            n = cast(WhenNode, node)
            for condition, result in n.clauses:
                if self.evaluate(condition, scope) is True:
                    return self.evaluate(result, scope)
            return self.evaluate(n.otherwise, scope)

        if node_type == "Where":
            return self._evaluate_where(cast(WhereNode, node), scope)

        if node_type == "Func":
            n = cast(FuncNode, node)
            return Closure(n.body, scope, n.path)

        if node_type == "Using":
            return self._evaluate_using(cast(UsingNode, node), scope)

        raise ValueError(f"Unknown node type: {node_type}")

    def _evaluate_identifier(self, node: IdentifierNode, scope: Scope) -> Value:
        thunk = scope.lookup(node.name)
        if thunk is None:
            return make_error(UNRESOLVED_IDENTIFIER, path=node.path, name=node.name)
        return thunk.force()

    def _evaluate_call(self, node: CallNode, scope: Scope) -> Value:
        callee = self.evaluate(node.callee, scope)
        if not isinstance(callee, Function):
            return type_error("function", callee, node.path)
        return call_function(self, callee, node.args, scope, node.path)

    def _evaluate_object_literal(self, node: ObjectLiteralNode, scope: Scope) -> Value:
        check_collection_length(len(node.entries), self._limits, node.path)

        seen = set()
        for key, _ in node.entries:
            key = normalize_string(key)
            if key in seen:
                return make_error(DUPLICATE_KEY, path=node.path, key=key)
            seen.add(key)

        return JilObject(
            (key, self.evaluate(value, scope)) for key, value in node.entries
        )

    def _evaluate_object_form(self, node: ObjectFormNode, scope: Scope) -> Value:
        check_collection_length(len(node.entries), self._limits, node.path)

        seen = set()
        items = []
        for key_node, value_node in node.entries:
            key = self.evaluate(key_node, scope)
            marker = value_key(key)
            if marker in seen:
                return make_error(DUPLICATE_KEY, path=node.path, key=key)
            seen.add(marker)
            items.append((key, self.evaluate(value_node, scope)))
        return JilObject(items)

    def _evaluate_where(self, node: WhereNode, scope: Scope) -> Value:
        violation = validate_definitions(node.definitions, scope)
        if violation is not None:
            logger.debug(
                "where_validation_failed",
                extra={
                    "reason": violation.reason,
                    "names": list(violation.names),
                    "where_path": format_path(node.path),
                },
            )
            return make_error(
                NAME_VALIDATION_ERROR,
                path=node.path,
                reason=violation.reason,
                names=violation.names,
            )

        frame = Scope.for_definitions(node.definitions, scope, self)
        return self.evaluate(node.body, frame)

    def _evaluate_using(self, node: UsingNode, scope: Scope) -> Value:
        uri = self.evaluate(node.uri, scope)
        if not is_string(uri):
            return type_error("string", uri, node.path, form="using")

        handle = resolve_extension(self._extension_resolver, uri, node.path)
        bindings = extension_bindings(handle, uri, node.path)
        body = rewrite_body(handle, node.body, uri, node.path)

        frame = scope.child(bindings) if bindings else scope
        return self.evaluate(body, frame)

    def result(self, value: Value) -> EvaluationResult:
        """Packages a value produced by this evaluator."""
        if is_error(value):
            return EvaluationResult(
                value=value,
                success=False,
                error=format_error_value(value),
                path=error_path(value),
                steps=self._steps,
            )
        return EvaluationResult(value=value, success=True, steps=self._steps)


def evaluate(
    tree: Union[ExpressionNode, Any], context: Optional[EvaluationContext] = None
) -> EvaluationResult:
    """
    Classifies (if needed) and evaluates a document.

    Args:
        tree: A decoded JSON tree or an already classified expression node
        context: Optional evaluation context with bindings and limits

    Returns:
        The evaluation result; JIL error values are reported through
        `success=False`, not raised

    Raises:
        MalformedExpressionError: If the tree cannot be classified
        LimitExceededError: If a resource limit is exceeded
        ExtensionResolutionError: If a `using` extension cannot be resolved
    """
    evaluator = Evaluator(context)

    if isinstance(tree, ExpressionNodeBase):
        node = tree
    else:
        node = classify(tree, evaluator.limits)

    try:
        value = _evaluate_bounded(evaluator, node)
    except LimitExceededError as e:
        logger.warning(
            "evaluation_limit_exceeded",
            extra={
                "limit_name": e.limit_name,
                "limit": e.limit,
                "actual": e.actual,
                "at": format_path(e.path or ROOT_PATH),
            },
        )
        raise

    return evaluator.result(value)


def _evaluate_bounded(evaluator: Evaluator, node: ExpressionNode) -> Value:
    # A depth limit above what the interpreter stack can hold surfaces here
    try:
        return evaluator.evaluate(node)
    except RecursionError as e:
        raise LimitExceededError(
            "max_evaluation_depth",
            evaluator.limits.max_evaluation_depth,
            evaluator.max_depth,
            evaluator.deepest_path,
        ) from e


def evaluate_text(
    text: Union[str, bytes], context: Optional[EvaluationContext] = None
) -> EvaluationResult:
    """
    Decodes, classifies and evaluates a JIL document given as JSON text.

    Raises:
        MalformedExpressionError: If the text is not valid JSON or not a
            valid expression
        LimitExceededError: If a resource limit is exceeded
        ExtensionResolutionError: If a `using` extension cannot be resolved
    """
    return evaluate(loads(text), context)
