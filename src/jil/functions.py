"""
Function values and application.

Every callable value has a parameter-passing mode:

- "value": arguments are evaluated in the caller's scope and the callee
  receives values (user closures, `array`, built-in methods)
- "expression": the callee receives the raw argument nodes and decides
  what to evaluate (the special forms exposed as global functions)

Applying a closure evaluates its body in a fresh scope that binds `args`
and chains to the scope captured when the `func` form was evaluated.
"""

from abc import ABC
from typing import TYPE_CHECKING, Any, Callable, Literal, Optional, Sequence, Tuple

from .ast import ExpressionNode, LiteralNode
from .error_values import INVALID_ARITY, is_error, make_error, type_error
from .limits import check_call_arg_count
from .path import Path
from .values import JilObject, Provenance, Value, with_provenance

if TYPE_CHECKING:
    from .evaluator import Evaluator
    from .scope import Scope

PassingMode = Literal["value", "expression"]

VALUE_MODE: PassingMode = "value"
EXPRESSION_MODE: PassingMode = "expression"

# Name bound to the argument array inside a closure body.
ARGS_NAME = "args"


class BuiltinContext:
    """Context passed to native functions."""

    def __init__(self, evaluator: "Evaluator", scope: "Scope", path: Path):
        self.evaluator = evaluator
        self.scope = scope
        self.path = path

    def error(self, message: str, inner: Optional[Value] = None, **fields: Value) -> JilObject:
        """Creates an error value located at the call site."""
        return make_error(message, inner=inner, path=self.path, **fields)

    def type_error(self, expected: str, actual: Value, **fields: Value) -> JilObject:
        """Creates a type error located at the call site."""
        return type_error(expected, actual, path=self.path, **fields)

    def arity_error(self, name: str, expected: str, actual: int) -> JilObject:
        return self.error(INVALID_ARITY, function=name, expected=expected, actual=actual)


# Signature of a value-mode native function.
ValueFunction = Callable[[Tuple[Value, ...], BuiltinContext], Value]

# Signature of an expression-mode native function.
ExpressionFunction = Callable[[Tuple[ExpressionNode, ...], BuiltinContext], Value]

# Signature of a built-in method bound to a receiver.
MethodFunction = Callable[[Value, Tuple[Value, ...], BuiltinContext], Value]


class Function(ABC):
    """Base class for all callable values."""

    __slots__ = ()

    mode: PassingMode = VALUE_MODE


class Closure(Function):
    """User function created by a `func` form."""

    __slots__ = ("body", "scope", "path")

    def __init__(self, body: ExpressionNode, scope: "Scope", path: Path):
        self.body = body
        self.scope = scope
        self.path = path

    def __repr__(self) -> str:
        return f"<Closure at {self.path!r}>"


class NativeFunction(Function):
    """Host-implemented function."""

    __slots__ = ("name", "impl", "mode", "source")

    def __init__(
        self,
        name: str,
        impl: Callable[..., Value],
        mode: PassingMode = VALUE_MODE,
        source: Any = None,
    ):
        self.name = name
        self.impl = impl
        self.mode = mode
        # Canonical JSON tree that evaluates back to this function, if any
        self.source = source

    def __repr__(self) -> str:
        return f"<NativeFunction {self.name} ({self.mode})>"


class BoundMethod(Function):
    """Built-in method selected through the dot operator, e.g. `v.equals`."""

    __slots__ = ("receiver", "name", "impl")

    def __init__(self, receiver: Value, name: str, impl: MethodFunction):
        self.receiver = receiver
        self.name = name
        self.impl = impl

    def __repr__(self) -> str:
        return f"<BoundMethod {self.name}>"


class BoundConstructor(Function):
    """
    A type's `new` selected through the dot operator.

    Object results are tagged with the type and arguments so that their
    canonical form is the constructor call.
    """

    __slots__ = ("type_object", "constructor")

    def __init__(self, type_object: JilObject, constructor: Function):
        self.type_object = type_object
        self.constructor = constructor

    @property
    def mode(self) -> PassingMode:  # type: ignore[override]
        return self.constructor.mode

    def __repr__(self) -> str:
        return f"<BoundConstructor {self.constructor!r}>"


def call_function(
    evaluator: "Evaluator",
    function: Function,
    arg_nodes: Sequence[ExpressionNode],
    scope: "Scope",
    path: Path,
) -> Value:
    """
    Calls a function with unevaluated argument expressions.

    Value-mode functions get their arguments evaluated left to right in the
    caller's scope; expression-mode functions get the nodes themselves.
    """
    check_call_arg_count(len(arg_nodes), evaluator.limits, path)

    if function.mode == "expression" and not isinstance(function, BoundConstructor):
        return function.impl(tuple(arg_nodes), BuiltinContext(evaluator, scope, path))

    values = tuple(evaluator.evaluate(node, scope) for node in arg_nodes)
    return apply_function(evaluator, function, values, path)


def apply_function(
    evaluator: "Evaluator",
    function: Function,
    values: Sequence[Value],
    path: Path,
) -> Value:
    """Applies a function to already-evaluated arguments."""
    values = tuple(values)
    check_call_arg_count(len(values), evaluator.limits, path)

    if isinstance(function, Closure):
        frame = function.scope.child({ARGS_NAME: values})
        return evaluator.evaluate(function.body, frame)

    if isinstance(function, BoundConstructor):
        result = apply_function(evaluator, function.constructor, values, path)
        if not is_error(result):
            result = with_provenance(result, Provenance(function.type_object, values))
        return result

    context = BuiltinContext(evaluator, evaluator.global_scope, path)

    if isinstance(function, BoundMethod):
        return function.impl(function.receiver, values, context)

    if function.mode == "expression":
        nodes = tuple(LiteralNode(path=path, value=value) for value in values)
        return function.impl(nodes, context)

    return function.impl(values, context)

