"""
Global built-in bindings.

The global scope holds:

- the four built-in type objects (`integer`, `string`, `boolean`, `error`)
- `array`, a value-mode function returning its arguments as an array
- the special-form keywords (`if`, `when`, `where`, `func`, `using`,
  `object`) as expression-mode functions, so they can be passed around and
  called like any other function value

All built-in functions are pure and deterministic.
"""

from typing import Dict, Optional, Sequence, Tuple

from .ast import (
    ExpressionNode,
    FuncNode,
    IfNode,
    LiteralNode,
    ObjectFormNode,
    ObjectLiteralNode,
    UsingNode,
    WhenNode,
    WhereNode,
)
from .error_values import TYPE_ERROR
from .functions import (
    EXPRESSION_MODE,
    BuiltinContext,
    ExpressionFunction,
    NativeFunction,
)
from .limits import check_collection_length
from .type_registry import create_builtin_types
from .values import JilObject, Value, normalize_string


def _array(args: Tuple[Value, ...], ctx: BuiltinContext) -> Value:
    check_collection_length(len(args), ctx.evaluator.limits, ctx.path)
    return tuple(args)


# ============================================================
# Special forms as functions
# ============================================================


def _if(args: Tuple[ExpressionNode, ...], ctx: BuiltinContext) -> Value:
    if len(args) != 3:
        return ctx.arity_error("if", "exactly 3", len(args))
    node = IfNode(path=ctx.path, condition=args[0], consequent=args[1], alternate=args[2])
    return ctx.evaluator.evaluate(node, ctx.scope)


def _when(args: Tuple[ExpressionNode, ...], ctx: BuiltinContext) -> Value:
    if len(args) % 2 != 1:
        return ctx.arity_error("when", "an odd number", len(args))
    clauses = tuple((args[i], args[i + 1]) for i in range(0, len(args) - 1, 2))
    node = WhenNode(path=ctx.path, clauses=clauses, otherwise=args[-1])
    return ctx.evaluator.evaluate(node, ctx.scope)


def _definitions(
    node: ExpressionNode,
) -> Optional[Sequence[Tuple[str, ExpressionNode]]]:
    if isinstance(node, ObjectLiteralNode):
        return tuple((normalize_string(name), value) for name, value in node.entries)

    # Applied to evaluated values, e.g. through `apply_function`
    if isinstance(node, LiteralNode) and isinstance(node.value, JilObject):
        if all(isinstance(name, str) for name in node.value):
            return tuple(
                (name, LiteralNode(path=node.path, value=value))
                for name, value in node.value.items()
            )
    return None


def _where(args: Tuple[ExpressionNode, ...], ctx: BuiltinContext) -> Value:
    if len(args) != 2:
        return ctx.arity_error("where", "exactly 2", len(args))

    definitions = _definitions(args[1])
    if definitions is None:
        return ctx.error(TYPE_ERROR, expected="definitions object", actual=args[1].type)

    node = WhereNode(path=ctx.path, body=args[0], definitions=definitions)
    return ctx.evaluator.evaluate(node, ctx.scope)


def _func(args: Tuple[ExpressionNode, ...], ctx: BuiltinContext) -> Value:
    if len(args) != 1:
        return ctx.arity_error("func", "exactly 1", len(args))
    return ctx.evaluator.evaluate(FuncNode(path=ctx.path, body=args[0]), ctx.scope)


def _using(args: Tuple[ExpressionNode, ...], ctx: BuiltinContext) -> Value:
    if len(args) != 2:
        return ctx.arity_error("using", "exactly 2", len(args))
    node = UsingNode(path=ctx.path, uri=args[0], body=args[1])
    return ctx.evaluator.evaluate(node, ctx.scope)


def _object(args: Tuple[ExpressionNode, ...], ctx: BuiltinContext) -> Value:
    if len(args) % 2 != 0:
        return ctx.arity_error("object", "an even number", len(args))
    entries = tuple((args[i], args[i + 1]) for i in range(0, len(args), 2))
    return ctx.evaluator.evaluate(ObjectFormNode(path=ctx.path, entries=entries), ctx.scope)


SPECIAL_FORM_FUNCTIONS: Dict[str, ExpressionFunction] = {
    "if": _if,
    "when": _when,
    "where": _where,
    "func": _func,
    "using": _using,
    "object": _object,
}


def create_global_bindings() -> Dict[str, Value]:
    """
    Creates the values bound in the global scope of an evaluator.

    A fresh set is created per evaluator; nothing here is shared between
    evaluations.
    """
    bindings: Dict[str, Value] = dict(create_builtin_types())
    bindings["array"] = NativeFunction("array", _array, source=["array"])
    for name, impl in SPECIAL_FORM_FUNCTIONS.items():
        bindings[name] = NativeFunction(name, impl, mode=EXPRESSION_MODE, source=[name])
    return bindings


def is_builtin_name(name: str) -> bool:
    """Checks if a name is bound by the built-in global scope."""
    return name in _BUILTIN_NAMES


_BUILTIN_NAMES = frozenset(create_global_bindings())
