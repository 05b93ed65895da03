"""
JIL: a JSON-encoded intermediate expression language.

This package provides the classifier and evaluator for JIL documents: a
deterministic, side-effect-free engine that turns a decoded JSON tree into
a value or a structured error value.
"""

# Core types and utilities
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
    Operator,
    OperatorCallNode,
    UsingNode,
    WhenNode,
    WhereNode,
    count_nodes,
    node_to_json,
)
from .classifier import Classifier, classify

# Configuration
from .config import JilConfig, create_context, load_config
from .document import FILE_EXTENSION, MEDIA_TYPE, is_jil_filename, loads
from .error_values import (
    error_chain,
    error_message,
    error_path,
    format_error_value,
    is_error,
    make_error,
    wrap_error,
)
from .errors import (
    EvaluationError,
    ExpressionError,
    ExtensionResolutionError,
    LimitExceededError,
    MalformedExpressionError,
    SerializationError,
)

# Evaluator
from .evaluator import (
    EvaluationContext,
    EvaluationResult,
    Evaluator,
    evaluate,
    evaluate_text,
)
from .extensions import ExtensionHandle, ExtensionResolver, StaticExtensionResolver
from .functions import (
    BoundConstructor,
    BoundMethod,
    BuiltinContext,
    Closure,
    Function,
    NativeFunction,
    apply_function,
)
from .limits import (
    DEFAULT_EVALUATION_LIMITS,
    EvaluationLimits,
    check_call_arg_count,
    check_collection_length,
    check_document_depth,
    check_document_node_count,
    check_evaluation_depth,
    check_step_count,
)
from .operators import values_equal
from .path import Path, format_path
from .scope import Scope
from .serializer import canonical_text, canonical_tree, to_jil
from .type_registry import BUILTIN_TYPE_NAMES, is_type_object

# Values
from .values import (
    INT32_MAX,
    INT32_MIN,
    JilObject,
    Provenance,
    Value,
    kind_of,
    to_python,
    to_value,
)

__all__ = [
    # AST types
    "ExpressionNode",
    "ExpressionNodeBase",
    "LiteralNode",
    "IdentifierNode",
    "OperatorCallNode",
    "CallNode",
    "ObjectLiteralNode",
    "ObjectFormNode",
    "IfNode",
    "WhenNode",
    "WhereNode",
    "FuncNode",
    "UsingNode",
    "Operator",
    "count_nodes",
    "node_to_json",
    # Classifier
    "Classifier",
    "classify",
    # Documents
    "FILE_EXTENSION",
    "MEDIA_TYPE",
    "is_jil_filename",
    "loads",
    # Errors
    "ExpressionError",
    "MalformedExpressionError",
    "EvaluationError",
    "LimitExceededError",
    "ExtensionResolutionError",
    "SerializationError",
    # Error values
    "is_error",
    "make_error",
    "wrap_error",
    "error_message",
    "error_path",
    "error_chain",
    "format_error_value",
    # Limits
    "EvaluationLimits",
    "DEFAULT_EVALUATION_LIMITS",
    "check_step_count",
    "check_evaluation_depth",
    "check_document_depth",
    "check_document_node_count",
    "check_call_arg_count",
    "check_collection_length",
    # Values
    "Value",
    "JilObject",
    "Provenance",
    "INT32_MIN",
    "INT32_MAX",
    "kind_of",
    "to_value",
    "to_python",
    "values_equal",
    # Functions
    "Function",
    "Closure",
    "NativeFunction",
    "BoundMethod",
    "BoundConstructor",
    "BuiltinContext",
    "apply_function",
    # Types
    "BUILTIN_TYPE_NAMES",
    "is_type_object",
    # Serialization
    "canonical_tree",
    "canonical_text",
    "to_jil",
    # Paths and scopes
    "Path",
    "format_path",
    "Scope",
    # Extensions
    "ExtensionHandle",
    "ExtensionResolver",
    "StaticExtensionResolver",
    # Evaluator
    "EvaluationContext",
    "EvaluationResult",
    "Evaluator",
    "evaluate",
    "evaluate_text",
    # Configuration
    "JilConfig",
    "load_config",
    "create_context",
]
