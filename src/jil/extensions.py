"""
Extension hook for the `using` form.

`[["using"], uri, body]` evaluates `uri` to a string and asks the host's
extension resolver for a handle. The handle may inject bindings into the
scope `body` is evaluated in and may replace `body` with a rewritten
expression node. Bindings are merged first, then the rewritten body is
evaluated in the extended scope.

Resolution is a synchronous call; cancelling an in-flight resolution is the
resolver's responsibility.
"""

import logging
from abc import ABC
from typing import Any, Callable, Dict, Mapping, Optional

from .ast import ExpressionNodeBase, ExpressionNode
from .errors import ExtensionResolutionError
from .path import Path
from .values import Value, normalize_string, to_value

logger = logging.getLogger("jil.extensions")


class ExtensionHandle(ABC):
    """
    Capabilities provided by a resolved extension.

    Both hooks are optional; the defaults inject nothing and leave the body
    unchanged.
    """

    def bindings(self) -> Mapping[str, Any]:
        """Returns host values to bind around the `using` body."""
        return {}

    def rewrite(self, body: ExpressionNode) -> ExpressionNode:
        """Returns the expression to evaluate in place of the `using` body."""
        return body


# Resolves an extension URI to a handle; raising signals resolution failure.
ExtensionResolver = Callable[[str], ExtensionHandle]


class StaticExtensionResolver:
    """Resolver backed by a fixed table of URI -> handle."""

    def __init__(self, handles: Optional[Mapping[str, ExtensionHandle]] = None):
        self._handles: Dict[str, ExtensionHandle] = dict(handles or {})

    def register(self, uri: str, handle: ExtensionHandle) -> None:
        self._handles[normalize_string(uri)] = handle

    def __call__(self, uri: str) -> ExtensionHandle:
        handle = self._handles.get(uri)
        if handle is None:
            handle = self._handles.get(normalize_string(uri))
        if handle is None:
            raise ExtensionResolutionError(uri, "unknown extension")
        return handle


def resolve_extension(
    resolver: Optional[ExtensionResolver], uri: str, path: Path
) -> ExtensionHandle:
    """
    Calls the host resolver for a `using` form.

    Raises:
        ExtensionResolutionError: If no resolver is configured, the resolver
            fails, or it returns something other than an ExtensionHandle
    """
    if resolver is None:
        raise ExtensionResolutionError(uri, "no extension resolver configured", path)

    logger.debug("resolving_extension", extra={"uri": uri})

    try:
        handle = resolver(uri)
    except ExtensionResolutionError as e:
        if e.path is None:
            raise ExtensionResolutionError(e.uri, e.reason, path) from e
        raise
    except Exception as e:
        logger.debug("extension_resolution_failed", extra={"uri": uri, "error": str(e)})
        raise ExtensionResolutionError(uri, str(e), path) from e

    if not isinstance(handle, ExtensionHandle):
        raise ExtensionResolutionError(
            uri, f"resolver returned {type(handle).__name__}, not an ExtensionHandle", path
        )

    return handle


def extension_bindings(handle: ExtensionHandle, uri: str, path: Path) -> Dict[str, Value]:
    """Converts the bindings injected by a handle into JIL values."""
    bindings: Dict[str, Value] = {}
    for name, host_value in handle.bindings().items():
        try:
            bindings[normalize_string(name)] = to_value(host_value)
        except ValueError as e:
            raise ExtensionResolutionError(uri, f"binding {name!r}: {e}", path) from e
    return bindings


def rewrite_body(
    handle: ExtensionHandle, body: ExpressionNode, uri: str, path: Path
) -> ExpressionNode:
    """Applies a handle's body rewrite and checks the result is an expression."""
    rewritten = handle.rewrite(body)
    if not isinstance(rewritten, ExpressionNodeBase):
        raise ExtensionResolutionError(
            uri, f"rewrite returned {type(rewritten).__name__}, not an expression node", path
        )
    return rewritten
