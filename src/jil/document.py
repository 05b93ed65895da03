"""
JSON document intake.

JIL documents are JSON. Decoding keeps every member of a JSON object,
duplicates included, so that `where` clauses can report duplicate names
instead of silently keeping the last definition.
"""

import json
from typing import Any, Union

from .errors import MalformedExpressionError

# File extension for persisted JIL documents.
FILE_EXTENSION = ".jil"

# Media type for JIL documents (metadata only).
MEDIA_TYPE = "application/vnd.jil+json"


class JsonObject(tuple):
    """Decoded JSON object as an ordered tuple of (key, value) members."""

    __slots__ = ()

    def keys(self) -> tuple:
        return tuple(key for key, _ in self)


def _reject_constant(name: str) -> Any:
    raise MalformedExpressionError(f"{name} is not a valid JSON number")


def loads(text: Union[str, bytes, bytearray]) -> Any:
    """
    Decodes JSON text into a tree suitable for classification.

    Objects decode to JsonObject; NaN and Infinity are rejected.

    Raises:
        MalformedExpressionError: If the text is not valid JSON
    """
    try:
        return json.loads(
            text,
            object_pairs_hook=JsonObject,
            parse_constant=_reject_constant,
        )
    except json.JSONDecodeError as e:
        raise MalformedExpressionError(
            f"Invalid JSON at line {e.lineno} column {e.colno}: {e.msg}"
        ) from e
    except RecursionError as e:
        raise MalformedExpressionError("Document is nested too deeply to decode") from e


def is_jil_filename(name: str) -> bool:
    """Checks whether a file name carries the JIL extension."""
    return name.lower().endswith(FILE_EXTENSION)
