"""
Structural paths for diagnostics.

JSON has no line or column information, so every expression node records
the sequence of array indices and object keys leading to it from the root
of the evaluated document. Produced errors carry this path.
"""

import re
from typing import Tuple, Union

PathKey = Union[int, str]

# Route from the document root to a node.
Path = Tuple[PathKey, ...]

ROOT_PATH: Path = ()

_PLAIN_KEY = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def extend_path(path: Path, key: PathKey) -> Path:
    """Returns the path of a child node."""
    return path + (key,)


def format_path(path: Path) -> str:
    """
    Renders a path for humans.

    Examples: `$`, `$[2]`, `$[2].x`, `$[1]["two words"]`.
    """
    parts = ["$"]
    for key in path:
        if isinstance(key, int):
            parts.append(f"[{key}]")
        elif _PLAIN_KEY.fullmatch(key):
            parts.append(f".{key}")
        else:
            escaped = key.replace("\\", "\\\\").replace('"', '\\"')
            parts.append(f'["{escaped}"]')
    return "".join(parts)


def path_from_value(value: object) -> Path:
    """Reads a path back from the array stored on an error value."""
    if not isinstance(value, tuple):
        return ROOT_PATH
    return tuple(
        key
        for key in value
        if isinstance(key, str) or (isinstance(key, int) and not isinstance(key, bool))
    )
