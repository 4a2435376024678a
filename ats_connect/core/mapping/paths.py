"""
Dot/bracket path lookup into nested provider payloads.

``"categories.team"``, ``"offices.0.name"`` and ``"offices[0].name"`` are
all accepted. Lookups never raise: an unreachable path yields None.
"""

import re
from typing import Any, Optional

_PATH_TOKEN = re.compile(r"[^.\[\]]+")


def split_path(path: str) -> list[str]:
    return _PATH_TOKEN.findall(path or "")


def root_key(path: str) -> Optional[str]:
    """First segment of a path, i.e. the top-level payload key it reads."""
    tokens = split_path(path)
    return tokens[0] if tokens else None


def extract_path(data: Any, path: Optional[str]) -> Any:
    """Resolve ``path`` against ``data``."""
    if not path:
        return None

    # A literal key wins over traversal, e.g. {"a.b": 1}
    if isinstance(data, dict) and path in data:
        return data[path]

    current = data
    for token in split_path(path):
        if isinstance(current, dict):
            current = current.get(token)
        elif isinstance(current, list):
            if not token.isdigit() or int(token) >= len(current):
                return None
            current = current[int(token)]
        else:
            return None
        if current is None:
            return None
    return current
