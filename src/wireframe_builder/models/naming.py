"""Name allocation for auto-named nodes and lines.

Nodes are auto-named ``N1, N2, ...`` and lines ``L1, L2, ...``. The
allocator always hands out the lowest unused index, so a deleted ``N3``
is reused before ``N9`` is created. Used indices are tracked in a set;
allocation never rescans the structure's names.
"""

from __future__ import annotations

import re
from collections.abc import Iterable


class NameAllocator:
    """Index-tracked allocator for ``<prefix><k>`` names (k >= 1)."""

    def __init__(self, prefix: str, names: Iterable[str] = ()) -> None:
        self.prefix = prefix
        self._pattern = re.compile(rf"^{re.escape(prefix)}([1-9]\d*)$")
        self._used: set[int] = set()
        self._cursor = 1
        for name in names:
            self.claim(name)

    def _index(self, name: str) -> int | None:
        match = self._pattern.match(name)
        return int(match.group(1)) if match else None

    def claim(self, name: str) -> None:
        """Mark a name as used. Names outside the ``<prefix><k>`` pattern are ignored."""
        index = self._index(name)
        if index is not None:
            self._used.add(index)

    def release(self, name: str) -> None:
        """Return a name to the pool."""
        index = self._index(name)
        if index is not None and index in self._used:
            self._used.discard(index)
            self._cursor = min(self._cursor, index)

    def is_used(self, name: str) -> bool:
        index = self._index(name)
        return index is not None and index in self._used

    def peek(self) -> str:
        """Next name that ``allocate`` would return, without claiming it."""
        while self._cursor in self._used:
            self._cursor += 1
        return f"{self.prefix}{self._cursor}"

    def allocate(self) -> str:
        """Claim and return the lowest unused name."""
        name = self.peek()
        self._used.add(self._cursor)
        return name

    def __repr__(self) -> str:
        return f"NameAllocator(prefix={self.prefix!r}, used={len(self._used)})"
