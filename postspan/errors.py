# postspan/errors.py

from __future__ import annotations

from typing import Any, Optional


class StateError(RuntimeError):
    """Operation not allowed in the current state (e.g. annotating a post with no text)."""


class OverlapConflict(StateError):
    """A new span overlaps an existing annotation it cannot coexist with."""

    def __init__(
        self,
        kind: type,
        begin: int,
        end: int,
        qualifier: str,
        existing: Optional[Any] = None,
    ):
        self.kind = kind
        self.begin = begin
        self.end = end
        self.qualifier = qualifier
        self.existing = existing
        super().__init__(
            f"Cannot annotate [{begin}, {end}) with a {kind.__name__}"
            f"{f' (q={qualifier!r})' if qualifier else ''}"
            f" as interval overlaps with {existing!r}"
        )


class RangeError(StateError):
    """Part of the original text to replace was already replaced."""

    def __init__(self, start: int, end: int):
        self.start = start
        self.end = end
        super().__init__(f"Range [{start}, {end}) already replaced")
