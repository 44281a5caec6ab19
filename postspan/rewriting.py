# postspan/rewriting.py

from __future__ import annotations

import json
import logging
import regex as re
from dataclasses import dataclass, replace as dc_replace
from typing import Any, Dict, Iterator, List

from postspan.errors import RangeError

logger = logging.getLogger(__name__)

TOKEN_RE = re.compile(r"\S+")


@dataclass
class Segment:
    original_start: int
    original_end: int
    rewritten_start: int
    rewritten_end: int
    unchanged: bool

    def shifted(self, delta: int) -> "Segment":
        return dc_replace(
            self,
            rewritten_start=self.rewritten_start + delta,
            rewritten_end=self.rewritten_end + delta,
        )


class TextRewrite:
    """
    Rewriting of an original string into a rewritten string through local,
    non-overlapping substitutions.

    The original string is split into contiguous segments, each either
    unchanged (copied verbatim into the rewritten string) or replaced (mapped
    to the replacement text). Segments partition both strings in lockstep, so
    any offset of the rewritten string can be mapped back to the original one
    with to_original_offset(). A region of the original string can be
    replaced only once.

    Not thread safe: a TextRewrite has a single owner at a time.
    """

    def __init__(self, original: str):
        if original is None:
            raise ValueError("original string must not be None")
        self._original = original
        self._rewritten = original
        self._segments: List[Segment] = [
            Segment(0, len(original), 0, len(original), True)
        ]

    @property
    def original(self) -> str:
        return self._original

    @property
    def rewritten(self) -> str:
        return self._rewritten

    @property
    def segments(self) -> List[Segment]:
        return [dc_replace(s) for s in self._segments]

    # ------------------------------------------------------------------
    # Replacement
    # ------------------------------------------------------------------
    def replace(self, start: int, end: int, replacement: str) -> None:
        """
        Replace original[start:end] with `replacement`.

        Raises RangeError if [start, end) is not entirely inside a region of
        the original string that is still unchanged.
        """
        if not self.try_replace(start, end, replacement):
            raise RangeError(start, end)

    def try_replace(self, start: int, end: int, replacement: str) -> bool:
        """Same as replace(), returning False instead of raising RangeError."""
        if start > end:
            raise ValueError(f"Invalid range [{start}, {end})")
        if replacement is None:
            raise ValueError("replacement must not be None")

        index = -1
        for i, seg in enumerate(self._segments):
            if seg.original_start <= start and seg.original_end >= end:
                index = i
                break
        if index < 0 or not self._segments[index].unchanged:
            return False

        seg = self._segments[index]
        delta = len(replacement) - (end - start)
        rw_start = seg.rewritten_start + (start - seg.original_start)
        rw_end = rw_start + len(replacement)

        parts: List[Segment] = []
        if start > seg.original_start:
            parts.append(Segment(seg.original_start, start, seg.rewritten_start, rw_start, True))
        parts.append(Segment(start, end, rw_start, rw_end, False))
        if end < seg.original_end:
            parts.append(Segment(end, seg.original_end, rw_end, seg.rewritten_end + delta, True))

        later = [s.shifted(delta) for s in self._segments[index + 1:]]
        self._segments = self._segments[:index] + parts + later
        self._rewritten = (
            self._rewritten[:rw_start] + replacement + self._rewritten[rw_start + end - start:]
        )
        return True

    def replace_all(self, literal: str, replacement: str, ignore_case: bool = False) -> int:
        """
        Replace every occurrence of `literal` in the original string. Fails with
        RangeError on the first occurrence that was already replaced; returns
        the number of replacements.
        """
        count = 0
        for start in self._occurrences(literal, ignore_case):
            self.replace(start, start + len(literal), replacement)
            count += 1
        return count

    def try_replace_all(self, literal: str, replacement: str, ignore_case: bool = False) -> int:
        """Same as replace_all(), skipping occurrences that cannot be replaced."""
        count = 0
        for start in self._occurrences(literal, ignore_case):
            if self.try_replace(start, start + len(literal), replacement):
                count += 1
        return count

    def _occurrences(self, literal: str, ignore_case: bool) -> Iterator[int]:
        if not literal:
            raise ValueError("literal to replace must not be empty")
        haystack = self._original.lower() if ignore_case else self._original
        needle = literal.lower() if ignore_case else literal
        start = haystack.find(needle)
        while start >= 0:
            yield start
            start = haystack.find(needle, start + len(needle))

    # ------------------------------------------------------------------
    # Offset mapping
    # ------------------------------------------------------------------
    def to_original_offset(self, offset: int) -> int:
        """
        Map an offset of the rewritten string to the original string.

        Offsets inside unchanged segments map exactly. Offsets inside replaced
        segments are located heuristically: the letter/digit window around the
        offset is searched inside the whitespace-delimited tokens of the
        replaced original text; failing that, the window start maps to the
        segment start, the window end to the segment end, and anything else to
        the first matching character in the segment (or the segment start),
        which is logged as an ambiguous mapping. Offsets outside the rewritten
        string are extrapolated linearly.
        """
        if offset >= len(self._rewritten):
            return len(self._original) + offset - len(self._rewritten)
        for seg in reversed(self._segments):
            if seg.rewritten_start <= offset:
                if seg.unchanged:
                    return seg.original_start + offset - seg.rewritten_start
                return self._map_replaced(seg, offset)
        return offset

    def _map_replaced(self, seg: Segment, offset: int) -> int:
        text = self._rewritten
        start = offset
        while start > seg.rewritten_start and text[start - 1].isalnum():
            start -= 1
        end = offset
        while end < seg.rewritten_end and text[end].isalnum():
            end += 1
        window = text[start:end].lower()

        replaced = self._original[seg.original_start:seg.original_end]
        for m in TOKEN_RE.finditer(replaced):
            index = m.group().lower().find(window)
            if index >= 0:
                return seg.original_start + m.start() + index + offset - start

        if offset == start:
            return seg.original_start
        if offset == end:
            return seg.original_end
        index = self._original.find(text[offset], seg.original_start, seg.original_end)
        if index < 0:
            index = seg.original_start
        logger.warning(
            "Mapping ambiguous rewritten offset %d to %d for rewriting %s", offset, index, self
        )
        return index

    def to_rewritten_offset(self, offset: int) -> int:
        """
        Map an offset of the original string to the rewritten string. Offsets
        inside a replaced segment are clamped to the replacement text.
        """
        if offset >= len(self._original):
            return len(self._rewritten) + offset - len(self._original)
        for seg in reversed(self._segments):
            if seg.original_start <= offset:
                delta = offset - seg.original_start
                if seg.unchanged:
                    return seg.rewritten_start + delta
                return seg.rewritten_start + min(delta, seg.rewritten_end - seg.rewritten_start)
        return offset

    # ------------------------------------------------------------------
    # Copy, equality, JSON
    # ------------------------------------------------------------------
    def copy(self) -> "TextRewrite":
        clone = TextRewrite(self._original)
        clone._rewritten = self._rewritten
        clone._segments = self.segments
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TextRewrite):
            return NotImplemented
        return (
            self._original == other._original
            and self._rewritten == other._rewritten
            and self._segments == other._segments
        )

    __hash__ = None

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"from": self._original, "to": self._rewritten}
        replacements = [
            {
                "from": self._original[s.original_start:s.original_end],
                "fromOffset": s.original_start,
                "to": self._rewritten[s.rewritten_start:s.rewritten_end],
                "toOffset": s.rewritten_start,
            }
            for s in self._segments
            if not s.unchanged
        ]
        if replacements:
            out["replacements"] = replacements
        return out

    @classmethod
    def from_json(cls, obj: Dict[str, Any]) -> "TextRewrite":
        rewrite = cls(obj["from"])
        rewrite._rewritten = obj["to"]
        replacements = sorted(
            obj.get("replacements") or [], key=lambda r: (r["fromOffset"], r["toOffset"])
        )
        original, rewritten = rewrite._original, rewrite._rewritten
        segments: List[Segment] = []
        orig_pos = 0
        rw_pos = 0
        for r in replacements:
            from_offset = int(r["fromOffset"])
            to_offset = int(r["toOffset"])
            _check_unchanged(original, rewritten, orig_pos, from_offset, rw_pos, to_offset)
            if from_offset > orig_pos:
                segments.append(Segment(orig_pos, from_offset, rw_pos, to_offset, True))
            orig_pos = from_offset + len(r["from"])
            rw_pos = to_offset + len(r["to"])
            if original[from_offset:orig_pos] != r["from"] or rewritten[to_offset:rw_pos] != r["to"]:
                raise ValueError(
                    f"Replacement {r['from']!r}@{from_offset} -> {r['to']!r}@{to_offset}"
                    " does not match the rewriting strings"
                )
            segments.append(Segment(from_offset, orig_pos, to_offset, rw_pos, False))
        _check_unchanged(original, rewritten, orig_pos, len(original), rw_pos, len(rewritten))
        if orig_pos < len(original) or not segments:
            segments.append(Segment(orig_pos, len(original), rw_pos, len(rewritten), True))
        rewrite._segments = segments
        return rewrite

    def __repr__(self) -> str:
        return json.dumps(self.to_json(), ensure_ascii=False)


def _check_unchanged(original: str, rewritten: str, orig_start: int, orig_end: int,
                     rw_start: int, rw_end: int) -> None:
    if (
        orig_end < orig_start
        or rw_end < rw_start
        or original[orig_start:orig_end] != rewritten[rw_start:rw_end]
    ):
        raise ValueError(
            f"Text between replacements differs: original [{orig_start}, {orig_end})"
            f" vs rewritten [{rw_start}, {rw_end})"
        )
