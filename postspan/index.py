# postspan/index.py

from __future__ import annotations

import itertools
import logging
from typing import Dict, Iterator, List, Optional, Any

from postspan.detect_regex import find_spans
from postspan.errors import OverlapConflict, StateError
from postspan.models import (
    ANNOTATION_TYPES,
    DEFAULT_QUALIFIER,
    Annotation,
    Entity,
    kind_for_json,
)

logger = logging.getLogger(__name__)


class SpanIndex:
    """
    Ordered set of annotations over one text.

    Overlap policy enforced by add():
      - same type and qualifier: identical range returns the existing
        annotation, any other overlap is a conflict
      - same type, different qualifier: independent layers, always coexist
      - Entity vs non-Entity: always coexist
      - two different non-Entity types: overlapping is a conflict
    """

    def __init__(self, text: Optional[str] = None):
        self._text: Optional[str] = None
        self._annotations: List[Annotation] = []
        self._seq = itertools.count()
        if text is not None:
            self.set_text(text)

    @property
    def text(self) -> Optional[str]:
        return self._text

    def __len__(self) -> int:
        return len(self._annotations)

    def __iter__(self) -> Iterator[Annotation]:
        return iter(list(self._annotations))

    def set_text(self, text: Optional[str], detect: bool = True) -> None:
        if text == self._text:
            return
        self._text = text
        if text is None:
            self._annotations.clear()
            return

        # Evict annotations no longer matching the new text
        self._annotations = [
            a for a in self._annotations
            if a.end <= len(text) and text[a.begin:a.end] == a.text
        ]

        if detect:
            for kind, begin, end in find_spans(text):
                try:
                    self.add(kind, begin, end)
                except OverlapConflict as e:
                    logger.debug("Skipping detected %s: %s", kind.__name__, e)

    def add(
        self,
        kind: type,
        begin: int,
        end: int,
        qualifier: str = DEFAULT_QUALIFIER,
    ) -> Annotation:
        if self._text is None:
            raise StateError("Post text not specified yet")
        if kind not in ANNOTATION_TYPES:
            raise TypeError(f"Unknown annotation type: {kind!r}")
        if qualifier is None:
            raise ValueError("qualifier must not be None")
        if begin < 0 or end > len(self._text) or begin >= end:
            raise ValueError(
                f"Invalid span [{begin}, {end}) for text of length {len(self._text)}"
            )

        for existing in self._annotations:
            if not existing.overlaps(begin, end):
                continue
            same_kind = type(existing) is kind
            same_qualifier = existing.qualifier == qualifier
            if same_kind and same_qualifier:
                if existing.begin == begin and existing.end == end:
                    return existing
                raise OverlapConflict(kind, begin, end, qualifier, existing)
            if not same_kind and kind is not Entity and type(existing) is not Entity:
                raise OverlapConflict(kind, begin, end, qualifier, existing)

        annotation = kind(
            begin=begin,
            end=end,
            qualifier=qualifier,
            text=self._text[begin:end],
            seq=next(self._seq),
        )
        self._annotations.append(annotation)
        self._annotations.sort(key=Annotation.sort_key)
        return annotation

    def add_json(self, obj: Dict[str, Any]) -> Annotation:
        """Re-create an annotation from its JSON form, through add()."""
        kind = kind_for_json(obj)
        annotation = self.add(kind, int(obj["begin"]), int(obj["end"]), obj.get("q", DEFAULT_QUALIFIER))
        annotation.load_json(obj)
        return annotation

    def remove(self, annotation: Annotation) -> bool:
        for i, a in enumerate(self._annotations):
            if a is annotation:
                del self._annotations[i]
                return True
        return False

    def annotations(self) -> List[Annotation]:
        return list(self._annotations)

    def annotations_of(
        self, kind: type, qualifier: Optional[str] = DEFAULT_QUALIFIER
    ) -> List[Annotation]:
        """All annotations of a type; qualifier=None matches any qualifier."""
        return [
            a for a in self._annotations
            if type(a) is kind and (qualifier is None or a.qualifier == qualifier)
        ]

    def annotations_at(self, index: int) -> List[Annotation]:
        return [a for a in self._annotations if a.begin <= index < a.end]

    def annotation_at(
        self, index: int, kind: type, qualifier: str = DEFAULT_QUALIFIER
    ) -> Optional[Annotation]:
        if qualifier is None:
            raise ValueError("qualifier must not be None")
        for a in self._annotations:
            if type(a) is kind and a.begin <= index < a.end and a.qualifier == qualifier:
                return a
        return None
