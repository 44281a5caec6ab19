# postspan/merge.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable

from postspan.annotators import Annotator, register
from postspan.errors import OverlapConflict
from postspan.models import Entity
from postspan.post import Post

logger = logging.getLogger(__name__)


class SimpleMerger(Annotator):
    """
    Copy Entity annotations of the given qualifiers into the default
    qualifier. Earlier qualifiers win: a span conflicting with an already
    copied one is skipped.
    """

    def __init__(self, qualifiers: Iterable[str] = ()):
        self.qualifiers = list(qualifiers)

    def annotate(self, post: Post) -> None:
        for qualifier in self.qualifiers:
            for source in post.annotations_of(Entity, qualifier):
                try:
                    target = post.add_annotation(Entity, source.begin, source.end)
                except OverlapConflict as e:
                    logger.debug("Post %s: not merging %r: %s", post.id, source, e)
                    continue
                if target.category is None:
                    target.category = source.category
                if target.uri is None:
                    target.uri = source.uri

    def __repr__(self) -> str:
        return f"SimpleMerger({', '.join(self.qualifiers)})"


@register("simple_merger")
def _simple_merger(options: Dict[str, Any], base_path: Path) -> Annotator:
    qualifiers = options.get("q") or []
    if isinstance(qualifiers, str):
        qualifiers = [qualifiers]
    return SimpleMerger(qualifiers)
