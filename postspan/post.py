# postspan/post.py

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from postspan.errors import OverlapConflict, StateError
from postspan.index import SpanIndex
from postspan.models import (
    DEFAULT_QUALIFIER,
    Annotation,
    Category,
    Entity,
    compatible,
)
from postspan.rewriting import TextRewrite

logger = logging.getLogger(__name__)

TWITTER_PREFIX = "twitter:"

# attribute -> JSON key inside the "author" object
AUTHOR_FIELDS = {
    "author_username": "username",
    "author_full_name": "fullName",
    "author_description": "description",
    "author_lang": "lang",
    "author_category": "category",
    "author_uri": "uri",
}


class Post:
    """
    A short post (tweet) with its author metadata, its annotations and an
    optional rewriting of its text.

    Assigning `text` re-validates the annotations: those whose span no longer
    matches the new text are dropped, then mentions, hashtags and t.co links
    are detected again.
    """

    def __init__(self, id: str):
        if id is None:
            raise ValueError("post id must not be None")
        self.id = id
        self.date: Optional[datetime] = None
        self.lang: Optional[str] = None
        self.author_username: Optional[str] = None
        self.author_full_name: Optional[str] = None
        self.author_description: Optional[str] = None
        self.author_lang: Optional[str] = None
        self.author_category: Optional[Category] = None
        self.author_uri: Optional[str] = None
        self.index = SpanIndex()
        self.rewriting: Optional[TextRewrite] = None

    @property
    def twitter_id(self) -> Optional[int]:
        if self.id.startswith(TWITTER_PREFIX):
            return int(self.id[len(TWITTER_PREFIX):])
        return None

    @property
    def text(self) -> Optional[str]:
        return self.index.text

    @text.setter
    def text(self, text: Optional[str]) -> None:
        self.index.set_text(text)

    # ------------------------------------------------------------------
    # Annotations (delegated to the span index)
    # ------------------------------------------------------------------
    def add_annotation(
        self, kind: type, begin: int, end: int, qualifier: str = DEFAULT_QUALIFIER
    ) -> Annotation:
        return self.index.add(kind, begin, end, qualifier)

    def remove_annotation(self, annotation: Annotation) -> bool:
        return self.index.remove(annotation)

    def annotations(self) -> List[Annotation]:
        return self.index.annotations()

    def annotations_of(self, kind: type, qualifier: Optional[str] = DEFAULT_QUALIFIER) -> List[Annotation]:
        return self.index.annotations_of(kind, qualifier)

    def annotations_at(self, index: int) -> List[Annotation]:
        return self.index.annotations_at(index)

    def annotation_at(
        self, index: int, kind: type, qualifier: str = DEFAULT_QUALIFIER
    ) -> Optional[Annotation]:
        return self.index.annotation_at(index, kind, qualifier)

    def add_rewritten_entity(self, begin: int, end: int, qualifier: str) -> Entity:
        """
        Add an Entity given its span in the rewritten text, mapping it back to
        the original text and recording the rewritten span on the annotation.
        """
        if self.rewriting is None:
            raise StateError(f"Post {self.id} has no rewriting")
        original_begin = self.rewriting.to_original_offset(begin)
        original_end = self.rewriting.to_original_offset(end)
        entity = self.index.add(Entity, original_begin, original_end, qualifier)
        if entity.rewritten_begin is None:
            entity.rewritten_begin = begin
            entity.rewritten_end = end
        return entity

    # ------------------------------------------------------------------
    # Clone / merge
    # ------------------------------------------------------------------
    def clone(self) -> "Post":
        clone = Post(self.id)
        clone.merge(self)
        return clone

    def merge(self, other: "Post") -> None:
        """
        Fold `other` (a snapshot of the same post) into this post.

        Only empty slots are filled, and only when no conflicting value
        exists. Annotations of `other` that conflict with the ones of this post
        are skipped one by one.
        """
        if self.date is None:
            self.date = other.date

        if all(compatible(getattr(self, n), getattr(other, n)) for n in AUTHOR_FIELDS):
            for n in AUTHOR_FIELDS:
                if getattr(self, n) is None:
                    setattr(self, n, getattr(other, n))

        if not (compatible(self.text, other.text) and compatible(self.lang, other.lang)):
            return

        if self.text is None and other.text is not None:
            self.index.set_text(other.text, detect=False)
        if self.lang is None:
            self.lang = other.lang
        if self.rewriting is None and other.rewriting is not None:
            self.rewriting = other.rewriting.copy()

        for annotation in other.annotations():
            try:
                target = self.index.add(
                    type(annotation), annotation.begin, annotation.end, annotation.qualifier
                )
            except OverlapConflict as e:
                logger.debug("Post %s: skipping annotation on merge: %s", self.id, e)
                continue
            target.absorb(annotation)

    # ------------------------------------------------------------------
    # Equality / JSON
    # ------------------------------------------------------------------
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Post):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return json.dumps(self.to_json(), ensure_ascii=False)

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id}
        if self.date is not None:
            out["date"] = int(self.date.timestamp())
        if self.text is not None:
            out["text"] = self.text
        if self.lang is not None:
            out["lang"] = self.lang
        author: Dict[str, Any] = {}
        for name, key in AUTHOR_FIELDS.items():
            value = getattr(self, name)
            if value is not None:
                author[key] = value.to_json() if isinstance(value, Category) else value
        out["author"] = author
        out["annotations"] = [a.to_json() for a in self.annotations()]
        if self.rewriting is not None:
            rewriting = self.rewriting.to_json()
            del rewriting["from"]
            out["rewriting"] = rewriting
        return out

    @classmethod
    def from_json(cls, obj: Dict[str, Any]) -> "Post":
        post = cls(str(obj["id"]))
        if obj.get("date") is not None:
            post.date = datetime.fromtimestamp(int(obj["date"]), tz=timezone.utc)
        if obj.get("lang") is not None:
            post.lang = obj["lang"].lower()
        author = obj.get("author") or {}
        for name, key in AUTHOR_FIELDS.items():
            if author.get(key) is not None:
                value = author[key]
                setattr(post, name, Category.parse(value) if name == "author_category" else value)
        if obj.get("text") is not None:
            # stored annotations are authoritative, no detection on load
            post.index.set_text(obj["text"], detect=False)
        for a in obj.get("annotations") or []:
            post.index.add_json(a)
        if obj.get("rewriting") is not None:
            if post.text is None:
                raise ValueError(f"Post {post.id} has a rewriting but no text")
            rewriting = dict(obj["rewriting"])
            rewriting["from"] = post.text
            post.rewriting = TextRewrite.from_json(rewriting)
        return post
