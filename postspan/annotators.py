# postspan/annotators.py

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence as Seq

from postspan.post import Post

logger = logging.getLogger(__name__)

Factory = Callable[[Dict[str, Any], Path], "Annotator"]

REGISTRY: Dict[str, Factory] = {}


class Annotator:
    """
    A pipeline stage reading and writing posts through their SpanIndex and
    TextRewrite. Subclasses override annotate(), annotate_all(), or both.
    """

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.annotate is Annotator.annotate and cls.annotate_all is Annotator.annotate_all:
            raise TypeError(f"{cls.__name__} must override annotate() or annotate_all()")

    def annotate(self, post: Post) -> None:
        self.annotate_all([post])

    def annotate_all(self, posts: Iterable[Post]) -> None:
        for post in posts:
            self.annotate(post)

    def __repr__(self) -> str:
        return type(self).__name__


class _Nil(Annotator):
    def annotate(self, post: Post) -> None:
        pass

    def annotate_all(self, posts: Iterable[Post]) -> None:
        pass

    def __repr__(self) -> str:
        return "NIL"


NIL: Annotator = _Nil()


class Sequence(Annotator):
    def __init__(self, annotators: Seq[Annotator]):
        self.annotators = list(annotators)

    def annotate(self, post: Post) -> None:
        for annotator in self.annotators:
            annotator.annotate(post)

    def annotate_all(self, posts: Iterable[Post]) -> None:
        posts = list(posts)
        for annotator in self.annotators:
            annotator.annotate_all(posts)

    def __repr__(self) -> str:
        return f"sequence({', '.join(map(repr, self.annotators))})"


class Parallel(Annotator):
    """
    Runs every branch on its own copy of the posts, then merges the copies
    back into the originals, in branch order.

    The first branch works on the original posts, the others on clones, so
    no two branches share mutable state. With `workers` > 1 the branches run
    in a thread pool; merging is always sequential.
    """

    def __init__(self, annotators: Seq[Annotator], workers: Optional[int] = None):
        self.annotators = list(annotators)
        self.workers = workers

    def annotate_all(self, posts: Iterable[Post]) -> None:
        posts = list(posts)
        copies: List[List[Post]] = [posts]
        for _ in self.annotators[1:]:
            copies.append([post.clone() for post in posts])

        if self.workers and self.workers > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as ex:
                futures = [
                    ex.submit(annotator.annotate_all, batch)
                    for annotator, batch in zip(self.annotators, copies)
                ]
                for future in futures:
                    future.result()
        else:
            for annotator, batch in zip(self.annotators, copies):
                annotator.annotate_all(batch)

        for batch in copies[1:]:
            for post, copy in zip(posts, batch):
                post.merge(copy)

    def __repr__(self) -> str:
        return f"parallel({', '.join(map(repr, self.annotators))})"


def sequence(*annotators: Annotator) -> Annotator:
    if not annotators:
        return NIL
    if len(annotators) == 1:
        return annotators[0]
    return Sequence(annotators)


def parallel(*annotators: Annotator, workers: Optional[int] = None) -> Annotator:
    if not annotators:
        return NIL
    if len(annotators) == 1:
        return annotators[0]
    return Parallel(annotators, workers=workers)


def register(tag: str) -> Callable[[Factory], Factory]:
    """Register a factory building an annotator from its configuration options."""

    def decorator(factory: Factory) -> Factory:
        key = tag.lower()
        if key in REGISTRY:
            raise ValueError(f"Annotator type already registered: {tag}")
        REGISTRY[key] = factory
        return factory

    return decorator


def create(options: Dict[str, Any], base_path: Optional[Path] = None) -> Annotator:
    """
    Build an annotator from a configuration mapping with a `type` key.
    `nil`, `sequence` and `parallel` are built in; other types are looked up
    in REGISTRY. Relative paths in options resolve against `base_path`.
    """
    base_path = Path(base_path) if base_path is not None else Path.cwd()
    tag = str(options.get("type") or "nil").lower()

    if tag == "nil":
        return NIL
    if tag in ("sequence", "parallel"):
        children = [create(o, base_path) for o in options.get("annotators") or []]
        if tag == "sequence":
            return sequence(*children)
        return parallel(*children, workers=options.get("workers"))

    factory = REGISTRY.get(tag)
    if factory is None:
        raise ValueError(f"Unknown annotator type: {options.get('type')}")
    return factory(options, base_path)
