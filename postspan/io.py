# postspan/io.py

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, TextIO

from postspan.errors import StateError
from postspan.post import TWITTER_PREFIX, Post

logger = logging.getLogger(__name__)


def parse_line(line: str) -> Optional[Post]:
    """
    Parse one line of a posts file: a post JSON object, or the bootstrap forms
    `id` and `id<TAB>text`. Returns None for blank and comment lines; raises
    ValueError if the line is neither.
    """
    line = line.rstrip("\r\n")
    if not line.strip() or line.lstrip().startswith("#"):
        return None
    try:
        return Post.from_json(json.loads(line))
    except (ValueError, KeyError, TypeError, AttributeError, StateError) as json_error:
        fields = line.split("\t")
        try:
            if len(fields) > 2:
                raise ValueError(f"expected at most 2 tab-separated fields, got {len(fields)}")
            post = Post(TWITTER_PREFIX + str(int(fields[0].strip())))
            if len(fields) == 2:
                post.text = fields[1]
            return post
        except ValueError as tsv_error:
            raise ValueError(
                f"Cannot parse line as JSON ({json_error}) nor as TSV ({tsv_error})"
            ) from json_error


def load_posts(stream: Iterable[str | bytes]) -> List[Post]:
    """Parse posts from text or UTF-8 byte lines, skipping (and logging) bad ones."""
    posts: List[Post] = []
    for lineno, line in enumerate(stream, start=1):
        try:
            if isinstance(line, bytes):
                line = line.decode("utf-8")
            post = parse_line(line)
        except ValueError as e:
            logger.warning("Skipping line %d: %s", lineno, e)
            continue
        if post is not None:
            posts.append(post)
    return posts


def dump_posts(stream: TextIO, posts: Iterable[Post]) -> int:
    count = 0
    for post in posts:
        stream.write(json.dumps(post.to_json(), ensure_ascii=False, separators=(",", ":")))
        stream.write("\n")
        count += 1
    return count


def read_posts(path: str | Path) -> List[Post]:
    # lines are decoded one at a time by load_posts
    with open(path, "rb") as f:
        return load_posts(f)


def write_posts(path: str | Path, posts: Iterable[Post]) -> int:
    with open(path, "w", encoding="utf-8") as f:
        return dump_posts(f, posts)
