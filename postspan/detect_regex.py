# postspan/detect_regex.py

from __future__ import annotations

import regex as re
from typing import Iterator, Tuple

from postspan.models import Hashtag, Mention, Url


MENTION_RE = re.compile(r"(?<![A-Za-z0-9_])@[A-Za-z0-9_]+(?![A-Za-z0-9_])")
HASHTAG_RE = re.compile(
    r"(?<![0-9_\p{Alphabetic}])#[0-9]*[A-Za-z][0-9_\p{Alphabetic}]+(?![0-9_\p{Alphabetic}])"
)
# only twitter short links are detected, general URLs are not
URL_RE = re.compile(r"(?<![A-Za-z0-9_])https?://t\.co/[A-Za-z0-9_]+(?![A-Za-z0-9_])")


def find_spans(text: str) -> Iterator[Tuple[type, int, int]]:
    """
    Yield (kind, begin, end) for every mention, hashtag and t.co URL in text,
    mentions first, then hashtags, then URLs.
    """
    for kind, pattern in ((Mention, MENTION_RE), (Hashtag, HASHTAG_RE), (Url, URL_RE)):
        for m in pattern.finditer(text):
            yield kind, m.start(), m.end()
