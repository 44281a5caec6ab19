# tests/test_regex.py

from postspan.detect_regex import find_spans
from postspan.index import SpanIndex
from postspan.models import Hashtag, Mention, Url


def _found(text):
    return [(kind, text[b:e]) for kind, b, e in find_spans(text)]


def test_mention_and_hashtag_detection():
    index = SpanIndex("Hello @bob #nyc")
    mentions = index.annotations_of(Mention)
    hashtags = index.annotations_of(Hashtag)
    assert [(m.username, m.begin, m.end) for m in mentions] == [("bob", 6, 10)]
    assert [(h.hashtag, h.begin, h.end) for h in hashtags] == [("nyc", 11, 15)]


def test_mention_boundaries():
    assert _found("@a @b_1,@c") == [(Mention, "@a"), (Mention, "@b_1"), (Mention, "@c")]
    assert _found("mail me@home.it") == []


def test_hashtag_patterns():
    assert _found("#2day #perché") == [(Hashtag, "#2day"), (Hashtag, "#perché")]
    assert _found("#1 #a x#tag") == []


def test_only_short_urls_are_detected():
    text = "see http://t.co/AbC_12 and https://example.com/x"
    index = SpanIndex(text)
    urls = index.annotations_of(Url)
    assert [(u.url, u.begin, u.end) for u in urls] == [("http://t.co/AbC_12", 4, 22)]
