# tests/test_index.py

import pytest

from postspan.errors import OverlapConflict, StateError
from postspan.index import SpanIndex
from postspan.models import Entity, Hashtag, Mention, Url

TEXT = "Juventus beat Inter in Turin"


def test_add_requires_text():
    with pytest.raises(StateError):
        SpanIndex().add(Entity, 0, 1)


def test_add_validates_arguments():
    index = SpanIndex(TEXT)
    with pytest.raises(ValueError):
        index.add(Entity, -1, 3)
    with pytest.raises(ValueError):
        index.add(Entity, 3, len(TEXT) + 1)
    with pytest.raises(ValueError):
        index.add(Entity, 3, 3)
    with pytest.raises(ValueError):
        index.add(Entity, 0, 3, None)
    with pytest.raises(TypeError):
        index.add(str, 0, 3)


def test_point_lookup_covers_whole_span():
    index = SpanIndex(TEXT)
    spans = [(0, 8), (14, 19), (23, 28), (0, len(TEXT))]
    for n, (begin, end) in enumerate(spans):
        a = index.add(Entity, begin, end, f"q{n}")
        assert a.surface_form == TEXT[begin:end]
        for i in range(begin, end):
            assert index.annotation_at(i, Entity, f"q{n}") is a
            assert a in index.annotations_at(i)
        assert index.annotation_at(end, Entity, f"q{n}") is None


def test_add_is_idempotent():
    index = SpanIndex(TEXT)
    first = index.add(Entity, 0, 8, "ml")
    second = index.add(Entity, 0, 8, "ml")
    assert first is second
    assert len(index) == 1


def test_same_qualifier_overlap_conflicts():
    index = SpanIndex(TEXT)
    index.add(Entity, 0, 5, "ml")
    with pytest.raises(OverlapConflict) as info:
        index.add(Entity, 2, 8, "ml")
    assert info.value.existing.begin == 0
    assert len(index) == 1


def test_different_qualifiers_coexist():
    index = SpanIndex(TEXT)
    a = index.add(Entity, 0, 5, "ml")
    b = index.add(Entity, 0, 5, "stanford")
    c = index.add(Entity, 2, 8, "other")
    assert len({id(a), id(b), id(c)}) == 3
    assert index.annotations_of(Entity, None) == [a, b, c]
    assert index.annotations_of(Entity, "ml") == [a]


def test_entities_coexist_with_other_types():
    index = SpanIndex("Hello @bob #nyc")
    mention = index.annotation_at(7, Mention)
    entity = index.add(Entity, 6, 15)
    assert index.annotations_at(7) == [mention, entity]


def test_different_non_entity_types_conflict():
    index = SpanIndex("abc def")
    index.add(Mention, 0, 3)
    with pytest.raises(OverlapConflict):
        index.add(Hashtag, 1, 4, "other")
    index.add(Mention, 1, 4, "other")


def test_annotations_are_sorted():
    index = SpanIndex(TEXT)
    late = index.add(Entity, 14, 19)
    early = index.add(Url, 0, 8)
    same_range = index.add(Entity, 0, 8, "b")
    first = index.add(Entity, 0, 8, "a")
    assert index.annotations() == [first, same_range, early, late]


def test_remove_is_identity_based():
    index = SpanIndex(TEXT)
    a = index.add(Entity, 0, 8, "ml")
    b = index.add(Entity, 0, 8, "other")
    assert index.remove(a) is True
    assert index.remove(a) is False
    assert index.annotations() == [b]


def test_set_text_evicts_stale_annotations_and_detects_new_ones():
    index = SpanIndex("Hello @bob #nyc")
    hello = index.add(Entity, 0, 5, "x")
    old_tag = index.annotation_at(12, Hashtag)

    index.set_text("Hello @bob #NYC")

    assert hello in index.annotations()
    assert old_tag not in index.annotations()
    assert [h.hashtag for h in index.annotations_of(Hashtag)] == ["NYC"]
    assert [m.username for m in index.annotations_of(Mention)] == ["bob"]


def test_set_text_drops_spans_past_the_end():
    index = SpanIndex("Hello world")
    index.add(Entity, 6, 11)
    index.set_text("Hello")
    assert index.annotations() == []


def test_set_text_none_clears():
    index = SpanIndex("Hello @bob")
    index.set_text(None)
    assert index.text is None
    assert len(index) == 0


def test_detection_skips_conflicting_matches():
    index = SpanIndex("go @bob")
    index.remove(index.annotation_at(3, Mention))
    url = index.add(Url, 3, 7)

    index.set_text("go @bob!")

    assert index.annotations() == [url]
