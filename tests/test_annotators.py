# tests/test_annotators.py

from pathlib import Path

import pytest

import postspan.pipeline  # noqa: F401  registers the stages
from postspan.annotators import (
    NIL,
    REGISTRY,
    Annotator,
    Parallel,
    Sequence,
    create,
    parallel,
    register,
    sequence,
)
from postspan.merge import SimpleMerger
from postspan.models import Category, Entity
from postspan.post import Post
from postspan.rewriters import SlangRewriter


class AddEntity(Annotator):
    def __init__(self, begin, end, qualifier, category=None):
        self.begin, self.end, self.qualifier = begin, end, qualifier
        self.category = category

    def annotate(self, post):
        entity = post.add_annotation(Entity, self.begin, self.end, self.qualifier)
        entity.category = self.category


class CountBatches(Annotator):
    def __init__(self):
        self.batches = []

    def annotate_all(self, posts):
        self.batches.append(list(posts))


def _posts(n=2):
    posts = []
    for i in range(n):
        post = Post(f"twitter:{i}")
        post.text = "Hello world at last"
        posts.append(post)
    return posts


def test_subclass_must_override_something():
    with pytest.raises(TypeError):
        class Lazy(Annotator):
            pass


def test_annotate_defaults_delegate_both_ways():
    counter = CountBatches()
    post = _posts(1)[0]
    counter.annotate(post)
    assert counter.batches == [[post]]


def test_composition_collapses():
    a, b = AddEntity(0, 5, "a"), AddEntity(6, 11, "b")
    assert sequence() is NIL
    assert parallel() is NIL
    assert sequence(a) is a
    assert parallel(a) is a
    assert isinstance(sequence(a, b), Sequence)
    assert isinstance(parallel(a, b), Parallel)


def test_sequence_runs_stages_in_order_on_the_same_posts():
    posts = _posts()
    counter = CountBatches()
    sequence(AddEntity(0, 5, "a"), counter).annotate_all(posts)
    assert counter.batches == [posts]
    assert all(p.annotation_at(0, Entity, "a") is not None for p in posts)


@pytest.mark.parametrize("workers", [None, 2])
def test_parallel_merges_branches_back(workers):
    posts = _posts()
    first = AddEntity(0, 5, "x", Category.PERSON)
    conflicting = AddEntity(2, 8, "x")
    other = AddEntity(6, 11, "y", Category.LOCATION)

    parallel(first, conflicting, other, workers=workers).annotate_all(posts)

    for post in posts:
        spans = [(a.begin, a.end, a.qualifier) for a in post.annotations()]
        assert spans == [(0, 5, "x"), (6, 11, "y")]
        assert post.annotation_at(6, Entity, "y").category is Category.LOCATION


def test_parallel_branches_see_independent_posts():
    posts = _posts(1)
    a, b = CountBatches(), CountBatches()
    parallel(a, b).annotate_all(posts)
    assert a.batches[0][0] is posts[0]
    assert b.batches[0][0] is not posts[0]
    assert b.batches[0][0] == posts[0]


def test_register_rejects_duplicates():
    with pytest.raises(ValueError):
        register("simple_merger")(lambda options, base_path: NIL)


def test_builtin_stages_are_registered():
    assert {
        "annotation_rewriter",
        "cleaning_rewriter",
        "slang_rewriter",
        "simple_merger",
        "spacy_tagger",
    } <= set(REGISTRY)


def test_create_from_options(tmp_path):
    (tmp_path / "slang.tsv").write_text("# word\treplacement\ncmq\tcomunque\n\n", encoding="utf-8")
    annotator = create(
        {
            "type": "Sequence",
            "annotators": [
                {"type": "cleaning_rewriter"},
                {"type": "slang_rewriter", "path": "slang.tsv", "replacements": {"nn": "non"}},
                {"type": "parallel", "workers": 3, "annotators": [{"type": "simple_merger", "q": "spacy"}]},
            ],
        },
        tmp_path,
    )

    assert repr(annotator) == "sequence(CleaningRewriter, SlangRewriter, SimpleMerger(spacy))"
    slang = annotator.annotators[1]
    assert isinstance(slang, SlangRewriter)
    assert slang.replacements == {"cmq": "comunque", "nn": "non"}


def test_create_nil_and_unknown():
    assert create({}) is NIL
    assert create({"type": "nil"}, Path(".")) is NIL
    assert create({"type": "sequence"}) is NIL
    with pytest.raises(ValueError):
        create({"type": "no_such_stage"})


def test_simple_merger_copies_into_default_qualifier():
    post = _posts(1)[0]
    person = post.add_annotation(Entity, 0, 5, "a")
    person.category = Category.PERSON
    person.uri = "http://example.com/hello"
    post.add_annotation(Entity, 3, 9, "b").category = Category.LOCATION
    post.add_annotation(Entity, 12, 14, "b").category = Category.EVENT
    post.add_annotation(Entity, 15, 19, "ignored")

    SimpleMerger(["a", "b"]).annotate(post)

    merged = post.annotations_of(Entity)
    assert [(e.begin, e.end, e.category) for e in merged] == [
        (0, 5, Category.PERSON),
        (12, 14, Category.EVENT),
    ]
    assert merged[0].uri == "http://example.com/hello"


def test_simple_merger_keeps_existing_values():
    post = _posts(1)[0]
    post.add_annotation(Entity, 0, 5).category = Category.THING
    source = post.add_annotation(Entity, 0, 5, "a")
    source.category = Category.PERSON
    source.uri = "u"

    SimpleMerger(["a"]).annotate(post)

    target = post.annotation_at(0, Entity)
    assert (target.category, target.uri) == (Category.THING, "u")
