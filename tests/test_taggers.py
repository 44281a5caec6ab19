# tests/test_taggers.py

import logging
from types import SimpleNamespace

import pytest

from postspan import taggers
from postspan.models import Category, Entity
from postspan.post import Post
from postspan.rewriting import TextRewrite
from postspan.taggers import SpacyTagger


def _fake_nlp(*ents):
    def nlp(text):
        return SimpleNamespace(
            ents=[
                SimpleNamespace(start_char=b, end_char=e, label_=label, text=text[b:e])
                for b, e, label in ents
            ]
        )

    return nlp


@pytest.fixture
def use_ents(monkeypatch):
    def install(*ents):
        monkeypatch.setattr(taggers, "_get_nlp", lambda model: _fake_nlp(*ents))

    return install


def test_tags_original_text(use_ents):
    use_ents((5, 9, "GPE"), (10, 12, "CARDINAL"))
    post = Post("twitter:1")
    post.text = "Ciao Roma 10"

    SpacyTagger(qualifier="spacy").annotate(post)

    entities = post.annotations_of(Entity, "spacy")
    assert [(e.begin, e.end, e.category) for e in entities] == [(5, 9, Category.LOCATION)]
    assert entities[0].rewritten_begin is None


def test_tags_rewritten_text(use_ents):
    post = Post("twitter:1")
    post.text = "@john ke #forzainter"
    post.rewriting = TextRewrite(post.text)
    post.rewriting.replace(0, 5, "John Smith")
    post.rewriting.replace(9, 20, "forza Inter")
    rewritten = post.rewriting.rewritten
    begin = rewritten.index("Inter")
    use_ents((0, 10, "PERSON"), (begin, begin + 5, "ORG"))

    SpacyTagger().annotate(post)

    person, org = post.annotations_of(Entity, "spacy")
    assert (person.text, person.category) == ("john", Category.PERSON)
    assert (org.text, org.category) == ("inter", Category.ORGANIZATION)
    assert (org.rewritten_begin, org.rewritten_end) == (begin, begin + 5)


def test_conflicting_entities_are_skipped(use_ents, caplog):
    use_ents((0, 4, "PER"), (2, 9, "LOC"))
    post = Post("twitter:1")
    post.text = "Ciao Roma"

    with caplog.at_level(logging.WARNING, logger="postspan.taggers"):
        SpacyTagger(qualifier="it").annotate(post)

    assert [(e.begin, e.end) for e in post.annotations_of(Entity, "it")] == [(0, 4)]
    assert any("cannot place" in r.getMessage() for r in caplog.records)


def test_post_without_text_is_ignored(use_ents):
    use_ents((0, 1, "PER"))
    post = Post("x")
    SpacyTagger().annotate(post)
    assert post.annotations() == []
