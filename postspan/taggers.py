# postspan/taggers.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import spacy

from postspan.annotators import Annotator, register
from postspan.errors import OverlapConflict
from postspan.models import Category, Entity
from postspan.post import Post

logger = logging.getLogger(__name__)

# Lazy-loaded spaCy models, keyed by model name
_MODELS: Dict[str, "spacy.language.Language"] = {}


def _get_nlp(model: str) -> "spacy.language.Language":
    nlp = _MODELS.get(model)
    if nlp is None:
        nlp = spacy.load(model)
        _MODELS[model] = nlp
    return nlp


# spaCy NER labels -> categories; unmapped labels are dropped
LABEL_TO_CATEGORY = {
    "PERSON": Category.PERSON,
    "PER": Category.PERSON,
    "ORG": Category.ORGANIZATION,
    "NORP": Category.ORGANIZATION,
    "GPE": Category.LOCATION,
    "LOC": Category.LOCATION,
    "FAC": Category.LOCATION,
    "PRODUCT": Category.PRODUCT,
    "EVENT": Category.EVENT,
    "WORK_OF_ART": Category.THING,
}


class SpacyTagger(Annotator):
    """
    Add Entity annotations found by a spaCy model under its own qualifier.

    The model runs on the rewritten text when the post has a rewriting, and
    entity offsets are mapped back to the original text. Spans that cannot be
    placed (conflict, or collapsing to nothing after mapping) are logged and
    skipped.
    """

    def __init__(self, model: str = "en_core_web_sm", qualifier: str = "spacy"):
        self.model = model
        self.qualifier = qualifier

    def annotate(self, post: Post) -> None:
        if post.text is None:
            return
        text = post.rewriting.rewritten if post.rewriting is not None else post.text
        doc = _get_nlp(self.model)(text)

        for ent in doc.ents:
            category = LABEL_TO_CATEGORY.get(ent.label_)
            if category is None:
                continue
            try:
                if post.rewriting is not None:
                    entity = post.add_rewritten_entity(ent.start_char, ent.end_char, self.qualifier)
                else:
                    entity = post.add_annotation(Entity, ent.start_char, ent.end_char, self.qualifier)
            except (OverlapConflict, ValueError) as e:
                logger.warning("Post %s: cannot place %s %r: %s", post.id, ent.label_, ent.text, e)
                continue
            if entity.category is None:
                entity.category = category

    def __repr__(self) -> str:
        return f"SpacyTagger({self.model}, q={self.qualifier})"


@register("spacy_tagger")
def _spacy_tagger(options: Dict[str, Any], base_path: Path) -> Annotator:
    return SpacyTagger(
        model=options.get("model", "en_core_web_sm"),
        qualifier=options.get("q", "spacy"),
    )
