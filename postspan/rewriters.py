# postspan/rewriters.py

from __future__ import annotations

import logging
import regex as re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from postspan.annotators import Annotator, register
from postspan.models import Hashtag, Mention, Url
from postspan.post import Post
from postspan.rewriting import TextRewrite

logger = logging.getLogger(__name__)

WORD_RE = re.compile(r"[\p{L}\p{N}]+")
TOKEN_RE = re.compile(r"\S+")
# anything but letters, digits and . - ' becomes a separator
NOISE_RE = re.compile(r"[^\p{L}\p{N}.\-']+")

EMOTICONS = frozenset(
    """
    :-) :) :-] :] :-3 :3 :-> :> 8-) 8) :-} :} :o) :c) :^) =] =) :-D :D 8-D 8D
    x-D xD X-D XD =D =3 B^D :)) :-)) :-( :( :-c :c :-< :< :-[ :[ :-|| >:[ :{
    :@ >:( :'-( :'( :'-) :') D-': D:< D: D8 D; D= DX :-O :O :-o :o :-0 8-0
    >:O :-* :* ;-) ;) *-) *) ;-] ;] ;^) :-, ;D :-P :P X-P XP x-p xp :-p :p
    :-b :b d: =p >:P :-/ :/ :-. >:\\ >:/ :\\ =/ =\\ :L =L :S :-| :| :$ :-X
    :X :-# :# :-& :& O:-) O:) 0:-3 0:3 0:-) 0:) 0;^) >:-) >:) }:-) }:) 3:-)
    3:) >;) |;-) |-O :-J #-) %-) %) <:-| 5:-) =:o] 7:^] ,:-) </3 <\\3 <3
    @}; @}->-- ><> \\o/ v.v O_O o-o O_o o_O o_o O-O >.< ^5 o/\\o >_>^ ^<_<
    """.split()
)

# truncated Italian words legitimately ending with an apostrophe
APOSTROPHE_WORDS = frozenset({"fa", "va", "sta", "da", "po", "mo"})

ACCENTS = {"a": "à", "e": "è", "i": "ì", "o": "ò", "u": "ù"}

ENTITIES = (("\\\"", "\""), ("&lt;", "<"), ("&gt;", ">"), ("&amp;", "&"))


def rewriting_for(post: Post) -> Optional[TextRewrite]:
    """Return the post rewriting, creating it if missing; None if the post has no text."""
    if post.rewriting is None:
        if post.text is None:
            return None
        post.rewriting = TextRewrite(post.text)
    return post.rewriting


def normalize(value: str) -> str:
    """Collapse punctuation and symbols into single spaces."""
    return " ".join(NOISE_RE.sub(" ", value).split())


class AnnotationRewriter(Annotator):
    """
    Rewrite mentions, hashtags and URLs into plain text:
      - URL -> ""
      - mention -> username, followed by " / full name" when known
      - hashtag -> tokenization if known, else the hashtag ("#rt" -> "")
    and separate the rewritten span from what follows it: whitespace up to a
    '#' or '@' becomes ", ", whitespace up to a capital letter becomes ". ".
    """

    def annotate(self, post: Post) -> None:
        rewriting = rewriting_for(post)
        if rewriting is None:
            return
        text = post.text

        for a in post.annotations():
            if isinstance(a, Url):
                replacement = ""
            elif isinstance(a, Mention):
                replacement = normalize(a.username)
                if a.full_name is not None:
                    replacement += " / " + normalize(a.full_name)
            elif isinstance(a, Hashtag):
                if a.text.lower() == "#rt":
                    replacement = ""
                else:
                    replacement = normalize(a.tokenization if a.tokenization is not None else a.hashtag)
            else:
                continue
            rewriting.try_replace(a.begin, a.end, replacement)

            # a leading URL needs no separator
            if a.begin == 0 and isinstance(a, Url):
                continue
            for i in range(a.end, len(text)):
                ch = text[i]
                if ch in "#@":
                    rewriting.try_replace(a.end, i, ", ")
                    break
                if ch.isupper():
                    rewriting.try_replace(a.end, i, ". ")
                    break
                if not ch.isspace():
                    break


class CleaningRewriter(Annotator):
    """Remove emoticons, restore accented vowels written as "e'", unescape HTML entities."""

    def annotate(self, post: Post) -> None:
        rewriting = rewriting_for(post)
        if rewriting is None:
            return
        self._replace_emoticons(rewriting)
        self._replace_apostrophes(rewriting)
        for literal, replacement in ENTITIES:
            rewriting.try_replace_all(literal, replacement)

    def _replace_emoticons(self, rewriting: TextRewrite) -> None:
        text = rewriting.original
        for m in TOKEN_RE.finditer(text):
            if m.group() in EMOTICONS:
                rewriting.try_replace(m.start(), m.end(), "")
                logger.debug(
                    "Removed emoticon %s from %r",
                    m.group(),
                    text[max(0, m.start() - 10):m.end() + 10],
                )

    def _replace_apostrophes(self, rewriting: TextRewrite) -> None:
        text = rewriting.original.lower()
        maybe_quote = False
        index = text.find("'")
        while index >= 0:
            start = index
            while start > 0 and text[start - 1].isalnum():
                start -= 1
            word = text[start:index]
            after_letter = bool(word)
            before_letter = index < len(text) - 1 and text[index + 1].isalpha()
            if not after_letter and before_letter:
                maybe_quote = True
            elif maybe_quote and after_letter and not before_letter:
                maybe_quote = False
            elif not maybe_quote and after_letter and not before_letter and word not in APOSTROPHE_WORDS:
                accented = ACCENTS.get(text[index - 1])
                if accented is not None:
                    rewriting.try_replace(index - 1, index + 1, accented)
            index = text.find("'", index + 1)


class SlangRewriter(Annotator):
    """Replace slang words using a lowercase word -> replacement table."""

    def __init__(self, replacements: Mapping[str, str]):
        self.replacements = {k.lower(): v for k, v in replacements.items()}

    def annotate(self, post: Post) -> None:
        rewriting = rewriting_for(post)
        if rewriting is None:
            return
        for m in WORD_RE.finditer(post.text):
            word = m.group()
            replacement = self.replacements.get(word.lower())
            if replacement is None:
                continue
            if word.upper() != word and word[0].isupper():
                replacement = replacement[:1].upper() + replacement[1:]
            rewriting.try_replace(m.start(), m.end(), replacement)
            logger.debug("Replaced %s with %s", word, replacement)


def load_replacements(path: Path) -> Dict[str, str]:
    """Read a `word<TAB>replacement` file; blank and '#' lines are ignored."""
    table: Dict[str, str] = {}
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.rstrip("\n")
            if not line.strip() or line.startswith("#"):
                continue
            if "\t" not in line:
                raise ValueError(f"{path}:{lineno}: expected word<TAB>replacement, got {line!r}")
            word, replacement = line.split("\t", 1)
            table[word.strip()] = replacement.strip()
    return table


@register("annotation_rewriter")
def _annotation_rewriter(options: Dict[str, Any], base_path: Path) -> Annotator:
    return AnnotationRewriter()


@register("cleaning_rewriter")
def _cleaning_rewriter(options: Dict[str, Any], base_path: Path) -> Annotator:
    return CleaningRewriter()


@register("slang_rewriter")
def _slang_rewriter(options: Dict[str, Any], base_path: Path) -> Annotator:
    replacements: Dict[str, str] = {}
    if options.get("path"):
        replacements.update(load_replacements(base_path / options["path"]))
    replacements.update(options.get("replacements") or {})
    return SlangRewriter(replacements)
