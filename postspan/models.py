# postspan/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Set, Tuple

DEFAULT_QUALIFIER = ""


class Category(str, Enum):
    PERSON = "PERSON"
    ORGANIZATION = "ORGANIZATION"
    LOCATION = "LOCATION"
    PRODUCT = "PRODUCT"
    EVENT = "EVENT"
    CHARACTER = "CHARACTER"
    THING = "THING"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Category"]:
        if value is None:
            return None
        return cls(value.strip().upper())

    def to_json(self) -> str:
        return self.value.lower()


def compatible(first: Any, second: Any) -> bool:
    return first is None or second is None or first == second


@dataclass(eq=False)
class Annotation:
    """
    A typed span [begin, end) of a post text.

    Instances are built by SpanIndex.add only, which is the single place where
    the overlap rules are enforced. `text` caches text[begin:end] of the owning
    post at creation time; `seq` is the insertion number used as last sort key.
    """

    begin: int
    end: int
    qualifier: str = DEFAULT_QUALIFIER
    text: str = ""
    seq: int = field(default=0, repr=False)

    # JSON key identifying the concrete type
    SIGNATURE: ClassVar[str] = ""
    # enrichable attribute -> JSON key
    JSON_FIELDS: ClassVar[Dict[str, str]] = {}

    def __post_init__(self):
        if self.begin < 0 or self.begin >= self.end:
            raise ValueError(f"Invalid span [{self.begin}, {self.end})")
        if self.qualifier is None:
            raise ValueError("qualifier must not be None")

    def sort_key(self) -> Tuple[int, int, str, str, int]:
        return (self.begin, self.end, type(self).__name__, self.qualifier, self.seq)

    def overlaps(self, begin: int, end: int) -> bool:
        return self.begin < end and self.end > begin

    @property
    def signature_value(self) -> str:
        return self.text

    def absorb(self, other: "Annotation") -> bool:
        """
        Import enrichable fields of `other` into empty slots of this annotation,
        only if no field conflicts. Returns True if the import happened.
        """
        names = self.JSON_FIELDS.keys()
        if not all(compatible(getattr(self, n), getattr(other, n)) for n in names):
            return False
        for n in names:
            if getattr(self, n) is None:
                setattr(self, n, getattr(other, n))
        return True

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"begin": self.begin, "end": self.end}
        if self.qualifier:
            out["q"] = self.qualifier
        out[self.SIGNATURE] = self.signature_value
        for name, key in self.JSON_FIELDS.items():
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, Category):
                value = value.to_json()
            elif isinstance(value, (set, frozenset)):
                value = sorted(value)
            out[key] = value
        return out

    def load_json(self, obj: Dict[str, Any]) -> None:
        """Fill enrichable fields from a JSON object (span fields are not touched)."""
        for name, key in self.JSON_FIELDS.items():
            if key not in obj:
                continue
            value = obj[key]
            if name == "category":
                value = Category.parse(value)
            elif name == "definitions":
                value = set(value) if value is not None else None
            setattr(self, name, value)


@dataclass(eq=False)
class Mention(Annotation):
    username: str = ""
    full_name: Optional[str] = None
    description: Optional[str] = None
    lang: Optional[str] = None
    category: Optional[Category] = None
    uri: Optional[str] = None

    SIGNATURE: ClassVar[str] = "username"
    JSON_FIELDS: ClassVar[Dict[str, str]] = {
        "full_name": "fullName",
        "description": "description",
        "lang": "lang",
        "category": "category",
        "uri": "uri",
    }

    def __post_init__(self):
        super().__post_init__()
        if not self.username:
            self.username = self.text[1:]

    @property
    def signature_value(self) -> str:
        return self.username


@dataclass(eq=False)
class Hashtag(Annotation):
    hashtag: str = ""
    tokenization: Optional[str] = None
    definitions: Optional[Set[str]] = None

    SIGNATURE: ClassVar[str] = "hashtag"
    JSON_FIELDS: ClassVar[Dict[str, str]] = {
        "tokenization": "tokenization",
        "definitions": "definitions",
    }

    def __post_init__(self):
        super().__post_init__()
        if not self.hashtag:
            self.hashtag = self.text[1:]

    @property
    def signature_value(self) -> str:
        return self.hashtag

    def absorb(self, other: "Annotation") -> bool:
        # definitions are unioned, not compared
        if not compatible(self.tokenization, other.tokenization):
            return False
        if self.tokenization is None:
            self.tokenization = other.tokenization
        if other.definitions:
            self.definitions = set(self.definitions or ()) | set(other.definitions)
        elif self.definitions is None and other.definitions is not None:
            self.definitions = set()
        return True


@dataclass(eq=False)
class Url(Annotation):
    resolved_url: Optional[str] = None
    title: Optional[str] = None

    SIGNATURE: ClassVar[str] = "url"
    JSON_FIELDS: ClassVar[Dict[str, str]] = {
        "resolved_url": "resolvedUrl",
        "title": "title",
    }

    @property
    def url(self) -> str:
        return self.text


@dataclass(eq=False)
class Entity(Annotation):
    category: Optional[Category] = None
    uri: Optional[str] = None
    # secondary span in rewritten-text coordinates
    rewritten_begin: Optional[int] = None
    rewritten_end: Optional[int] = None

    SIGNATURE: ClassVar[str] = "surfaceForm"
    JSON_FIELDS: ClassVar[Dict[str, str]] = {
        "category": "category",
        "uri": "uri",
        "rewritten_begin": "beginIndexRewritten",
        "rewritten_end": "endIndexRewritten",
    }

    @property
    def surface_form(self) -> str:
        return self.text


ANNOTATION_TYPES: Tuple[type, ...] = (Mention, Hashtag, Url, Entity)


def kind_for_json(obj: Dict[str, Any]) -> type:
    for kind in ANNOTATION_TYPES:
        if kind.SIGNATURE in obj:
            return kind
    raise ValueError(f"Unknown annotation: {obj}")
