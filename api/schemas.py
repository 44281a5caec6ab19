# api/schemas.py

from typing import Any, Dict, List, Optional
from pydantic import BaseModel


class AnnotateRequest(BaseModel):
    posts: List[Dict[str, Any]]
    config_path: str = "configs/pipeline.yaml"


class AnnotateResponse(BaseModel):
    posts: List[Dict[str, Any]]


class ReplacementSchema(BaseModel):
    start: int
    end: int
    replacement: str


class RewriteRequest(BaseModel):
    text: str
    replacements: List[ReplacementSchema] = []


class RewriteResponse(BaseModel):
    rewriting: Dict[str, Any]
    rewritten: str
    skipped: List[ReplacementSchema] = []


class OffsetsRequest(BaseModel):
    rewriting: Dict[str, Any]
    offsets: List[int]


class OffsetsResponse(BaseModel):
    offsets: List[int]
    rewritten: Optional[str] = None
