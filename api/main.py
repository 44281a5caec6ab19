import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from api.schemas import (
    AnnotateRequest,
    AnnotateResponse,
    OffsetsRequest,
    OffsetsResponse,
    RewriteRequest,
    RewriteResponse,
)
from postspan.config import load_config
from postspan.errors import StateError
from postspan.pipeline import annotate_posts, setup_logging
from postspan.post import Post
from postspan.rewriting import TextRewrite


setup_logging()
logger = logging.getLogger("api")

app = FastAPI(
    title="Post annotator",
    version="0.1.0",
    description="Span annotation and offset-preserving rewriting of short posts.",
)

# Local annotation front-ends
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.post("/annotate", response_model=AnnotateResponse)
def annotate(req: AnnotateRequest) -> AnnotateResponse:
    logger.info("Received /annotate request with %d posts", len(req.posts))
    try:
        config = load_config(req.config_path)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"Config not found: {req.config_path}")
    try:
        posts = [Post.from_json(p) for p in req.posts]
    except (KeyError, TypeError, ValueError, StateError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid post: {e}")
    annotate_posts(posts, config)
    return AnnotateResponse(posts=[p.to_json() for p in posts])


@app.post("/rewrite", response_model=RewriteResponse)
def rewrite(req: RewriteRequest) -> RewriteResponse:
    rewriting = TextRewrite(req.text)
    skipped = []
    for r in req.replacements:
        try:
            ok = rewriting.try_replace(r.start, r.end, r.replacement)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        if not ok:
            skipped.append(r)
    return RewriteResponse(
        rewriting=rewriting.to_json(), rewritten=rewriting.rewritten, skipped=skipped
    )


@app.post("/rewrite/offsets", response_model=OffsetsResponse)
def original_offsets(req: OffsetsRequest) -> OffsetsResponse:
    try:
        rewriting = TextRewrite.from_json(req.rewriting)
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid rewriting: {e}")
    return OffsetsResponse(
        offsets=[rewriting.to_original_offset(o) for o in req.offsets],
        rewritten=rewriting.rewritten,
    )
