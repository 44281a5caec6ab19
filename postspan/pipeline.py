# postspan/pipeline.py

from __future__ import annotations

import argparse
import logging
import logging.config
import os
import time
from pathlib import Path
from typing import List, Optional, Sequence

import yaml

from . import merge, rewriters, taggers  # noqa: F401  (register pipeline stages)
from .annotators import Annotator, create
from .config import PipelineConfig, load_config
from .io import read_posts, write_posts
from .post import Post

logger = logging.getLogger(__name__)


def setup_logging(cfg_path: str | Path = os.path.join("configs", "logging.yaml")) -> None:
    if os.path.exists(cfg_path):
        try:
            with open(cfg_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
            os.makedirs("logs", exist_ok=True)
            logging.config.dictConfig(config)
        except (OSError, ValueError, yaml.YAMLError) as e:
            print(f"[logging] Failed to load {cfg_path}: {e}")
            logging.basicConfig(level=logging.INFO)
    else:
        logging.basicConfig(level=logging.INFO)


def build_annotator(config: PipelineConfig) -> Annotator:
    annotator = create(config.pipeline, config.base_path)
    logger.info("Configured pipeline: %r", annotator)
    return annotator


def annotate_posts(posts: List[Post], config: PipelineConfig) -> List[Post]:
    annotator = build_annotator(config)
    ts = time.time()
    annotator.annotate_all(posts)
    logger.info("Annotated %d posts in %.0f ms", len(posts), (time.time() - ts) * 1000)
    return posts


def run(
    config: PipelineConfig,
    input_path: Optional[str | Path] = None,
    output_path: Optional[str | Path] = None,
) -> int:
    """Read posts, run the configured pipeline on them, write them back. Returns the post count."""
    input_path = input_path or config.input_path
    output_path = output_path or config.output_path
    if input_path is None or output_path is None:
        raise ValueError("Both input and output paths are required")

    posts = read_posts(input_path)
    logger.info("Read %d posts from %s", len(posts), input_path)
    annotate_posts(posts, config)
    count = write_posts(output_path, posts)
    logger.info("Wrote %d posts to %s", count, output_path)
    return count


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="postspan",
        description="Annotate and rewrite posts stored as newline-delimited JSON.",
    )
    parser.add_argument("-c", "--config", default=os.path.join("configs", "pipeline.yaml"))
    parser.add_argument("-i", "--input", help="input posts file (default: paths.input)")
    parser.add_argument("-o", "--output", help="output posts file (default: paths.output)")
    parser.add_argument("--logging", default=os.path.join("configs", "logging.yaml"))
    args = parser.parse_args(argv)

    setup_logging(args.logging)
    config = load_config(args.config)
    run(config, args.input, args.output)
    return 0
