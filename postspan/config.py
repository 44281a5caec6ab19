# postspan/config.py

from __future__ import annotations

import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass
class PipelineConfig:
    pipeline: Dict[str, Any] = field(default_factory=lambda: {"type": "nil"})
    base_path: Path = field(default_factory=Path.cwd)
    input_path: Optional[Path] = None
    output_path: Optional[Path] = None

    def resolve(self, path: Optional[str | Path]) -> Optional[Path]:
        if path is None:
            return None
        return self.base_path / path


def load_config(path: str | Path) -> PipelineConfig:
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    base_path = path.resolve().parent
    paths_cfg = cfg.get("paths", {}) or {}

    config = PipelineConfig(
        pipeline=cfg.get("pipeline") or {"type": "nil"},
        base_path=base_path,
    )
    config.input_path = config.resolve(paths_cfg.get("input"))
    config.output_path = config.resolve(paths_cfg.get("output"))
    return config
