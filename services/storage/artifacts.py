"""
Per-cycle artifact store.

Each trading cycle gets its own timestamp-named directory. Files inside it are
written once and never overwritten, so a directory is the complete and
append-only record of what the cycle saw, decided and did.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

MARKET_REPORT = "01_market_report.md"
MARKET_SNAPSHOT = "01_market_snapshot.json"
MODEL_REPLY = "02_model_reply.txt"
DECISION = "02_decision.json"
DECISION_ERROR = "02_decision_error.txt"
CYCLE_REPORT = "03_report.md"
CYCLE_ERROR = "error.txt"


@dataclass(slots=True)
class CycleArtifacts:
    """Handle on one cycle's directory."""

    cycle_id: str
    directory: Path

    def write_text(self, name: str, content: str) -> Path:
        target = self.directory / name
        if target.exists():
            raise FileExistsError(f"Artifact {target} already written for cycle {self.cycle_id}")
        temp_path = target.with_name(f".{name}.tmp")
        temp_path.write_text(content, encoding="utf-8")
        temp_path.replace(target)
        logger.debug("[%s] wrote %s", self.cycle_id, name)
        return target

    def write_json(self, name: str, payload: Any) -> Path:
        return self.write_text(name, json.dumps(payload, ensure_ascii=False, indent=2, default=str))

    def read_text(self, name: str) -> str:
        return (self.directory / name).read_text(encoding="utf-8")

    def names(self) -> list[str]:
        return sorted(path.name for path in self.directory.iterdir() if not path.name.startswith("."))


class ArtifactStore:
    """Creates cycle directories under `root`."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def open_cycle(self, started_at: datetime | None = None, *, dry_run: bool = False) -> CycleArtifacts:
        started = started_at or datetime.now(tz=timezone.utc)
        base_name = started.strftime("%Y%m%d_%H%M%S") + ("_dry" if dry_run else "")
        self.root.mkdir(parents=True, exist_ok=True)
        suffix = 0
        while True:
            cycle_id = base_name if suffix == 0 else f"{base_name}-{suffix}"
            directory = self.root / cycle_id
            try:
                directory.mkdir()
            except FileExistsError:
                suffix += 1
                continue
            logger.info("Cycle %s artifacts -> %s", cycle_id, directory)
            return CycleArtifacts(cycle_id=cycle_id, directory=directory)
