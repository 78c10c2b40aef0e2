"""
JSON-backed overrides for trader settings.

The store file holds one JSON object per namespace. The trader reads the
``trader`` namespace and honours only the keys in ``TRADER_KEYS``; secrets are
never read from here.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Mapping

logger = logging.getLogger(__name__)

SETTINGS_FILE = Path("data/settings_store.json")
TRADER_NAMESPACE = "trader"
TRADER_KEYS = frozenset(
    {
        "base_url",
        "symbol",
        "provider",
        "model",
        "artifact_dir",
        "interval_seconds",
        "success_cooldown",
        "failure_cooldown",
    }
)


class SettingsStore:
    """Namespaced settings persisted as a single JSON document."""

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else SETTINGS_FILE
        self._lock = Lock()

    def namespace(self, name: str) -> Dict[str, Any]:
        """Shallow copy of one namespace; missing or malformed entries yield ``{}``."""
        with self._lock:
            payload = self._read().get(name, {})
        return dict(payload) if isinstance(payload, dict) else {}

    def update(self, name: str, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Merge ``values`` into a namespace and persist the whole document atomically."""
        if not isinstance(values, Mapping):
            raise ValueError("values must be a mapping.")
        with self._lock:
            data = self._read()
            current = data.get(name) if isinstance(data.get(name), dict) else {}
            merged = {**current, **values}
            data[name] = merged
            self._write(data)
        return dict(merged)

    def trader_overrides(self) -> Dict[str, Any]:
        overrides = self.namespace(TRADER_NAMESPACE)
        ignored = sorted(set(overrides) - TRADER_KEYS)
        if ignored:
            logger.warning("Ignoring unsupported trader settings in %s: %s", self.path, ", ".join(ignored))
        return {key: value for key, value in overrides.items() if key in TRADER_KEYS}

    def _read(self) -> Dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        if not raw.strip():
            return {}
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Settings store %s is corrupted; ignoring contents.", self.path)
            return {}
        return payload if isinstance(payload, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(".tmp")
        temp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        temp_path.replace(self.path)
