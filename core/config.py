"""
Config loading utilities.

- Loads YAML config (e.g., configs/desk.yaml).
- Optionally deep-merges an overrides YAML on top.
- Provides a simple dict-like object for other modules.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = BASE_DIR / "configs" / "desk.yaml"
OVERRIDES_ENV_VAR = "DESK_CONFIG_OVERRIDES"


@dataclass
class AppConfig:
    raw: Dict[str, Any]

    def _section(self, name: str) -> Dict[str, Any]:
        # a key present with a null value still yields an empty section
        return self.raw.get(name) or {}

    @property
    def feeds(self) -> Dict[str, Any]:
        return self._section("feeds")

    @property
    def output(self) -> Dict[str, Any]:
        return self._section("output")

    @property
    def logging(self) -> Dict[str, Any]:
        return self._section("logging")

    @property
    def gui(self) -> Dict[str, Any]:
        return self._section("gui")

    @property
    def algo_execution(self) -> Dict[str, Any]:
        return self._section("algo_execution")

    @property
    def algo_streaming(self) -> Dict[str, Any]:
        return self._section("algo_streaming")

    @property
    def routing(self) -> Dict[str, Any]:
        return self._section("routing")

    @property
    def inquiry(self) -> Dict[str, Any]:
        return self._section("inquiry")

    @property
    def dispatch(self) -> Dict[str, Any]:
        return self._section("dispatch")


def load_config(path: str | os.PathLike, overrides_path: Optional[str | os.PathLike] = None) -> AppConfig:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    overrides_path = overrides_path or os.getenv(OVERRIDES_ENV_VAR)
    if overrides_path:
        _apply_overrides(raw, Path(overrides_path))
    return AppConfig(raw=raw)


def _apply_overrides(raw: Dict[str, Any], path: Path) -> None:
    if not path.exists():
        logger.warning("Config overrides file %s does not exist; ignoring", path)
        return
    try:
        overrides = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        logger.warning("Failed to read config overrides at %s: %s", path, exc)
        return
    if not isinstance(overrides, dict) or not overrides:
        return
    _recursive_merge(raw, overrides)
    logger.info(
        "Applied config overrides from %s (keys=%s)",
        path,
        ", ".join(overrides.keys()),
    )


def _recursive_merge(target: Dict[str, Any], overrides: Dict[str, Any]) -> None:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _recursive_merge(target[key], value)
        else:
            target[key] = value


def build_dataclass_config(cls, raw: Optional[Dict[str, Any]]):
    """Build ``cls`` from a raw config section, ignoring unknown keys."""
    if not isinstance(raw, dict):
        return cls()
    allowed = {}
    for field_name in cls.__dataclass_fields__.keys():  # type: ignore[attr-defined]
        if field_name in raw and raw[field_name] is not None:
            allowed[field_name] = raw[field_name]
    return cls(**allowed)
