"""Configuration loading and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from tracker_populator.common.constants import DEFAULT_STORED_BY, DISABLED_DUPLICATE_THRESHOLD
from tracker_populator.common.errors import ConfigError
from tracker_populator.common.fs import read_yaml
from tracker_populator.common.models import PopulatorSettings
from tracker_populator.common.schema import validate_populator_config


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path | None, overlay_path: Path | None) -> dict:
    base: dict = {}
    if path is not None:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    return _deep_merge(base, overlay)


def load_settings(
    config_path: Path | None,
    *,
    overlay_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
    allow_unknown: bool = False,
) -> PopulatorSettings:
    cfg = _load_yaml_with_overlay(config_path, overlay_path)
    if overrides:
        cfg = _deep_merge(cfg, {key: value for key, value in overrides.items() if value is not None})
    cfg = validate_populator_config(cfg, allow_unknown=allow_unknown)

    threshold = cfg.get("duplicate_threshold")
    return PopulatorSettings(
        url=str(cfg["url"]),
        tracked_entity_id=str(cfg["tracked_entity_id"]),
        program_id=str(cfg["program_id"]),
        stage_id=str(cfg["stage_id"]),
        duplicate_threshold=DISABLED_DUPLICATE_THRESHOLD if threshold is None else threshold,
        stored_by=cfg.get("stored_by") or DEFAULT_STORED_BY,
        username=cfg.get("username"),
        password=cfg.get("password"),
        csv_path=cfg.get("csv_path") or "./csv",
        done_path=cfg.get("done_path") or "./done",
        fail_path=cfg.get("fail_path") or "./fail",
        queue_size=cfg.get("queue_size") or 0,
        timeout=dict(cfg.get("timeout") or {}),
        retry=dict(cfg.get("retry") or {}),
    )
