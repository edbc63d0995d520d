"""Minimal strict schema for the populator YAML config."""

from __future__ import annotations

from tracker_populator.common.errors import ConfigError

REQUIRED_KEYS = {"url", "tracked_entity_id", "program_id", "stage_id"}
OPTIONAL_KEYS = {
    "duplicate_threshold",
    "stored_by",
    "username",
    "password",
    "csv_path",
    "done_path",
    "fail_path",
    "queue_size",
    "timeout",
    "retry",
}


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = {key for key in required if obj.get(key) in (None, "")}
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_int(obj: dict, key: str, ctx: str) -> None:
    value = obj.get(key)
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{ctx}.{key} must be an integer")


def validate_populator_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    if not isinstance(cfg, dict):
        raise ConfigError("populator config must be a mapping")
    _assert_required_keys(cfg, REQUIRED_KEYS, "populator config")
    _assert_no_unknown_keys(cfg, REQUIRED_KEYS | OPTIONAL_KEYS, "populator config", allow_unknown)
    _assert_int(cfg, "duplicate_threshold", "populator config")
    _assert_int(cfg, "queue_size", "populator config")

    timeout = cfg.get("timeout") or {}
    if not isinstance(timeout, dict):
        raise ConfigError("timeout must be a mapping")
    _assert_no_unknown_keys(timeout, {"connect", "read"}, "timeout", allow_unknown)

    retry = cfg.get("retry") or {}
    if not isinstance(retry, dict):
        raise ConfigError("retry must be a mapping")
    _assert_no_unknown_keys(retry, {"max_attempts"}, "retry", allow_unknown)
    _assert_int(retry, "max_attempts", "retry")
    if retry.get("max_attempts") is not None and retry["max_attempts"] < 1:
        raise ConfigError("retry.max_attempts must be at least 1")

    return cfg
