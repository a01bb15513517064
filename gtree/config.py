"""Settings loading for gtree."""

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any


class ConfigError(Exception):
    """Settings file is missing required structure or has bad values."""


@dataclass(frozen=True)
class Settings:
    """Explorer settings."""

    include_untracked: bool = True
    scan_filesystem: bool = True
    page_size: int = 10
    show_debug: bool = False
    log_file: str | None = None


def settings_path() -> Path:
    override = os.environ.get("GTREE_CONFIG")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "gtree" / "settings.json"


def _load_raw(path: Path) -> dict[str, object]:
    if not path.is_file():
        return {}

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Invalid settings format in {path}")
    return raw


def _expect_bool(value: object, key: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"Setting {key} must be true or false.")
    return value


def _expect_page_size(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError("Setting page_size must be a positive integer.")
    return value


def _expect_optional_str(value: object, key: str) -> str | None:
    if value is not None and not isinstance(value, str):
        raise ConfigError(f"Setting {key} must be a string or null.")
    return value


def parse_settings(raw: dict[str, object]) -> Settings:
    """Validate a settings mapping; unknown keys are rejected."""
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown setting(s): {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for key in ("include_untracked", "scan_filesystem", "show_debug"):
        if key in raw:
            values[key] = _expect_bool(raw[key], key)
    if "page_size" in raw:
        values["page_size"] = _expect_page_size(raw["page_size"])
    if "log_file" in raw:
        values["log_file"] = _expect_optional_str(raw["log_file"], "log_file")
    return Settings(**values)


def load_settings(path: Path | None = None, **overrides: Any) -> Settings:
    """Load settings from disk and apply non-None overrides."""
    settings = parse_settings(_load_raw(path or settings_path()))
    applied = {key: value for key, value in overrides.items() if value is not None}
    if "page_size" in applied:
        _expect_page_size(applied["page_size"])
    return replace(settings, **applied)
