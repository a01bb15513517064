from __future__ import annotations

import json
from pathlib import Path

import pytest

from gtree.config import ConfigError, Settings, load_settings, parse_settings, settings_path


def _write_settings(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    assert load_settings(tmp_path / "absent.json") == Settings()


def test_env_override_for_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GTREE_CONFIG", str(tmp_path / "custom.json"))
    assert settings_path() == tmp_path / "custom.json"


def test_file_values_and_overrides(tmp_path: Path) -> None:
    path = _write_settings(
        tmp_path / "settings.json",
        {"include_untracked": False, "page_size": 25, "log_file": "~/gtree.log"},
    )
    settings = load_settings(path, include_untracked=None, show_debug=True)
    assert settings.include_untracked is False
    assert settings.page_size == 25
    assert settings.show_debug is True
    assert settings.log_file == "~/gtree.log"

    assert load_settings(path, page_size=3).page_size == 3


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ConfigError, match="Unknown setting\\(s\\): colour"):
        parse_settings({"colour": "blue"})


@pytest.mark.parametrize(
    "raw",
    [
        {"page_size": 0},
        {"page_size": True},
        {"page_size": "10"},
        {"show_debug": "yes"},
        {"log_file": 3},
    ],
)
def test_bad_values_are_rejected(raw: dict[str, object]) -> None:
    with pytest.raises(ConfigError):
        parse_settings(raw)


def test_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid JSON"):
        load_settings(path)


def test_non_object_settings(tmp_path: Path) -> None:
    path = _write_settings(tmp_path / "settings.json", [1, 2])
    with pytest.raises(ConfigError, match="Invalid settings format"):
        load_settings(path)


def test_bad_override_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "absent.json", page_size=0)
