from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from app.config import AppSettings, GeometrySettings, WorkspaceSettings, load_settings
from domain.models import BlockKind


def test_defaults_match_domain_geometry() -> None:
    settings = AppSettings()
    config = settings.geometry.to_geometry_config()

    assert config.form(BlockKind.CONTAINER).height == 60
    assert config.form(BlockKind.START).height == 56
    assert config.empty_inner_slack == 24
    assert config.connector_threshold == 20
    assert settings.workspace.grid_size == 10


def test_yaml_file_overrides_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "editor.yaml"
    config_path.write_text(
        "\n".join(
            [
                "geometry:",
                "  connector_threshold: 30",
                "  forms:",
                "    c-block: {width: 200, height: 64}",
                "workspace:",
                "  grid_size: 8",
                "  log_level: debug",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings(config_path)
    config = settings.geometry.to_geometry_config()

    assert config.connector_threshold == 30
    assert config.form(BlockKind.CONTAINER).height == 64
    assert config.form(BlockKind.DEFAULT).height == 40
    assert settings.workspace.grid_size == 8
    assert settings.workspace.log_level == "DEBUG"


def test_env_overrides_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "editor.yaml"
    config_path.write_text("workspace:\n  grid_size: 8\n", encoding="utf-8")
    monkeypatch.setenv("BCE_CONFIG_PATH", str(config_path))
    monkeypatch.setenv("BCE_WORKSPACE__GRID_SIZE", "25")
    monkeypatch.setenv("BCE_GEOMETRY__INDENT", "20")

    settings = load_settings()

    assert settings.workspace.grid_size == 25
    assert settings.geometry.indent == 20


def test_missing_explicit_config_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.yaml")


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        GeometrySettings(connector_threshold=0)
    with pytest.raises(ValidationError):
        WorkspaceSettings(log_level="chatty")
