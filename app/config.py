from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from domain.geometry import BlockForm, GeometryConfig
from domain.models import BlockKind

DEFAULT_CONFIG_PATH = Path("config/editor.yaml")

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class FormSettings(BaseModel):
    width: float = Field(gt=0)
    height: float = Field(gt=0)


def _default_forms() -> dict[BlockKind, FormSettings]:
    return {
        kind: FormSettings(width=form.width, height=form.height)
        for kind, form in GeometryConfig().forms.items()
    }


class GeometrySettings(BaseModel):
    forms: dict[BlockKind, FormSettings] = Field(default_factory=_default_forms)
    socket_height: float = 8.0
    top_offset: float = 4.0
    bottom_offset: float = 0.0
    indent: float = 16.0
    container_header_height: float = 24.0
    empty_inner_slack: float = 24.0
    connector_threshold: float = Field(default=20.0, gt=0)
    container_middle_threshold: float = Field(default=10.0, gt=0)
    middle_zone_offset: float = 5.0
    sever_offset_x: float = 50.0
    sever_offset_y: float = 50.0
    resize_epsilon: float = Field(default=0.01, gt=0)
    sync_epsilon: float = Field(default=0.1, gt=0)

    @field_validator("forms", mode="after")
    @classmethod
    def fill_missing_forms(cls, forms: dict[BlockKind, FormSettings]) -> dict[BlockKind, FormSettings]:
        merged = _default_forms()
        merged.update(forms)
        return merged

    def to_geometry_config(self) -> GeometryConfig:
        return GeometryConfig(
            forms={kind: BlockForm(form.width, form.height) for kind, form in self.forms.items()},
            socket_height=self.socket_height,
            top_offset=self.top_offset,
            bottom_offset=self.bottom_offset,
            indent=self.indent,
            container_header_height=self.container_header_height,
            empty_inner_slack=self.empty_inner_slack,
            connector_threshold=self.connector_threshold,
            container_middle_threshold=self.container_middle_threshold,
            middle_zone_offset=self.middle_zone_offset,
            sever_offset_x=self.sever_offset_x,
            sever_offset_y=self.sever_offset_y,
            resize_epsilon=self.resize_epsilon,
            sync_epsilon=self.sync_epsilon,
        )


class WorkspaceSettings(BaseModel):
    path: Path = Path("data/workspace.json")
    grid_size: float = Field(default=10.0, gt=0)
    log_level: str = "WARNING"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> str:
        level = str(value or "WARNING").strip().upper()
        if level not in _LOG_LEVELS:
            msg = f"workspace.log_level must be one of {sorted(_LOG_LEVELS)}"
            raise ValueError(msg)
        return level


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BCE_", env_nested_delimiter="__")

    geometry: GeometrySettings = GeometrySettings()
    workspace: WorkspaceSettings = WorkspaceSettings()

    _yaml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv("BCE_CONFIG_PATH")
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
