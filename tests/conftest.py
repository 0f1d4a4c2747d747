from __future__ import annotations

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from app.config import AppSettings, GeometrySettings, WorkspaceSettings
from domain.geometry import GeometryConfig
from domain.services.chain_mutator import ChainMutator
from domain.services.container_resizer import ContainerResizer
from domain.workspace import BlockGraph


def _clear_bce_env() -> None:
    for key in list(os.environ):
        if key.startswith("BCE_"):
            os.environ.pop(key, None)


_clear_bce_env()


@pytest.fixture(autouse=True)
def clear_bce_env() -> Generator[None, None, None]:
    _clear_bce_env()
    yield
    _clear_bce_env()


@pytest.fixture
def geometry_config() -> GeometryConfig:
    return GeometryConfig()


@pytest.fixture
def graph() -> BlockGraph:
    return BlockGraph()


@pytest.fixture
def resizer(graph: BlockGraph, geometry_config: GeometryConfig) -> ContainerResizer:
    return ContainerResizer(graph, geometry_config)


@pytest.fixture
def mutator(graph: BlockGraph, resizer: ContainerResizer) -> ChainMutator:
    return ChainMutator(graph, resizer)


@pytest.fixture
def workspace_settings(tmp_path: Path) -> WorkspaceSettings:
    return WorkspaceSettings(path=tmp_path / "workspace.json", grid_size=10.0, log_level="WARNING")


@pytest.fixture
def workspace_settings_factory(
    workspace_settings: WorkspaceSettings,
) -> Callable[..., WorkspaceSettings]:
    def _factory(**overrides: object) -> WorkspaceSettings:
        return workspace_settings.model_copy(update=overrides)

    return _factory


@pytest.fixture
def app_settings(workspace_settings: WorkspaceSettings) -> AppSettings:
    return AppSettings(geometry=GeometrySettings(), workspace=workspace_settings)


@pytest.fixture
def app_settings_factory(
    workspace_settings_factory: Callable[..., WorkspaceSettings],
) -> Callable[..., AppSettings]:
    def _factory(**overrides: object) -> AppSettings:
        return AppSettings(geometry=GeometrySettings(), workspace=workspace_settings_factory(**overrides))

    return _factory
