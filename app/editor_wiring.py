from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from adapters.filesystem.workspace_repository import FileSystemWorkspaceRepository
from app.config import AppSettings
from domain.block_catalog import BlockCatalog
from domain.ports.repositories import WorkspaceRepository
from domain.services.chain_mutator import ChainMutator
from domain.services.connection_orchestrator import ConnectionOrchestrator, DragEvent
from domain.services.connector_geometry import ConnectorGeometry
from domain.services.connector_matcher import ConnectorMatcher
from domain.services.container_resizer import ContainerResizer
from domain.workspace import BlockGraph


@dataclass
class EditorServices:
    graph: BlockGraph
    resizer: ContainerResizer
    mutator: ChainMutator
    matcher: ConnectorMatcher
    orchestrator: ConnectionOrchestrator


def build_block_catalog(settings: AppSettings) -> BlockCatalog:
    return BlockCatalog(config=settings.geometry.to_geometry_config())


def build_workspace_repository(settings: AppSettings) -> WorkspaceRepository:
    return FileSystemWorkspaceRepository()


def build_editor_services(
    settings: AppSettings,
    graph: BlockGraph,
    observer: Callable[[DragEvent], None] | None = None,
) -> EditorServices:
    config = settings.geometry.to_geometry_config()
    resizer = ContainerResizer(graph, config)
    mutator = ChainMutator(graph, resizer)
    matcher = ConnectorMatcher(ConnectorGeometry(config))
    orchestrator = ConnectionOrchestrator(graph, matcher=matcher, mutator=mutator, observer=observer)
    return EditorServices(
        graph=graph,
        resizer=resizer,
        mutator=mutator,
        matcher=matcher,
        orchestrator=orchestrator,
    )
