from __future__ import annotations

import logging
from dataclasses import dataclass

from domain.geometry import GeometryConfig
from domain.models import Block
from domain.services.chain_walker import enclosing_container, fully_expand, inner_chain, nesting_level
from domain.workspace import BlockGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContainerState:
    container_id: str
    inner_block_count: int
    inner_height: float
    effective_inner_height: float
    base_height: float
    target_height: float
    current_height: float
    inner_top_empty: bool
    has_trailing_block: bool


class ContainerResizer:
    def __init__(self, graph: BlockGraph, config: GeometryConfig | None = None) -> None:
        self.graph = graph
        self.config = config or GeometryConfig()

    def inner_height(self, container: Block) -> float:
        return sum(block.height for block in inner_chain(self.graph, container))

    def effective_inner_height(self, container: Block) -> float:
        return max(0.0, self.inner_height(container) - self.config.empty_inner_slack)

    def target_height(self, container: Block) -> float:
        return self.config.base_height(container.kind) + self.effective_inner_height(container)

    def sync_height(self, container: Block | None) -> float:
        """Bring ``container`` to its derived height; returns the applied delta."""
        if container is None or not container.is_container:
            return 0.0
        delta = self.target_height(container) - container.height
        if abs(delta) <= self.config.sync_epsilon:
            return 0.0
        self.resize(container, delta)
        return delta

    def resize(self, container: Block, delta: float) -> None:
        if abs(delta) < self.config.resize_epsilon:
            return
        container.height += delta
        for block in fully_expand(self.graph, self.graph.get(container.next)):
            block.y += delta
        logger.debug("Resized container %s by %.2f to %.2f", container.id, delta, container.height)
        # Each step moves one nesting level outward, so recursion depth is bounded.
        self.sync_height(enclosing_container(self.graph, container))

    def sync_all(self) -> int:
        """Sync every container, innermost first; returns how many changed."""
        containers = sorted(
            self.graph.containers(),
            key=lambda block: nesting_level(self.graph, block),
            reverse=True,
        )
        changed = 0
        for container in containers:
            if self.sync_height(container):
                changed += 1
        return changed

    def container_state(self, container: Block) -> ContainerState:
        inner = inner_chain(self.graph, container)
        inner_height = sum(block.height for block in inner)
        return ContainerState(
            container_id=container.id,
            inner_block_count=len(inner),
            inner_height=inner_height,
            effective_inner_height=self.effective_inner_height(container),
            base_height=self.config.base_height(container.kind),
            target_height=self.target_height(container),
            current_height=container.height,
            inner_top_empty=not inner,
            has_trailing_block=self.graph.get(container.next) is not None,
        )
