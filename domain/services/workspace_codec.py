from __future__ import annotations

import logging
from typing import Any

from domain.block_catalog import BlockCatalog
from domain.geometry import GeometryConfig
from domain.models import Block, PersistedBlock, WorkspaceDocument
from domain.services.chain_layout import stack_chain
from domain.services.chain_walker import chain_from, fully_expand
from domain.services.container_resizer import ContainerResizer
from domain.workspace import BlockGraph

logger = logging.getLogger(__name__)

SUBSTACK_INPUT = "SUBSTACK"
SUBSTACK_SHADOW = 2


def export_workspace(graph: BlockGraph) -> WorkspaceDocument:
    """Persist every top-level chain worth keeping.

    Lone blocks are dropped unless they are containers holding nested blocks.
    """
    persisted: dict[str, PersistedBlock] = {}
    for head in graph.top_level_blocks():
        chain = chain_from(graph, head)
        if len(chain) < 2 and not (head.is_container and graph.get(head.first_child)):
            continue
        for block in fully_expand(graph, head):
            if block.id not in persisted:
                persisted[block.id] = _persist_block(graph, block)
    return WorkspaceDocument(blocks=persisted)


def _persist_block(graph: BlockGraph, block: Block) -> PersistedBlock:
    inputs: dict[str, Any] = {}
    if block.is_container and graph.get(block.first_child):
        inputs[SUBSTACK_INPUT] = [SUBSTACK_SHADOW, block.first_child]
    return PersistedBlock(
        opcode=block.opcode,
        next=block.next,
        parent=block.parent,
        inputs=inputs,
        fields=dict(block.fields),
        top_level=block.is_top_level,
        x=block.x if block.is_top_level else None,
        y=block.y if block.is_top_level else None,
    )


def load_workspace(
    document: WorkspaceDocument,
    catalog: BlockCatalog,
    config: GeometryConfig | None = None,
) -> BlockGraph:
    config = config or catalog.config
    graph = BlockGraph()
    for block_id, persisted in document.blocks.items():
        if persisted.opcode not in catalog:
            logger.warning("Skipping block %s with unknown opcode %s", block_id, persisted.opcode)
            continue
        graph.add(
            catalog.create_block(
                persisted.opcode,
                persisted.x or 0.0,
                persisted.y or 0.0,
                block_id=block_id,
                fields=persisted.fields,
            )
        )

    for block_id, persisted in document.blocks.items():
        block = graph.get(block_id)
        if block is None:
            continue
        _restore_next(graph, block, persisted)
        _restore_substack(graph, block, persisted)

    ContainerResizer(graph, config).sync_all()
    for head in graph.top_level_blocks():
        stack_chain(graph, head, head.x, head.y, config)
    logger.debug("Loaded %d of %d persisted blocks", len(graph), len(document.blocks))
    return graph


def _restore_next(graph: BlockGraph, block: Block, persisted: PersistedBlock) -> None:
    lower = graph.get(persisted.next)
    if lower is None or lower.parent is not None or _reaches(graph, lower, block):
        return
    block.next = lower.id
    block.bottom_connected = True
    _attach(lower, block)


def _restore_substack(graph: BlockGraph, block: Block, persisted: PersistedBlock) -> None:
    if not block.is_container:
        return
    inner = graph.get(persisted.substack)
    if inner is None or inner.parent is not None or _reaches(graph, inner, block):
        return
    block.first_child = inner.id
    _attach(inner, block)


def _attach(block: Block, parent: Block) -> None:
    block.parent = parent.id
    block.top_connected = True
    block.is_top_level = False


def _reaches(graph: BlockGraph, head: Block, block: Block) -> bool:
    return any(item.id == block.id for item in fully_expand(graph, head))
