from __future__ import annotations

from collections.abc import Sequence
from functools import lru_cache
from pathlib import Path

from domain.geometry import GeometryConfig
from domain.models import Block, BlockKind
from domain.services.chain_layout import restack_inner, stack_chain
from domain.services.container_resizer import ContainerResizer
from domain.workspace import BlockGraph

BlockSpec = str | tuple[str, BlockKind]

OPCODES = {
    BlockKind.START: "motion_start",
    BlockKind.DEFAULT: "motion_move_steps",
    BlockKind.CONTAINER: "control_repeat",
    BlockKind.STOP: "control_stop",
    BlockKind.ROUND: "operator_add",
    BlockKind.SHARP: "operator_equals",
}


@lru_cache(maxsize=1)
def repo_root() -> Path:
    for parent in Path(__file__).resolve().parents:
        if (parent / "pyproject.toml").exists():
            return parent
    raise RuntimeError("Repository root not found")


def make_block(
    block_id: str,
    kind: BlockKind = BlockKind.DEFAULT,
    x: float = 0.0,
    y: float = 0.0,
    config: GeometryConfig | None = None,
) -> Block:
    form = (config or GeometryConfig()).form(kind)
    return Block(
        id=block_id,
        kind=kind,
        opcode=OPCODES[kind],
        x=x,
        y=y,
        width=form.width,
        height=form.height,
    )


def _unpack(item: BlockSpec) -> tuple[str, BlockKind]:
    if isinstance(item, tuple):
        return item
    return item, BlockKind.DEFAULT


def link_blocks(upper: Block, lower: Block) -> None:
    upper.next = lower.id
    upper.bottom_connected = True
    lower.parent = upper.id
    lower.top_connected = True
    lower.is_top_level = False


def add_chain(
    graph: BlockGraph,
    items: Sequence[BlockSpec],
    x: float = 0.0,
    y: float = 0.0,
    config: GeometryConfig | None = None,
) -> list[Block]:
    """Add a linked top-level chain stacked downward from ``(x, y)``."""
    config = config or GeometryConfig()
    blocks = [graph.add(make_block(block_id, kind, config=config)) for block_id, kind in map(_unpack, items)]
    for upper, lower in zip(blocks, blocks[1:]):
        link_blocks(upper, lower)
    if blocks:
        stack_chain(graph, blocks[0], x, y, config)
    return blocks


def add_inner_chain(
    graph: BlockGraph,
    container_id: str,
    items: Sequence[BlockSpec],
    config: GeometryConfig | None = None,
) -> list[Block]:
    """Nest a new chain inside an empty container and sync its height."""
    config = config or GeometryConfig()
    container = graph.get(container_id)
    assert container is not None and container.first_child is None
    blocks = [graph.add(make_block(block_id, kind, config=config)) for block_id, kind in map(_unpack, items)]
    for upper, lower in zip(blocks, blocks[1:]):
        link_blocks(upper, lower)
    head = blocks[0]
    container.first_child = head.id
    head.parent = container.id
    head.top_connected = True
    head.is_top_level = False
    restack_inner(graph, container, config)
    ContainerResizer(graph, config).sync_height(container)
    return blocks


def link_state(graph: BlockGraph) -> dict[str, tuple[object, ...]]:
    return {
        block.id: (
            block.next,
            block.parent,
            block.first_child,
            block.is_top_level,
            block.top_connected,
            block.bottom_connected,
        )
        for block in graph
    }
