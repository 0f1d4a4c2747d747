from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from domain.geometry import GeometryConfig
from domain.models import Block
from domain.services.chain_walker import chain_from, fully_expand
from domain.workspace import BlockGraph


@dataclass(frozen=True)
class AlignmentResult:
    aligned: int
    total: int
    grid_size: float


def translate_blocks(blocks: Iterable[Block], dx: float, dy: float) -> None:
    for block in blocks:
        block.move_by(dx, dy)


def translate_chain(graph: BlockGraph, head: Block | None, dx: float, dy: float) -> None:
    translate_blocks(fully_expand(graph, head), dx, dy)


def stack_chain(
    graph: BlockGraph,
    head: Block | None,
    x: float,
    y: float,
    config: GeometryConfig,
) -> float:
    """Lay out ``head`` and its siblings from ``(x, y)``, nested chains included.

    Returns the y coordinate just below the last block.
    """
    cursor = y
    for block in chain_from(graph, head):
        block.x = x
        block.y = cursor
        if block.is_container and block.first_child:
            stack_chain(
                graph,
                graph.get(block.first_child),
                x + config.indent,
                cursor + config.container_header_height,
                config,
            )
        cursor += block.height
    return cursor


def restack_below(graph: BlockGraph, block: Block, config: GeometryConfig) -> None:
    stack_chain(graph, graph.get(block.next), block.x, block.y + block.height, config)


def restack_inner(graph: BlockGraph, container: Block, config: GeometryConfig) -> None:
    stack_chain(
        graph,
        graph.get(container.first_child),
        container.x + config.indent,
        container.y + config.container_header_height,
        config,
    )


def snap_to_grid(value: float, grid_size: float) -> float:
    return round(value / grid_size) * grid_size


def align_all(graph: BlockGraph, grid_size: float = 10.0) -> AlignmentResult:
    if grid_size <= 0:
        msg = f"Grid size must be positive, got {grid_size}"
        raise ValueError(msg)
    heads = graph.top_level_blocks()
    aligned = 0
    for head in heads:
        dx = snap_to_grid(head.x, grid_size) - head.x
        dy = snap_to_grid(head.y, grid_size) - head.y
        if dx == 0 and dy == 0:
            continue
        translate_chain(graph, head, dx, dy)
        aligned += 1
    return AlignmentResult(aligned=aligned, total=len(heads), grid_size=grid_size)
