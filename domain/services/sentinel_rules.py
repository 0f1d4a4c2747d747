from __future__ import annotations

from domain.models import Block, BlockKind, ConnectorSlot
from domain.services.chain_walker import chain_tail, enclosing_container
from domain.workspace import BlockGraph


def can_connect_from_top(graph: BlockGraph, moving_head: Block, target: Block) -> bool:
    """Moving chain docks above ``target`` (its tail meets the target's Top)."""
    if chain_tail(graph, moving_head).kind == BlockKind.STOP:
        return False
    return target.kind != BlockKind.START


def can_connect_from_bottom(
    graph: BlockGraph,
    moving_head: Block,
    target: Block,
    slot: ConnectorSlot = ConnectorSlot.BOTTOM,
) -> bool:
    """Moving chain docks below ``target`` through Bottom, InnerTop or Middle."""
    if target.kind == BlockKind.STOP:
        return False
    if moving_head.kind != BlockKind.START:
        return True
    if slot != ConnectorSlot.MIDDLE:
        return False
    # A Start chain has no top edge, so it can only cut a top-level chain.
    if enclosing_container(graph, target) is not None:
        return False
    return chain_tail(graph, moving_head).kind != BlockKind.STOP
