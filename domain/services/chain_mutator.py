from __future__ import annotations

import logging

from domain.geometry import BASE_SLOTS, GeometryConfig
from domain.models import Block, BlockKind, ConnectorSlot
from domain.services.chain_layout import restack_inner, stack_chain, translate_chain
from domain.services.chain_walker import (
    chain_height,
    chain_level_head,
    chain_tail,
    enclosing_container,
    fully_expand,
    inner_chain,
)
from domain.services.container_resizer import ContainerResizer
from domain.workspace import BlockGraph

logger = logging.getLogger(__name__)


class ChainMutator:
    """Structural edits of the block graph.

    Every operation either applies completely and returns ``True`` or leaves
    the graph untouched and returns ``False``.
    """

    def __init__(self, graph: BlockGraph, resizer: ContainerResizer | None = None) -> None:
        self.graph = graph
        self.resizer = resizer or ContainerResizer(graph)

    @property
    def config(self) -> GeometryConfig:
        return self.resizer.config

    def break_link(self, upper_id: str, lower_id: str) -> bool:
        upper = self.graph.get(upper_id)
        lower = self.graph.get(lower_id)
        if upper is None or lower is None:
            return False
        if upper.next != lower.id or lower.parent != upper.id:
            return False
        self._unlink(upper, lower)
        logger.debug("Broke link %s -> %s", upper.id, lower.id)
        return True

    def connect(self, upper_id: str, lower_id: str) -> bool:
        upper = self.graph.get(upper_id)
        lower = self.graph.get(lower_id)
        if upper is None or lower is None:
            return False
        if not self._can_link(upper, lower):
            return False
        self._link(upper, lower)
        logger.debug("Connected %s -> %s", upper.id, lower.id)
        return True

    def insert_between(self, upper_id: str, head_id: str, lower_id: str) -> bool:
        upper = self.graph.get(upper_id)
        head = self.graph.get(head_id)
        lower = self.graph.get(lower_id)
        if upper is None or head is None or lower is None:
            return False
        if upper.next != lower.id or lower.parent != upper.id:
            return False
        if not self._is_free_chain(head) or self._in_chain(head, upper, lower):
            return False
        tail = chain_tail(self.graph, head)
        if not _has_slot(upper, ConnectorSlot.BOTTOM) or not _has_slot(head, ConnectorSlot.TOP):
            return False
        if not _has_slot(tail, ConnectorSlot.BOTTOM) or not _has_slot(lower, ConnectorSlot.TOP):
            return False

        self._unlink(upper, lower)
        self._link(upper, head)
        self._link(tail, lower)
        stack_chain(self.graph, head, upper.x, upper.y + upper.height, self.config)
        self.resizer.sync_height(enclosing_container(self.graph, upper))
        logger.debug("Inserted chain %s..%s between %s and %s", head.id, tail.id, upper.id, lower.id)
        return True

    def insert_inside(self, container_id: str, head_id: str, *, at_bottom: bool = False) -> bool:
        container = self.graph.get(container_id)
        head = self.graph.get(head_id)
        if container is None or head is None or not container.is_container:
            return False
        if not self._is_free_chain(head) or self._in_chain(head, container):
            return False
        if not _has_slot(head, ConnectorSlot.TOP):
            return False
        tail = chain_tail(self.graph, head)
        first = self.graph.get(container.first_child)

        if first is None:
            self._nest(container, head)
        elif at_bottom:
            inner_tail = chain_tail(self.graph, first)
            if not _has_slot(inner_tail, ConnectorSlot.BOTTOM):
                return False
            self._link(inner_tail, head)
        elif not _has_slot(tail, ConnectorSlot.BOTTOM):
            # A Stop tail cannot carry the old inner chain; it leaves as its own chain.
            self._unnest(container, first)
            translate_chain(self.graph, first, self.config.sever_offset_x, self.config.sever_offset_y)
            self._nest(container, head)
        else:
            self._unnest(container, first)
            self._nest(container, head)
            self._link(tail, first)

        restack_inner(self.graph, container, self.config)
        self.resizer.sync_height(container)
        logger.debug("Inserted chain %s inside %s (at_bottom=%s)", head.id, container.id, at_bottom)
        return True

    def remove_from_inside(self, container_id: str, block_id: str) -> bool:
        container = self.graph.get(container_id)
        block = self.graph.get(block_id)
        if container is None or block is None or not container.is_container:
            return False
        if block.id not in {item.id for item in inner_chain(self.graph, container)}:
            return False
        if container.first_child == block.id:
            self._unnest(container, block)
        else:
            upper = self.graph.get(block.parent)
            if upper is None:
                return False
            self._unlink(upper, block)
        self.resizer.sync_height(container)
        logger.debug("Removed chain %s from %s", block.id, container.id)
        return True

    def detach(self, block_id: str) -> bool:
        """Free ``block`` and everything below it from whatever holds it."""
        block = self.graph.get(block_id)
        if block is None:
            return False
        parent = self.graph.get(block.parent)
        if parent is None:
            block.parent = None
            block.is_top_level = True
            block.top_connected = False
            return True
        container = enclosing_container(self.graph, block)
        if container is not None:
            return self.remove_from_inside(container.id, block.id)
        if not self.break_link(parent.id, block.id):
            return False
        self.resizer.sync_height(enclosing_container(self.graph, parent))
        return True

    def insert_at_middle(self, upper_id: str, head_id: str) -> bool:
        upper = self.graph.get(upper_id)
        head = self.graph.get(head_id)
        if upper is None or head is None:
            return False
        lower = self.graph.get(upper.next)
        if lower is None or not self._is_free_chain(head):
            return False
        tail = chain_tail(self.graph, head)
        if head.kind == BlockKind.START:
            return self._insert_start_chain(upper, head, tail, lower)
        if tail.kind == BlockKind.STOP:
            return self._insert_stop_chain(upper, head, lower)
        return self.insert_between(upper.id, head.id, lower.id)

    def _insert_start_chain(self, upper: Block, head: Block, tail: Block, lower: Block) -> bool:
        if enclosing_container(self.graph, upper) is not None:
            return False
        if not _has_slot(tail, ConnectorSlot.BOTTOM) or self._in_chain(head, upper, lower):
            return False
        severed_head = chain_level_head(self.graph, upper)
        height = chain_height(self.graph, head)
        self._unlink(upper, lower)
        translate_chain(self.graph, severed_head, self.config.sever_offset_x, self.config.sever_offset_y)
        self._link(tail, lower)
        stack_chain(self.graph, head, lower.x, lower.y - height, self.config)
        logger.debug("Start chain %s severed %s..%s from %s", head.id, severed_head.id, upper.id, lower.id)
        return True

    def _insert_stop_chain(self, upper: Block, head: Block, lower: Block) -> bool:
        if not _has_slot(upper, ConnectorSlot.BOTTOM) or not _has_slot(head, ConnectorSlot.TOP):
            return False
        if self._in_chain(head, upper, lower):
            return False
        self._unlink(upper, lower)
        translate_chain(self.graph, lower, self.config.sever_offset_x, self.config.sever_offset_y)
        self._link(upper, head)
        stack_chain(self.graph, head, upper.x, upper.y + upper.height, self.config)
        self.resizer.sync_height(enclosing_container(self.graph, upper))
        logger.debug("Stop chain %s severed %s and below from %s", head.id, lower.id, upper.id)
        return True

    def _can_link(self, upper: Block, lower: Block) -> bool:
        if upper.id == lower.id:
            return False
        if upper.next is not None or lower.parent is not None:
            return False
        if not _has_slot(upper, ConnectorSlot.BOTTOM) or not _has_slot(lower, ConnectorSlot.TOP):
            return False
        return not self._in_chain(lower, upper)

    def _is_free_chain(self, head: Block) -> bool:
        return head.parent is None

    def _in_chain(self, head: Block, *blocks: Block) -> bool:
        expanded = {block.id for block in fully_expand(self.graph, head)}
        return any(block.id in expanded for block in blocks)

    @staticmethod
    def _link(upper: Block, lower: Block) -> None:
        upper.next = lower.id
        upper.bottom_connected = True
        lower.parent = upper.id
        lower.top_connected = True
        lower.is_top_level = False

    @staticmethod
    def _unlink(upper: Block, lower: Block) -> None:
        upper.next = None
        upper.bottom_connected = False
        lower.parent = None
        lower.top_connected = False
        lower.is_top_level = True

    @staticmethod
    def _nest(container: Block, head: Block) -> None:
        container.first_child = head.id
        head.parent = container.id
        head.top_connected = True
        head.is_top_level = False

    @staticmethod
    def _unnest(container: Block, head: Block) -> None:
        container.first_child = None
        head.parent = None
        head.top_connected = False
        head.is_top_level = True


def _has_slot(block: Block, slot: ConnectorSlot) -> bool:
    return slot in BASE_SLOTS.get(block.kind, ())
