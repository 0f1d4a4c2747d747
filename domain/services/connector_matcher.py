from __future__ import annotations

import math

from domain.models import Block, BlockKind, ConnectorMatch, ConnectorSlot
from domain.services.chain_walker import fully_expand
from domain.services.connector_geometry import ConnectorGeometry
from domain.services.sentinel_rules import can_connect_from_bottom, can_connect_from_top
from domain.workspace import BlockGraph

_COMPATIBLE_TARGETS: dict[ConnectorSlot, tuple[ConnectorSlot, ...]] = {
    ConnectorSlot.TOP: (ConnectorSlot.BOTTOM, ConnectorSlot.INNER_TOP, ConnectorSlot.MIDDLE),
    ConnectorSlot.BOTTOM: (ConnectorSlot.TOP,),
}

_SLOT_ORDER = (ConnectorSlot.TOP, ConnectorSlot.BOTTOM)


class ConnectorMatcher:
    """Nearest compatible connector for a dragged chain.

    Candidates are visited in graph insertion order, then by the moving
    slot (Top before Bottom), then by the target's available slot order.
    A candidate replaces the current best only when it is strictly closer,
    so equal distances keep the first candidate found.
    """

    def __init__(self, geometry: ConnectorGeometry | None = None) -> None:
        self.geometry = geometry or ConnectorGeometry()

    def outgoing_slots(self, moving_head: Block) -> list[ConnectorSlot]:
        base = self.geometry.base_slots(moving_head.kind)
        slots = [slot for slot in _SLOT_ORDER if slot in base]
        if moving_head.kind == BlockKind.START:
            slots.insert(0, ConnectorSlot.TOP)
        return slots

    def find(self, graph: BlockGraph, moving_head: Block) -> ConnectorMatch | None:
        moving_ids = {block.id for block in fully_expand(graph, moving_head)}
        leading_rect = moving_head.rect
        center = leading_rect.center
        outgoing = self.outgoing_slots(moving_head)
        best: ConnectorMatch | None = None

        for target in graph:
            if target.id in moving_ids:
                continue
            available = self.geometry.available_slots(target)
            for moving_slot in outgoing:
                for target_slot in available:
                    if not self._is_pairing_allowed(moving_head, moving_slot, target_slot):
                        continue
                    if not leading_rect.intersects(self.geometry.catch_zone(target, target_slot)):
                        continue
                    if not self._passes_sentinel_rules(graph, moving_head, target, moving_slot, target_slot):
                        continue
                    anchor = self.geometry.anchor(target, target_slot)
                    distance = math.hypot(center.x - anchor.x, center.y - anchor.y)
                    if best is None or distance < best.distance:
                        best = ConnectorMatch(
                            target_id=target.id,
                            target_slot=target_slot,
                            moving_slot=moving_slot,
                            distance=distance,
                            anchor=anchor,
                        )
        return best

    @staticmethod
    def _is_pairing_allowed(
        moving_head: Block,
        moving_slot: ConnectorSlot,
        target_slot: ConnectorSlot,
    ) -> bool:
        if target_slot not in _COMPATIBLE_TARGETS.get(moving_slot, ()):
            return False
        if moving_head.kind == BlockKind.START and moving_slot == ConnectorSlot.TOP:
            return target_slot == ConnectorSlot.MIDDLE
        if moving_head.is_container and target_slot == ConnectorSlot.MIDDLE:
            return False
        return True

    @staticmethod
    def _passes_sentinel_rules(
        graph: BlockGraph,
        moving_head: Block,
        target: Block,
        moving_slot: ConnectorSlot,
        target_slot: ConnectorSlot,
    ) -> bool:
        if moving_slot == ConnectorSlot.BOTTOM:
            return can_connect_from_top(graph, moving_head, target)
        return can_connect_from_bottom(graph, moving_head, target, target_slot)
