from __future__ import annotations

from domain.geometry import BASE_SLOTS, GeometryConfig
from domain.models import Block, BlockKind, ConnectorSlot, Point, Rect


class ConnectorGeometry:
    def __init__(self, config: GeometryConfig | None = None) -> None:
        self.config = config or GeometryConfig()

    def base_slots(self, kind: BlockKind) -> tuple[ConnectorSlot, ...]:
        return BASE_SLOTS.get(kind, ())

    def available_slots(self, block: Block) -> list[ConnectorSlot]:
        base = self.base_slots(block.kind)
        slots = [
            slot
            for slot in base
            if not (slot == ConnectorSlot.TOP and block.top_connected)
            and not (slot == ConnectorSlot.BOTTOM and block.bottom_connected)
        ]
        if ConnectorSlot.BOTTOM in base and block.bottom_connected and block.next:
            slots.append(ConnectorSlot.MIDDLE)
        return slots

    def anchor(self, block: Block, slot: ConnectorSlot) -> Point:
        config = self.config
        if slot == ConnectorSlot.TOP:
            return Point(block.x, block.y + config.top_offset)
        if slot == ConnectorSlot.INNER_TOP:
            return Point(block.x + config.indent, block.y + config.container_header_height)
        # Middle shares the Bottom anchor of the upper block.
        return Point(block.x, block.y + block.height - config.socket_height + config.bottom_offset)

    def catch_zone(self, block: Block, slot: ConnectorSlot) -> Rect:
        config = self.config
        anchor = self.anchor(block, slot)
        height = config.connector_threshold
        top = anchor.y - height / 2
        if slot == ConnectorSlot.MIDDLE:
            if block.is_container and block.bottom_connected and block.next:
                height = config.container_middle_threshold
                top = anchor.y - height / 2
            top += config.middle_zone_offset
        return Rect(block.x, top, block.width, height)
