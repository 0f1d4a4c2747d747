from __future__ import annotations

from dataclasses import dataclass, field

from domain.models import BlockKind, ConnectorSlot


@dataclass(frozen=True)
class BlockForm:
    width: float
    height: float


def _default_forms() -> dict[BlockKind, BlockForm]:
    return {
        BlockKind.START: BlockForm(150.0, 56.0),
        BlockKind.DEFAULT: BlockForm(150.0, 40.0),
        BlockKind.CONTAINER: BlockForm(180.0, 60.0),
        BlockKind.STOP: BlockForm(150.0, 40.0),
        BlockKind.ROUND: BlockForm(120.0, 32.0),
        BlockKind.SHARP: BlockForm(120.0, 32.0),
    }


BASE_SLOTS: dict[BlockKind, tuple[ConnectorSlot, ...]] = {
    BlockKind.START: (ConnectorSlot.BOTTOM,),
    BlockKind.DEFAULT: (ConnectorSlot.TOP, ConnectorSlot.BOTTOM),
    BlockKind.CONTAINER: (ConnectorSlot.TOP, ConnectorSlot.BOTTOM, ConnectorSlot.INNER_TOP),
    BlockKind.STOP: (ConnectorSlot.TOP,),
    BlockKind.ROUND: (),
    BlockKind.SHARP: (),
}


@dataclass(frozen=True)
class GeometryConfig:
    """Connector offsets, catch-zone thresholds and container sizing rules.

    ``container_header_height`` is where the nested chain starts below the
    container's top edge; ``empty_inner_slack`` is the body height an empty
    container already reserves, so nested content only grows the container
    once it exceeds that allowance.
    """

    forms: dict[BlockKind, BlockForm] = field(default_factory=_default_forms)
    socket_height: float = 8.0
    top_offset: float = 4.0
    bottom_offset: float = 0.0
    indent: float = 16.0
    container_header_height: float = 24.0
    empty_inner_slack: float = 24.0
    connector_threshold: float = 20.0
    container_middle_threshold: float = 10.0
    middle_zone_offset: float = 5.0
    sever_offset_x: float = 50.0
    sever_offset_y: float = 50.0
    resize_epsilon: float = 0.01
    sync_epsilon: float = 0.1

    def form(self, kind: BlockKind) -> BlockForm:
        return self.forms.get(kind) or BlockForm(150.0, 40.0)

    def base_height(self, kind: BlockKind) -> float:
        return self.form(kind).height
