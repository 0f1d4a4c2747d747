from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from domain.geometry import GeometryConfig
from domain.models import Block, BlockKind


@dataclass(frozen=True)
class FieldTemplate:
    id: str
    type: str
    default: Any = None


@dataclass(frozen=True)
class BlockTemplate:
    opcode: str
    category: str
    kind: BlockKind
    width_delta: float = 0.0
    fields: tuple[FieldTemplate, ...] = field(default_factory=tuple)

    def default_fields(self) -> dict[str, Any]:
        return {item.id: item.default for item in self.fields}


DEFAULT_TEMPLATES: tuple[BlockTemplate, ...] = (
    BlockTemplate("motion_start", "Motion", BlockKind.START, width_delta=10.0),
    BlockTemplate(
        "motion_move_steps",
        "Motion",
        BlockKind.DEFAULT,
        fields=(FieldTemplate("steps", "Number", 10),),
    ),
    BlockTemplate(
        "control_repeat",
        "Control",
        BlockKind.CONTAINER,
        fields=(FieldTemplate("times", "Number", 10),),
    ),
    BlockTemplate("control_stop", "Control", BlockKind.STOP, width_delta=30.0),
    BlockTemplate(
        "operator_add",
        "Operators",
        BlockKind.ROUND,
        fields=(FieldTemplate("num1", "Number", 0), FieldTemplate("num2", "Number", 0)),
    ),
    BlockTemplate(
        "operator_equals",
        "Operators",
        BlockKind.SHARP,
        fields=(FieldTemplate("left", "Number", 0), FieldTemplate("right", "Number", 50)),
    ),
)


class BlockCatalog:
    def __init__(
        self,
        templates: Iterable[BlockTemplate] = DEFAULT_TEMPLATES,
        config: GeometryConfig | None = None,
    ) -> None:
        self.config = config or GeometryConfig()
        self._templates = {template.opcode: template for template in templates}

    def __contains__(self, opcode: object) -> bool:
        return opcode in self._templates

    def get(self, opcode: str) -> BlockTemplate | None:
        return self._templates.get(opcode)

    def templates(self) -> list[BlockTemplate]:
        return list(self._templates.values())

    def create_block(
        self,
        opcode: str,
        x: float = 0.0,
        y: float = 0.0,
        *,
        block_id: str | None = None,
        fields: dict[str, Any] | None = None,
    ) -> Block:
        template = self._templates.get(opcode)
        if template is None:
            msg = f"Unknown block opcode: {opcode}"
            raise KeyError(msg)
        form = self.config.form(template.kind)
        values = template.default_fields()
        if fields:
            values.update(fields)
        return Block(
            id=block_id or str(uuid.uuid4()),
            kind=template.kind,
            opcode=opcode,
            x=x,
            y=y,
            width=form.width + template.width_delta,
            height=form.height,
            fields=values,
        )
