from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BlockKind(StrEnum):
    START = "start-block"
    STOP = "stop-block"
    DEFAULT = "default-block"
    CONTAINER = "c-block"
    ROUND = "round-block"
    SHARP = "sharp-block"


class ConnectorSlot(StrEnum):
    TOP = "top"
    BOTTOM = "bottom"
    INNER_TOP = "inner-top"
    MIDDLE = "middle"


SENTINEL_KINDS = frozenset({BlockKind.START, BlockKind.STOP})


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    def intersects(self, other: Rect) -> bool:
        # Touching edges count as an intersection.
        return not (
            self.right < other.x
            or self.x > other.right
            or self.bottom < other.y
            or self.y > other.bottom
        )


class Block(BaseModel):
    id: str = Field(..., min_length=1)
    kind: BlockKind
    opcode: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = Field(default=150.0, ge=0)
    height: float = Field(default=40.0, ge=0)
    next: str | None = None
    parent: str | None = None
    first_child: str | None = None
    is_top_level: bool = True
    top_connected: bool = False
    bottom_connected: bool = False
    fields: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def ensure_container_only_children(self) -> Block:
        if self.first_child is not None and self.kind != BlockKind.CONTAINER:
            msg = f"Block {self.id} of kind {self.kind} cannot hold nested blocks"
            raise ValueError(msg)
        return self

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    @property
    def is_container(self) -> bool:
        return self.kind == BlockKind.CONTAINER

    def move_by(self, dx: float, dy: float) -> None:
        self.x += dx
        self.y += dy


@dataclass(frozen=True)
class ConnectorMatch:
    target_id: str
    target_slot: ConnectorSlot
    moving_slot: ConnectorSlot
    distance: float
    anchor: Point


@dataclass(frozen=True)
class BlockGeometry:
    x: float
    y: float
    height: float


class PersistedBlock(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    opcode: str = Field(..., min_length=1)
    next: str | None = None
    parent: str | None = None
    inputs: dict[str, Any] = Field(default_factory=dict)
    fields: dict[str, Any] = Field(default_factory=dict)
    top_level: bool = Field(default=False, alias="topLevel")
    x: float | None = None
    y: float | None = None

    @property
    def substack(self) -> str | None:
        value = self.inputs.get("SUBSTACK")
        if isinstance(value, list) and len(value) > 1 and isinstance(value[1], str):
            return value[1]
        return None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "opcode": self.opcode,
            "next": self.next,
            "parent": self.parent,
            "inputs": dict(self.inputs),
            "fields": dict(self.fields),
            "topLevel": self.top_level,
        }
        if self.x is not None and self.y is not None:
            payload["x"] = round(self.x)
            payload["y"] = round(self.y)
        return payload


class WorkspaceDocument(BaseModel):
    blocks: dict[str, PersistedBlock] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"blocks": {block_id: block.to_dict() for block_id, block in self.blocks.items()}}
