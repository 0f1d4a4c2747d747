from __future__ import annotations

from dataclasses import dataclass

from domain.models import Block
from domain.services.chain_walker import chain_from
from domain.services.container_resizer import ContainerResizer
from domain.workspace import BlockGraph

POSITION_TOLERANCE = 0.5

VIOLATION_BROKEN_NEXT = "broken-next-link"
VIOLATION_BROKEN_PARENT = "broken-parent-link"
VIOLATION_BROKEN_SUBSTACK = "broken-substack-link"
VIOLATION_CYCLE = "cycle"
VIOLATION_DANGLING = "dangling-reference"
VIOLATION_HEIGHT_DRIFT = "container-height-drift"
VIOLATION_MISALIGNED = "misaligned-chain"
VIOLATION_STALE_FLAG = "stale-connected-flag"
VIOLATION_STALE_TOP_LEVEL = "stale-top-level"


@dataclass(frozen=True)
class InvariantViolation:
    code: str
    block_id: str
    message: str


def find_invariant_violations(graph: BlockGraph, resizer: ContainerResizer) -> list[InvariantViolation]:
    violations: list[InvariantViolation] = []
    for block in graph:
        violations.extend(_link_violations(graph, block))
        violations.extend(_flag_violations(block))
        if _has_cycle_above(graph, block):
            violations.append(
                InvariantViolation(VIOLATION_CYCLE, block.id, f"Block {block.id} is part of a parent cycle")
            )
    for container in graph.containers():
        target = resizer.target_height(container)
        if abs(container.height - target) > resizer.config.sync_epsilon:
            violations.append(
                InvariantViolation(
                    VIOLATION_HEIGHT_DRIFT,
                    container.id,
                    f"Container {container.id} is {container.height:.1f} high, expected {target:.1f}",
                )
            )
    violations.extend(_alignment_violations(graph, resizer))
    return violations


def _link_violations(graph: BlockGraph, block: Block) -> list[InvariantViolation]:
    found: list[InvariantViolation] = []
    for name in ("next", "parent", "first_child"):
        ref = getattr(block, name)
        if ref is not None and ref not in graph:
            found.append(
                InvariantViolation(
                    VIOLATION_DANGLING,
                    block.id,
                    f"Block {block.id} {name} points to missing block {ref}",
                )
            )
    lower = graph.get(block.next)
    if lower is not None and lower.parent != block.id:
        found.append(
            InvariantViolation(
                VIOLATION_BROKEN_NEXT,
                block.id,
                f"Block {block.id} links to {lower.id} but {lower.id} has parent {lower.parent}",
            )
        )
    inner = graph.get(block.first_child)
    if inner is not None and inner.parent != block.id:
        found.append(
            InvariantViolation(
                VIOLATION_BROKEN_SUBSTACK,
                block.id,
                f"Container {block.id} holds {inner.id} but {inner.id} has parent {inner.parent}",
            )
        )
    parent = graph.get(block.parent)
    if parent is not None and block.id not in (parent.next, parent.first_child):
        found.append(
            InvariantViolation(
                VIOLATION_BROKEN_PARENT,
                block.id,
                f"Block {block.id} names {parent.id} as parent but is not linked from it",
            )
        )
    return found


def _flag_violations(block: Block) -> list[InvariantViolation]:
    found: list[InvariantViolation] = []
    if block.is_top_level != (block.parent is None):
        found.append(
            InvariantViolation(
                VIOLATION_STALE_TOP_LEVEL,
                block.id,
                f"Block {block.id} has is_top_level={block.is_top_level} with parent {block.parent}",
            )
        )
    if block.top_connected != (block.parent is not None):
        found.append(
            InvariantViolation(VIOLATION_STALE_FLAG, block.id, f"Block {block.id} top_connected is stale")
        )
    if block.bottom_connected != (block.next is not None):
        found.append(
            InvariantViolation(VIOLATION_STALE_FLAG, block.id, f"Block {block.id} bottom_connected is stale")
        )
    return found


def _has_cycle_above(graph: BlockGraph, block: Block) -> bool:
    seen = {block.id}
    current = graph.get(block.parent)
    while current is not None:
        if current.id in seen:
            return True
        seen.add(current.id)
        current = graph.get(current.parent)
    return False


def _alignment_violations(graph: BlockGraph, resizer: ContainerResizer) -> list[InvariantViolation]:
    config = resizer.config
    found: list[InvariantViolation] = []
    heads = graph.top_level_blocks()
    for container in graph.containers():
        inner = graph.get(container.first_child)
        if inner is not None:
            heads.append(inner)
    for head in heads:
        container = graph.get(head.parent)
        if container is not None:
            expected_x = container.x + config.indent
            if abs(head.x - expected_x) > POSITION_TOLERANCE:
                found.append(
                    InvariantViolation(
                        VIOLATION_MISALIGNED,
                        head.id,
                        f"Nested block {head.id} sits at x={head.x:.1f}, expected {expected_x:.1f}",
                    )
                )
        for block in chain_from(graph, head)[1:]:
            if abs(block.x - head.x) > POSITION_TOLERANCE:
                found.append(
                    InvariantViolation(
                        VIOLATION_MISALIGNED,
                        block.id,
                        f"Block {block.id} sits at x={block.x:.1f}, chain head {head.id} at {head.x:.1f}",
                    )
                )
    return found
