from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from domain.models import Block, BlockGeometry, BlockKind, ConnectorMatch, ConnectorSlot
from domain.services.chain_layout import stack_chain, translate_blocks, translate_chain
from domain.services.chain_mutator import ChainMutator
from domain.services.chain_walker import (
    chain_height,
    chain_level_head,
    chain_tail,
    enclosing_container,
    fully_expand,
)
from domain.services.connector_matcher import ConnectorMatcher
from domain.services.container_resizer import ContainerResizer
from domain.workspace import BlockGraph

logger = logging.getLogger(__name__)


class DragPhase(StrEnum):
    IDLE = "idle"
    ARMED_PREVIEW = "armed-preview"
    COMMITTED = "committed"


class DragSessionError(RuntimeError):
    pass


@dataclass(frozen=True)
class DragEvent:
    phase: DragPhase
    block_id: str
    match: ConnectorMatch | None = None


@dataclass(frozen=True)
class DropOutcome:
    block_id: str
    match: ConnectorMatch | None
    applied: bool


@dataclass
class PreviewReservation:
    match: ConnectorMatch
    geometry: dict[str, BlockGeometry]


@dataclass
class _DragSession:
    block_id: str
    snapshot: dict[str, Block]
    is_new: bool
    match: ConnectorMatch | None = None
    reservation: PreviewReservation | None = None
    moving_ids: set[str] = field(default_factory=set)


DragObserver = Callable[[DragEvent], None]


class ConnectionOrchestrator:
    """Drag session state machine: preview, reserve space, commit or roll back.

    Only one session may be open at a time. While it is open the session owns
    the graph; the reservation it arms only moves and resizes stationary
    blocks and is always released before anything structural happens.
    """

    def __init__(
        self,
        graph: BlockGraph,
        *,
        matcher: ConnectorMatcher | None = None,
        mutator: ChainMutator | None = None,
        observer: DragObserver | None = None,
    ) -> None:
        self.graph = graph
        self.mutator = mutator or ChainMutator(graph)
        self.matcher = matcher or ConnectorMatcher()
        self.observer = observer
        self._phase = DragPhase.IDLE
        self._session: _DragSession | None = None

    @property
    def phase(self) -> DragPhase:
        return self._phase

    @property
    def active(self) -> bool:
        return self._session is not None

    @property
    def current_match(self) -> ConnectorMatch | None:
        return self._session.match if self._session else None

    @property
    def resizer(self) -> ContainerResizer:
        return self.mutator.resizer

    def begin_preview(self, block_id: str, *, is_new: bool = False) -> ConnectorMatch | None:
        if self._session is not None:
            msg = f"Drag session for {self._session.block_id} is still open"
            raise DragSessionError(msg)
        block = self.graph.get(block_id)
        if block is None:
            msg = f"Unknown block id: {block_id}"
            raise DragSessionError(msg)

        snapshot = self.graph.snapshot()
        if is_new:
            for moving in fully_expand(self.graph, block):
                snapshot.pop(moving.id, None)
        self.mutator.detach(block.id)
        self._session = _DragSession(
            block_id=block.id,
            snapshot=snapshot,
            is_new=is_new,
            moving_ids={moving.id for moving in fully_expand(self.graph, block)},
        )
        logger.debug("Drag session started for %s (new=%s)", block.id, is_new)
        return self._rematch()

    def update_preview(self, x: float, y: float) -> ConnectorMatch | None:
        session = self._require_session()
        head = self._head(session)
        self._release(session)
        translate_chain(self.graph, head, x - head.x, y - head.y)
        return self._rematch()

    def commit(self) -> DropOutcome:
        session = self._require_session()
        self._release(session)
        match = session.match
        applied = False
        if match is not None:
            applied = self._apply(self._head(session), match)
            if not applied:
                logger.warning(
                    "Drop of %s on %s (%s) was rejected",
                    session.block_id,
                    match.target_id,
                    match.target_slot,
                )
        self._session = None
        self._set_phase(DragPhase.COMMITTED if applied else DragPhase.IDLE, session.block_id, match)
        return DropOutcome(block_id=session.block_id, match=match, applied=applied)

    def cancel(self) -> None:
        session = self._session
        if session is None:
            return
        self.graph.restore(session.snapshot)
        self._session = None
        logger.debug("Drag session for %s cancelled", session.block_id)
        self._set_phase(DragPhase.IDLE, session.block_id, None)

    def discard(self) -> list[str]:
        """Drop the dragged chain on the trash: every block of it is deleted."""
        session = self._require_session()
        self._release(session)
        removed = [block.id for block in fully_expand(self.graph, self._head(session))]
        for block_id in removed:
            self.graph.remove(block_id)
        self._session = None
        logger.debug("Discarded %d blocks dragged with %s", len(removed), session.block_id)
        self._set_phase(DragPhase.IDLE, session.block_id, None)
        return removed

    def _require_session(self) -> _DragSession:
        if self._session is None:
            msg = "No drag session is open"
            raise DragSessionError(msg)
        return self._session

    def _head(self, session: _DragSession) -> Block:
        head = self.graph.get(session.block_id)
        if head is None:
            msg = f"Dragged block {session.block_id} is no longer in the workspace"
            raise DragSessionError(msg)
        return head

    def _rematch(self) -> ConnectorMatch | None:
        session = self._require_session()
        previous = session.match
        match = self.matcher.find(self.graph, self._head(session))
        session.match = match
        if match is not None:
            self._reserve(session, match)
        phase = DragPhase.ARMED_PREVIEW if match else DragPhase.IDLE
        if phase != self._phase or not _same_target(previous, match):
            self._set_phase(phase, session.block_id, match)
        return match

    def _reserve(self, session: _DragSession, match: ConnectorMatch) -> None:
        target = self.graph.get(match.target_id)
        if target is None:
            return
        stationary = [block_id for block_id in self.graph.ids() if block_id not in session.moving_ids]
        session.reservation = PreviewReservation(match, self.graph.geometry_snapshot(stationary))
        head = self._head(session)
        extra = chain_height(self.graph, head)
        stop_tail = chain_tail(self.graph, head).kind == BlockKind.STOP
        config = self.resizer.config

        if match.target_slot == ConnectorSlot.MIDDLE:
            lower = self.graph.get(target.next)
            if head.kind == BlockKind.START:
                below = {block.id for block in fully_expand(self.graph, lower)}
                severed = fully_expand(self.graph, chain_level_head(self.graph, target))
                translate_blocks(
                    [block for block in severed if block.id not in below],
                    config.sever_offset_x,
                    config.sever_offset_y,
                )
            elif stop_tail:
                severed_height = chain_height(self.graph, lower)
                translate_chain(self.graph, lower, config.sever_offset_x, config.sever_offset_y)
                self._ghost_grow(enclosing_container(self.graph, target), extra - severed_height)
            else:
                translate_chain(self.graph, lower, 0.0, extra)
                self._ghost_grow(enclosing_container(self.graph, target), extra)
        elif match.target_slot == ConnectorSlot.INNER_TOP:
            first = self.graph.get(target.first_child)
            if stop_tail and first is not None:
                severed_height = chain_height(self.graph, first)
                translate_chain(self.graph, first, config.sever_offset_x, config.sever_offset_y)
                self._ghost_grow(target, extra - severed_height)
            else:
                translate_chain(self.graph, first, 0.0, extra)
                self._ghost_grow(target, extra)
        elif match.target_slot == ConnectorSlot.BOTTOM:
            self._ghost_grow(enclosing_container(self.graph, target), extra)

    def _ghost_grow(self, container: Block | None, extra: float) -> None:
        if container is None:
            return
        config = self.resizer.config
        inner = self.resizer.inner_height(container) + extra
        goal = config.base_height(container.kind) + max(0.0, inner - config.empty_inner_slack)
        self.resizer.resize(container, goal - container.height)

    def _release(self, session: _DragSession) -> None:
        if session.reservation is None:
            return
        self.graph.restore_geometry(session.reservation.geometry)
        session.reservation = None

    def _apply(self, head: Block, match: ConnectorMatch) -> bool:
        target = self.graph.get(match.target_id)
        if target is None:
            return False
        config = self.resizer.config
        if match.target_slot == ConnectorSlot.TOP:
            tail = chain_tail(self.graph, head)
            height = chain_height(self.graph, head)
            if not self.mutator.connect(tail.id, target.id):
                return False
            stack_chain(self.graph, head, target.x, target.y - height, config)
            return True
        if match.target_slot == ConnectorSlot.BOTTOM:
            if not self.mutator.connect(target.id, head.id):
                return False
            stack_chain(self.graph, head, target.x, target.y + target.height, config)
            self.resizer.sync_height(enclosing_container(self.graph, target))
            return True
        if match.target_slot == ConnectorSlot.INNER_TOP:
            return self.mutator.insert_inside(target.id, head.id, at_bottom=False)
        return self.mutator.insert_at_middle(target.id, head.id)

    def _set_phase(self, phase: DragPhase, block_id: str, match: ConnectorMatch | None) -> None:
        self._phase = phase
        logger.debug("Drag %s -> %s", block_id, phase)
        if self.observer is not None:
            self.observer(DragEvent(phase=phase, block_id=block_id, match=match))


def _same_target(left: ConnectorMatch | None, right: ConnectorMatch | None) -> bool:
    if left is None or right is None:
        return left is right
    return (left.target_id, left.target_slot) == (right.target_id, right.target_slot)
