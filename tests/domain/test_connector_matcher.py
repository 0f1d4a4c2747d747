from __future__ import annotations

import math

from domain.models import BlockKind, ConnectorSlot, Point
from domain.services.connector_matcher import ConnectorMatcher
from domain.workspace import BlockGraph
from tests.helpers.workspace_fixtures import add_chain, add_inner_chain, make_block


def test_no_match_when_far_away(graph: BlockGraph) -> None:
    add_chain(graph, ["target"])
    moving = graph.add(make_block("moving", x=400, y=400))

    assert ConnectorMatcher().find(graph, moving) is None


def test_lone_block_matches_bottom_slot(graph: BlockGraph) -> None:
    add_chain(graph, ["target"])
    moving = graph.add(make_block("moving", x=0, y=40))

    match = ConnectorMatcher().find(graph, moving)

    assert match is not None
    assert match.target_id == "target"
    assert match.target_slot == ConnectorSlot.BOTTOM
    assert match.moving_slot == ConnectorSlot.TOP
    assert match.anchor == Point(0, 32)
    assert math.isclose(match.distance, math.hypot(75, 28))


def test_block_above_chain_head_matches_top_slot(graph: BlockGraph) -> None:
    add_chain(graph, ["target"], y=100)
    moving = graph.add(make_block("moving", x=0, y=60))

    match = ConnectorMatcher().find(graph, moving)

    assert match is not None
    assert (match.target_id, match.target_slot, match.moving_slot) == (
        "target",
        ConnectorSlot.TOP,
        ConnectorSlot.BOTTOM,
    )


def test_chain_ending_in_stop_cannot_dock_above(graph: BlockGraph) -> None:
    add_chain(graph, ["target"], y=100)
    moving, _ = add_chain(graph, ["moving", ("stop", BlockKind.STOP)], x=0, y=60)

    assert ConnectorMatcher().find(graph, moving) is None


def test_nothing_docks_below_stop(graph: BlockGraph) -> None:
    add_chain(graph, [("stop", BlockKind.STOP)])
    moving = graph.add(make_block("moving", x=0, y=40))

    assert ConnectorMatcher().find(graph, moving) is None


def test_middle_slot_wins_when_closer(graph: BlockGraph) -> None:
    add_chain(graph, ["upper", "lower"], y=100)
    moving = graph.add(make_block("moving", x=0, y=110))

    match = ConnectorMatcher().find(graph, moving)

    assert match is not None
    assert (match.target_id, match.target_slot) == ("upper", ConnectorSlot.MIDDLE)


def test_moving_container_never_targets_middle(graph: BlockGraph) -> None:
    add_chain(graph, ["upper", "lower"], y=100)
    moving = graph.add(make_block("loop", BlockKind.CONTAINER, x=0, y=110))

    match = ConnectorMatcher().find(graph, moving)

    assert match is not None
    assert (match.target_id, match.target_slot) == ("lower", ConnectorSlot.BOTTOM)


def test_empty_container_accepts_drop_inside(graph: BlockGraph) -> None:
    add_chain(graph, [("loop", BlockKind.CONTAINER), "after"])
    moving = graph.add(make_block("moving", x=16, y=20))

    match = ConnectorMatcher().find(graph, moving)

    assert match is not None
    assert (match.target_id, match.target_slot) == ("loop", ConnectorSlot.INNER_TOP)


def test_dragged_chain_never_matches_itself(graph: BlockGraph) -> None:
    head, _ = add_chain(graph, [("loop", BlockKind.CONTAINER), "after"], x=0, y=0)
    add_inner_chain(graph, "loop", ["inside"])

    assert ConnectorMatcher().find(graph, head) is None


def test_equal_distances_keep_first_block_in_graph_order() -> None:
    first_graph = BlockGraph([make_block("left", x=25), make_block("right", x=125)])
    second_graph = BlockGraph([make_block("right", x=125), make_block("left", x=25)])
    matcher = ConnectorMatcher()

    first = matcher.find(first_graph, first_graph.add(make_block("moving", x=0, y=40)))
    second = matcher.find(second_graph, second_graph.add(make_block("moving", x=0, y=40)))

    assert first is not None and second is not None
    assert math.isclose(first.distance, second.distance)
    assert first.target_id == "left"
    assert second.target_id == "right"


def test_start_chain_only_cuts_top_level_seams(graph: BlockGraph) -> None:
    add_chain(graph, ["upper", "lower"], y=100)
    start = graph.add(make_block("start", BlockKind.START, x=0, y=110))

    match = ConnectorMatcher().find(graph, start)

    assert match is not None
    assert (match.target_id, match.target_slot, match.moving_slot) == (
        "upper",
        ConnectorSlot.MIDDLE,
        ConnectorSlot.TOP,
    )


def test_start_chain_never_enters_container(graph: BlockGraph) -> None:
    add_chain(graph, [("loop", BlockKind.CONTAINER)], y=0)
    add_inner_chain(graph, "loop", ["a", "b"])
    start = graph.add(make_block("start", BlockKind.START, x=16, y=20))

    match = ConnectorMatcher().find(graph, start)

    assert match is None
