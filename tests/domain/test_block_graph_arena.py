from __future__ import annotations

import pytest
from pydantic import ValidationError

from domain.models import Block, BlockGeometry, BlockKind
from domain.workspace import BlockGraph
from tests.helpers.workspace_fixtures import add_chain, make_block


def test_duplicate_ids_are_rejected(graph: BlockGraph) -> None:
    graph.add(make_block("a"))

    with pytest.raises(ValueError):
        graph.add(make_block("a"))


def test_only_containers_hold_nested_blocks() -> None:
    with pytest.raises(ValidationError):
        Block(id="a", kind=BlockKind.DEFAULT, first_child="b")


def test_get_treats_missing_ids_as_absent(graph: BlockGraph) -> None:
    graph.add(make_block("a"))

    assert graph.get(None) is None
    assert graph.get("missing") is None
    assert "a" in graph and "missing" not in graph


def test_restore_updates_blocks_in_place(graph: BlockGraph) -> None:
    a, b = add_chain(graph, ["a", "b"])
    snapshot = graph.snapshot()
    a.next = None
    b.y = 999
    graph.add(make_block("extra"))

    graph.restore(snapshot)

    assert graph.get("a") is a
    assert a.next == "b"
    assert b.y == 40
    assert "extra" not in graph


def test_geometry_snapshot_only_covers_requested_blocks(graph: BlockGraph) -> None:
    a, b = add_chain(graph, ["a", "b"])

    snapshot = graph.geometry_snapshot(["b", "missing"])
    b.y = 500
    a.y = 300
    graph.restore_geometry(snapshot)

    assert snapshot == {"b": BlockGeometry(0, 40, 40)}
    assert (a.y, b.y) == (300, 40)


def test_top_level_and_container_queries(graph: BlockGraph) -> None:
    add_chain(graph, ["a", ("loop", BlockKind.CONTAINER)])
    graph.add(make_block("free", x=300))

    assert [block.id for block in graph.top_level_blocks()] == ["a", "free"]
    assert [block.id for block in graph.containers()] == ["loop"]
    assert len(graph) == 3
