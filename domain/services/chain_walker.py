from __future__ import annotations

from domain.models import Block
from domain.workspace import BlockGraph


def chain_from(graph: BlockGraph, block: Block | None) -> list[Block]:
    if block is None:
        return []
    chain: list[Block] = []
    seen: set[str] = set()
    current: Block | None = block
    while current is not None and current.id not in seen:
        seen.add(current.id)
        chain.append(current)
        current = graph.get(current.next)
    return chain


def chain_tail(graph: BlockGraph, block: Block) -> Block:
    return chain_from(graph, block)[-1]


def top_of(graph: BlockGraph, block: Block) -> Block:
    seen: set[str] = {block.id}
    current = block
    while True:
        parent = graph.get(current.parent)
        if parent is None or parent.id in seen:
            return current
        seen.add(parent.id)
        current = parent


def fully_expand(graph: BlockGraph, block: Block | None) -> list[Block]:
    expanded: list[Block] = []
    seen: set[str] = set()
    _expand_into(graph, block, expanded, seen)
    return expanded


def _expand_into(
    graph: BlockGraph,
    block: Block | None,
    expanded: list[Block],
    seen: set[str],
) -> None:
    current = block
    while current is not None and current.id not in seen:
        seen.add(current.id)
        expanded.append(current)
        if current.is_container and current.first_child:
            _expand_into(graph, graph.get(current.first_child), expanded, seen)
        current = graph.get(current.next)


def chain_level_head(graph: BlockGraph, block: Block) -> Block:
    """Walk up through ``next`` links only, stopping at a container boundary."""
    seen: set[str] = {block.id}
    current = block
    while True:
        parent = graph.get(current.parent)
        if parent is None or parent.id in seen or parent.next != current.id:
            return current
        seen.add(parent.id)
        current = parent


def enclosing_container(graph: BlockGraph, block: Block) -> Block | None:
    head = chain_level_head(graph, block)
    parent = graph.get(head.parent)
    if parent is not None and parent.is_container and parent.first_child == head.id:
        return parent
    return None


def nesting_level(graph: BlockGraph, block: Block) -> int:
    level = 0
    seen: set[str] = set()
    container = enclosing_container(graph, block)
    while container is not None and container.id not in seen:
        seen.add(container.id)
        level += 1
        container = enclosing_container(graph, container)
    return level


def inner_chain(graph: BlockGraph, container: Block) -> list[Block]:
    if not container.is_container:
        return []
    return chain_from(graph, graph.get(container.first_child))


def chain_height(graph: BlockGraph, block: Block | None) -> float:
    return sum(item.height for item in chain_from(graph, block))


def is_inner_head(graph: BlockGraph, block: Block) -> bool:
    parent = graph.get(block.parent)
    return parent is not None and parent.is_container and parent.first_child == block.id
