from __future__ import annotations

from collections.abc import Iterable, Iterator

from domain.models import Block, BlockGeometry, BlockKind


class BlockGraph:
    """Id-indexed arena of every block in the workspace.

    Links between blocks are plain ids; ``get`` resolves them and returns
    ``None`` for ids that are not (or no longer) present, which traversal
    treats as the end of a chain.
    """

    def __init__(self, blocks: Iterable[Block] = ()) -> None:
        self._blocks: dict[str, Block] = {}
        for block in blocks:
            self.add(block)

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._blocks

    def __iter__(self) -> Iterator[Block]:
        return iter(list(self._blocks.values()))

    def __len__(self) -> int:
        return len(self._blocks)

    def add(self, block: Block) -> Block:
        if block.id in self._blocks:
            msg = f"Duplicate block id: {block.id}"
            raise ValueError(msg)
        self._blocks[block.id] = block
        return block

    def get(self, block_id: str | None) -> Block | None:
        if not block_id:
            return None
        return self._blocks.get(block_id)

    def remove(self, block_id: str) -> Block | None:
        return self._blocks.pop(block_id, None)

    def ids(self) -> list[str]:
        return list(self._blocks)

    def top_level_blocks(self) -> list[Block]:
        return [block for block in self._blocks.values() if block.is_top_level]

    def containers(self) -> list[Block]:
        return [block for block in self._blocks.values() if block.kind == BlockKind.CONTAINER]

    def snapshot(self) -> dict[str, Block]:
        return {block_id: block.model_copy(deep=True) for block_id, block in self._blocks.items()}

    def restore(self, snapshot: dict[str, Block]) -> None:
        # Blocks are updated in place so references held by callers stay valid.
        for block_id in list(self._blocks):
            if block_id not in snapshot:
                del self._blocks[block_id]
        for block_id, saved in snapshot.items():
            current = self._blocks.get(block_id)
            if current is None:
                self._blocks[block_id] = saved.model_copy(deep=True)
                continue
            for name in Block.model_fields:
                setattr(current, name, _copy_value(getattr(saved, name)))

    def geometry_snapshot(self, block_ids: Iterable[str] | None = None) -> dict[str, BlockGeometry]:
        selected = self._blocks.keys() if block_ids is None else block_ids
        snapshot: dict[str, BlockGeometry] = {}
        for block_id in selected:
            block = self._blocks.get(block_id)
            if block is None:
                continue
            snapshot[block_id] = BlockGeometry(block.x, block.y, block.height)
        return snapshot

    def restore_geometry(self, snapshot: dict[str, BlockGeometry]) -> None:
        for block_id, geometry in snapshot.items():
            block = self._blocks.get(block_id)
            if block is None:
                continue
            block.x = geometry.x
            block.y = geometry.y
            block.height = geometry.height


def _copy_value(value: object) -> object:
    if isinstance(value, dict):
        return dict(value)
    return value
