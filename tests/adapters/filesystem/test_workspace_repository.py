from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from adapters.filesystem.workspace_repository import FileSystemWorkspaceRepository
from domain.models import PersistedBlock, WorkspaceDocument


def _document() -> WorkspaceDocument:
    return WorkspaceDocument(
        blocks={
            "a": PersistedBlock(opcode="motion_move_steps", next="b", top_level=True, x=10.2, y=19.7),
            "b": PersistedBlock(opcode="motion_move_steps", parent="a", fields={"steps": 5}),
        }
    )


def test_missing_file_loads_empty_workspace(tmp_path: Path) -> None:
    document = FileSystemWorkspaceRepository().load(tmp_path / "absent.json")

    assert document.blocks == {}


def test_save_writes_persisted_format(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "workspace.json"

    FileSystemWorkspaceRepository().save(_document(), path)

    payload = orjson.loads(path.read_bytes())
    assert payload["blocks"]["a"] == {
        "opcode": "motion_move_steps",
        "next": "b",
        "parent": None,
        "inputs": {},
        "fields": {},
        "topLevel": True,
        "x": 10,
        "y": 20,
    }
    assert "x" not in payload["blocks"]["b"]
    assert not path.with_suffix(".json.tmp").exists()


def test_saved_workspace_loads_back(tmp_path: Path) -> None:
    path = tmp_path / "workspace.json"
    repository = FileSystemWorkspaceRepository()

    repository.save(_document(), path)
    loaded = repository.load(path)

    assert loaded.blocks["a"].top_level
    assert loaded.blocks["a"].next == "b"
    assert loaded.blocks["b"].fields == {"steps": 5}
    assert (loaded.blocks["a"].x, loaded.blocks["a"].y) == (10, 20)


def test_non_object_payload_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "workspace.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")

    with pytest.raises(ValueError):
        FileSystemWorkspaceRepository().load(path)
