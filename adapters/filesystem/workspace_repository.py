from __future__ import annotations

import logging
from pathlib import Path

from filelock import FileLock

from adapters.filesystem.json_utils import load_json, write_json_atomic
from domain.models import WorkspaceDocument
from domain.ports.repositories import WorkspaceRepository

logger = logging.getLogger(__name__)


class FileSystemWorkspaceRepository(WorkspaceRepository):
    def load(self, path: Path) -> WorkspaceDocument:
        if not path.exists():
            logger.info("Workspace file %s not found, starting empty", path)
            return WorkspaceDocument()
        return WorkspaceDocument.model_validate(load_json(path))

    def save(self, document: WorkspaceDocument, path: Path) -> None:
        lock_path = path.with_suffix(f"{path.suffix}.lock")
        with FileLock(str(lock_path)):
            write_json_atomic(path, document.to_dict())
        logger.debug("Saved %d blocks to %s", len(document.blocks), path)
