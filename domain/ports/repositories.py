from __future__ import annotations

from pathlib import Path
from typing import Protocol

from domain.models import WorkspaceDocument


class WorkspaceRepository(Protocol):
    def load(self, path: Path) -> WorkspaceDocument: ...

    def save(self, document: WorkspaceDocument, path: Path) -> None: ...
