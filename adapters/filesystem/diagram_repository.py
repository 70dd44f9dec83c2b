from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import List

from adapters.filesystem.json_utils import load_json
from domain.models import BehaviorDiagram
from domain.ports.repositories import DiagramRepository


class FileSystemDiagramRepository(DiagramRepository):
    def load_all_with_paths(self, directory: Path) -> List[tuple[Path, BehaviorDiagram]]:
        return [(path, self.load_by_path(path)) for path in sorted(self._iter_paths(directory))]

    def load_by_path(self, path: Path) -> BehaviorDiagram:
        return BehaviorDiagram.model_validate(load_json(path))

    def _iter_paths(self, directory: Path) -> Iterable[Path]:
        yield from directory.glob("*.json")
