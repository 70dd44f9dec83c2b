from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol

from domain.models import BehaviorDiagram, ExcalidrawDocument


class DiagramRepository(Protocol):
    def load_all_with_paths(self, directory: Path) -> Sequence[tuple[Path, BehaviorDiagram]]: ...

    def load_by_path(self, path: Path) -> BehaviorDiagram: ...


class ExcalidrawRepository(Protocol):
    def save(self, document: ExcalidrawDocument, path: Path) -> None: ...


class RequestRepository(Protocol):
    def save(self, payload: Mapping[str, Any], path: Path) -> None: ...
