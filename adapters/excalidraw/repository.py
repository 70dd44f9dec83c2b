from __future__ import annotations

from pathlib import Path

from filelock import FileLock

from adapters.filesystem.json_utils import write_json_atomic
from domain.models import ExcalidrawDocument
from domain.ports.repositories import ExcalidrawRepository


class FileSystemExcalidrawRepository(ExcalidrawRepository):
    def save(self, document: ExcalidrawDocument, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        lock_path = path.with_suffix(f"{path.suffix}.lock")
        with FileLock(str(lock_path)):
            write_json_atomic(path, document.to_dict())
