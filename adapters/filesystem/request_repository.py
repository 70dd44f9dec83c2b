from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from adapters.filesystem.json_utils import write_json_atomic
from domain.ports.repositories import RequestRepository


class FileSystemRequestRepository(RequestRepository):
    def save(self, payload: Mapping[str, Any], path: Path) -> None:
        write_json_atomic(path, dict(payload))
