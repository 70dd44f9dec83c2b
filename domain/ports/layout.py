from __future__ import annotations

from typing import Protocol

from domain.layout_schema import LayoutRequest, SolvedGraph


class LayoutSolver(Protocol):
    async def layout(self, request: LayoutRequest) -> SolvedGraph:
        ...
