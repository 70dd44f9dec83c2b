from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Dict, List

from pydantic import ValidationError

from domain.errors import (
    GeometryError,
    LayoutPassInProgressError,
    SolverError,
    SolverTimeoutError,
)
from domain.layout_schema import SolvedEdge, SolvedGraph
from domain.models import BehaviorDiagram, EdgePolyline, SceneUpdate, SkippedEdge
from domain.ports.layout import LayoutSolver
from domain.services.build_layout_request import LayoutPass, LayoutRequestBuilder
from domain.services.realize_edges import EdgeRealizer
from domain.services.resolve_geometry import GeometryResolver

logger = logging.getLogger(__name__)

DEFAULT_SOLVER_TIMEOUT_SECONDS = 30.0


class BehaviorDiagramLayout:
    """Two-phase layout pass around an external solver.

    ``build_request`` and ``apply_result`` are synchronous and side-effect
    free; ``run`` awaits the solver between them and refuses to start while
    another pass on the same instance is pending.
    """

    def __init__(
        self,
        solver: LayoutSolver,
        request_builder: LayoutRequestBuilder,
        timeout_seconds: float | None = DEFAULT_SOLVER_TIMEOUT_SECONDS,
    ) -> None:
        self.solver = solver
        self.request_builder = request_builder
        self.timeout_seconds = timeout_seconds
        self.resolver = GeometryResolver()
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def build_request(self, diagram: BehaviorDiagram) -> LayoutPass:
        return self.request_builder.build(diagram)

    def apply_result(
        self, layout_pass: LayoutPass, solved: SolvedGraph | Mapping[str, Any]
    ) -> SceneUpdate:
        graph = self._parse_solved(solved)
        frames = self.resolver.resolve(layout_pass, graph)
        realizer = EdgeRealizer(layout_pass.registry, frames)

        solved_edges: Dict[str, SolvedEdge] = {edge.id: edge for edge in graph.iter_edges()}
        polylines: List[EdgePolyline] = []
        skipped: List[SkippedEdge] = []
        for edge in layout_pass.edges:
            solved_edge = solved_edges.get(edge.id)
            if solved_edge is None:
                reason = "layout solver returned no geometry for this edge"
                logger.warning("Skipping edge %s: %s", edge.id, reason)
                skipped.append(SkippedEdge(edge_id=edge.id, reason=reason))
                continue
            try:
                polylines.append(realizer.realize(solved_edge, edge.source, edge.target))
            except GeometryError as exc:
                logger.warning("Skipping edge %s: %s", edge.id, exc.reason)
                skipped.append(SkippedEdge(edge_id=edge.id, reason=exc.reason))

        return SceneUpdate(
            extents=frames.extent_placements,
            behaviors=frames.behavior_placements,
            geometries=dict(layout_pass.geometries),
            polylines=polylines,
            skipped=skipped,
        )

    async def run(self, diagram: BehaviorDiagram) -> SceneUpdate:
        if self._in_flight:
            msg = "A layout pass is already in progress"
            raise LayoutPassInProgressError(msg)
        self._in_flight = True
        try:
            layout_pass = self.build_request(diagram)
            solved = await self._solve(layout_pass)
            scene = self.apply_result(layout_pass, solved)
        finally:
            self._in_flight = False
        logger.info(
            "Layout pass finished: %d behaviors, %d edges drawn, %d skipped",
            len(scene.behaviors),
            len(scene.polylines),
            len(scene.skipped),
        )
        return scene

    async def _solve(self, layout_pass: LayoutPass) -> SolvedGraph:
        try:
            if self.timeout_seconds is None:
                return await self.solver.layout(layout_pass.request)
            return await asyncio.wait_for(
                self.solver.layout(layout_pass.request), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            raise SolverTimeoutError(self.timeout_seconds or 0.0) from exc
        except SolverError:
            raise
        except Exception as exc:
            logger.exception("Layout solver failed")
            msg = f"Layout solver failed: {exc}"
            raise SolverError(msg) from exc

    @staticmethod
    def _parse_solved(solved: SolvedGraph | Mapping[str, Any]) -> SolvedGraph:
        if isinstance(solved, SolvedGraph):
            return solved
        try:
            return SolvedGraph.model_validate(dict(solved))
        except ValidationError as exc:
            msg = f"Layout solver returned an invalid graph: {exc}"
            raise SolverError(msg) from exc
