from __future__ import annotations

from typing import List

from domain.errors import GeometryError
from domain.layout_schema import SolvedEdge
from domain.models import EdgePolyline, Point, PortRegistry, to_global
from domain.services.resolve_geometry import ResolvedFrames


class EdgeRealizer:
    """Turn a routed edge into one polyline in global coordinates.

    The polyline starts and ends at the inner ports of its endpoints; the
    points in between are the solver's route, translated out of the frame
    of the container the solver routed the edge in.
    """

    def __init__(self, registry: PortRegistry, frames: ResolvedFrames) -> None:
        self.registry = registry
        self.frames = frames

    def realize(self, edge: SolvedEdge, source: str, target: str) -> EdgePolyline:
        source_point = self._inner_port_global(source, edge.id, "source")
        target_point = self._inner_port_global(target, edge.id, "target")

        if not edge.sections:
            raise GeometryError(edge.id, "layout solver produced no route sections")
        route_frame = self.frames.container(edge.container)
        if route_frame is None:
            raise GeometryError(edge.id, f"unknown route container {edge.container!r}")

        points: List[Point] = [
            source_point,
            to_global(route_frame, edge.sections[0].start_point.to_point()),
        ]
        for section in edge.sections:
            points.extend(to_global(route_frame, bend.to_point()) for bend in section.bend_points)
            points.append(to_global(route_frame, section.end_point.to_point()))
        points.append(target_point)
        return EdgePolyline(edge_id=edge.id, source=source, target=target, points=points)

    def _inner_port_global(self, key: str, edge_id: str, role: str) -> Point:
        port = self.registry.get(key, context=f"{role} of edge {edge_id!r}")
        return to_global(self.frames.behavior(port.behavior_id), port.inner)
