from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Dict, List

from domain.errors import ConfigurationError
from domain.layout_schema import (
    DEFAULT_ELK_OPTIONS,
    FIXED_PORT_OPTIONS,
    ElkBehaviorNode,
    ElkEdge,
    ElkExtentNode,
    ElkPort,
    LayoutRequest,
)
from domain.models import (
    ROOT_FRAME_ID,
    BehaviorDiagram,
    BehaviorGeometry,
    DiagramEdge,
    ExtentGroup,
    PortRegistry,
)
from domain.services.build_behavior_geometry import BehaviorLayoutBuilder
from domain.services.group_extents import group_by_extent
from domain.services.validate_rewires import validate_rewires

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayoutPass:
    request: LayoutRequest
    registry: PortRegistry
    geometries: Dict[str, BehaviorGeometry]
    groups: List[ExtentGroup]
    edges: List[DiagramEdge]


class LayoutRequestBuilder:
    def __init__(
        self,
        behavior_builder: BehaviorLayoutBuilder,
        layout_options: Mapping[str, str] | None = None,
    ) -> None:
        self.behavior_builder = behavior_builder
        self.layout_options = dict(DEFAULT_ELK_OPTIONS if layout_options is None else layout_options)

    def build(self, diagram: BehaviorDiagram) -> LayoutPass:
        validate_rewires(diagram.behaviors)

        groups = group_by_extent(diagram.behaviors)
        self._check_node_ids(diagram, groups)
        geometries: Dict[str, BehaviorGeometry] = {}
        extent_nodes: List[ElkExtentNode] = []
        for group in groups:
            children: List[ElkBehaviorNode] = []
            for behavior in group.behaviors:
                geometry = self.behavior_builder.build(behavior)
                geometries[behavior.id] = geometry
                children.append(self._behavior_node(geometry))
            extent_nodes.append(ElkExtentNode(id=group.extent_id, children=children))

        registry = PortRegistry.from_geometries(geometries.values())
        for edge in diagram.edges:
            registry.get(edge.source, context=f"source of edge {edge.id!r}")
            registry.get(edge.target, context=f"target of edge {edge.id!r}")

        request = LayoutRequest(
            layout_options=dict(self.layout_options),
            children=extent_nodes,
            edges=[
                ElkEdge(id=edge.id, sources=[edge.source], targets=[edge.target])
                for edge in diagram.edges
            ],
        )
        logger.debug(
            "Built layout request: %d extents, %d behaviors, %d ports, %d edges",
            len(extent_nodes),
            len(geometries),
            len(registry),
            len(diagram.edges),
        )
        return LayoutPass(
            request=request,
            registry=registry,
            geometries=geometries,
            groups=groups,
            edges=list(diagram.edges),
        )

    @staticmethod
    def _check_node_ids(diagram: BehaviorDiagram, groups: List[ExtentGroup]) -> None:
        behavior_ids = {behavior.id for behavior in diagram.behaviors}
        if ROOT_FRAME_ID in behavior_ids:
            msg = f"Behavior id {ROOT_FRAME_ID!r} is reserved for the layout root"
            raise ConfigurationError(msg)
        for group in groups:
            if group.extent_id == ROOT_FRAME_ID:
                msg = f"Extent id {group.extent_id!r} is reserved for the layout root"
                raise ConfigurationError(msg)
            if group.extent_id in behavior_ids:
                msg = f"Extent id {group.extent_id!r} is also used as a behavior id"
                raise ConfigurationError(msg)

    def _behavior_node(self, geometry: BehaviorGeometry) -> ElkBehaviorNode:
        return ElkBehaviorNode(
            id=geometry.behavior_id,
            width=geometry.size.width,
            height=geometry.size.height,
            layout_options=dict(FIXED_PORT_OPTIONS),
            ports=[
                ElkPort(id=port.key, x=port.outer.x, y=port.outer.y) for port in geometry.ports
            ],
        )
