"""Typed request/response documents exchanged with the ELK layout solver.

Field aliases follow the ELK JSON graph format so that ``to_payload`` output
can be handed to elkjs unchanged and its result parsed back with
``SolvedGraph.model_validate``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.models import Point

FIXED_PORT_OPTIONS = {"elk.portConstraints": "FIXED_POS"}
DEFAULT_ELK_OPTIONS = {
    "elk.algorithm": "layered",
    "elk.edgeRouting": "ORTHOGONAL",
    "elk.spacing.nodeNode": "60",
    "elk.spacing.edgeNode": "60",
    "elk.hierarchyHandling": "INCLUDE_CHILDREN",
}


class _ElkModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ElkPort(_ElkModel):
    id: str
    x: float
    y: float


class ElkBehaviorNode(_ElkModel):
    id: str
    width: float
    height: float
    layout_options: Dict[str, str] = Field(
        default_factory=lambda: dict(FIXED_PORT_OPTIONS), alias="layoutOptions"
    )
    ports: List[ElkPort] = Field(default_factory=list)


class ElkExtentNode(_ElkModel):
    id: str
    children: List[ElkBehaviorNode] = Field(default_factory=list)


class ElkEdge(_ElkModel):
    id: str
    sources: List[str]
    targets: List[str]


class LayoutRequest(_ElkModel):
    id: str = "root"
    layout_options: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_ELK_OPTIONS), alias="layoutOptions"
    )
    children: List[ElkExtentNode] = Field(default_factory=list)
    edges: List[ElkEdge] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def behavior_ids(self) -> List[str]:
        return [node.id for extent in self.children for node in extent.children]


class SolvedPoint(BaseModel):
    model_config = ConfigDict(extra="ignore")

    x: float = 0.0
    y: float = 0.0

    def to_point(self) -> Point:
        return Point(self.x, self.y)


class SolvedSection(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    start_point: SolvedPoint = Field(alias="startPoint")
    end_point: SolvedPoint = Field(alias="endPoint")
    bend_points: List[SolvedPoint] = Field(default_factory=list, alias="bendPoints")


class SolvedEdge(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    sources: List[str] = Field(default_factory=list)
    targets: List[str] = Field(default_factory=list)
    container: Optional[str] = None
    sections: List[SolvedSection] = Field(default_factory=list)


class SolvedNode(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    children: List[SolvedNode] = Field(default_factory=list)
    edges: List[SolvedEdge] = Field(default_factory=list)

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)

    def child(self, node_id: str) -> Optional[SolvedNode]:
        for node in self.children:
            if node.id == node_id:
                return node
        return None


class SolvedGraph(SolvedNode):
    def iter_edges(self) -> Iterator[SolvedEdge]:
        """Yield edges from the root and from any nested node, breadth first."""
        stack: List[SolvedNode] = [self]
        while stack:
            node = stack.pop(0)
            yield from node.edges
            stack.extend(node.children)
