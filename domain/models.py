from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from domain.errors import DuplicatePortError, UnknownPortError

METADATA_SCHEMA_VERSION = "1.0"
CUSTOM_DATA_KEY = "bdl"
ROOT_FRAME_ID = "root"

PortKind = Literal["resource", "dynamic_rewire", "behavior_rewire"]
ColumnSide = Literal["demand", "supply"]


class Resource(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resource_id: str = Field(..., min_length=1, alias="resourceId")
    collected: bool = False
    dynamic: bool = False
    extent: Optional[str] = None
    type: Optional[str] = None


class Demand(Resource):
    pass


class Supply(Resource):
    pass


class Rewires(BaseModel):
    order: Literal["pre", "post"]
    targets: List[str] = Field(default_factory=list)


class Behavior(BaseModel):
    id: str = Field(..., min_length=1)
    extent: str = Field(..., min_length=1)
    demands: List[Demand] = Field(default_factory=list)
    supplies: List[Supply] = Field(default_factory=list)
    rewires: Optional[Rewires] = None

    def port_key(self, resource_id: str) -> str:
        return f"{self.id}_{resource_id}"

    @property
    def has_dynamic_demands(self) -> bool:
        return any(demand.dynamic for demand in self.demands)

    @property
    def has_dynamic_supplies(self) -> bool:
        return any(supply.dynamic for supply in self.supplies)


class DiagramEdge(BaseModel):
    id: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)

    @model_validator(mode="before")
    @classmethod
    def normalize_endpoint_lists(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        normalized = dict(data)
        for plural, singular in (("sources", "source"), ("targets", "target")):
            if plural not in normalized:
                continue
            values = normalized.pop(plural) or []
            if len(values) != 1:
                msg = f"Edge {normalized.get('id')!r} must have exactly one entry in {plural}"
                raise ValueError(msg)
            normalized.setdefault(singular, values[0])
        return normalized


class BehaviorDiagram(BaseModel):
    behaviors: List[Behavior] = Field(default_factory=list)
    edges: List[DiagramEdge] = Field(default_factory=list)

    @field_validator("behaviors", mode="after")
    @classmethod
    def ensure_unique_behavior_ids(cls, behaviors: List[Behavior]) -> List[Behavior]:
        seen: Set[str] = set()
        for behavior in behaviors:
            if behavior.id in seen:
                msg = f"Duplicate behavior id found: {behavior.id}"
                raise ValueError(msg)
            seen.add(behavior.id)
        return behaviors

    @field_validator("edges", mode="after")
    @classmethod
    def ensure_unique_edge_ids(cls, edges: List[DiagramEdge]) -> List[DiagramEdge]:
        seen: Set[str] = set()
        for edge in edges:
            if edge.id in seen:
                msg = f"Duplicate edge id found: {edge.id}"
                raise ValueError(msg)
            seen.add(edge.id)
        return edges

    def behavior_ids(self) -> Set[str]:
        return {behavior.id for behavior in self.behaviors}


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def offset(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Port:
    key: str
    behavior_id: str
    kind: PortKind
    outer: Point
    inner: Point

    @property
    def is_rewire(self) -> bool:
        return self.kind != "resource"


@dataclass(frozen=True)
class LabelPlacement:
    text: str
    side: ColumnSide
    position: Point  # top-left, behavior-relative
    size: Size
    align: Literal["left", "right"]


@dataclass(frozen=True)
class BehaviorGeometry:
    behavior_id: str
    extent_id: str
    size: Size
    demand_width: float
    supply_width: float
    demand_height: float
    supply_height: float
    labels: List[LabelPlacement]
    ports: List[Port]
    divider: tuple[Point, Point]

    @property
    def resource_ports(self) -> List[Port]:
        return [port for port in self.ports if not port.is_rewire]

    @property
    def rewire_ports(self) -> List[Port]:
        return [port for port in self.ports if port.is_rewire]

    def port_owners(self) -> Dict[str, str]:
        return {port.key: port.behavior_id for port in self.ports}


@dataclass
class PortRegistry:
    """Port positions and owners for a single layout pass."""

    _ports: Dict[str, Port] = field(default_factory=dict)

    @classmethod
    def from_geometries(cls, geometries: Iterable[BehaviorGeometry]) -> PortRegistry:
        registry = cls()
        for geometry in geometries:
            for port in geometry.ports:
                registry.register(port)
        return registry

    def register(self, port: Port) -> None:
        existing = self._ports.get(port.key)
        if existing is not None:
            raise DuplicatePortError(port.key, port.behavior_id, existing.behavior_id)
        self._ports[port.key] = port

    def get(self, key: str, context: str | None = None) -> Port:
        port = self._ports.get(key)
        if port is None:
            raise UnknownPortError(key, context)
        return port

    def inner(self, key: str) -> Point:
        return self.get(key).inner

    def outer(self, key: str) -> Point:
        return self.get(key).outer

    def owner(self, key: str) -> str:
        return self.get(key).behavior_id

    def __contains__(self, key: object) -> bool:
        return key in self._ports

    def __iter__(self) -> Iterator[Port]:
        return iter(self._ports.values())

    def __len__(self) -> int:
        return len(self._ports)


@dataclass(frozen=True)
class Frame:
    name: str
    offset: Point = Point(0.0, 0.0)
    parent: Optional[Frame] = None

    @property
    def origin(self) -> Point:
        if self.parent is None:
            return self.offset
        return self.parent.origin.offset(self.offset)

    def child(self, name: str, offset: Point) -> Frame:
        return Frame(name=name, offset=offset, parent=self)


def to_global(frame: Frame, point: Point) -> Point:
    return frame.origin.offset(point)


@dataclass(frozen=True)
class ExtentGroup:
    extent_id: str
    behaviors: List[Behavior]


@dataclass(frozen=True)
class ContainerPlacement:
    container_id: str
    parent_id: str
    position: Point  # parent-relative
    origin: Point  # global
    size: Size


@dataclass(frozen=True)
class EdgePolyline:
    edge_id: str
    source: str
    target: str
    points: List[Point]


@dataclass(frozen=True)
class SkippedEdge:
    edge_id: str
    reason: str


@dataclass(frozen=True)
class SceneUpdate:
    extents: List[ContainerPlacement]
    behaviors: List[ContainerPlacement]
    geometries: Dict[str, BehaviorGeometry]
    polylines: List[EdgePolyline]
    skipped: List[SkippedEdge]


@dataclass(frozen=True)
class ExcalidrawDocument:
    elements: List[dict]
    app_state: dict
    files: dict

    def to_dict(self) -> dict:
        return {
            "type": "excalidraw",
            "version": 2,
            "source": "behavior-diagram-layout",
            "elements": self.elements,
            "appState": self.app_state,
            "files": self.files,
        }
