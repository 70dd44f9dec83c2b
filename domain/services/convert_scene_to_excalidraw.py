from __future__ import annotations

import random
import uuid
from typing import Any, Dict, List

from domain.models import (
    CUSTOM_DATA_KEY,
    METADATA_SCHEMA_VERSION,
    BehaviorGeometry,
    ContainerPlacement,
    EdgePolyline,
    ExcalidrawDocument,
    Frame,
    LabelPlacement,
    Point,
    SceneUpdate,
    Size,
    to_global,
)

Element = Dict[str, Any]
Metadata = Dict[str, Any]

EXTENT_BACKGROUND_COLOR = "#000000"
EXTENT_OPACITY = 10
DIVIDER_COLOR = "#000000"
DIVIDER_STROKE_WIDTH = 6
EDGE_COLOR = "#909090"
EDGE_STROKE_WIDTH = 4
LABEL_COLOR = "#000000"


class SceneToExcalidrawConverter:
    def __init__(self, font_size: float = 14.0) -> None:
        self.font_size = font_size
        self.namespace = uuid.uuid5(uuid.NAMESPACE_DNS, "behavior-diagram-layout")

    def convert(self, scene: SceneUpdate) -> ExcalidrawDocument:
        elements: List[Element] = []
        for extent in scene.extents:
            elements.append(self._extent_backdrop(extent))

        for placement in scene.behaviors:
            geometry = scene.geometries[placement.container_id]
            elements.extend(self._behavior_elements(placement, geometry))

        for polyline in scene.polylines:
            elements.append(self._edge_element(polyline))

        app_state = {
            "viewBackgroundColor": "#ffffff",
            "gridSize": None,
            "currentItemFontFamily": 1,
            "currentItemFontSize": self.font_size,
            "currentItemStrokeColor": "#1e1e1e",
        }
        return ExcalidrawDocument(elements=elements, app_state=app_state, files={})

    def _extent_backdrop(self, extent: ContainerPlacement) -> Element:
        return self._base_shape(
            element_id=self._stable_id("extent", extent.container_id),
            type_name="rectangle",
            position=extent.origin,
            size=extent.size,
            metadata={"role": "extent", "extent_id": extent.container_id},
            extra={
                "strokeColor": "transparent",
                "backgroundColor": EXTENT_BACKGROUND_COLOR,
                "fillStyle": "solid",
                "opacity": EXTENT_OPACITY,
                "roundness": {"type": 3, "value": 10},
            },
        )

    def _behavior_elements(
        self, placement: ContainerPlacement, geometry: BehaviorGeometry
    ) -> List[Element]:
        frame = Frame(name=placement.container_id, offset=placement.origin)
        group_id = self._stable_id("group", geometry.behavior_id)
        metadata = {
            "behavior_id": geometry.behavior_id,
            "extent_id": geometry.extent_id,
        }
        elements = [
            self._label_element(frame, label, group_id, metadata) for label in geometry.labels
        ]
        start, end = geometry.divider
        elements.append(
            self._line_element(
                element_id=self._stable_id("divider", geometry.behavior_id),
                points=[to_global(frame, start), to_global(frame, end)],
                metadata={**metadata, "role": "divider"},
                stroke_color=DIVIDER_COLOR,
                stroke_width=DIVIDER_STROKE_WIDTH,
                group_ids=[group_id],
            )
        )
        return elements

    def _label_element(
        self, frame: Frame, label: LabelPlacement, group_id: str, metadata: Metadata
    ) -> Element:
        return self._base_shape(
            element_id=self._stable_id("label", metadata["behavior_id"], label.side, label.text),
            type_name="text",
            position=to_global(frame, label.position),
            size=label.size,
            metadata={**metadata, "role": f"{label.side}_label", "resource_id": label.text},
            group_ids=[group_id],
            extra={
                "strokeColor": LABEL_COLOR,
                "backgroundColor": "transparent",
                "fillStyle": "solid",
                "text": label.text,
                "originalText": label.text,
                "fontSize": self.font_size,
                "fontFamily": 1,
                "textAlign": label.align,
                "verticalAlign": "top",
                "baseline": label.size.height,
                "containerId": None,
            },
        )

    def _edge_element(self, polyline: EdgePolyline) -> Element:
        return self._line_element(
            element_id=self._stable_id("edge", polyline.edge_id),
            points=polyline.points,
            metadata={
                "role": "edge",
                "edge_id": polyline.edge_id,
                "source": polyline.source,
                "target": polyline.target,
            },
            stroke_color=EDGE_COLOR,
            stroke_width=EDGE_STROKE_WIDTH,
            group_ids=[],
        )

    def _line_element(
        self,
        element_id: str,
        points: List[Point],
        metadata: Metadata,
        stroke_color: str,
        stroke_width: float,
        group_ids: List[str],
    ) -> Element:
        origin = points[0]
        relative = [[point.x - origin.x, point.y - origin.y] for point in points]
        width = max(p[0] for p in relative) - min(p[0] for p in relative)
        height = max(p[1] for p in relative) - min(p[1] for p in relative)
        return self._base_shape(
            element_id=element_id,
            type_name="line",
            position=origin,
            size=Size(width, height),
            metadata=metadata,
            group_ids=group_ids,
            extra={
                "strokeColor": stroke_color,
                "backgroundColor": "transparent",
                "fillStyle": "solid",
                "strokeWidth": stroke_width,
                "roundness": {"type": 2},
                "points": relative,
                "lastCommittedPoint": None,
                "startBinding": None,
                "endBinding": None,
                "startArrowhead": None,
                "endArrowhead": None,
            },
        )

    def _base_shape(
        self,
        element_id: str,
        type_name: str,
        position: Point,
        size: Size,
        metadata: Metadata,
        group_ids: List[str] | None = None,
        extra: Dict[str, Any] | None = None,
    ) -> Element:
        return {
            "id": element_id,
            "type": type_name,
            "x": position.x,
            "y": position.y,
            "width": size.width,
            "height": size.height,
            "angle": 0,
            "strokeWidth": 1,
            "strokeStyle": "solid",
            "roughness": 0,
            "opacity": 100,
            "groupIds": group_ids or [],
            "frameId": None,
            "roundness": None,
            "seed": self._rand_seed(),
            "version": 1,
            "versionNonce": self._rand_seed(),
            "isDeleted": False,
            "boundElements": [],
            "locked": False,
            "customData": {
                CUSTOM_DATA_KEY: {"schema_version": METADATA_SCHEMA_VERSION, **metadata}
            },
            **(extra or {}),
        }

    def _stable_id(self, *parts: str) -> str:
        return str(uuid.uuid5(self.namespace, "|".join(parts)))

    def _rand_seed(self) -> int:
        return random.randint(1, 2**31 - 1)
