from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import List, Tuple

from domain.models import (
    Behavior,
    BehaviorGeometry,
    ColumnSide,
    LabelPlacement,
    Point,
    Port,
    Resource,
    Size,
)
from domain.ports.text_metrics import TextMeasurer, TextStyle


@dataclass(frozen=True)
class BehaviorLayoutConfig:
    font_size: float = 14.0
    top_padding: float = 0.0
    between_padding: float = 6.0
    gutter: float = 20.0


@dataclass(frozen=True)
class _Column:
    width: float
    height: float
    labels: List[LabelPlacement]
    ports: List[Port]


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


class BehaviorLayoutBuilder:
    """Compute the fixed internal geometry of a single behavior node.

    Demands are stacked right-aligned in the left column, supplies
    left-aligned in the right column, with a gutter between them for the
    divider. Every resource gets an outer port on the node boundary (for the
    solver) and an inner port flush with its label (where lines terminate).
    """

    def __init__(self, measurer: TextMeasurer, config: BehaviorLayoutConfig | None = None) -> None:
        self.measurer = measurer
        self.config = config or BehaviorLayoutConfig()

    def build(self, behavior: Behavior) -> BehaviorGeometry:
        gutter = self.config.gutter
        demands = self._build_column(behavior, behavior.demands, "demand", x_offset=0.0)
        supplies = self._build_column(
            behavior, behavior.supplies, "supply", x_offset=demands.width + gutter
        )
        divider_x = demands.width + gutter / 2
        body_height = max(demands.height, supplies.height)

        ports: List[Port] = [*demands.ports, *supplies.ports]
        if behavior.has_dynamic_demands:
            ports.append(
                self._rewire_port(
                    f"rw_{behavior.id}_d",
                    behavior.id,
                    "dynamic_rewire",
                    Point(_round_half_up(demands.width / 2.0), 0.0),
                )
            )
        if behavior.has_dynamic_supplies:
            ports.append(
                self._rewire_port(
                    f"rw_{behavior.id}_s",
                    behavior.id,
                    "dynamic_rewire",
                    Point(_round_half_up(supplies.width / 2.0) + demands.width + gutter, 0.0),
                )
            )
        if behavior.rewires is not None:
            ports.append(
                self._rewire_port(
                    f"rw_{behavior.id}",
                    behavior.id,
                    "behavior_rewire",
                    Point(divider_x, body_height),
                )
            )

        node_height = body_height
        if not behavior.demands:
            # Empty demand column still occupies one blank row.
            node_height = max(node_height, self._measure("", "demand").height)

        return BehaviorGeometry(
            behavior_id=behavior.id,
            extent_id=behavior.extent,
            size=Size(demands.width + gutter + supplies.width, node_height),
            demand_width=demands.width,
            supply_width=supplies.width,
            demand_height=demands.height,
            supply_height=supplies.height,
            labels=[*demands.labels, *supplies.labels],
            ports=ports,
            divider=(Point(divider_x, 0.0), Point(divider_x, body_height)),
        )

    def _build_column(
        self,
        behavior: Behavior,
        resources: Sequence[Resource],
        side: ColumnSide,
        x_offset: float,
    ) -> _Column:
        measured: List[Tuple[Resource, Size]] = [
            (resource, self._measure(resource.resource_id, side)) for resource in resources
        ]
        width = max((size.width for _, size in measured), default=0.0)

        labels: List[LabelPlacement] = []
        ports: List[Port] = []
        y = self.config.top_padding
        for resource, size in measured:
            bottom = y + size.height
            if side == "demand":
                label_x = width - size.width
                outer = Point(0.0, bottom)
                inner = Point(width, bottom)
            else:
                label_x = x_offset
                outer = Point(x_offset + width, bottom)
                inner = Point(x_offset, bottom)
            labels.append(
                LabelPlacement(
                    text=resource.resource_id,
                    side=side,
                    position=Point(label_x, y),
                    size=size,
                    align="right" if side == "demand" else "left",
                )
            )
            ports.append(
                Port(
                    key=behavior.port_key(resource.resource_id),
                    behavior_id=behavior.id,
                    kind="resource",
                    outer=outer,
                    inner=inner,
                )
            )
            y = bottom + self.config.between_padding

        height = max(y - self.config.between_padding, 0.0) if measured else 0.0
        return _Column(width=width, height=height, labels=labels, ports=ports)

    def _measure(self, text: str, side: ColumnSide) -> Size:
        style = TextStyle(
            font_size=self.config.font_size,
            align="right" if side == "demand" else "left",
        )
        return self.measurer.measure(text, style)

    @staticmethod
    def _rewire_port(key: str, behavior_id: str, kind: str, position: Point) -> Port:
        return Port(key=key, behavior_id=behavior_id, kind=kind, outer=position, inner=position)
