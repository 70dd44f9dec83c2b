from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from domain.errors import SolverError
from domain.layout_schema import SolvedGraph
from domain.models import (
    ROOT_FRAME_ID,
    ContainerPlacement,
    Frame,
    Size,
)
from domain.services.build_layout_request import LayoutPass


@dataclass(frozen=True)
class ResolvedFrames:
    root: Frame
    extents: Dict[str, Frame] = field(default_factory=dict)
    behaviors: Dict[str, Frame] = field(default_factory=dict)
    extent_placements: List[ContainerPlacement] = field(default_factory=list)
    behavior_placements: List[ContainerPlacement] = field(default_factory=list)

    def behavior(self, behavior_id: str) -> Frame:
        frame = self.behaviors.get(behavior_id)
        if frame is None:
            msg = f"No resolved frame for behavior {behavior_id!r}"
            raise SolverError(msg)
        return frame

    def container(self, container_id: str | None) -> Frame | None:
        """Frame an edge's route is expressed in; ``None`` if the id is unknown."""
        if not container_id or container_id == self.root.name:
            return self.root
        return self.extents.get(container_id) or self.behaviors.get(container_id)


class GeometryResolver:
    def resolve(self, layout_pass: LayoutPass, solved: SolvedGraph) -> ResolvedFrames:
        root = Frame(name=solved.id or ROOT_FRAME_ID)
        frames = ResolvedFrames(root=root)

        for group in layout_pass.groups:
            extent_node = solved.child(group.extent_id)
            if extent_node is None:
                msg = f"Layout solver returned no geometry for extent {group.extent_id!r}"
                raise SolverError(msg)
            extent_frame = root.child(group.extent_id, extent_node.position)
            frames.extents[group.extent_id] = extent_frame
            frames.extent_placements.append(
                ContainerPlacement(
                    container_id=group.extent_id,
                    parent_id=root.name,
                    position=extent_node.position,
                    origin=extent_frame.origin,
                    size=Size(extent_node.width, extent_node.height),
                )
            )

            for behavior in group.behaviors:
                behavior_node = extent_node.child(behavior.id)
                if behavior_node is None:
                    msg = f"Layout solver returned no geometry for behavior {behavior.id!r}"
                    raise SolverError(msg)
                behavior_frame = extent_frame.child(behavior.id, behavior_node.position)
                frames.behaviors[behavior.id] = behavior_frame
                geometry = layout_pass.geometries[behavior.id]
                frames.behavior_placements.append(
                    ContainerPlacement(
                        container_id=behavior.id,
                        parent_id=group.extent_id,
                        position=behavior_node.position,
                        origin=behavior_frame.origin,
                        size=geometry.size,
                    )
                )
        return frames
