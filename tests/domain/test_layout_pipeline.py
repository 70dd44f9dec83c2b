from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from domain.errors import (
    ConfigurationError,
    LayoutPassInProgressError,
    SolverError,
    SolverTimeoutError,
    UnknownPortError,
)
from domain.layout_schema import LayoutRequest, SolvedGraph
from domain.models import Behavior, BehaviorDiagram, DiagramEdge, Point, Port
from domain.services.build_layout_request import LayoutRequestBuilder
from domain.services.layout_pipeline import BehaviorDiagramLayout
from tests.helpers.diagram_fixtures import load_diagram_fixture
from tests.helpers.fakes import FakeLayoutSolver, solve_in_grid


class BlockingSolver:
    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def layout(self, request: LayoutRequest) -> SolvedGraph:
        self.started.set()
        await self.release.wait()
        return SolvedGraph.model_validate(solve_in_grid(request))


class ExplodingSolver:
    async def layout(self, request: LayoutRequest) -> SolvedGraph:
        raise ConnectionError("layout service unreachable")


def _global_inner(origins: dict[str, Point], port: Port) -> Point:
    return origins[port.behavior_id].offset(port.inner)


@pytest.mark.parametrize("container", ["root", "mainExtent"])
def test_every_polyline_starts_and_ends_at_global_inner_ports(
    request_builder: LayoutRequestBuilder, container: str
) -> None:
    diagram = load_diagram_fixture("counters.json")
    pipeline = BehaviorDiagramLayout(FakeLayoutSolver(container=container), request_builder)

    scene = asyncio.run(pipeline.run(diagram))

    layout_pass = pipeline.build_request(diagram)
    origins = {placement.container_id: placement.origin for placement in scene.behaviors}
    assert [polyline.edge_id for polyline in scene.polylines] == [e.id for e in diagram.edges]
    assert scene.skipped == []
    for polyline in scene.polylines:
        source = layout_pass.registry.get(polyline.source)
        target = layout_pass.registry.get(polyline.target)
        assert polyline.points[0] == _global_inner(origins, source)
        assert polyline.points[-1] == _global_inner(origins, target)
        assert len(polyline.points) == 6


def test_scene_applies_extent_then_behavior_positions(
    request_builder: LayoutRequestBuilder,
) -> None:
    scene = asyncio.run(
        BehaviorDiagramLayout(FakeLayoutSolver(), request_builder).run(
            load_diagram_fixture("counters.json")
        )
    )

    assert [extent.container_id for extent in scene.extents] == ["mainExtent", "smallExtent1"]
    assert scene.extents[1].position == Point(600.0, 50.0)
    behavior_3 = next(b for b in scene.behaviors if b.container_id == "3")
    assert behavior_3.parent_id == "smallExtent1"
    assert behavior_3.origin == Point(620.0, 80.0)
    assert set(scene.geometries) == {"1", "2", "3", "4", "5", "6"}


def test_apply_result_is_usable_without_a_solver(
    request_builder: LayoutRequestBuilder, behavior_factory: Callable[..., Behavior]
) -> None:
    diagram = BehaviorDiagram(
        behaviors=[
            behavior_factory("X", extent="E1", supplies=["out"]),
            behavior_factory("Y", extent="E2", demands=["in"]),
        ],
        edges=[DiagramEdge(id="e1", source="X_out", target="Y_in")],
    )
    pipeline = BehaviorDiagramLayout(FakeLayoutSolver(), request_builder)
    layout_pass = pipeline.build_request(diagram)

    scene = pipeline.apply_result(layout_pass, solve_in_grid(layout_pass.request))

    polyline = scene.polylines[0]
    x_inner = layout_pass.registry.inner("X_out")
    y_inner = layout_pass.registry.inner("Y_in")
    assert polyline.points[0] == Point(100.0 + 20.0 + x_inner.x, 50.0 + 30.0 + x_inner.y)
    assert polyline.points[-1] == Point(600.0 + 20.0 + y_inner.x, 50.0 + 30.0 + y_inner.y)


def test_edges_without_route_are_skipped_and_reported(
    request_builder: LayoutRequestBuilder,
) -> None:
    diagram = load_diagram_fixture("counters.json")
    pipeline = BehaviorDiagramLayout(FakeLayoutSolver(), request_builder)
    layout_pass = pipeline.build_request(diagram)
    solved = solve_in_grid(layout_pass.request)
    solved["edges"][1]["sections"] = []
    solved["edges"] = [edge for edge in solved["edges"] if edge["id"] != "e5"]

    scene = pipeline.apply_result(layout_pass, solved)

    assert [skipped.edge_id for skipped in scene.skipped] == ["e2", "e5"]
    assert "no route sections" in scene.skipped[0].reason
    assert len(scene.polylines) == len(diagram.edges) - 2


def test_structural_errors_stop_the_pass_before_the_solver(
    request_builder: LayoutRequestBuilder, behavior_factory: Callable[..., Behavior]
) -> None:
    solver = FakeLayoutSolver()
    diagram = BehaviorDiagram(
        behaviors=[behavior_factory("a", supplies=["out"])],
        edges=[DiagramEdge(id="e1", source="a_out", target="b_in")],
    )

    with pytest.raises(UnknownPortError):
        asyncio.run(BehaviorDiagramLayout(solver, request_builder).run(diagram))

    assert solver.requests == []


def test_extent_named_like_the_layout_root_fails_before_solving(
    request_builder: LayoutRequestBuilder, behavior_factory: Callable[..., Behavior]
) -> None:
    solver = FakeLayoutSolver(container="root")
    diagram = BehaviorDiagram(
        behaviors=[
            behavior_factory("A", extent="root", supplies=["x"]),
            behavior_factory("B", extent="root", demands=["x"]),
        ],
        edges=[DiagramEdge(id="e1", source="A_x", target="B_x")],
    )

    with pytest.raises(ConfigurationError):
        asyncio.run(BehaviorDiagramLayout(solver, request_builder).run(diagram))

    assert solver.requests == []


def test_solver_timeout_is_a_typed_failure(request_builder: LayoutRequestBuilder) -> None:
    pipeline = BehaviorDiagramLayout(BlockingSolver(), request_builder, timeout_seconds=0.01)

    with pytest.raises(SolverTimeoutError):
        asyncio.run(pipeline.run(load_diagram_fixture("counters.json")))

    assert not pipeline.in_flight


def test_solver_failures_are_wrapped(request_builder: LayoutRequestBuilder) -> None:
    pipeline = BehaviorDiagramLayout(ExplodingSolver(), request_builder)

    with pytest.raises(SolverError, match="unreachable") as excinfo:
        asyncio.run(pipeline.run(load_diagram_fixture("counters.json")))

    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_invalid_solver_response_is_a_solver_error(request_builder: LayoutRequestBuilder) -> None:
    pipeline = BehaviorDiagramLayout(FakeLayoutSolver(), request_builder)
    layout_pass = pipeline.build_request(load_diagram_fixture("counters.json"))

    with pytest.raises(SolverError, match="invalid graph"):
        pipeline.apply_result(layout_pass, {"children": []})


def test_overlapping_passes_are_rejected(request_builder: LayoutRequestBuilder) -> None:
    solver = BlockingSolver()
    pipeline = BehaviorDiagramLayout(solver, request_builder)
    diagram = load_diagram_fixture("counters.json")

    async def scenario() -> None:
        first = asyncio.create_task(pipeline.run(diagram))
        await solver.started.wait()
        assert pipeline.in_flight
        with pytest.raises(LayoutPassInProgressError):
            await pipeline.run(diagram)
        solver.release.set()
        scene = await first
        assert len(scene.polylines) == len(diagram.edges)

    asyncio.run(scenario())
    assert not pipeline.in_flight
