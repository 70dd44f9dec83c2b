from __future__ import annotations

from adapters.layout.elk_http import HttpElkLayoutSolver
from adapters.layout.elk_node import NodeElkLayoutSolver
from adapters.text.heuristic import HeuristicTextMeasurer
from app.config import AppSettings
from domain.ports.layout import LayoutSolver
from domain.ports.text_metrics import TextMeasurer
from domain.services.build_behavior_geometry import BehaviorLayoutBuilder
from domain.services.build_layout_request import LayoutRequestBuilder
from domain.services.layout_pipeline import BehaviorDiagramLayout


def build_text_measurer(settings: AppSettings) -> TextMeasurer:
    return HeuristicTextMeasurer(
        width_factor=settings.layout.width_factor,
        line_height=settings.layout.line_height,
    )


def build_request_builder(settings: AppSettings) -> LayoutRequestBuilder:
    behavior_builder = BehaviorLayoutBuilder(
        build_text_measurer(settings), settings.layout.to_layout_config()
    )
    return LayoutRequestBuilder(behavior_builder, settings.elk_options)


def build_layout_solver(settings: AppSettings) -> LayoutSolver:
    solver = settings.solver
    if solver.backend == "http":
        if not solver.base_url:
            msg = "solver.base_url is required when backend is http"
            raise ValueError(msg)
        return HttpElkLayoutSolver(
            base_url=solver.base_url,
            path=solver.path,
            timeout_seconds=solver.timeout_seconds,
        )
    return NodeElkLayoutSolver(node_binary=solver.node_binary, elk_module=solver.elk_module)


def build_diagram_layout(settings: AppSettings) -> BehaviorDiagramLayout:
    return BehaviorDiagramLayout(
        solver=build_layout_solver(settings),
        request_builder=build_request_builder(settings),
        timeout_seconds=settings.solver.timeout_seconds,
    )
