from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from app import cli
from app.config import AppSettings
from app.wiring import build_request_builder
from domain.services.layout_pipeline import BehaviorDiagramLayout
from tests.helpers.diagram_fixtures import load_diagram_payload
from tests.helpers.fakes import FakeLayoutSolver

runner = CliRunner()


def _output(result) -> str:
    return " ".join(result.output.split())


def _write_diagram(tmp_path: Path, payload: dict | None = None) -> Path:
    path = tmp_path / "counters.json"
    path.write_text(json.dumps(payload or load_diagram_payload("counters.json")), encoding="utf-8")
    return path


def test_validate_reports_counts(tmp_path: Path) -> None:
    result = runner.invoke(cli.app, ["validate", str(_write_diagram(tmp_path))])

    assert result.exit_code == 0, result.output
    assert "6 behaviors" in _output(result)
    assert "8 edges" in _output(result)


def test_validate_rejects_unknown_ports(tmp_path: Path) -> None:
    payload = load_diagram_payload("counters.json")
    payload["edges"].append({"id": "e9", "sources": ["1_nextId"], "targets": ["9_nothing"]})

    result = runner.invoke(cli.app, ["validate", str(_write_diagram(tmp_path, payload))])

    assert result.exit_code == 1
    assert "9_nothing" in _output(result)


def test_validate_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(cli.app, ["validate", str(tmp_path / "nope.json")])

    assert result.exit_code == 1
    assert "File not found" in _output(result)


def test_validate_reports_missing_config_file(tmp_path: Path) -> None:
    result = runner.invoke(
        cli.app,
        ["validate", str(_write_diagram(tmp_path)), "--config", str(tmp_path / "missing.yaml")],
    )

    assert result.exit_code == 1
    assert "Invalid settings" in _output(result)
    assert "Config file not found" in _output(result)
    assert result.exception is None or isinstance(result.exception, SystemExit)


def test_validate_verbose_shows_builder_debug_log(tmp_path: Path) -> None:
    result = runner.invoke(cli.app, ["validate", str(_write_diagram(tmp_path)), "--verbose"])

    assert result.exit_code == 0, result.output
    assert "Built layout request" in _output(result)


def test_request_verbose_shows_builder_debug_log(tmp_path: Path) -> None:
    output = tmp_path / "graph.json"

    result = runner.invoke(
        cli.app, ["request", str(_write_diagram(tmp_path)), "-o", str(output), "-v"]
    )

    assert result.exit_code == 0, result.output
    assert "Built layout request" in _output(result)


def test_request_writes_elk_graph(tmp_path: Path) -> None:
    output = tmp_path / "graph.json"

    result = runner.invoke(
        cli.app, ["request", str(_write_diagram(tmp_path)), "--output", str(output)]
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert [child["id"] for child in payload["children"]] == ["mainExtent", "smallExtent1"]
    assert payload["layoutOptions"]["elk.algorithm"] == "layered"


def test_layout_writes_excalidraw_scene(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_layout(settings: AppSettings) -> BehaviorDiagramLayout:
        return BehaviorDiagramLayout(FakeLayoutSolver(), build_request_builder(settings))

    monkeypatch.setattr(cli, "build_diagram_layout", fake_layout)
    input_path = _write_diagram(tmp_path)

    result = runner.invoke(cli.app, ["layout", str(input_path)])

    assert result.exit_code == 0, result.output
    scene = json.loads(input_path.with_suffix(".excalidraw").read_text(encoding="utf-8"))
    edges = [e for e in scene["elements"] if e["customData"]["bdl"].get("role") == "edge"]
    assert len(edges) == 8


def test_layout_reports_solver_failures(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    class FailingSolver:
        async def layout(self, request):
            raise RuntimeError("boom")

    def fake_layout(settings: AppSettings) -> BehaviorDiagramLayout:
        return BehaviorDiagramLayout(FailingSolver(), build_request_builder(settings))

    monkeypatch.setattr(cli, "build_diagram_layout", fake_layout)

    result = runner.invoke(cli.app, ["layout", str(_write_diagram(tmp_path))])

    assert result.exit_code == 1
    assert "Layout failed" in _output(result)
