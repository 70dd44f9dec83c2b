from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from adapters.layout import elk_http
from adapters.layout.elk_http import HttpElkLayoutSolver
from domain.errors import SolverError
from domain.services.build_layout_request import LayoutRequestBuilder
from tests.helpers.diagram_fixtures import load_diagram_fixture
from tests.helpers.fakes import solve_in_grid


def _patch_transport(monkeypatch: pytest.MonkeyPatch, handler) -> None:
    transport = httpx.MockTransport(handler)
    original_async_client = httpx.AsyncClient

    def client_factory(*args, **kwargs) -> httpx.AsyncClient:
        kwargs["transport"] = transport
        return original_async_client(*args, **kwargs)

    monkeypatch.setattr(elk_http.httpx, "AsyncClient", client_factory)


def test_posts_elk_payload_and_parses_result(
    monkeypatch: pytest.MonkeyPatch, request_builder: LayoutRequestBuilder
) -> None:
    request = request_builder.build(load_diagram_fixture("counters.json")).request
    seen: dict = {}

    def handler(http_request: httpx.Request) -> httpx.Response:
        seen["url"] = str(http_request.url)
        seen["payload"] = json.loads(http_request.content)
        return httpx.Response(200, json=solve_in_grid(request))

    _patch_transport(monkeypatch, handler)
    solver = HttpElkLayoutSolver("http://elk.local/", path="layout")

    solved = asyncio.run(solver.layout(request))

    assert seen["url"] == "http://elk.local/layout"
    assert seen["payload"] == request.to_payload()
    assert [child.id for child in solved.children] == ["mainExtent", "smallExtent1"]
    assert solved.edges[0].sections


def test_http_errors_become_solver_errors(
    monkeypatch: pytest.MonkeyPatch, request_builder: LayoutRequestBuilder
) -> None:
    request = request_builder.build(load_diagram_fixture("counters.json")).request
    _patch_transport(monkeypatch, lambda _: httpx.Response(500, text="elk crashed"))

    with pytest.raises(SolverError, match="500"):
        asyncio.run(HttpElkLayoutSolver("http://elk.local").layout(request))


def test_malformed_response_becomes_solver_error(
    monkeypatch: pytest.MonkeyPatch, request_builder: LayoutRequestBuilder
) -> None:
    request = request_builder.build(load_diagram_fixture("counters.json")).request
    _patch_transport(monkeypatch, lambda _: httpx.Response(200, json={"children": "nope"}))

    with pytest.raises(SolverError, match="invalid graph"):
        asyncio.run(HttpElkLayoutSolver("http://elk.local").layout(request))


def test_connection_failures_become_solver_errors(
    monkeypatch: pytest.MonkeyPatch, request_builder: LayoutRequestBuilder
) -> None:
    request = request_builder.build(load_diagram_fixture("counters.json")).request

    def handler(http_request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=http_request)

    _patch_transport(monkeypatch, handler)

    with pytest.raises(SolverError, match="request failed"):
        asyncio.run(HttpElkLayoutSolver("http://elk.local").layout(request))
