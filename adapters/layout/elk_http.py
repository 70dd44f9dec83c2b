from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from domain.errors import SolverError
from domain.layout_schema import LayoutRequest, SolvedGraph
from domain.ports.layout import LayoutSolver

logger = logging.getLogger(__name__)


class HttpElkLayoutSolver(LayoutSolver):
    """Post the ELK graph to a layout service and parse the laid-out graph."""

    def __init__(
        self,
        base_url: str,
        path: str = "/layout",
        timeout_seconds: float = 30.0,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.path = path if path.startswith("/") else f"/{path}"
        self.timeout_seconds = timeout_seconds
        self.headers = dict(headers or {})

    async def layout(self, request: LayoutRequest) -> SolvedGraph:
        url = f"{self.base_url}{self.path}"
        logger.debug("Requesting ELK layout from %s", url)
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(url, json=request.to_payload(), headers=self.headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            msg = f"Layout service answered {exc.response.status_code}: {exc.response.text[:200]}"
            raise SolverError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"Layout service request failed: {exc}"
            raise SolverError(msg) from exc

        try:
            return SolvedGraph.model_validate_json(response.content)
        except ValidationError as exc:
            msg = f"Layout service returned an invalid graph: {exc}"
            raise SolverError(msg) from exc
