from __future__ import annotations

import asyncio
import logging

import orjson
from pydantic import ValidationError

from domain.errors import SolverError
from domain.layout_schema import LayoutRequest, SolvedGraph
from domain.ports.layout import LayoutSolver

logger = logging.getLogger(__name__)

# Reads one ELK graph from stdin, writes the laid-out graph to stdout.
ELK_RUNNER_SCRIPT = """
const ELK = require(process.argv[1]);
const chunks = [];
process.stdin.on("data", (chunk) => chunks.push(chunk));
process.stdin.on("end", () => {
  const graph = JSON.parse(Buffer.concat(chunks).toString("utf8"));
  new ELK().layout(graph)
    .then((result) => process.stdout.write(JSON.stringify(result)))
    .catch((err) => { process.stderr.write(String(err && err.stack || err)); process.exit(1); });
});
"""


class NodeElkLayoutSolver(LayoutSolver):
    """Run elkjs in a local ``node`` process."""

    def __init__(self, node_binary: str = "node", elk_module: str = "elkjs/lib/elk.bundled.js") -> None:
        self.node_binary = node_binary
        self.elk_module = elk_module

    async def layout(self, request: LayoutRequest) -> SolvedGraph:
        payload = orjson.dumps(request.to_payload())
        try:
            process = await asyncio.create_subprocess_exec(
                self.node_binary,
                "-e",
                ELK_RUNNER_SCRIPT,
                self.elk_module,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            msg = f"Could not start {self.node_binary!r}: {exc}"
            raise SolverError(msg) from exc

        try:
            stdout, stderr = await process.communicate(payload)
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise
        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            msg = f"elkjs exited with code {process.returncode}: {detail[:500]}"
            raise SolverError(msg)

        logger.debug("elkjs returned %d bytes", len(stdout))
        try:
            return SolvedGraph.model_validate_json(stdout)
        except ValidationError as exc:
            msg = f"elkjs returned an invalid graph: {exc}"
            raise SolverError(msg) from exc
