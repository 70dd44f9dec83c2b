from __future__ import annotations

from collections.abc import Sequence


class BehaviorLayoutError(Exception):
    pass


class ConfigurationError(BehaviorLayoutError, ValueError):
    pass


class DuplicatePortError(ConfigurationError):
    def __init__(self, port_key: str, owner: str, other_owner: str) -> None:
        self.port_key = port_key
        self.owner = owner
        self.other_owner = other_owner
        super().__init__(
            f"Duplicate port key {port_key!r}: declared by behavior {other_owner!r} "
            f"and again by behavior {owner!r}"
        )


class UnknownPortError(ConfigurationError):
    def __init__(self, port_key: str, context: str | None = None) -> None:
        self.port_key = port_key
        self.context = context
        msg = f"Unknown port key {port_key!r}"
        if context:
            msg = f"{msg} ({context})"
        super().__init__(msg)


class RewireCycleError(ConfigurationError):
    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        super().__init__("Rewire cycle detected: " + " -> ".join(self.cycle))


class SolverError(BehaviorLayoutError, RuntimeError):
    pass


class SolverTimeoutError(SolverError):
    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Layout solver did not answer within {timeout_seconds:g}s")


class GeometryError(BehaviorLayoutError):
    def __init__(self, edge_id: str, reason: str) -> None:
        self.edge_id = edge_id
        self.reason = reason
        super().__init__(f"Edge {edge_id!r}: {reason}")


class LayoutPassInProgressError(BehaviorLayoutError, RuntimeError):
    pass
