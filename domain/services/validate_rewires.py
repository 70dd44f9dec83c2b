from __future__ import annotations

from collections.abc import Sequence
from typing import Dict, List, Set

from domain.errors import ConfigurationError, RewireCycleError
from domain.models import Behavior


def validate_rewires(behaviors: Sequence[Behavior]) -> None:
    """Reject rewire targets that are unknown or that form a cycle.

    A behavior that lists itself as a target is the shortest cycle.
    """
    known = {behavior.id for behavior in behaviors}
    adjacency: Dict[str, List[str]] = {}
    for behavior in behaviors:
        targets = behavior.rewires.targets if behavior.rewires else []
        for target in targets:
            if target not in known:
                msg = f"Behavior {behavior.id!r} rewires unknown behavior {target!r}"
                raise ConfigurationError(msg)
        adjacency[behavior.id] = list(targets)

    done: Set[str] = set()
    for start in adjacency:
        if start in done:
            continue
        path: List[str] = [start]
        on_path: Set[str] = {start}
        iterators = [iter(adjacency[start])]
        while iterators:
            neighbor = next(iterators[-1], None)
            if neighbor is None:
                iterators.pop()
                node = path.pop()
                on_path.discard(node)
                done.add(node)
                continue
            if neighbor in on_path:
                cycle = path[path.index(neighbor) :] + [neighbor]
                raise RewireCycleError(cycle)
            if neighbor in done:
                continue
            path.append(neighbor)
            on_path.add(neighbor)
            iterators.append(iter(adjacency[neighbor]))
