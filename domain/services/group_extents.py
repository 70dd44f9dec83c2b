from __future__ import annotations

from collections.abc import Iterable
from typing import Dict, List

from domain.models import Behavior, ExtentGroup


def group_by_extent(behaviors: Iterable[Behavior]) -> List[ExtentGroup]:
    """Partition behaviors by extent, keeping first-seen order for both."""
    members: Dict[str, List[Behavior]] = {}
    for behavior in behaviors:
        members.setdefault(behavior.extent, []).append(behavior)
    return [ExtentGroup(extent_id=extent_id, behaviors=group) for extent_id, group in members.items()]
