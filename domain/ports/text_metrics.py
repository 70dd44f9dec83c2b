from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from domain.models import Size


@dataclass(frozen=True)
class TextStyle:
    font_size: float = 14.0
    align: Literal["left", "right"] = "right"


class TextMeasurer(Protocol):
    def measure(self, text: str, style: TextStyle) -> Size: ...
