from __future__ import annotations

import math
from dataclasses import dataclass

from domain.models import Size
from domain.ports.text_metrics import TextMeasurer, TextStyle


@dataclass(frozen=True)
class HeuristicTextMeasurer(TextMeasurer):
    """Estimate label extents from character count and font size."""

    width_factor: float = 0.6
    line_height: float = 1.35

    def measure(self, text: str, style: TextStyle) -> Size:
        lines = text.split("\n") if text else [""]
        longest = max(len(line) for line in lines)
        width = math.ceil(longest * style.font_size * self.width_factor)
        height = math.ceil(len(lines) * style.font_size * self.line_height)
        return Size(float(width), float(height))
