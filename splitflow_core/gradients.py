"""
Color assignment for flow bands.

Each flow index maps onto a fixed palette of (start, end) color pairs and
owns one horizontal two-stop gradient whose id depends only on the index,
so a rebuild with the same ordering reuses the same gradient ids.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple


@dataclass(frozen=True)
class ColorPair:
    start: str
    end: str


@dataclass(frozen=True)
class GradientStop:
    offset: str
    color: str
    opacity: float


@dataclass(frozen=True)
class GradientDef:
    id: str
    stops: Tuple[GradientStop, GradientStop]

    @property
    def end_color(self) -> str:
        return self.stops[-1].color


DEFAULT_PALETTE: Tuple[ColorPair, ...] = (
    ColorPair("#ec4899", "#be185d"),  # pink
    ColorPair("#3b82f6", "#1d4ed8"),  # blue
    ColorPair("#10b981", "#047857"),  # green
    ColorPair("#f59e0b", "#d97706"),  # yellow
    ColorPair("#8b5cf6", "#6d28d9"),  # purple
    ColorPair("#ef4444", "#dc2626"),  # red
)

START_STOP_OPACITY = 0.7
END_STOP_OPACITY = 0.9


class GradientCatalog:
    """Deterministic index -> colors/gradient lookup."""

    def __init__(self, palette: Sequence[ColorPair] = DEFAULT_PALETTE):
        if not palette:
            raise ValueError("palette must contain at least one color pair")
        self.palette: Tuple[ColorPair, ...] = tuple(palette)

    def color_pair(self, index: int) -> ColorPair:
        return self.palette[index % len(self.palette)]

    @staticmethod
    def gradient_id(index: int) -> str:
        return f"flow-gradient-{index}"

    def gradient(self, index: int) -> GradientDef:
        pair = self.color_pair(index)
        return GradientDef(
            id=self.gradient_id(index),
            stops=(
                GradientStop("0%", pair.start, START_STOP_OPACITY),
                GradientStop("100%", pair.end, END_STOP_OPACITY),
            ),
        )

    def gradients(self, count: int) -> List[GradientDef]:
        return [self.gradient(i) for i in range(count)]
