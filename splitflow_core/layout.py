"""
Geometry for one source fanning out to many weighted recipients.

`LayoutEngine.layout` turns recipients and weights into `FlowRecord`s:
percentages, band thicknesses, target positions and a sampled band outline
running from the source point to each target. Output depends only on the
arguments and the config, so identical input always gives identical records.

Band outline: x moves linearly from source to target while the centerline
y follows a cubic ease-in-out from the source height to the target height.
The band is thinnest at the middle of the path (by `waist_ratio`) and at
full thickness at both ends.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import FlowConfig
from .errors import AllocationValueError, InputShapeError
from .gradients import ColorPair, GradientCatalog

Point = Tuple[float, float]
PathSample = Tuple[float, float, float]
"""One sampled band slice: (x, y_top, y_bottom)."""


def ease_cubic_in_out(t):
    """Cubic ease-in-out on [0, 1]; accepts scalars or arrays."""
    t2 = np.asarray(t, dtype=float) * 2.0
    return np.where(t2 <= 1.0, t2 ** 3 / 2.0, ((t2 - 2.0) ** 3 + 2.0) / 2.0)


@dataclass(frozen=True)
class FlowRecord:
    index: int
    identifier: str
    allocation: float
    percentage_of_total: float
    band_thickness: float
    source_point: Point
    target_point: Point
    sampled_path: Tuple[PathSample, ...]
    color_pair: ColorPair

    def centerline_at(self, progress: float) -> Point:
        """Point on the band's centerline at `progress` in [0, 1]."""
        p = min(1.0, max(0.0, float(progress)))
        sx, sy = self.source_point
        tx, ty = self.target_point
        return sx + (tx - sx) * p, sy + (ty - sy) * float(ease_cubic_in_out(p))

    @property
    def midpoint_x(self) -> float:
        return (self.source_point[0] + self.target_point[0]) / 2.0


def validate_flow_shape(recipients: Sequence[str], allocations: Sequence[float]) -> None:
    """Raise a FlowInputError subclass if the pair cannot be laid out."""
    if len(recipients) != len(allocations):
        raise InputShapeError(len(recipients), len(allocations))
    for i, value in enumerate(allocations):
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise AllocationValueError(i, value)
        if not math.isfinite(value) or value < 0:
            raise AllocationValueError(i, value)


def compute_percentages(allocations: Sequence[float]) -> List[float]:
    """Share of each weight in percent; all zeros when the total is zero."""
    total = math.fsum(float(a) for a in allocations)
    if total <= 0:
        return [0.0 for _ in allocations]
    return [float(a) / total * 100.0 for a in allocations]


class LayoutEngine:
    """
    Converts (recipients, allocations) into per-flow geometry on a fixed canvas.

    The source point sits at `(config.source_x, height / 2)`. Targets are
    spread evenly between the top and bottom margins at `resolved_target_x`;
    a single recipient is centered vertically.
    """

    def __init__(self, config: FlowConfig | None = None, catalog: GradientCatalog | None = None):
        self.config = config or FlowConfig()
        self.catalog = catalog or GradientCatalog()

    @property
    def source_point(self) -> Point:
        return float(self.config.source_x), self.config.center_y

    def target_y(self, index: int, count: int) -> float:
        cfg = self.config
        if count == 1:
            return cfg.center_y
        span = cfg.height - 2 * cfg.margin
        return cfg.margin + index * span / max(count - 1, 1)

    def band_thickness(self, percentage: float) -> float:
        cfg = self.config
        return max(percentage * cfg.max_thickness_scale / 100.0, cfg.min_visible_thickness)

    def sample_band(self, source: Point, target: Point, thickness: float) -> Tuple[PathSample, ...]:
        cfg = self.config
        t = np.linspace(0.0, 1.0, cfg.path_steps + 1)
        x = source[0] + (target[0] - source[0]) * t
        y = source[1] + (target[1] - source[1]) * ease_cubic_in_out(t)
        # 1.0 at both ends, (1 - waist_ratio) at t = 0.5
        width = thickness * (1.0 - cfg.waist_ratio * (1.0 - np.abs(2.0 * t - 1.0)))
        top = y - width / 2.0
        bottom = y + width / 2.0
        return tuple((float(a), float(b), float(c)) for a, b, c in zip(x, top, bottom))

    def layout(self, recipients: Optional[Sequence[str]], allocations: Optional[Sequence[float]]) -> List[FlowRecord]:
        """
        Compute one FlowRecord per recipient.

        Args:
            recipients: Ordered recipient identifiers (None is treated as empty)
            allocations: Weights parallel to `recipients` (None is treated as empty)

        Returns:
            List[FlowRecord]: Records in recipient order; empty for empty input

        Raises:
            InputShapeError: If the two sequences differ in length
            AllocationValueError: If a weight is negative or not finite
        """
        recipients = [] if recipients is None else list(recipients)
        allocations = [] if allocations is None else list(allocations)
        validate_flow_shape(recipients, allocations)
        allocations = [float(a) for a in allocations]
        if not recipients:
            return []

        percentages = compute_percentages(allocations)
        source = self.source_point
        target_x = self.config.resolved_target_x
        n = len(recipients)

        records: List[FlowRecord] = []
        for i, (identifier, allocation, pct) in enumerate(zip(recipients, allocations, percentages)):
            target = (target_x, self.target_y(i, n))
            thickness = self.band_thickness(pct)
            records.append(
                FlowRecord(
                    index=i,
                    identifier=str(identifier),
                    allocation=float(allocation),
                    percentage_of_total=pct,
                    band_thickness=thickness,
                    source_point=source,
                    target_point=target,
                    sampled_path=self.sample_band(source, target, thickness),
                    color_pair=self.catalog.color_pair(i),
                )
            )
        return records
