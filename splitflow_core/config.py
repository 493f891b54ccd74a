"""
Configuration objects for the split-flow visualization engine.

Exposes canvas geometry, band shaping, hover opacities, particle timing and
presentation constants so hosts can tune the diagram without editing core
logic. Values can be overridden from a YAML file via `load_config`.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import yaml


@dataclass
class FlowConfig:
    """
    Configuration for layout, rendering and particle behavior.

    Defaults reproduce the reference diagram: a 500x350 canvas with the
    source marker 50px in from the left edge and targets 50px in from the
    right edge.
    """

    # Canvas
    width: float = 500.0
    height: float = 350.0
    margin: float = 40.0
    source_x: float = 50.0
    target_x: Optional[float] = None
    """Defaults to `width - 50` when left unset."""

    # Band shaping
    path_steps: int = 50
    max_thickness_scale: float = 120.0
    min_visible_thickness: float = 8.0
    waist_ratio: float = 0.3

    # Hover opacities
    hovered_opacity: float = 1.0
    dimmed_opacity: float = 0.8
    endpoint_dimmed_opacity: float = 0.9
    transition_ms: float = 200.0

    # Particles
    tick_interval_ms: float = 500.0
    spawn_probability: float = 0.3
    lifespan_min_ms: float = 2000.0
    lifespan_max_ms: float = 3000.0
    particle_opacity: float = 0.8
    particle_radius: float = 2.0

    # Presentation
    chain_id: int = 11155111
    explorer_base_url: str = "https://app.splits.org"
    currency_symbol: str = "ETH"

    @property
    def resolved_target_x(self) -> float:
        return float(self.target_x) if self.target_x is not None else float(self.width) - 50.0

    @property
    def center_y(self) -> float:
        return float(self.height) / 2.0

    def validate(self) -> None:
        """Raise ValueError when values cannot produce a sensible diagram."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError("canvas width and height must be positive")
        if self.margin < 0 or 2 * self.margin > self.height:
            raise ValueError("margin must fit inside the canvas height")
        if self.path_steps < 1:
            raise ValueError("path_steps must be at least 1")
        if self.min_visible_thickness <= 0:
            raise ValueError("min_visible_thickness must be positive")
        if not 0.0 <= self.waist_ratio < 1.0:
            raise ValueError("waist_ratio must be in [0, 1)")
        if not 0.0 <= self.spawn_probability <= 1.0:
            raise ValueError("spawn_probability must be in [0, 1]")
        if self.tick_interval_ms <= 0:
            raise ValueError("tick_interval_ms must be positive")
        if self.lifespan_min_ms <= 0 or self.lifespan_min_ms > self.lifespan_max_ms:
            raise ValueError("lifespan range must satisfy 0 < min <= max")
        if self.transition_ms < 0:
            raise ValueError("transition_ms must be non-negative")

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def config_from_dict(values: Dict[str, Any], base: FlowConfig | None = None) -> FlowConfig:
    """
    Build a `FlowConfig` from a plain mapping, starting from `base`.

    Args:
        values: Mapping of field name -> value (e.g. parsed YAML)
        base: Config to start from (defaults to `FlowConfig()`)

    Returns:
        FlowConfig: A new, validated config

    Raises:
        ValueError: On unknown keys or an invalid resulting config
    """
    cfg = FlowConfig(**(base.to_dict() if base is not None else {}))
    known = {f.name for f in fields(FlowConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
    for key, value in values.items():
        setattr(cfg, key, value)
    cfg.validate()
    return cfg


def load_config(path: str) -> FlowConfig:
    """Load a YAML file of overrides into a `FlowConfig`."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return config_from_dict(data)
