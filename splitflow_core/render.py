"""
Retained scene for the flow diagram.

`RenderSurface.rebuild` throws away whatever was drawn before and emits a
fresh ordered list of JSON-safe element dicts:

- one `gradient` per flow (ids stable per index)
- one `source` marker
- per flow: a filled `band`, a target `endpoint` and a percentage `label`
- a `source_panel` (balance and root link) and one `recipient_row` per flow

Hover changes go through `apply_hover`, which only touches opacity related
attributes and records a short opacity transition per changed element. The
resulting element state is exactly what `rebuild` would produce for the same
hover state; transitions are sampled with `opacity_at` and never block.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from .config import FlowConfig
from .gradients import GradientCatalog
from .inputs import FlowInput
from .interaction import HoverState
from .layout import FlowRecord
from .presentation import explorer_url, format_balance, format_percentage, truncate_identifier

logger = logging.getLogger(__name__)

SOURCE_MARKER_STYLE = {"r": 8.0, "fill": "#ffffff", "stroke": "#374151", "strokeWidth": 2.0}
ENDPOINT_STYLE = {"r": 6.0, "stroke": "#ffffff", "strokeWidth": 2.0}
LABEL_STYLE = {"fill": "white", "fontSize": 12, "fontWeight": "bold", "textAnchor": "middle"}


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class Transition:
    """Linear opacity change on one element."""

    start: float
    end: float
    started_at_ms: float
    duration_ms: float

    def value_at(self, now_ms: float) -> float:
        if self.duration_ms <= 0 or now_ms >= self.started_at_ms + self.duration_ms:
            return self.end
        if now_ms <= self.started_at_ms:
            return self.start
        frac = (now_ms - self.started_at_ms) / self.duration_ms
        return self.start + (self.end - self.start) * frac

    def done(self, now_ms: float) -> bool:
        return now_ms >= self.started_at_ms + self.duration_ms


def flow_opacities(index: int, hover: HoverState, config: FlowConfig) -> Dict[str, float]:
    """Opacity of a flow's band, endpoint and label for a given hover state."""
    hovered = hover.is_hovered(index)
    return {
        "band": config.hovered_opacity if hovered else config.dimmed_opacity,
        "endpoint": config.hovered_opacity if hovered else config.endpoint_dimmed_opacity,
        "label": 1.0 if hovered else 0.0,
    }


class RenderSurface:
    """Owns the drawable scene for one visualization instance."""

    def __init__(
        self,
        config: FlowConfig | None = None,
        catalog: GradientCatalog | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.config = config or FlowConfig()
        self.catalog = catalog or GradientCatalog()
        self.clock = clock or monotonic_ms
        self.elements: List[Dict[str, Any]] = []
        self._by_id: Dict[str, Dict[str, Any]] = {}
        self._transitions: Dict[str, Transition] = {}
        self.records: List[FlowRecord] = []
        self.rebuild_count = 0

    # ----- full rebuild -----
    def clear(self) -> None:
        self.elements = []
        self._by_id = {}
        self._transitions = {}
        self.records = []

    def rebuild(self, records: Sequence[FlowRecord], hover: HoverState, flow_input: FlowInput | None = None) -> List[Dict[str, Any]]:
        """Clear the scene and draw every element for `records` under `hover`."""
        self.clear()
        self.rebuild_count += 1
        self.records = list(records)
        if not self.records:
            logger.debug("Nothing to draw")
            return self.elements

        for rec in self.records:
            grad = self.catalog.gradient(rec.index)
            self._add({
                "kind": "gradient",
                "id": grad.id,
                "x1": "0%", "y1": "0%", "x2": "100%", "y2": "0%",
                "stops": [{"offset": s.offset, "color": s.color, "opacity": s.opacity} for s in grad.stops],
            })

        sx, sy = self.records[0].source_point
        self._add({"kind": "source", "id": "source", "cx": sx, "cy": sy, **SOURCE_MARKER_STYLE})

        for rec in self.records:
            self._draw_flow(rec, hover)

        if flow_input is not None:
            self._draw_panels(flow_input, hover)

        logger.debug("Rebuilt scene with %d flows (%d elements)", len(self.records), len(self.elements))
        return self.elements

    def _draw_flow(self, rec: FlowRecord, hover: HoverState) -> None:
        opacity = flow_opacities(rec.index, hover, self.config)
        grad = self.catalog.gradient(rec.index)
        tx, ty = rec.target_point
        self._add({
            "kind": "band",
            "id": f"flow-{rec.index}-band",
            "flow": rec.index,
            "path": [list(s) for s in rec.sampled_path],
            "fill": f"url(#{grad.id})",
            "opacity": opacity["band"],
            "cursor": "pointer",
        })
        self._add({
            "kind": "endpoint",
            "id": f"flow-{rec.index}-endpoint",
            "flow": rec.index,
            "cx": tx,
            "cy": ty,
            "fill": grad.end_color,
            "opacity": opacity["endpoint"],
            **ENDPOINT_STYLE,
        })
        self._add({
            "kind": "label",
            "id": f"flow-{rec.index}-label",
            "flow": rec.index,
            "x": rec.midpoint_x,
            "y": ty - 5.0,
            "text": format_percentage(rec.percentage_of_total),
            "opacity": opacity["label"],
            "visible": hover.is_hovered(rec.index),
            "pointerEvents": "none",
            **LABEL_STYLE,
        })

    def _draw_panels(self, flow_input: FlowInput, hover: HoverState) -> None:
        cfg = self.config
        root = flow_input.root_identifier
        self._add({
            "kind": "source_panel",
            "id": "source-panel",
            "balance": format_balance(flow_input.total_balance_display, cfg.currency_symbol),
            "caption": "Total",
            "label": truncate_identifier(root) if root else "",
            "href": explorer_url(root, cfg.chain_id, cfg.explorer_base_url) if root else None,
        })
        for rec in self.records:
            self._add({
                "kind": "recipient_row",
                "id": f"recipient-{rec.index}",
                "flow": rec.index,
                "label": truncate_identifier(rec.identifier),
                "href": explorer_url(rec.identifier, cfg.chain_id, cfg.explorer_base_url),
                "swatch": [rec.color_pair.start, rec.color_pair.end],
                "percentage": format_percentage(rec.percentage_of_total),
                "highlighted": hover.is_hovered(rec.index),
            })

    def _add(self, element: Dict[str, Any]) -> None:
        self.elements.append(element)
        self._by_id[element["id"]] = element

    # ----- hover updates -----
    def apply_hover(self, hover: HoverState, now_ms: Optional[float] = None) -> int:
        """
        Update opacities in place for a new hover state.

        Returns:
            int: Number of elements whose opacity target changed
        """
        now = self.clock() if now_ms is None else float(now_ms)
        changed = 0
        for rec in self.records:
            opacity = flow_opacities(rec.index, hover, self.config)
            for part in ("band", "endpoint", "label"):
                el = self._by_id.get(f"flow-{rec.index}-{part}")
                if el is None:
                    continue
                if self._retarget(el, opacity[part], now):
                    changed += 1
            label = self._by_id.get(f"flow-{rec.index}-label")
            if label is not None:
                label["visible"] = hover.is_hovered(rec.index)
            row = self._by_id.get(f"recipient-{rec.index}")
            if row is not None:
                row["highlighted"] = hover.is_hovered(rec.index)
        return changed

    def _retarget(self, element: Dict[str, Any], target: float, now_ms: float) -> bool:
        if element["opacity"] == target:
            return False
        current = self.opacity_at(element["id"], now_ms)
        self._transitions[element["id"]] = Transition(current, target, now_ms, self.config.transition_ms)
        element["opacity"] = target
        return True

    def opacity_at(self, element_id: str, now_ms: Optional[float] = None) -> float:
        """Displayed opacity of an element, including any running transition."""
        element = self._by_id[element_id]
        transition = self._transitions.get(element_id)
        if transition is None:
            return element["opacity"]
        now = self.clock() if now_ms is None else float(now_ms)
        if transition.done(now):
            del self._transitions[element_id]
            return element["opacity"]
        return transition.value_at(now)

    def active_transitions(self, now_ms: Optional[float] = None) -> Dict[str, Transition]:
        now = self.clock() if now_ms is None else float(now_ms)
        return {k: t for k, t in self._transitions.items() if not t.done(now)}

    # ----- lookups -----
    def element(self, element_id: str) -> Dict[str, Any]:
        return self._by_id[element_id]

    def elements_of_kind(self, kind: str) -> List[Dict[str, Any]]:
        return [e for e in self.elements if e["kind"] == kind]
