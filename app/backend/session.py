from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from splitflow_core.config import FlowConfig
from splitflow_core.inputs import FlowInput
from splitflow_core.particles import Particle
from splitflow_core.visualization import FlowVisualization

logger = logging.getLogger(__name__)


@dataclass
class SessionMessage:
    type: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        return {"type": self.type, **self.payload}


class InMemoryFlowSession:
    """
    One live split-flow diagram shared by every connected client.

    - update(): feeds new route input and rebuilds layout and particles
    - pointer(): applies a hover enter/leave
    - subscribe(): returns an asyncio.Queue receiving scene and particle messages

    Must be driven from the running event loop; particle scheduling uses it.
    """

    def __init__(self, config: FlowConfig | None = None, seed: Optional[int] = None) -> None:
        self.config = config or FlowConfig()
        self._subscribers: Set[asyncio.Queue] = set()
        self.viz = FlowVisualization(
            self.config,
            rng=random.Random(seed),
            animate=True,
            on_particle=self._on_particle,
        )

    # --- state -------------------------------------------------------------
    def scene(self) -> Dict[str, Any]:
        return self.viz.snapshot()

    def update(self, flow_input: FlowInput) -> bool:
        rebuilt = self.viz.update(flow_input)
        if rebuilt:
            self._broadcast(SessionMessage("scene", {"scene": self.scene()}))
        return rebuilt

    def pointer(self, event: str, index: int) -> Optional[int]:
        if event == "enter":
            self.viz.pointer_enter(index)
        elif event == "leave":
            self.viz.pointer_leave(index)
        else:
            raise ValueError(f"Unknown pointer event: {event}")
        self._broadcast(SessionMessage("hover", {
            "hoveredIndex": self.viz.hover.hovered_index,
            "opacities": self.opacities(),
        }))
        return self.viz.hover.hovered_index

    def opacities(self) -> Dict[str, float]:
        return {
            e["id"]: e["opacity"]
            for e in self.viz.surface.elements
            if e["kind"] in ("band", "endpoint", "label")
        }

    def close(self) -> None:
        self.viz.unmount()

    # --- pubsub ------------------------------------------------------------
    def subscribe(self) -> asyncio.Queue:
        q: asyncio.Queue = asyncio.Queue(maxsize=256)
        self._subscribers.add(q)
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        self._subscribers.discard(q)

    def _on_particle(self, particle: Particle) -> None:
        x, y = particle.path_ref.target_point
        self._broadcast(SessionMessage("particle", {
            "id": particle.id,
            "flow": particle.owner_flow_index,
            "generation": particle.generation,
            "durationMs": particle.lifespan_ms,
            "from": list(particle.path_ref.source_point),
            "to": [x, y],
            "fill": particle.path_ref.color_pair.end,
            "opacity": self.config.particle_opacity,
        }))

    def _broadcast(self, message: SessionMessage) -> None:
        # Non-blocking fan-out; slow subscribers miss messages
        for q in list(self._subscribers):
            try:
                q.put_nowait(message)
            except asyncio.QueueFull:
                logger.debug("Dropping %s message for a slow subscriber", message.type)

    def subscriber_count(self) -> int:
        return len(self._subscribers)
