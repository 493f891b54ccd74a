"""
Lifecycle manager tying layout, rendering, hover and particles together.

`FlowVisualization` is the single visual unit a host mounts. Whenever its
input (recipients, allocations, root, balance) changes it:

1. stops the current particle scheduler and drops its particles
2. recomputes the layout from scratch
3. rebuilds the render surface
4. starts a new particle scheduler against the new geometry

Step 1 always happens before anything else, so there is never more than one
scheduler and no particle outlives the layout it was spawned on. Hover
changes do not re-run the layout; they go straight to the surface as an
opacity update whose end state matches a full rebuild.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Callable, Dict, List, Optional, Sequence

from .config import FlowConfig
from .errors import FlowInputError
from .gradients import GradientCatalog
from .inputs import FlowInput
from .interaction import HoverState, InteractionController
from .layout import FlowRecord, LayoutEngine
from .particles import Particle, ParticleSystem
from .render import RenderSurface, monotonic_ms

logger = logging.getLogger(__name__)


def _require_running_loop() -> None:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        raise RuntimeError(
            "animate=True needs a running asyncio loop; rebuild from a coroutine or pass animate=False"
        ) from None


class FlowVisualization:
    """
    One mounted split-flow diagram.

    Args:
        config: Canvas, styling and timing parameters
        catalog: Color palette lookup shared by layout and surface
        rng: Random source for particle spawning (seed it for reproducibility)
        clock: Millisecond clock used for transitions and particles
        animate: Start a particle scheduler after each rebuild. Requires the
            rebuild to happen on a running asyncio loop.
        on_particle: Called for every spawned particle
    """

    def __init__(
        self,
        config: FlowConfig | None = None,
        catalog: GradientCatalog | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] | None = None,
        animate: bool = True,
        on_particle: Callable[[Particle], None] | None = None,
    ):
        self.config = config or FlowConfig()
        self.config.validate()
        self.catalog = catalog or GradientCatalog()
        self.rng = rng or random.Random()
        self.clock = clock or monotonic_ms
        self.animate = animate
        self.on_particle = on_particle

        self.layout_engine = LayoutEngine(self.config, self.catalog)
        self.surface = RenderSurface(self.config, self.catalog, self.clock)
        self.hover = HoverState()
        self.interaction = InteractionController(self.hover, on_change=self._on_hover_change)

        self.input: Optional[FlowInput] = None
        self.records: List[FlowRecord] = []
        self.particles: Optional[ParticleSystem] = None
        self.last_error: Optional[FlowInputError] = None
        self.mounted = False

    # ----- inputs -----
    def update(self, flow_input: Optional[FlowInput]) -> bool:
        """
        Feed new input; rebuilds only when it differs from the current one.

        Returns:
            bool: True if a rebuild happened

        Raises:
            RuntimeError: If `animate` is set and no asyncio loop is running.
                Nothing is changed in that case, so the same input can be
                retried from a coroutine.
        """
        flow_input = flow_input if flow_input is not None else FlowInput()
        if self.mounted and flow_input == self.input:
            return False
        if self.animate:
            _require_running_loop()
        self.input = flow_input
        self._rebuild()
        return True

    def set_input(
        self,
        recipients: Optional[Sequence[str]],
        allocations: Optional[Sequence[float]],
        root_identifier: Optional[str] = None,
        total_balance_display: Optional[str] = None,
    ) -> bool:
        return self.update(FlowInput.create(recipients, allocations, root_identifier, total_balance_display))

    def _rebuild(self) -> None:
        self._stop_particles()
        self.mounted = True
        self.last_error = None

        try:
            records = self.layout_engine.layout(self.input.recipients, self.input.allocations)
        except FlowInputError as exc:
            logger.error("Not rendering flows: %s", exc)
            self.last_error = exc
            records = []

        self.records = records
        if self.hover.hovered_index is not None and self.hover.hovered_index >= len(records):
            self.hover.hovered_index = None

        self.surface.rebuild(records, self.hover, self.input if records else None)

        if records:
            self.particles = ParticleSystem(
                records, self.config, rng=self.rng, clock=self.clock, on_spawn=self.on_particle
            )
            if self.animate:
                self.particles.start()
        logger.debug("Rebuilt visualization: %d flows", len(records))

    def _stop_particles(self) -> None:
        if self.particles is not None:
            self.particles.stop()
            self.particles = None

    # ----- interaction -----
    def pointer_enter(self, index: int) -> None:
        self.interaction.pointer_enter(index)

    def pointer_leave(self, index: int) -> None:
        self.interaction.pointer_leave(index)

    def _on_hover_change(self, state: HoverState) -> None:
        self.surface.apply_hover(state)

    # ----- teardown / observation -----
    def unmount(self) -> None:
        """Cancel the particle scheduler and clear the scene."""
        self._stop_particles()
        self.surface.clear()
        self.records = []
        self.hover.hovered_index = None
        self.mounted = False
        self.input = None
        logger.debug("Visualization unmounted")

    def particle_frames(self, now_ms: Optional[float] = None) -> List[Dict[str, Any]]:
        if self.particles is None:
            return []
        return self.particles.sample(now_ms)

    def snapshot(self) -> Dict[str, Any]:
        """JSON-safe view of the current state for hosts."""
        return {
            "hoveredIndex": self.hover.hovered_index,
            "error": str(self.last_error) if self.last_error else None,
            "width": self.config.width,
            "height": self.config.height,
            "elements": self.surface.elements,
        }
