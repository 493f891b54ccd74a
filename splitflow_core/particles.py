"""
Animated particles travelling along flow bands.

A `ParticleSystem` is bound to one set of `FlowRecord`s. Every tick it gives
each flow an independent chance to spawn one particle; a particle moves from
the flow's source to its target over a random lifespan, x linear in time and
y following the band's eased centerline, fading out as it goes.

The system owns every timer it creates:
- the periodic tick task on the running asyncio loop
- one expiry handle per live particle

`stop()` cancels all of them in one synchronous call and bumps `generation`,
so nothing tied to the old geometry can fire afterwards. In-flight particles
are dropped, not drained.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .config import FlowConfig
from .layout import FlowRecord
from .render import monotonic_ms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Particle:
    id: int
    owner_flow_index: int
    spawn_time_ms: float
    lifespan_ms: float
    path_ref: FlowRecord
    generation: int

    @property
    def expires_at_ms(self) -> float:
        return self.spawn_time_ms + self.lifespan_ms

    def progress(self, now_ms: float) -> float:
        return min(1.0, max(0.0, (now_ms - self.spawn_time_ms) / self.lifespan_ms))

    def expired(self, now_ms: float) -> bool:
        return now_ms >= self.expires_at_ms

    def position(self, now_ms: float) -> Tuple[float, float]:
        return self.path_ref.centerline_at(self.progress(now_ms))

    def opacity(self, now_ms: float, start_opacity: float = 0.8) -> float:
        return start_opacity * (1.0 - self.progress(now_ms))


class ParticleSystem:
    """Periodic spawner plus registry of live particles for one layout."""

    def __init__(
        self,
        records: Sequence[FlowRecord],
        config: FlowConfig | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] | None = None,
        on_spawn: Callable[[Particle], None] | None = None,
    ):
        self.records: Tuple[FlowRecord, ...] = tuple(records)
        self.config = config or FlowConfig()
        self.rng = rng or random.Random()
        self.clock = clock or monotonic_ms
        self.on_spawn = on_spawn
        self.generation = 0
        self.stopped = False
        self._ids = itertools.count(1)
        self._particles: Dict[int, Particle] = {}
        self._expiry_handles: Dict[int, asyncio.TimerHandle] = {}
        self._tick_task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    # ----- scheduling -----
    @property
    def running(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    def start(self) -> None:
        """Start the tick scheduler on the running event loop."""
        if self.stopped:
            raise RuntimeError("ParticleSystem has been stopped; create a new one for new geometry")
        if self.running:
            return
        self._loop = asyncio.get_running_loop()
        self._tick_task = self._loop.create_task(self._run())
        self._tick_task.add_done_callback(self._on_tick_task_done)
        logger.debug("Particle scheduler started for %d flows", len(self.records))

    async def _run(self) -> None:
        interval = self.config.tick_interval_ms / 1000.0
        while not self.stopped:
            await asyncio.sleep(interval)
            self.tick()

    def _on_tick_task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Particle scheduler died; no further particles will spawn", exc_info=exc)

    def stop(self) -> None:
        """Halt spawning and forget every particle. Safe to call repeatedly."""
        if self._tick_task is not None and not self._tick_task.done():
            self._tick_task.cancel()
        self._tick_task = None
        for handle in self._expiry_handles.values():
            handle.cancel()
        dropped = len(self._particles)
        self._expiry_handles.clear()
        self._particles.clear()
        self._loop = None
        if not self.stopped:
            self.generation += 1
            self.stopped = True
            logger.debug("Particle scheduler stopped (%d in-flight particles dropped)", dropped)

    # ----- spawning -----
    def tick(self, now_ms: Optional[float] = None) -> List[Particle]:
        """Run one spawn pass: at most one new particle per flow."""
        if self.stopped:
            return []
        now = self.clock() if now_ms is None else float(now_ms)
        self.prune(now)
        spawned = []
        for record in self.records:
            if self.rng.random() < self.config.spawn_probability:
                spawned.append(self._spawn(record, now))
        return spawned

    def _spawn(self, record: FlowRecord, now_ms: float) -> Particle:
        cfg = self.config
        particle = Particle(
            id=next(self._ids),
            owner_flow_index=record.index,
            spawn_time_ms=now_ms,
            lifespan_ms=self.rng.uniform(cfg.lifespan_min_ms, cfg.lifespan_max_ms),
            path_ref=record,
            generation=self.generation,
        )
        self._particles[particle.id] = particle
        if self._loop is not None:
            self._expiry_handles[particle.id] = self._loop.call_later(
                particle.lifespan_ms / 1000.0, self._expire, particle.id, particle.generation
            )
        if self.on_spawn is not None:
            self.on_spawn(particle)
        return particle

    def _expire(self, particle_id: int, generation: int) -> None:
        if generation != self.generation:
            return
        self._expiry_handles.pop(particle_id, None)
        self._particles.pop(particle_id, None)

    def prune(self, now_ms: Optional[float] = None) -> int:
        """Discard particles whose lifespan has elapsed; returns how many."""
        now = self.clock() if now_ms is None else float(now_ms)
        expired = [pid for pid, p in self._particles.items() if p.expired(now)]
        for pid in expired:
            handle = self._expiry_handles.pop(pid, None)
            if handle is not None:
                handle.cancel()
            del self._particles[pid]
        return len(expired)

    # ----- observation -----
    def particles(self) -> List[Particle]:
        return list(self._particles.values())

    def sample(self, now_ms: Optional[float] = None) -> List[Dict[str, Any]]:
        """Position, opacity and color of every live particle at `now_ms`."""
        now = self.clock() if now_ms is None else float(now_ms)
        frames = []
        for p in self._particles.values():
            if p.expired(now):
                continue
            x, y = p.position(now)
            frames.append({
                "id": p.id,
                "flow": p.owner_flow_index,
                "x": x,
                "y": y,
                "opacity": p.opacity(now, self.config.particle_opacity),
                "r": self.config.particle_radius,
                "fill": p.path_ref.color_pair.end,
            })
        return frames
