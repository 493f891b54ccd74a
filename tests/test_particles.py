"""
Tests for ParticleSystem spawning, motion, expiry and teardown.

Async behaviour runs on a real event loop via `asyncio.run` with short
intervals so the suite stays fast.
"""

import asyncio
import logging
import random

import pytest

from splitflow_core.config import FlowConfig
from splitflow_core.layout import LayoutEngine
from splitflow_core.particles import ParticleSystem


class FixedRandom(random.Random):
    """Random source whose `random()` always returns the same value."""

    def __init__(self, value):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


def _records(n=3):
    return LayoutEngine(FlowConfig()).layout([f"r{i}" for i in range(n)], [1] * n)


class TestSpawning:
    """Per-tick Bernoulli spawning."""

    def test_certain_spawn_gives_one_particle_per_flow(self):
        system = ParticleSystem(_records(3), FlowConfig(spawn_probability=1.0), rng=random.Random(0))
        spawned = system.tick(0.0)
        assert sorted(p.owner_flow_index for p in spawned) == [0, 1, 2]
        assert len(system.particles()) == 3

    def test_zero_probability_never_spawns(self):
        system = ParticleSystem(_records(3), FlowConfig(spawn_probability=0.0), rng=random.Random(0))
        for t in range(10):
            assert system.tick(t * 500.0) == []

    def test_threshold_uses_spawn_probability(self):
        cfg = FlowConfig(spawn_probability=0.3)
        assert len(ParticleSystem(_records(2), cfg, rng=FixedRandom(0.29)).tick(0.0)) == 2
        assert ParticleSystem(_records(2), cfg, rng=FixedRandom(0.31)).tick(0.0) == []

    def test_spawn_rate_close_to_probability(self):
        system = ParticleSystem(_records(4), FlowConfig(), rng=random.Random(7))
        total = sum(len(system.tick(i * 500.0)) for i in range(500))
        rate = total / (500 * 4)
        assert 0.25 < rate < 0.35

    def test_lifespan_within_range(self):
        system = ParticleSystem(_records(5), FlowConfig(spawn_probability=1.0), rng=random.Random(3))
        for i in range(20):
            for p in system.tick(i * 10.0):
                assert 2000.0 <= p.lifespan_ms <= 3000.0

    def test_seeded_runs_are_reproducible(self):
        def run(seed):
            system = ParticleSystem(_records(3), FlowConfig(), rng=random.Random(seed))
            return [(p.owner_flow_index, p.lifespan_ms) for i in range(10) for p in system.tick(i * 500.0)]

        assert run(11) == run(11)

    def test_on_spawn_callback(self):
        seen = []
        system = ParticleSystem(_records(2), FlowConfig(spawn_probability=1.0), on_spawn=seen.append)
        system.tick(0.0)
        assert [p.owner_flow_index for p in seen] == [0, 1]


class TestMotion:
    """Particle position and fade along the band centerline."""

    def _particle(self):
        records = _records(3)
        system = ParticleSystem(records, FlowConfig(spawn_probability=1.0), rng=random.Random(0))
        particle = system.tick(1000.0)[0]
        return particle, records[0]

    def test_starts_at_source_and_ends_at_target(self):
        p, rec = self._particle()
        assert p.position(1000.0) == pytest.approx(rec.source_point)
        assert p.position(p.expires_at_ms) == pytest.approx(rec.target_point)

    def test_x_linear_y_eased(self):
        p, rec = self._particle()
        quarter = 1000.0 + p.lifespan_ms * 0.25
        x, y = p.position(quarter)
        sx, sy = rec.source_point
        tx, ty = rec.target_point
        assert x == pytest.approx(sx + (tx - sx) * 0.25)
        assert y == pytest.approx(sy + (ty - sy) * 0.0625)

    def test_opacity_fades_to_zero(self):
        p, _ = self._particle()
        assert p.opacity(1000.0) == pytest.approx(0.8)
        assert p.opacity(1000.0 + p.lifespan_ms / 2) == pytest.approx(0.4)
        assert p.opacity(p.expires_at_ms) == pytest.approx(0.0)

    def test_sample_frames(self):
        records = _records(2)
        system = ParticleSystem(records, FlowConfig(spawn_probability=1.0), rng=random.Random(0))
        system.tick(0.0)
        frames = system.sample(0.0)
        assert len(frames) == 2
        assert frames[0]["fill"] == records[0].color_pair.end
        assert frames[0]["r"] == 2.0
        assert system.sample(5000.0) == []


class TestExpiryAndTeardown:
    def test_prune_discards_finished_particles(self):
        system = ParticleSystem(_records(2), FlowConfig(spawn_probability=1.0), rng=random.Random(0))
        system.tick(0.0)
        assert system.prune(1999.0) == 0
        assert system.prune(3000.0) == 2
        assert system.particles() == []

    def test_stop_clears_and_blocks_further_spawns(self):
        system = ParticleSystem(_records(2), FlowConfig(spawn_probability=1.0), rng=random.Random(0))
        system.tick(0.0)
        system.stop()
        assert system.particles() == []
        assert system.generation == 1
        assert system.tick(500.0) == []
        system.stop()
        assert system.generation == 1

    def test_start_after_stop_rejected(self):
        async def scenario():
            system = ParticleSystem(_records(1), FlowConfig())
            system.stop()
            with pytest.raises(RuntimeError):
                system.start()

        asyncio.run(scenario())

    def test_start_requires_running_loop(self):
        system = ParticleSystem(_records(1), FlowConfig())
        with pytest.raises(RuntimeError):
            system.start()


class TestScheduler:
    """Tick scheduler on a live event loop."""

    def test_ticks_spawn_and_stop_halts(self):
        cfg = FlowConfig(tick_interval_ms=10, spawn_probability=1.0, lifespan_min_ms=1000, lifespan_max_ms=1000)
        spawned = []

        async def scenario():
            system = ParticleSystem(_records(2), cfg, rng=random.Random(0), on_spawn=spawned.append)
            system.start()
            assert system.running
            await asyncio.sleep(0.06)
            system.stop()
            count_at_stop = len(spawned)
            await asyncio.sleep(0.05)
            return system, count_at_stop

        system, count_at_stop = asyncio.run(scenario())
        assert count_at_stop > 0
        assert len(spawned) == count_at_stop
        assert not system.running
        assert system.particles() == []

    def test_particles_expire_on_their_own(self):
        cfg = FlowConfig(tick_interval_ms=10_000, spawn_probability=1.0, lifespan_min_ms=5, lifespan_max_ms=5)

        async def scenario():
            system = ParticleSystem(_records(2), cfg, rng=random.Random(0))
            system.start()
            system.tick()
            assert len(system.particles()) == 2
            await asyncio.sleep(0.05)
            remaining = len(system.particles())
            system.stop()
            return remaining

        assert asyncio.run(scenario()) == 0

    def test_start_is_idempotent(self):
        async def scenario():
            system = ParticleSystem(_records(1), FlowConfig())
            system.start()
            task = system._tick_task
            system.start()
            same = system._tick_task is task
            system.stop()
            return same

        assert asyncio.run(scenario())

    def test_scheduler_failure_is_logged(self, caplog):
        cfg = FlowConfig(tick_interval_ms=5, spawn_probability=1.0)

        def explode(particle):
            raise ValueError("boom")

        async def scenario():
            system = ParticleSystem(_records(1), cfg, on_spawn=explode)
            system.start()
            await asyncio.sleep(0.05)
            running = system.running
            system.stop()
            return running

        with caplog.at_level(logging.ERROR, logger="splitflow_core.particles"):
            assert asyncio.run(scenario()) is False
        failures = [r for r in caplog.records if "Particle scheduler died" in r.getMessage()]
        assert len(failures) == 1
        assert failures[0].exc_info[1].args == ("boom",)
