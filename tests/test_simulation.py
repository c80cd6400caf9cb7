import logging
import math

import numpy as np
import pytest

from orbitalsim import constants as C
from orbitalsim.physics import Body
from orbitalsim.presets import PRESETS
from orbitalsim.simulation import Simulation


def _earth_moon_bodies():
    return [
        Body(5.97e24, [0.0, 0.0, 0.0], [0.0, 0.0, 0.0], name="A"),
        Body(7.35e22, [384400.0, 0.0, 0.0], [0.0, 1.02, 0.0], name="B"),
    ]


def test_from_preset_creates_bodies():
    for name, cfg in PRESETS.items():
        sim = Simulation.from_preset(name)
        assert len(sim.bodies) == len(cfg)
        assert sim.preset_name == name


def test_unknown_preset_raises():
    with pytest.raises(KeyError):
        Simulation.from_preset("Nowhere")


@pytest.mark.parametrize(
    "kwargs",
    [{"iteration_seconds": 0.0}, {"time_compression": 0}],
)
def test_invalid_settings_rejected(kwargs):
    with pytest.raises(ValueError):
        Simulation(_earth_moon_bodies(), **kwargs)


def test_one_hour_tick_records_closer_approach():
    sim = Simulation(_earth_moon_bodies(), iteration_seconds=3600.0)
    applied = sim.tick()

    value, a, b = sim.closest_approach
    assert applied == 3600.0
    assert (a, b) == (0, 1)
    assert 0.99 * 384400.0 ** 2 < value < 384400.0 ** 2
    assert sim.approaches.closest_sq[0] == value
    assert sim.approaches.closest_seconds[0] == 3600.0
    assert np.allclose(sim.approaches.closest_velocity[0], sim.bodies[1].vel - sim.bodies[0].vel)
    assert sim.elapsed_seconds == 3600.0


def test_time_compression_runs_several_ticks():
    sim = Simulation.from_preset("Earth & Moon", time_compression=3)
    applied = sim.run(2)
    assert sim.ticks == 6
    assert math.isclose(applied, 6 * C.ITERATION_SECONDS)
    assert math.isclose(sim.elapsed_seconds, applied)


def test_head_on_reversal_and_coast():
    sim = Simulation.from_preset("Head-on", iteration_seconds=100.0)
    first = sim.tick()
    assert first < 100.0
    assert sim.integrator.last_step_kind == "degenerate"
    sim.tick()
    assert sim.integrator.last_step_kind == "coast"
    assert math.isclose(sim.elapsed_seconds, 100.0)
    # Closest approach happened at the flip
    assert sim.approaches.closest_seconds[0] == first


def test_head_on_merge():
    sim = Simulation.from_preset("Head-on", iteration_seconds=100.0, merge_on_collision=True)
    sim.tick()
    west, east = sim.bodies
    assert east.excluded
    assert west.name == "West - East"
    assert math.isclose(west.mass, 0.9 * 2e20)
    assert np.allclose(west.vel, [1.0, 0.0, 0.0], atol=1e-3)
    assert sim.closest_approach == (np.inf, -1, -1)
    assert sim.approaches.names == ["West - East", "East"]
    sim.tick()
    assert np.all(sim.integrator.force_sums == 0.0)


def test_mass_multiplier_updates_cache_and_forces(caplog):
    sim = Simulation(_earth_moon_bodies())
    before = sim.integrator.force_vectors.copy()
    with caplog.at_level(logging.INFO, logger="orbitalsim"):
        sim.set_mass_multiplier("B", 2)
    assert sim.mass_products.get(0, 1) == 5.97e24 * 7.35e22 * 2
    assert np.allclose(sim.integrator.force_vectors, before * 2)
    assert any("Mass of 'B'" in r.getMessage() for r in caplog.records)


def test_velocity_multiplier():
    sim = Simulation(_earth_moon_bodies())
    sim.set_velocity_multiplier("B", -2)
    assert np.allclose(sim.bodies[1].vel, [0.0, 0.51, 0.0])


def test_gravity_multiplier():
    sim = Simulation(_earth_moon_bodies())
    sim.set_gravity_multiplier(10)
    assert math.isclose(sim.integrator.g_constant, C.G_REAL * 10)


def test_unknown_body_name_raises():
    sim = Simulation(_earth_moon_bodies())
    with pytest.raises(KeyError):
        sim.set_mass_multiplier("Mars", 2)
    with pytest.raises(KeyError):
        sim.exclude_body("Mars")


def test_excluded_body_frozen_mid_run():
    bodies = _earth_moon_bodies() + [Body(1e22, [0.0, -200000.0, 0.0], [1.0, 0.0, 0.0], name="C")]
    sim = Simulation(bodies, iteration_seconds=600.0)
    sim.run(2)
    sim.exclude_body("C")
    pos = sim.bodies[2].pos.copy()
    vel = sim.bodies[2].vel.copy()
    closest_c = sim.approaches.closest_sq[sim.pair_index.slot(0, 2)]
    sim.run(3)
    assert np.array_equal(sim.bodies[2].pos, pos)
    assert np.array_equal(sim.bodies[2].vel, vel)
    assert sim.approaches.closest_sq[sim.pair_index.slot(0, 2)] == closest_c
    assert sim.closest_approach[1:] == (0, 1)


def test_reset_restores_initial_state():
    sim = Simulation.from_preset("Earth & Moon")
    initial = [(b.pos.copy(), b.vel.copy(), b.mass) for b in sim.bodies]
    sim.set_mass_multiplier("Moon", 3)
    sim.run(5)
    sim.exclude_body("Moon")

    sim.reset()
    first = sim.approaches.to_snapshot(sim.elapsed_seconds)
    sim.reset()

    assert sim.approaches.to_snapshot(sim.elapsed_seconds) == first
    assert sim.elapsed_seconds == 0.0
    assert sim.ticks == 0
    for b, (pos, vel, mass) in zip(sim.bodies, initial):
        assert np.array_equal(b.pos, pos)
        assert np.array_equal(b.vel, vel)
        assert b.mass == mass
        assert not b.excluded
    assert np.all(np.isposinf(sim.approaches.closest_sq))


def test_status_reports_barycenter():
    sim = Simulation(_earth_moon_bodies())
    sim.tick()
    status = sim.status()
    assert status["closest"]["bodies"] == ("A", "B")
    assert status["last_step_kind"] == "accepted"
    assert status["active_bodies"] == 2
    expected_x = 7.35e22 * sim.bodies[1].pos[0] / (5.97e24 + 7.35e22)
    assert math.isclose(status["barycenter"][0], expected_x, rel_tol=1e-6)
