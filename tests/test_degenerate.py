"""Force reversal handling when two bodies pass through each other."""
import logging
import math

import numpy as np

from orbitalsim.integrators import GravityIntegrator
from orbitalsim.physics import Body

CROSSING_SECONDS = 1000.0 / 18.0


def _head_on():
    return [
        Body(1e20, [0.0, 0.0, 0.0], [10.0, 0.0, 0.0], name="A"),
        Body(1e20, [1000.0, 0.0, 0.0], [-8.0, 0.0, 0.0], name="B"),
    ]


def test_reversal_cuts_interval_at_flip():
    bodies = _head_on()
    integrator = GravityIntegrator(bodies)
    applied = integrator.iterate_once(100.0)

    assert applied < 100.0
    assert integrator.last_step_kind == "degenerate"
    # Bisection lands just past the crossing
    assert math.isclose(applied, CROSSING_SECONDS, abs_tol=0.01)
    assert bodies[0].pos[0] > bodies[1].pos[0]
    assert bodies[0].coast and bodies[1].coast
    assert math.isclose(integrator.pending_coast_seconds, 100.0 - applied)


def test_next_tick_coasts_through_remainder():
    bodies = _head_on()
    integrator = GravityIntegrator(bodies)
    first = integrator.iterate_once(100.0)
    vel_before = [b.vel.copy() for b in bodies]

    second = integrator.iterate_once(100.0)

    assert integrator.last_step_kind == "coast"
    assert math.isclose(first + second, 100.0)
    assert integrator.pending_coast_seconds is None
    # Coasting bodies skip acceleration for exactly one sub-iteration
    for b, v in zip(bodies, vel_before):
        assert np.array_equal(b.vel, v)
        assert not b.coast

    third = integrator.iterate_once(100.0)
    assert third == 100.0
    assert integrator.last_step_kind == "accepted"


def test_bodies_separate_after_coast():
    bodies = _head_on()
    integrator = GravityIntegrator(bodies)
    integrator.iterate_once(100.0)
    integrator.iterate_once(100.0)
    separation = bodies[0].pos[0] - bodies[1].pos[0]
    assert math.isclose(separation, 18.0 * 100.0 - 1000.0, rel_tol=1e-3)


def test_reversal_logged(caplog):
    bodies = _head_on()
    integrator = GravityIntegrator(bodies)
    with caplog.at_level(logging.INFO, logger="orbitalsim"):
        integrator.iterate_once(100.0)
    assert any("force reversal" in r.getMessage() for r in caplog.records)


def test_short_bisection_budget_warns(caplog):
    bodies = _head_on()
    integrator = GravityIntegrator(bodies, bisection_steps=2)
    with caplog.at_level(logging.WARNING, logger="orbitalsim"):
        applied = integrator.iterate_once(100.0)
    # Brackets: [50, 100] then [50, 75]
    assert applied == 75.0
    assert any(r.levelno == logging.WARNING for r in caplog.records)


def test_tolerance_widens_reversal_detection():
    # A glancing pass turns the force by less than 180 degrees
    bodies = [
        Body(1e20, [0.0, 0.0, 0.0], [10.0, 0.0, 0.0], name="A"),
        Body(1e20, [1000.0, 1.0, 0.0], [-8.0, 0.0, 0.0], name="B"),
    ]
    strict = GravityIntegrator([Body(b.mass, b.pos, b.vel, name=b.name) for b in bodies])
    strict.iterate_once(100.0)
    assert strict.last_step_kind in ("subdivided", "degraded")

    loose = GravityIntegrator(bodies, reversal_tolerance=0.5)
    loose.iterate_once(100.0)
    assert loose.last_step_kind == "degenerate"


def _symmetric_head_on():
    # Meets exactly at the origin after 50 s
    return [
        Body(1.0, [-500.0, 0.0, 0.0], [10.0, 0.0, 0.0], name="A"),
        Body(1.0, [500.0, 0.0, 0.0], [-10.0, 0.0, 0.0], name="B"),
    ]


def test_exact_meeting_point_counts_as_flip():
    bodies = _symmetric_head_on()
    integrator = GravityIntegrator(bodies)
    applied = integrator.iterate_once(100.0)

    assert integrator.last_step_kind == "degenerate"
    assert 50.0 < applied < 50.01
    assert bodies[0].pos[0] > 0.0 > bodies[1].pos[0]
    assert bodies[0].coast and bodies[1].coast

    second = integrator.iterate_once(100.0)
    assert integrator.last_step_kind == "coast"
    assert math.isclose(applied + second, 100.0)
    assert math.isclose(bodies[0].pos[0], 500.0, rel_tol=1e-6)
    assert math.isclose(bodies[1].pos[0], -500.0, rel_tol=1e-6)


def test_meeting_at_end_of_interval_does_not_raise():
    bodies = _symmetric_head_on()
    integrator = GravityIntegrator(bodies)
    applied = integrator.iterate_once(50.0)
    assert integrator.last_step_kind == "degenerate"
    assert bodies[0].pos[0] > bodies[1].pos[0]
    assert integrator.pending_coast_seconds is None
    assert not bodies[0].coast and not bodies[1].coast
    assert integrator.iterate_once(100.0) > 0.0
    assert applied > 50.0


def test_no_coast_without_continuation():
    bodies = _head_on()
    integrator = GravityIntegrator(bodies, bisection_steps=0)
    applied = integrator.iterate_once(100.0)
    assert applied == 100.0
    assert integrator.pending_coast_seconds is None
    assert not bodies[0].coast and not bodies[1].coast

    integrator.iterate_once(100.0)
    assert integrator.last_step_kind != "coast"
