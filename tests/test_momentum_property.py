import numpy as np
from hypothesis import given, strategies as st, settings

from orbitalsim.integrators import GravityIntegrator
from orbitalsim.physics import Body, total_momentum


def test_total_momentum_conserved_simple_cases():
    """Momentum is unchanged by hand-crafted, well separated systems."""

    # Two equal masses at rest
    bodies = [
        Body(1e24, [0.0, 0.0, 0.0], [0.0, 0.0, 0.0]),
        Body(1e24, [10000.0, 0.0, 0.0], [0.0, 0.0, 0.0]),
    ]
    before = total_momentum(bodies)
    integrator = GravityIntegrator(bodies)
    for _ in range(10):
        integrator.iterate_once(10.0)
    assert np.allclose(total_momentum(bodies), before, atol=1e-3 * 1e24)

    # Earth and Moon over a day in one-hour ticks
    bodies = [
        Body(5.972e24, [0.0, 0.0, 0.0], [0.0, -0.0126, 0.0]),
        Body(7.35e22, [384400.0, 0.0, 0.0], [0.0, 1.022, 0.0]),
    ]
    before = total_momentum(bodies)
    integrator = GravityIntegrator(bodies)
    for _ in range(24):
        integrator.iterate_once(3600.0)
    scale = sum(b.mass for b in bodies)
    assert np.allclose(total_momentum(bodies), before, rtol=0, atol=1e-9 * scale)


@st.composite
def separated_system(draw):
    """Two or three bodies at least 50 000 km apart."""
    count = draw(st.integers(min_value=2, max_value=3))
    bodies = []
    for i in range(count):
        mass = draw(st.floats(1e22, 1e25, allow_nan=False, allow_infinity=False))
        if i == 0:
            pos = [0.0, 0.0, 0.0]
        else:
            angle = (2 * np.pi * i) / count
            radius = draw(st.floats(50000.0, 500000.0))
            pos = [radius * np.cos(angle), radius * np.sin(angle), 0.0]
        vel = [draw(st.floats(-10.0, 10.0)) for _ in range(3)]
        bodies.append(Body(mass, pos, vel))
    return bodies


@given(separated_system())
@settings(max_examples=10, deadline=None)
def test_momentum_conservation_property(bodies):
    before = total_momentum(bodies)
    integrator = GravityIntegrator(bodies)
    for _ in range(3):
        integrator.iterate_once(10.0)
    after = total_momentum(bodies)
    scale = sum(b.mass for b in bodies) * (1.0 + max(np.linalg.norm(b.vel) for b in bodies))
    assert np.allclose(after, before, rtol=0, atol=1e-10 * scale)
