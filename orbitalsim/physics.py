"""Body representation and system-wide physics helpers.

:class:`Body` is the record shared with the outside world: callers own the
list of bodies and the core reads and writes positions and velocities in
place.  Positions are in kilometres, velocities in km/s and masses in kg.
"""
import numpy as np

from .constants import G_REAL, KM_TO_M


def apply_multiplier(value, multiplier):
    """Scale ``value`` using the 0 / negative-divide / positive-multiply rule.

    ``0`` returns ``value`` unchanged, a negative multiplier divides by its
    magnitude and a positive one multiplies.
    """
    if multiplier == 0:
        return value
    if multiplier < 0:
        return value / abs(multiplier)
    return value * multiplier


def _as_vector3(values):
    v = np.asarray(values, dtype=float).reshape(-1)
    if v.size < 3:
        v = np.pad(v, (0, 3 - v.size))
    return v[:3].copy()


class Body:
    """Celestial body tracked by the simulation."""

    def __init__(self, mass, pos, vel, radius=0.0, name=None, excluded=False):
        """Create a body storing position and velocity as 3-D vectors.

        Parameters
        ----------
        mass : float
            Mass in kilograms.  This is the base mass that a mass multiplier
            of ``0`` restores.
        pos : array-like
            Position in km. Values with fewer than three components are
            padded with zeros.
        vel : array-like
            Velocity in km/s, padded like ``pos``.
        radius : float, optional
            Physical radius in km (half the ephemeris diameter).
        name : str, optional
            Identifier used by name based commands.
        excluded : bool, optional
            If True the body takes no part in force or distance calculations.
        """
        self.base_mass = float(mass)
        self.mass_multiplier = 0
        self.mass = self.base_mass
        self.pos = _as_vector3(pos)
        self.vel = _as_vector3(vel)
        self.radius = float(radius)
        self.name = name if name else f"Body {id(self):x}"
        self.excluded = bool(excluded)
        # Set by the integrator after a force reversal; consumed by the next
        # sub-iteration, which then skips this body's acceleration.
        self.coast = False

    @staticmethod
    def from_diameter(mass, pos, vel, diameter, name=None):
        """Create a :class:`Body` from an ephemeris style diameter in km."""
        return Body(mass, pos, vel, radius=float(diameter) / 2.0, name=name)

    def set_mass_multiplier(self, multiplier):
        """Recompute ``mass`` from the base mass and ``multiplier``."""
        self.mass_multiplier = multiplier
        self.mass = apply_multiplier(self.base_mass, multiplier)

    def alter_velocity(self, multiplier):
        """Scale the current velocity; ``0`` leaves it unchanged."""
        self.vel = np.asarray(apply_multiplier(self.vel, multiplier), dtype=float)

    def exclude(self):
        """Permanently remove the body from force and distance calculations."""
        self.excluded = True
        self.coast = False

    def __repr__(self):
        return (
            f"Body(name={self.name!r}, mass={self.mass}, pos={self.pos.tolist()}, "
            f"vel={self.vel.tolist()}, radius={self.radius}, excluded={self.excluded})"
        )


def find_body(bodies, name):
    """Return the index of the body called ``name``.

    Raises
    ------
    KeyError
        If no body has that name.
    """
    for i, b in enumerate(bodies):
        if b.name == name:
            return i
    raise KeyError(f"Body '{name}' not found")


def total_momentum(bodies):
    """Total momentum of the non-excluded bodies in kg km/s."""
    p = np.zeros(3, dtype=float)
    for b in bodies:
        if b.excluded:
            continue
        p += b.mass * b.vel
    return p


def center_of_mass(bodies):
    """Return barycenter position and velocity of the non-excluded bodies.

    ``(None, None)`` is returned when no active body carries mass.
    """
    total_mass = 0.0
    weighted_pos = np.zeros(3, dtype=float)
    weighted_vel = np.zeros(3, dtype=float)
    for b in bodies:
        if b.excluded or b.mass <= 0:
            continue
        total_mass += b.mass
        weighted_pos += b.pos * b.mass
        weighted_vel += b.vel * b.mass
    if total_mass == 0:
        return None, None
    return weighted_pos / total_mass, weighted_vel / total_mass


def system_energy(bodies, g_constant=G_REAL):
    """Return kinetic, potential and total energy in joules."""
    active = [b for b in bodies if not b.excluded]
    kinetic = 0.0
    potential = 0.0
    for b in active:
        v_m_s = b.vel * KM_TO_M
        kinetic += 0.5 * b.mass * np.dot(v_m_s, v_m_s)
    for i, bi in enumerate(active):
        for bj in active[i + 1:]:
            r = np.linalg.norm(bj.pos - bi.pos) * KM_TO_M
            if r == 0:
                continue
            potential -= g_constant * bi.mass * bj.mass / r
    return kinetic, potential, kinetic + potential
