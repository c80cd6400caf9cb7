"""Closest approach and collision detection between body surfaces."""
import logging

import numpy as np

from . import constants as C
from .jit import pair_distances_jit
from .pairs import PairIndex

logger = logging.getLogger(__name__)


class ClosestApproachDetector:
    """Scan every active pair for the smallest surface separation.

    Excluded bodies are skipped: once a body leaves the gravity simulation it
    no longer takes part in distance calculations either.

    After :meth:`detect` the per-slot squared centre distances are available
    as :attr:`center_distances_sq`, every body tied at the minimum as
    :attr:`closest_bodies` and the overlapping pairs as :attr:`collisions`.
    """

    def __init__(self, pair_index: PairIndex, swept: bool = False):
        self.pair_index = pair_index
        self.swept = swept
        n_slots = pair_index.num_slots
        self.center_distances_sq = np.full(n_slots, np.inf, dtype=np.float64)
        self.surface_distances_sq = np.full(n_slots, np.inf, dtype=np.float64)
        self.closest_bodies = []
        self.collisions = []

    def detect(self, bodies, previous_positions=None):
        """Return ``(min_surface_distance_sq, index_a, index_b)``.

        The value is the squared centre distance less the squared sum of both
        radii, in km^2; it is negative when the bodies overlap.  ``(inf, -1,
        -1)`` is returned when fewer than two bodies are active.  When the
        detector is swept and ``previous_positions`` is given, each pair is
        measured at its closest point along the straight-line travel from the
        previous positions to the current ones.
        """
        n = self.pair_index.num_bodies
        if len(bodies) != n:
            raise ValueError(f"Detector built for {n} bodies, got {len(bodies)}")

        positions = np.array([b.pos for b in bodies], dtype=np.float64).reshape(n, 3)
        radii = np.array([b.radius for b in bodies], dtype=np.float64)
        active = np.array([not b.excluded for b in bodies], dtype=bool)
        use_sweep = self.swept and previous_positions is not None
        previous = (
            np.asarray(previous_positions, dtype=np.float64).reshape(n, 3)
            if use_sweep
            else positions
        )

        pair_distances_jit(
            positions,
            previous,
            self.pair_index.lo,
            self.pair_index.hi,
            radii,
            active,
            use_sweep,
            self.center_distances_sq,
            self.surface_distances_sq,
        )

        self.closest_bodies = []
        self.collisions = []
        if self.pair_index.num_slots == 0:
            return np.inf, -1, -1
        best = int(np.argmin(self.surface_distances_sq))
        best_value = float(self.surface_distances_sq[best])
        if not np.isfinite(best_value):
            return np.inf, -1, -1

        tied = set()
        for s in np.flatnonzero(self.surface_distances_sq == best_value):
            tied.update(self.pair_index.pair(int(s)))
        self.closest_bodies = sorted(tied)
        self.collisions = [
            self.pair_index.pair(int(s)) for s in np.flatnonzero(self.surface_distances_sq < 0)
        ]
        lo, hi = self.pair_index.pair(best)
        return best_value, lo, hi


def _collision_groups(collisions):
    """Join overlapping pairs into groups of mutually colliding bodies."""
    groups = []
    for a, b in collisions:
        joined = [g for g in groups if a in g or b in g]
        merged = {a, b}
        for g in joined:
            merged |= g
            groups.remove(g)
        groups.append(merged)
    return [sorted(g) for g in groups]


def merge_collisions(bodies, collisions, mass_products=None,
                     mass_retention=C.COLLISION_MASS_RETENTION):
    """Merge each group of colliding bodies into its most massive member.

    The collision is inelastic: the survivor takes the momentum weighted
    velocity and mass weighted position of the group and a mass of
    ``mass_retention`` times the group's total, the rest being lost as heat.
    Other members are excluded and their names appended to the survivor's.
    The mass product cache, when given, is recalculated.

    Returns the sorted indices of the excluded bodies.
    """
    removed = []
    for group in _collision_groups(collisions):
        members = [bodies[i] for i in group if not bodies[i].excluded]
        if len(members) < 2:
            continue
        survivor = max(members, key=lambda b: b.mass)
        masses = np.array([b.mass for b in members]) * mass_retention
        total_mass = masses.sum()
        new_vel = sum(m * b.vel for m, b in zip(masses, members)) / total_mass
        new_pos = sum(m * b.pos for m, b in zip(masses, members)) / total_mass

        name = survivor.name
        for i in group:
            b = bodies[i]
            if b is survivor or b.excluded:
                continue
            name += f" - {b.name}"
            b.exclude()
            removed.append(i)

        survivor.base_mass = float(total_mass)
        survivor.mass_multiplier = 0
        survivor.mass = float(total_mass)
        survivor.vel = new_vel
        survivor.pos = new_pos
        survivor.coast = False
        survivor.name = name
        logger.info(f"Collision merged into '{name}' ({total_mass:.4e} kg)")

    if removed and mass_products is not None:
        mass_products.recalculate(bodies)
    return sorted(removed)
