"""Adaptive force-direction integrator.

Each tick advances the bodies with a semi-implicit Euler step that uses the
net force left over from the previous sub-iteration::

    v' = v + (F / m) dt          (capped at a fraction of c)
    x' = x + v' dt

After the step the pairwise forces are recomputed and the direction of every
body's new net force is compared with the old one.  A large turn means the
constant-force assumption broke down, so the interval is restored and
halved.  An exact 180 degree turn means two bodies passed through each
other; halving cannot resolve that, so the crossing time is located by
bisection instead and the reversed bodies coast through the rest of the
interval on the next tick.
"""
import logging
import math

import numpy as np

from . import constants as C
from .jit import pair_force_vectors_jit, sum_force_vectors_jit
from .pairs import MassProductCache, PairIndex
from .physics import apply_multiplier

logger = logging.getLogger(__name__)


class IntervalState:
    """Saved start-of-interval state used to roll back a rejected step."""

    __slots__ = ("positions", "velocities", "force_sums", "coast")

    def __init__(self, num_bodies: int):
        self.positions = np.zeros((num_bodies, 3), dtype=np.float64)
        self.velocities = np.zeros((num_bodies, 3), dtype=np.float64)
        self.force_sums = np.zeros((num_bodies, 3), dtype=np.float64)
        self.coast = np.zeros(num_bodies, dtype=bool)

    def capture(self, positions, velocities, force_sums, coast):
        np.copyto(self.positions, positions)
        np.copyto(self.velocities, velocities)
        np.copyto(self.force_sums, force_sums)
        np.copyto(self.coast, coast)

    def restore(self, positions, velocities, force_sums, coast):
        """Copy the saved arrays back into the given working arrays."""
        np.copyto(positions, self.positions)
        np.copyto(velocities, self.velocities)
        np.copyto(force_sums, self.force_sums)
        np.copyto(coast, self.coast)


class GravityIntegrator:
    """Advance a list of :class:`~orbitalsim.physics.Body` objects in place."""

    def __init__(
        self,
        bodies,
        gravity_multiplier=C.GRAVITY_MULTIPLIER,
        *,
        pair_index: PairIndex = None,
        mass_products: MassProductCache = None,
        angle_threshold_degrees: float = C.ANGLE_THRESHOLD_DEGREES,
        max_subdivisions: int = C.MAX_SUBDIVISIONS,
        bisection_steps: int = C.BISECTION_STEPS,
        velocity_cap_kms: float = C.VELOCITY_CAP_KMS,
        reversal_tolerance: float = C.REVERSAL_TOLERANCE,
    ):
        if not 0.0 < angle_threshold_degrees < 180.0:
            raise ValueError("Angle threshold must lie strictly between 0 and 180 degrees")
        if max_subdivisions < 0 or bisection_steps < 0:
            raise ValueError("Subdivision and bisection counts cannot be negative")
        if velocity_cap_kms <= 0:
            raise ValueError("Velocity cap must be positive")
        if reversal_tolerance < 0:
            raise ValueError("Reversal tolerance cannot be negative")
        for b in bodies:
            if not b.excluded and b.mass <= 0:
                raise ValueError(f"Body '{b.name}' must have a positive mass")

        self.bodies = bodies
        self.num_bodies = len(bodies)
        self.pair_index = pair_index if pair_index is not None else PairIndex(self.num_bodies)
        self.mass_products = (
            mass_products
            if mass_products is not None
            else MassProductCache(bodies, self.pair_index)
        )
        self.cos_threshold = math.cos(math.radians(angle_threshold_degrees))
        self.max_subdivisions = int(max_subdivisions)
        self.bisection_steps = int(bisection_steps)
        self.velocity_cap_kms = float(velocity_cap_kms)
        self.reversal_tolerance = float(reversal_tolerance)

        self.gravity_multiplier = gravity_multiplier
        self.g_constant = apply_multiplier(C.G_REAL, gravity_multiplier)

        self.iteration = -1
        self.pending_coast_seconds = None
        self.last_step_kind = None
        self.last_min_cos = 1.0
        self.degraded_steps = 0

        n = self.num_bodies
        self.force_vectors = np.zeros((self.pair_index.num_slots, 3), dtype=np.float64)
        self.force_sums = np.zeros((n, 3), dtype=np.float64)
        self.cosines = np.ones(n, dtype=np.float64)
        self._positions = np.zeros((n, 3), dtype=np.float64)
        self._velocities = np.zeros((n, 3), dtype=np.float64)
        self._masses = np.zeros(n, dtype=np.float64)
        self._active = np.zeros(n, dtype=bool)
        self._coast = np.zeros(n, dtype=bool)
        self._forces_active = None
        self._met = None
        self._start = IntervalState(n)

        self.refresh_forces()

    # ------------------------------------------------------------------
    def set_gravity_multiplier(self, multiplier):
        """Apply a new gravitational constant multiplier and refresh forces."""
        self.gravity_multiplier = multiplier
        self.g_constant = apply_multiplier(C.G_REAL, multiplier)
        logger.info(f"Gravitational constant set to {self.g_constant:.6e} (multiplier {multiplier})")
        self.refresh_forces()

    def refresh_forces(self):
        """Recompute pair forces and net forces from the bodies' current state.

        Needed after anything that changes force magnitudes outside of a
        tick, e.g. a mass or gravity multiplier change.
        """
        self._load_bodies()
        self._compute_forces()

    @property
    def interval_start_positions(self):
        """Positions at the start of the most recent interval."""
        return self._start.positions.copy()

    # ------------------------------------------------------------------
    def iterate_once(self, seconds: float) -> float:
        """Advance all non-excluded bodies by up to ``seconds``.

        Returns the number of seconds actually applied, which is less than
        requested when the interval was subdivided or cut at a force
        reversal, and replaced entirely by a pending coast continuation.
        """
        if seconds <= 0:
            raise ValueError("Interval seconds must be positive")
        self._load_bodies()
        if self._forces_active is None or not np.array_equal(self._forces_active, self._active):
            # Exclusions changed since the net forces were last computed
            self._compute_forces()
        self.iteration += 1

        kind = "accepted"
        if self.pending_coast_seconds is not None:
            seconds = self.pending_coast_seconds
            self.pending_coast_seconds = None
            kind = "coast"

        min_cos = self._subiterate(seconds, save_for_restore=True)
        subdivisions = 0
        while min_cos <= self.cos_threshold:
            if self._is_reversal(min_cos):
                seconds = self._resolve_degenerate(seconds)
                kind = "degenerate"
                break
            if subdivisions >= self.max_subdivisions:
                self.degraded_steps += 1
                kind = "degraded"
                logger.warning(
                    f"Iteration {self.iteration}: subdivision budget of {self.max_subdivisions} "
                    f"exhausted at {seconds:.6g}s (min cos {min_cos:.6f})"
                )
                break
            self._restore()
            seconds /= 2.0
            subdivisions += 1
            kind = "subdivided"
            logger.debug(
                f"Iteration {self.iteration}: min cos {min_cos:.6f}, retrying with {seconds:.6g}s"
            )
            min_cos = self._subiterate(seconds, save_for_restore=False)

        self.last_min_cos = min_cos
        self.last_step_kind = kind
        self._store_bodies()
        logger.debug(f"Iteration {self.iteration}: applied {seconds:.6g}s ({kind})")
        return seconds

    # ------------------------------------------------------------------
    def _load_bodies(self):
        for i, b in enumerate(self.bodies):
            self._positions[i] = b.pos
            self._velocities[i] = b.vel
            self._masses[i] = b.mass
            self._active[i] = not b.excluded
            self._coast[i] = b.coast and not b.excluded

    def _store_bodies(self):
        for i, b in enumerate(self.bodies):
            if not self._active[i]:
                continue
            b.pos = self._positions[i].copy()
            b.vel = self._velocities[i].copy()
            b.coast = bool(self._coast[i])

    def _restore(self):
        self._start.restore(self._positions, self._velocities, self.force_sums, self._coast)

    def _compute_forces(self, strict=True):
        """Refill pair forces and net forces from the working positions.

        Returns ``None``, or with ``strict`` False the ``(lo, hi)`` pair of
        bodies found at the same position, in which case the net forces are
        left as they were.

        Raises
        ------
        ValueError
            If ``strict`` and two active bodies share a position.
        """
        bad_slot = pair_force_vectors_jit(
            self._positions,
            self.pair_index.lo,
            self.pair_index.hi,
            self.mass_products.values,
            self._active,
            self.g_constant,
            C.KM_SQ_TO_M_SQ,
            self.force_vectors,
        )
        if bad_slot >= 0:
            lo, hi = self.pair_index.pair(int(bad_slot))
            if not strict:
                return lo, hi
            raise ValueError(
                f"Bodies '{self.bodies[lo].name}' and '{self.bodies[hi].name}' "
                "share a position; force direction is undefined"
            )
        sum_force_vectors_jit(
            self.force_vectors, self.pair_index.lo, self.pair_index.hi,
            self.num_bodies, self.force_sums,
        )
        self._forces_active = self._active.copy()
        return None

    def _subiterate(self, seconds, save_for_restore):
        """One constant-force step; returns the minimum direction cosine."""
        if save_for_restore:
            self._start.capture(self._positions, self._velocities, self.force_sums, self._coast)

        active = self._active
        pushed = active & ~self._coast
        # Coast flags last for exactly one sub-iteration
        self._coast[active] = False

        accel_kms2 = np.zeros_like(self._velocities)
        accel_kms2[pushed] = (
            self.force_sums[pushed] / self._masses[pushed, None] / C.KM_TO_M
        )
        self._velocities[active] += accel_kms2[active] * seconds

        speeds = np.linalg.norm(self._velocities, axis=1)
        too_fast = active & (speeds > self.velocity_cap_kms)
        if too_fast.any():
            self._velocities[too_fast] *= (self.velocity_cap_kms / speeds[too_fast])[:, None]

        self._positions[active] += self._velocities[active] * seconds

        previous = self.force_sums.copy()
        self._met = self._compute_forces(strict=False)
        if self._met is not None:
            # Landing exactly on each other is the crossing point of a flip
            self.cosines.fill(1.0)
            self.cosines[list(self._met)] = -1.0
            return -1.0
        return self._min_cosine(previous, self.force_sums)

    def _min_cosine(self, previous, current):
        prev_norm = np.linalg.norm(previous, axis=1)
        curr_norm = np.linalg.norm(current, axis=1)
        measurable = self._active & (prev_norm > 0) & (curr_norm > 0)
        self.cosines.fill(1.0)
        if not measurable.any():
            return 1.0
        dots = np.einsum("ij,ij->i", previous[measurable], current[measurable])
        self.cosines[measurable] = np.clip(
            dots / (prev_norm[measurable] * curr_norm[measurable]), -1.0, 1.0
        )
        return float(self.cosines[measurable].min())

    def _is_reversal(self, cos_value):
        return cos_value <= -1.0 + self.reversal_tolerance

    def _degen_subiterate(self, seconds):
        """Step from the saved start state; return the mask of reversed bodies."""
        self._restore()
        self._subiterate(seconds, save_for_restore=False)
        return self._active & (self.cosines <= -1.0 + self.reversal_tolerance)

    def _resolve_degenerate(self, seconds):
        """Cut the interval at the force reversal and schedule a coast.

        Returns the seconds actually applied, i.e. the estimated flip time.
        """
        reversed_mask = self._active & (self.cosines <= -1.0 + self.reversal_tolerance)
        low, high = 0.0, seconds
        for _ in range(self.bisection_steps):
            mid = 0.5 * (low + high)
            flipped = self._degen_subiterate(mid)
            if flipped.any():
                high = mid
                reversed_mask = flipped
            else:
                low = mid
            logger.debug(f"Iteration {self.iteration}: flip bracket [{low:.6g}, {high:.6g}]s")

        if high - low > C.DEGENERATE_TOLERANCE_SECONDS:
            logger.warning(
                f"Iteration {self.iteration}: flip point only known to within "
                f"{high - low:.6g}s after {self.bisection_steps} bisection steps"
            )

        # Land just past the flip with the reversed bodies set to coast
        step = high - low
        self._degen_subiterate(high)
        for _ in range(self.bisection_steps + 1):
            if self._met is None:
                break
            # Exactly on the crossing point; move one bracket further past it
            high += step
            self._degen_subiterate(high)
        if self._met is not None:
            lo, hi = self._met
            raise ValueError(
                f"Bodies '{self.bodies[lo].name}' and '{self.bodies[hi].name}' "
                "stay at the same position past their crossing"
            )

        remainder = seconds - high
        if remainder > 0:
            self._coast[reversed_mask] = True
            self.pending_coast_seconds = remainder
        else:
            self.pending_coast_seconds = None
        names = [self.bodies[i].name for i in np.flatnonzero(reversed_mask)]
        logger.info(
            f"Iteration {self.iteration}: force reversal for {names} at {high:.6g}s of "
            f"{seconds:.6g}s; coasting {self.pending_coast_seconds or 0.0:.6g}s next tick"
        )
        return high
