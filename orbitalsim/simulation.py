"""Headless simulation driver: integrate, detect, record."""
import logging
import math

import numpy as np

from . import constants as C
from .analysis import ApproachStatistics
from .collisions import ClosestApproachDetector, merge_collisions
from .integrators import GravityIntegrator
from .pairs import MassProductCache, PairIndex
from .physics import Body, center_of_mass, find_body
from .presets import PRESETS

logger = logging.getLogger(__name__)

_BODY_FIELDS = ("base_mass", "mass_multiplier", "mass", "pos", "vel", "radius",
                "name", "excluded", "coast")


def _body_state(body):
    return {f: np.copy(getattr(body, f)) if f in ("pos", "vel") else getattr(body, f)
            for f in _BODY_FIELDS}


class Simulation:
    """N-body simulation wrapper.

    A tick runs one integration step, then closest approach detection, then
    updates the approach statistics.  A frame runs ``time_compression``
    ticks.  Configuration commands take effect before the next tick.
    """

    def __init__(
        self,
        bodies,
        *,
        iteration_seconds: float = C.ITERATION_SECONDS,
        time_compression: int = C.TIME_COMPRESSION,
        gravity_multiplier=C.GRAVITY_MULTIPLIER,
        merge_on_collision: bool = C.MERGE_ON_COLLISION,
        swept_detection: bool = False,
        **integrator_options,
    ):
        if iteration_seconds <= 0:
            raise ValueError("Iteration seconds must be positive")
        if int(time_compression) < 1:
            raise ValueError("Time compression must be at least 1")
        self.bodies = list(bodies)
        self.iteration_seconds = float(iteration_seconds)
        self.time_compression = int(time_compression)
        self.merge_on_collision = merge_on_collision
        self._integrator_options = integrator_options
        self._initial_states = [_body_state(b) for b in self.bodies]

        self.pair_index = PairIndex(len(self.bodies))
        self.mass_products = MassProductCache(self.bodies, self.pair_index)
        self.integrator = self._make_integrator(gravity_multiplier)
        self.detector = ClosestApproachDetector(self.pair_index, swept=swept_detection)
        self.approaches = ApproachStatistics([b.name for b in self.bodies], self.pair_index)
        self.elapsed_seconds = 0.0
        self.ticks = 0
        self.closest_approach = (np.inf, -1, -1)
        self.preset_name = None

    @classmethod
    def from_preset(cls, preset_name: str, **kwargs):
        """Build a simulation from one of :data:`~orbitalsim.presets.PRESETS`."""
        if preset_name not in PRESETS:
            raise KeyError(f"Preset '{preset_name}' not found")
        bodies = [
            Body(
                cfg.get("mass", C.EARTH_MASS),
                cfg.get("pos", [0.0, 0.0, 0.0]),
                cfg.get("vel", [0.0, 0.0, 0.0]),
                radius=cfg.get("radius", 0.0),
                name=cfg.get("name"),
            )
            for cfg in PRESETS[preset_name]
        ]
        sim = cls(bodies, **kwargs)
        sim.preset_name = preset_name
        return sim

    def _make_integrator(self, gravity_multiplier):
        return GravityIntegrator(
            self.bodies,
            gravity_multiplier,
            pair_index=self.pair_index,
            mass_products=self.mass_products,
            **self._integrator_options,
        )

    # ------------------------------------------------------------------
    def tick(self) -> float:
        """Advance one integration step and return the seconds applied."""
        seconds = self.integrator.iterate_once(self.iteration_seconds)
        self.elapsed_seconds += seconds
        self.ticks += 1

        previous = self.integrator.interval_start_positions if self.detector.swept else None
        self.closest_approach = self.detector.detect(self.bodies, previous_positions=previous)
        if self.merge_on_collision and self.detector.collisions:
            removed = merge_collisions(self.bodies, self.detector.collisions, self.mass_products)
            if removed:
                self.integrator.refresh_forces()
                self.approaches.names = [b.name for b in self.bodies]
                self.closest_approach = self.detector.detect(self.bodies)

        self.approaches.record_all(
            self.bodies, self.detector.center_distances_sq, self.elapsed_seconds
        )
        return seconds

    def run_frame(self) -> float:
        """Run ``time_compression`` ticks; returns the total seconds applied."""
        return sum(self.tick() for _ in range(self.time_compression))

    def run(self, frames: int) -> float:
        if frames < 0:
            raise ValueError("Frame count cannot be negative")
        return sum(self.run_frame() for _ in range(frames))

    # ------------------------------------------------------------------
    def set_gravity_multiplier(self, multiplier):
        self.integrator.set_gravity_multiplier(multiplier)

    def set_mass_multiplier(self, name, multiplier):
        """Change a body's mass; pair products and forces update immediately."""
        body = self.bodies[find_body(self.bodies, name)]
        body.set_mass_multiplier(multiplier)
        self.mass_products.recalculate(self.bodies)
        self.integrator.refresh_forces()
        logger.info(f"Mass of '{name}' set to {body.mass:.6e} kg (multiplier {multiplier})")

    def set_velocity_multiplier(self, name, multiplier):
        body = self.bodies[find_body(self.bodies, name)]
        body.alter_velocity(multiplier)
        logger.info(f"Velocity of '{name}' scaled by multiplier {multiplier}")

    def exclude_body(self, name):
        """Drop a body from every further force and distance calculation."""
        body = self.bodies[find_body(self.bodies, name)]
        body.exclude()
        logger.info(f"Body '{name}' excluded")

    def reset(self):
        """Restore the initial bodies and clear time and approach statistics.

        The current gravity multiplier is kept.
        """
        for body, state in zip(self.bodies, self._initial_states):
            for field, value in state.items():
                setattr(body, field, np.copy(value) if field in ("pos", "vel") else value)
        self.mass_products.recalculate(self.bodies)
        self.integrator = self._make_integrator(self.integrator.gravity_multiplier)
        self.approaches.names = [b.name for b in self.bodies]
        self.approaches.reset()
        self.elapsed_seconds = 0.0
        self.ticks = 0
        self.closest_approach = (np.inf, -1, -1)
        logger.info("Simulation reset")

    # ------------------------------------------------------------------
    def status(self) -> dict:
        """Summary of the current state for display."""
        value, a, b = self.closest_approach
        barycenter, barycenter_vel = center_of_mass(self.bodies)
        closest = None
        if a >= 0:
            closest = {
                "bodies": (self.bodies[a].name, self.bodies[b].name),
                "surface_distance_sq": float(value),
                "surface_distance_km": math.sqrt(value) if value > 0 else 0.0,
                "tied": [self.bodies[i].name for i in self.detector.closest_bodies],
            }
        return {
            "elapsed_seconds": self.elapsed_seconds,
            "ticks": self.ticks,
            "closest": closest,
            "barycenter": barycenter,
            "barycenter_velocity": barycenter_vel,
            "last_step_kind": self.integrator.last_step_kind,
            "degraded_steps": self.integrator.degraded_steps,
            "active_bodies": sum(not body.excluded for body in self.bodies),
        }
