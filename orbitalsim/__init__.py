"""N-body gravity simulation core."""

from importlib.metadata import PackageNotFoundError, version

from .physics import Body, center_of_mass, find_body, system_energy, total_momentum
from .pairs import MassProductCache, PairIndex
from .integrators import GravityIntegrator, IntervalState
from .collisions import ClosestApproachDetector, merge_collisions
from .analysis import ApproachStatistics
from .simulation import Simulation
from .state_io import load_snapshot, save_snapshot
from .constants import (
    G_REAL,
    C_LIGHT,
    ITERATION_SECONDS,
    ANGLE_THRESHOLD_DEGREES,
)

try:
    __version__ = version("orbitalsim")
except PackageNotFoundError:
    # Fallback when package metadata is unavailable (e.g. running from source)
    __version__ = "0.0.0"

__all__ = [
    "Body",
    "center_of_mass",
    "find_body",
    "system_energy",
    "total_momentum",
    "PairIndex",
    "MassProductCache",
    "GravityIntegrator",
    "IntervalState",
    "ClosestApproachDetector",
    "merge_collisions",
    "ApproachStatistics",
    "Simulation",
    "load_snapshot",
    "save_snapshot",
    "G_REAL",
    "C_LIGHT",
    "ITERATION_SECONDS",
    "ANGLE_THRESHOLD_DEGREES",
    "__version__",
]
