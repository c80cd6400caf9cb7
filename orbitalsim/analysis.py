"""Closest and furthest approach bookkeeping for every body pair."""
import csv
import os

import numpy as np

from .pairs import PairIndex

_EXTREMES = ("closest", "furthest")


class ApproachStatistics:
    """Track per-pair extreme distances over a run.

    Distances are squared centre-to-centre values in km^2.  Each extreme
    stores the simulated seconds at which it happened and the relative
    velocity in km/s, defined as the velocity of the higher index body minus
    that of the lower one.  Values persist until :meth:`reset`.
    """

    def __init__(self, names, pair_index: PairIndex = None):
        self.names = list(names)
        self.pair_index = pair_index if pair_index is not None else PairIndex(len(self.names))
        if self.pair_index.num_bodies != len(self.names):
            raise ValueError("Pair index size does not match the number of names")
        n_slots = self.pair_index.num_slots
        self.closest_sq = np.empty(n_slots, dtype=np.float64)
        self.closest_seconds = np.empty(n_slots, dtype=np.float64)
        self.closest_velocity = np.empty((n_slots, 3), dtype=np.float64)
        self.furthest_sq = np.empty(n_slots, dtype=np.float64)
        self.furthest_seconds = np.empty(n_slots, dtype=np.float64)
        self.furthest_velocity = np.empty((n_slots, 3), dtype=np.float64)
        self.reset()

    def reset(self):
        self.closest_sq.fill(np.inf)
        self.furthest_sq.fill(-np.inf)
        self.closest_seconds.fill(0.0)
        self.furthest_seconds.fill(0.0)
        self.closest_velocity.fill(0.0)
        self.furthest_velocity.fill(0.0)

    def record(self, i, j, distance_sq, sim_seconds, relative_velocity):
        """Update the pair ``(i, j)`` with a new observation.

        ``relative_velocity`` is the velocity of ``j`` minus the velocity of
        ``i``.  Recording a body against itself does nothing.
        """
        if i == j:
            return
        rel = np.asarray(relative_velocity, dtype=np.float64)
        if i > j:
            i, j = j, i
            rel = -rel
        s = self.pair_index.slot(i, j)
        if distance_sq < self.closest_sq[s]:
            self.closest_sq[s] = distance_sq
            self.closest_seconds[s] = sim_seconds
            self.closest_velocity[s] = rel
        if distance_sq > self.furthest_sq[s]:
            self.furthest_sq[s] = distance_sq
            self.furthest_seconds[s] = sim_seconds
            self.furthest_velocity[s] = rel

    def record_all(self, bodies, center_distances_sq, sim_seconds):
        """Record every pair at once from per-slot squared distances.

        Pairs with a non-finite distance (an excluded body) are skipped.
        """
        lo, hi = self.pair_index.lo, self.pair_index.hi
        d = np.asarray(center_distances_sq, dtype=np.float64)
        vel = np.array([b.vel for b in bodies], dtype=np.float64).reshape(-1, 3)
        rel = vel[hi] - vel[lo]
        finite = np.isfinite(d)

        closer = finite & (d < self.closest_sq)
        self.closest_sq[closer] = d[closer]
        self.closest_seconds[closer] = sim_seconds
        self.closest_velocity[closer] = rel[closer]

        further = finite & (d > self.furthest_sq)
        self.furthest_sq[further] = d[further]
        self.furthest_seconds[further] = sim_seconds
        self.furthest_velocity[further] = rel[further]

    def element(self, i, j):
        """Return the statistics of pair ``(i, j)`` as seen from body ``i``."""
        s = self.pair_index.slot(i, j)
        sign = 1.0 if i < j else -1.0
        return {
            "name": self.names[j],
            "closest_distance_sq": float(self.closest_sq[s]),
            "closest_seconds": float(self.closest_seconds[s]),
            "closest_velocity": (sign * self.closest_velocity[s]).tolist(),
            "furthest_distance_sq": float(self.furthest_sq[s]),
            "furthest_seconds": float(self.furthest_seconds[s]),
            "furthest_velocity": (sign * self.furthest_velocity[s]).tolist(),
        }

    # ------------------------------------------------------------------
    def to_snapshot(self, elapsed_seconds=0.0):
        """Return a JSON-ready dict with, per body, an entry for every other body."""
        n = self.pair_index.num_bodies
        return {
            "elapsed_seconds": float(elapsed_seconds),
            "bodies": [
                {
                    "name": self.names[k],
                    "approaches": [self.element(k, m) for m in range(n) if m != k],
                }
                for k in range(n)
            ],
        }

    @classmethod
    def from_snapshot(cls, snapshot):
        """Rebuild statistics from :meth:`to_snapshot` output.

        Each pair is read back from the lower index body's entry, so values
        round-trip exactly.

        Raises
        ------
        ValueError
            If the snapshot does not have the expected structure.
        """
        try:
            bodies = snapshot["bodies"]
            names = [entry["name"] for entry in bodies]
            stats = cls(names)
            n = len(names)
            for k, entry in enumerate(bodies):
                approaches = entry["approaches"]
                if len(approaches) != n - 1:
                    raise ValueError(
                        f"Body '{names[k]}' has {len(approaches)} entries, expected {n - 1}"
                    )
                others = [m for m in range(n) if m != k]
                for m, item in zip(others, approaches):
                    if item["name"] != names[m]:
                        raise ValueError(
                            f"Entry for '{item['name']}' found where '{names[m]}' was expected"
                        )
                    if m < k:
                        continue
                    s = stats.pair_index.slot(k, m)
                    for extreme in _EXTREMES:
                        getattr(stats, f"{extreme}_sq")[s] = float(item[f"{extreme}_distance_sq"])
                        getattr(stats, f"{extreme}_seconds")[s] = float(item[f"{extreme}_seconds"])
                        velocity = np.asarray(item[f"{extreme}_velocity"], dtype=np.float64)
                        if velocity.shape != (3,):
                            raise ValueError(f"Velocity for '{names[m]}' must have 3 components")
                        getattr(stats, f"{extreme}_velocity")[s] = velocity
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed approach snapshot: {exc!r}") from exc
        return stats

    def export_csv(self, file, delimiter=","):
        """Export one row per pair to a CSV file.

        Parameters
        ----------
        file : str or file-like
            Destination filename or open file object.
        delimiter : str, optional
            Delimiter used between columns (default is ',').
        """
        close = False
        if isinstance(file, (str, bytes, os.PathLike)):
            f = open(file, "w", newline="")
            close = True
        else:
            f = file
        writer = csv.writer(f, delimiter=delimiter)
        writer.writerow([
            "body_a", "body_b",
            "closest_km", "closest_seconds", "closest_speed_kms",
            "furthest_km", "furthest_seconds", "furthest_speed_kms",
        ])
        for s, lo, hi in self.pair_index.pairs():
            writer.writerow([
                self.names[lo],
                self.names[hi],
                np.sqrt(self.closest_sq[s]),
                self.closest_seconds[s],
                np.linalg.norm(self.closest_velocity[s]),
                np.sqrt(self.furthest_sq[s]) if self.furthest_sq[s] >= 0 else -np.inf,
                self.furthest_seconds[s],
                np.linalg.norm(self.furthest_velocity[s]),
            ])
        if close:
            f.close()
