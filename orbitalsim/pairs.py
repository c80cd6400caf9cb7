"""Symmetric pair storage.

Every per-pair quantity (force vectors, mass products, approach statistics)
lives in a flat array of ``N * (N - 1) / 2`` slots instead of an ``N x N``
matrix.  :class:`PairIndex` is the only place that turns a pair of body
indices into a slot.
"""
import numpy as np


class PairIndex:
    """Map unordered body index pairs onto dense slots."""

    def __init__(self, num_bodies: int):
        if num_bodies < 0:
            raise ValueError("Body count cannot be negative")
        self.num_bodies = int(num_bodies)
        self.num_slots = self.num_bodies * (self.num_bodies - 1) // 2
        # _sums[k] == 0 + 1 + ... + k
        self._sums = np.zeros(max(self.num_bodies, 1), dtype=np.int64)
        for k in range(1, self.num_bodies):
            self._sums[k] = self._sums[k - 1] + k
        lo, hi = np.triu_indices(self.num_bodies, k=1)
        self.lo = lo.astype(np.int64)
        self.hi = hi.astype(np.int64)

    def slot(self, i: int, j: int) -> int:
        """Return the slot for the pair ``(i, j)`` in either order.

        Raises
        ------
        ValueError
            If ``i == j`` or either index is outside ``[0, num_bodies)``.
        """
        n = self.num_bodies
        if not (0 <= i < n and 0 <= j < n):
            raise ValueError(f"Pair ({i}, {j}) out of range for {n} bodies")
        if i == j:
            raise ValueError(f"Self pair ({i}, {j}) has no slot")
        lo, hi = (i, j) if i < j else (j, i)
        return int(lo * n - self._sums[lo] + hi - lo - 1)

    def pair(self, slot: int) -> tuple[int, int]:
        """Return the ``(lo, hi)`` body indices stored at ``slot``."""
        if not 0 <= slot < self.num_slots:
            raise ValueError(f"Slot {slot} out of range for {self.num_slots} slots")
        return int(self.lo[slot]), int(self.hi[slot])

    def pairs(self):
        """Iterate ``(slot, lo, hi)`` in slot order."""
        for s in range(self.num_slots):
            yield s, int(self.lo[s]), int(self.hi[s])

    def __len__(self):
        return self.num_slots


class MassProductCache:
    """Cached ``mass[lo] * mass[hi]`` for every pair.

    The cache must be recalculated before the next integration step whenever
    a body mass changes; the force magnitude is read straight from it.
    """

    def __init__(self, bodies, pair_index: PairIndex = None):
        self.pair_index = pair_index if pair_index is not None else PairIndex(len(bodies))
        if self.pair_index.num_bodies != len(bodies):
            raise ValueError("Pair index size does not match body count")
        self.values = np.zeros(self.pair_index.num_slots, dtype=np.float64)
        self.recalculate(bodies)

    def recalculate(self, bodies):
        """Refill every slot from the current body masses."""
        masses = np.array([b.mass for b in bodies], dtype=np.float64)
        if len(masses) != self.pair_index.num_bodies:
            raise ValueError("Body count changed since the cache was built")
        self.values = masses[self.pair_index.lo] * masses[self.pair_index.hi]

    def get(self, i: int, j: int) -> float:
        return float(self.values[self.pair_index.slot(i, j)])
