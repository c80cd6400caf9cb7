"""numba compiled O(N^2) kernels.

All kernels walk the flat pair arrays produced by
:class:`~orbitalsim.pairs.PairIndex` (``lo[s] < hi[s]`` for slot ``s``) and
write into caller supplied output arrays.
"""

import numba as nb
import numpy as np


@nb.njit
def pair_force_vectors_jit(positions_km, lo, hi, mass_products, active,
                           g_constant, km_sq_to_m_sq, out):
    """Fill ``out[s]`` with the force (N) pulling body ``lo[s]`` toward ``hi[s]``.

    Slots touching an inactive body are zeroed.  Returns ``-1`` on success or
    the first slot whose two bodies share a position, in which case the
    direction is undefined and the remaining slots are left untouched.
    """
    for s in range(lo.shape[0]):
        a = lo[s]
        b = hi[s]
        if not (active[a] and active[b]):
            out[s, 0] = 0.0
            out[s, 1] = 0.0
            out[s, 2] = 0.0
            continue
        dx = positions_km[b, 0] - positions_km[a, 0]
        dy = positions_km[b, 1] - positions_km[a, 1]
        dz = positions_km[b, 2] - positions_km[a, 2]
        dist_sq_km = dx * dx + dy * dy + dz * dz
        if dist_sq_km == 0.0:
            return s
        dist_km = np.sqrt(dist_sq_km)
        newtons = g_constant * mass_products[s] / (dist_sq_km * km_sq_to_m_sq)
        out[s, 0] = (dx / dist_km) * newtons
        out[s, 1] = (dy / dist_km) * newtons
        out[s, 2] = (dz / dist_km) * newtons
    return -1


@nb.njit
def sum_force_vectors_jit(force_vectors, lo, hi, num_bodies, out):
    """Net force on each body: ``+F`` for the low index, ``-F`` for the high."""
    for i in range(num_bodies):
        out[i, 0] = 0.0
        out[i, 1] = 0.0
        out[i, 2] = 0.0
    for s in range(lo.shape[0]):
        a = lo[s]
        b = hi[s]
        for k in range(3):
            out[a, k] += force_vectors[s, k]
            out[b, k] -= force_vectors[s, k]


@nb.njit
def pair_distances_jit(positions_km, previous_km, lo, hi, radii_km, active,
                       swept, center_sq_out, surface_sq_out):
    """Per slot squared centre distance and surface value (km^2).

    ``surface_sq_out[s]`` is the squared centre distance minus the squared
    sum of radii; it is negative for overlapping bodies.  With ``swept`` the
    centre distance used for the surface value is the minimum along both
    bodies' straight-line travel from ``previous_km`` to ``positions_km``.
    Inactive pairs get ``inf`` for both.
    """
    for s in range(lo.shape[0]):
        a = lo[s]
        b = hi[s]
        if not (active[a] and active[b]):
            center_sq_out[s] = np.inf
            surface_sq_out[s] = np.inf
            continue
        ex = positions_km[a, 0] - positions_km[b, 0]
        ey = positions_km[a, 1] - positions_km[b, 1]
        ez = positions_km[a, 2] - positions_km[b, 2]
        end_sq = ex * ex + ey * ey + ez * ez
        center_sq_out[s] = end_sq

        len_sq = end_sq
        if swept:
            sx = previous_km[a, 0] - previous_km[b, 0]
            sy = previous_km[a, 1] - previous_km[b, 1]
            sz = previous_km[a, 2] - previous_km[b, 2]
            # Separation moves linearly from S to E; minimise |S - k (S - E)|
            dx = sx - ex
            dy = sy - ey
            dz = sz - ez
            d_sq = dx * dx + dy * dy + dz * dz
            if d_sq > 0.0:
                k = (sx * dx + sy * dy + sz * dz) / d_sq
                k = min(1.0, max(0.0, k))
                px = sx - k * dx
                py = sy - k * dy
                pz = sz - k * dz
                len_sq = px * px + py * py + pz * pz

        reach = radii_km[a] + radii_km[b]
        surface_sq_out[s] = len_sq - reach * reach
