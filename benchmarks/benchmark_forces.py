import time
import numpy as np

from orbitalsim.constants import G_REAL, KM_SQ_TO_M_SQ
from orbitalsim.jit import pair_force_vectors_jit, sum_force_vectors_jit
from orbitalsim.pairs import PairIndex


def net_forces_numpy(positions_km, masses, g_constant=G_REAL):
    """Dense N x N reference for the pairwise kernels."""
    n = len(masses)
    if n == 0:
        return np.zeros((0, 3), dtype=np.float64)
    forces = np.zeros((n, 3), dtype=np.float64)
    for i in range(n):
        r_vec = positions_km - positions_km[i]
        dist_sq = np.einsum("ij,ij->i", r_vec, r_vec)
        dist_sq[i] = np.inf
        newtons = g_constant * masses[i] * masses / (dist_sq * KM_SQ_TO_M_SQ)
        forces[i] = np.sum(r_vec * (newtons / np.sqrt(dist_sq))[:, None], axis=0)
    return forces


def net_forces_jit(positions_km, masses, index, g_constant=G_REAL):
    products = masses[index.lo] * masses[index.hi]
    active = np.ones(len(masses), dtype=bool)
    vectors = np.zeros((index.num_slots, 3), dtype=np.float64)
    sums = np.zeros((len(masses), 3), dtype=np.float64)
    pair_force_vectors_jit(positions_km, index.lo, index.hi, products, active,
                           g_constant, KM_SQ_TO_M_SQ, vectors)
    sum_force_vectors_jit(vectors, index.lo, index.hi, len(masses), sums)
    return sums


if __name__ == "__main__":
    np.random.seed(0)
    N = 1500  # >1k bodies
    positions = np.random.random((N, 3)) * 1e6
    masses = (np.random.random(N) + 1.0) * 1e22
    index = PairIndex(N)

    # warm up JIT
    net_forces_jit(positions[:3], masses[:3], PairIndex(3))

    t0 = time.time()
    baseline = net_forces_numpy(positions, masses)
    t1 = time.time()
    accelerated = net_forces_jit(positions, masses, index)
    t2 = time.time()

    assert np.allclose(baseline, accelerated)
    print(f"NumPy loop : {t1 - t0:.3f}s")
    print(f"Numba pairs: {t2 - t1:.3f}s")
    if t2 - t1 > 0:
        print(f"Speedup    : {(t1 - t0) / (t2 - t1):.1f}x")
