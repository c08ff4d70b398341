"""Krylov-Schur restarted Arnoldi iteration for real matrix-free operators.

The factorization ``A V_m = V_m H_m + v_{m+1} b^T`` is expanded with two
passes of modified Gram-Schmidt per column (numba kernel). Ritz pairs of
``H_m`` are accepted when ``|b^T y|`` is small. Otherwise the real Schur form
of ``H_m`` is reordered so that the wanted Ritz values lead, the unwanted
part is purged and the factorization is expanded again from the kept Schur
vectors. Leading Schur vectors whose coupling ``b`` is negligible are locked
by zeroing that coupling.

References
----------
Stewart, G. W. (2002). "A Krylov-Schur algorithm for large eigenproblems",
SIAM J. Matrix Anal. Appl. 23(3), 601-614.

Saad, Y. (2011). "Numerical Methods for Large Eigenvalue Problems", 2nd ed.,
SIAM, chapter 6.
"""

from typing import Callable

import numpy as np
from numba import njit
from scipy.linalg import eig, eigvals, schur

from floquetkit.algorithms.utils.config import FASTMATH
from floquetkit.utils.log_config import logger

_BREAKDOWN_TOL = 1e-13
_TIE_TOL = 1e-8


@njit(fastmath=FASTMATH, cache=False)
def _orthogonalize(V: np.ndarray, w: np.ndarray, j: int):
    """Orthogonalize ``w`` against the first ``j + 1`` columns of ``V``.

    Parameters
    ----------
    V : numpy.ndarray
        Basis array of shape ``(n, m + 1)``; columns ``0..j`` are orthonormal.
    w : numpy.ndarray
        Candidate vector, overwritten in place.
    j : int
        Index of the last basis column in use.

    Returns
    -------
    tuple
        ``(w, h)`` with ``h[:j+1]`` the projection coefficients and
        ``h[j+1]`` the norm of the orthogonalized ``w``.
    """
    n = V.shape[0]
    h = np.zeros(j + 2)
    for _ in range(2):
        for i in range(j + 1):
            c = 0.0
            for k in range(n):
                c += V[k, i] * w[k]
            for k in range(n):
                w[k] -= c * V[k, i]
            h[i] += c
    nrm = 0.0
    for k in range(n):
        nrm += w[k] * w[k]
    h[j + 1] = np.sqrt(nrm)
    return w, h


def _random_direction(V: np.ndarray, j: int, rng: np.random.Generator) -> np.ndarray:
    """Unit vector orthogonal to columns ``0..j`` of ``V``, or zero if they span the space."""
    n = V.shape[0]
    if j + 1 >= n:
        return np.zeros(n)
    r, h = _orthogonalize(V, rng.standard_normal(n), j)
    if h[j + 1] <= _BREAKDOWN_TOL:
        return np.zeros(n)
    return r / h[j + 1]


def _expand(
    matvec: Callable[[np.ndarray], np.ndarray],
    V: np.ndarray,
    H: np.ndarray,
    start: int,
    m: int,
    rng: np.random.Generator,
) -> int:
    """Expand the factorization in place from ``start`` to ``m`` columns.

    On entry ``V[:, :start+1]`` is orthonormal and
    ``A V[:, :start] = V[:, :start+1] H[:start+1, :start]``. On breakdown the
    basis continues from a random orthogonal direction with a zero coupling,
    so the relation keeps holding.

    Returns
    -------
    int
        Number of operator applications.
    """
    n = V.shape[0]
    for j in range(start, m):
        w = np.array(matvec(V[:, j]), dtype=np.float64).reshape(n)
        w, h = _orthogonalize(V, w, j)
        H[: j + 2, j] = h
        scale = max(1.0, float(np.linalg.norm(h[: j + 1])))
        if h[j + 1] > _BREAKDOWN_TOL * scale:
            V[:, j + 1] = w / h[j + 1]
        else:
            H[j + 1, j] = 0.0
            V[:, j + 1] = _random_direction(V, j, rng)
    return m - start


_SELECTION = {
    "LM": lambda z: -np.abs(z),
    "SM": np.abs,
    "LR": lambda z: -np.real(z),
    "SR": np.real,
    "LI": lambda z: -np.imag(z),
    "SI": np.imag,
}


def _selection_order(values: np.ndarray, which: str) -> np.ndarray:
    """Indices of ``values`` ordered by the ARPACK-style criterion ``which``."""
    return np.argsort(_SELECTION[which](values), kind="stable")


def _keep_count(sdim: int, T: np.ndarray, m: int) -> int:
    """Clamp ``sdim`` to ``[1, m-1]`` without splitting a 2x2 Schur block."""
    k = min(max(sdim, 1), m - 1)
    if 0 < k < m and T[k, k - 1] != 0.0:
        k = k + 1 if k + 1 < m else k - 1
    return max(k, 1)


def _krylov_schur_restart(
    V: np.ndarray,
    H: np.ndarray,
    m: int,
    keep: int,
    *,
    which: str,
    tol: float,
    rng: np.random.Generator,
):
    """Truncate the factorization to its ``keep`` wanted Schur directions.

    Returns
    -------
    tuple
        ``(k, locked)``: number of kept columns and of locked leading Schur
        vectors.
    """
    key = _SELECTION[which]
    keys = np.sort(key(eigvals(H[:m, :m])))
    k = keep
    # never separate (numerically) equal keys, e.g. the two halves of a conjugate pair
    while k < m - 1 and keys[k] - keys[k - 1] <= _TIE_TOL * max(1.0, abs(keys[k])):
        k += 1
    cut = 0.5 * (keys[k - 1] + keys[k])

    def select(re, im=0.0):
        return bool(key(complex(re, im)) < cut)

    T, Z, sdim = schur(H[:m, :m], output="real", sort=select)
    k = _keep_count(int(sdim), T, m)

    b = H[m, :m] @ Z[:, :k]
    locked = 0
    while locked < k and abs(b[locked]) <= tol * max(1.0, abs(T[locked, locked])):
        locked += 1
    if 0 < locked < k and T[locked, locked - 1] != 0.0:
        locked -= 1
    b[:locked] = 0.0

    residual_vector = V[:, m].copy()
    V[:, :k] = V[:, :m] @ Z[:, :k]
    V[:, k:] = 0.0
    if np.linalg.norm(residual_vector) == 0.0:
        residual_vector = _random_direction(V, k - 1, rng)
    V[:, k] = residual_vector

    H[:] = 0.0
    H[:k, :k] = T[:k, :k]
    H[k, :k] = b
    return k, locked


def _restarted_arnoldi(
    matvec: Callable[[np.ndarray], np.ndarray],
    n: int,
    nev: int,
    *,
    which: str,
    tol: float,
    krylovdim: int,
    maxiter: int,
    seed: int,
):
    """Run the Krylov-Schur iteration.

    Returns
    -------
    tuple
        ``(values, vectors, converged, info)`` for the ``nev`` wanted pairs,
        in the order given by ``which``. ``converged`` is False when
        ``maxiter`` restarts were not enough; the last Ritz pairs are returned.
    """
    m = min(max(krylovdim, 2 * nev + 1), n)
    keep = max(min(nev + (m - nev) // 2, m - 1), 1)
    rng = np.random.default_rng(seed)

    V = np.zeros((n, m + 1))
    H = np.zeros((m + 1, m))
    v0 = rng.standard_normal(n)
    V[:, 0] = v0 / np.linalg.norm(v0)

    start = 0
    locked = 0
    matvecs = 0
    converged = False
    for it in range(1, maxiter + 1):
        matvecs += _expand(matvec, V, H, start, m, rng)

        theta, Y = eig(H[:m, :m])
        wanted = _selection_order(theta, which)[:nev]
        values = theta[wanted]
        vectors = V[:, :m] @ Y[:, wanted]
        residuals = np.abs(H[m, :m] @ Y[:, wanted]) * np.linalg.norm(V[:, m])
        accepted = residuals <= tol * np.maximum(1.0, np.abs(values))

        logger.debug(
            "Krylov-Schur restart %d: %d/%d Ritz pairs converged, %d locked (max residual %.3e)",
            it,
            int(np.count_nonzero(accepted)),
            nev,
            locked,
            float(residuals.max()) if residuals.size else 0.0,
        )

        if np.all(accepted):
            converged = True
            break

        start, locked = _krylov_schur_restart(V, H, m, keep, which=which, tol=tol, rng=rng)

    vectors = vectors / np.linalg.norm(vectors, axis=0)
    info = {"iterations": it, "matvecs": matvecs, "residuals": residuals, "locked": locked}
    return values, vectors, converged, info
