"""Multiple shooting discretization of a periodic orbit.

The unknown is ``x = [x_0, ..., x_{M-1}, T]`` with ``M`` slices of dimension
``N``. Slice ``i`` is flowed for ``ds_i * T``; continuity asks it to land on
slice ``i + 1`` (cyclically). A phase condition removes the time-shift
invariance.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional, Sequence

import numpy as np

from floquetkit.algorithms.periodic.flow import Flow
from floquetkit.utils.log_config import logger


def _normalized_mesh(ds: Optional[Sequence[float]], M: Optional[int]) -> np.ndarray:
    if ds is None:
        if M is None or M < 1:
            raise ValueError("Provide either ds or a positive number of slices M.")
        return np.full(M, 1.0 / M)
    ds = np.asarray(ds, dtype=float)
    if ds.ndim != 1 or ds.size == 0 or np.any(ds <= 0):
        raise ValueError("ds must be a non-empty sequence of positive step fractions.")
    if M is not None and M != ds.size:
        raise ValueError(f"M={M} does not match len(ds)={ds.size}.")
    return ds / ds.sum()


class ShootingProblem:
    """Multiple shooting problem ``x_{i+1} = phi(x_i, ds_i * T)``.

    Parameters
    ----------
    flow : :class:`~floquetkit.algorithms.periodic.flow.Flow`
        Flow collaborator.
    ds : sequence of float, optional
        Time fraction of each slice, normalized to sum to one.
    M : int, optional
        Number of uniform slices when ``ds`` is not given.
    phase_reference, phase_normal : ndarray, optional
        Phase condition ``<phase_normal, x_0 - phase_reference> = 0``. When
        omitted, the current first slice and the vector field there are used.
    n_workers : int, default=1
        Number of threads used to integrate the slices in :meth:`residual`
        and :meth:`jacobian`.
    """

    def __init__(
        self,
        flow: Flow,
        ds: Optional[Sequence[float]] = None,
        *,
        M: Optional[int] = None,
        phase_reference: Optional[np.ndarray] = None,
        phase_normal: Optional[np.ndarray] = None,
        n_workers: int = 1,
    ) -> None:
        self.flow = flow
        self.ds = _normalized_mesh(ds, M)
        self.phase_reference = phase_reference
        self.phase_normal = phase_normal
        self.n_workers = int(n_workers)

    @property
    def M(self) -> int:
        return self.ds.size

    def step_fraction(self, i: int) -> float:
        return float(self.ds[i])

    def state_dimension(self, x: np.ndarray) -> int:
        return (len(x) - 1) // self.M

    def extract_period(self, x: np.ndarray) -> float:
        return float(x[-1])

    def time_slices(self, x: np.ndarray) -> np.ndarray:
        """Return the ``(M, N)`` array of slices (a view on ``x``)."""
        x = np.asarray(x)
        if (len(x) - 1) % self.M:
            raise ValueError(f"Shooting vector of length {len(x)} is not M*N + 1 with M={self.M}.")
        return x[:-1].reshape(self.M, -1)

    def _phase(self, x0: np.ndarray, par: Any) -> tuple[np.ndarray, np.ndarray]:
        reference = x0 if self.phase_reference is None else np.asarray(self.phase_reference, dtype=float)
        normal = self.flow.vector_field(reference, par) if self.phase_normal is None else np.asarray(self.phase_normal, dtype=float)
        return reference, normal

    def _map_slices(self, fn, xc: np.ndarray, T: float) -> list:
        tasks = [(xc[i], self.ds[i] * T) for i in range(self.M)]
        if self.n_workers <= 1 or self.M <= 1:
            return [fn(x, t) for x, t in tasks]
        logger.debug("Integrating %d shooting slices on %d threads", self.M, self.n_workers)
        with ThreadPoolExecutor(max_workers=self.n_workers) as ex:
            return list(ex.map(lambda args: fn(*args), tasks))

    def residual(self, x: np.ndarray, par: Any) -> np.ndarray:
        """Continuity defects followed by the phase condition."""
        xc = self.time_slices(x)
        T = self.extract_period(x)
        ends = self._map_slices(lambda xi, t: self.flow.evolve(xi, par, t), xc, T)
        out = np.empty(len(x))
        N = xc.shape[1]
        for i in range(self.M):
            out[i * N:(i + 1) * N] = ends[i] - xc[(i + 1) % self.M]
        reference, normal = self._phase(xc[0], par)
        out[-1] = np.dot(normal, xc[0] - reference)
        return out

    def jacobian(self, x: np.ndarray, par: Any) -> np.ndarray:
        """Dense Jacobian of :meth:`residual`.

        Diagonal block ``i`` is the flow differential of slice ``i``; the
        cyclic super-diagonal holds ``-I`` (for ``M == 1`` the single diagonal
        block is ``dphi - I``). The last column is the derivative with respect
        to ``T``, the last row the phase condition.
        """
        xc = self.time_slices(x)
        T = self.extract_period(x)
        M, N = xc.shape
        stms = self._map_slices(lambda xi, t: self.flow.stm(xi, par, t), xc, T)

        J = np.zeros((M * N + 1, M * N + 1))
        for i, (end, phi) in enumerate(stms):
            r = i * N
            c = ((i + 1) % M) * N
            J[r:r + N, r:r + N] += phi
            J[r:r + N, c:c + N] -= np.eye(N)
            J[r:r + N, -1] = self.ds[i] * self.flow.vector_field(end, par)
        _, normal = self._phase(xc[0], par)
        J[-1, :N] = normal
        return J
