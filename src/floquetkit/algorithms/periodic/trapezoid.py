"""Finite-difference (trapezoid rule) discretization of a periodic orbit.

The unknown is ``u = [u_0, ..., u_{M-1}, T]``. Slices ``0..M-2`` are distinct
points of the orbit and ``u_{M-1}`` duplicates ``u_0``. With
``h_i = T * ds_i``, the defects are

    r_i = u_i - u_{i-1} - h_i / 2 * (F(u_i) + F(u_{i-1})),   i = 0..M-2,

where ``u_{-1}`` stands for ``u_{M-2}``, then ``r_{M-1} = u_{M-1} - u_0`` and a
phase condition.
"""

from typing import Any, Callable, Optional, Sequence

import numpy as np
import scipy.sparse as sp

from floquetkit.algorithms.linalg.base import _LinearSolver
from floquetkit.algorithms.linalg.solvers import DefaultLinearSolver


class TrapezoidProblem:
    """Periodic orbit problem discretized with the trapezoid rule.

    Parameters
    ----------
    F : callable
        Vector field ``F(x, par)``.
    J : callable
        Jacobian of the vector field ``J(x, par)``; dense or sparse.
    M : int
        Number of time slices (the last one repeats the first).
    N : int
        State dimension.
    mesh : sequence of float, optional
        ``M - 1`` step fractions; uniform when omitted. Normalized to sum to one.
    linsolver : :class:`~floquetkit.algorithms.linalg.base._LinearSolver`, optional
        Solver for the shifted systems ``(a0 I + a1 J) x = rhs``.
    phase_reference, phase_normal : ndarray, optional
        Phase condition ``<phase_normal, u_0 - phase_reference> = 0``. When
        omitted, the current first slice and the vector field there are used.
    """

    def __init__(
        self,
        F: Callable[[np.ndarray, Any], np.ndarray],
        J: Callable[[np.ndarray, Any], Any],
        M: int,
        N: int,
        *,
        mesh: Optional[Sequence[float]] = None,
        linsolver: Optional[_LinearSolver] = None,
        phase_reference: Optional[np.ndarray] = None,
        phase_normal: Optional[np.ndarray] = None,
    ) -> None:
        if M < 2:
            raise ValueError("The trapezoid discretization needs at least M=2 slices.")
        if N < 1:
            raise ValueError("N must be positive.")
        if mesh is None:
            mesh = np.full(M - 1, 1.0 / (M - 1))
        mesh = np.asarray(mesh, dtype=float)
        if mesh.shape != (M - 1,) or np.any(mesh <= 0):
            raise ValueError(f"mesh must hold M-1={M - 1} positive step fractions.")
        self.F = F
        self.J = J
        self.M = int(M)
        self.N = int(N)
        self.mesh = mesh / mesh.sum()
        self.linsolver = DefaultLinearSolver() if linsolver is None else linsolver
        self.phase_reference = phase_reference
        self.phase_normal = phase_normal

    @property
    def size(self) -> tuple[int, int]:
        return self.M, self.N

    def step_fraction(self, i: int) -> float:
        return float(self.mesh[i])

    def jacobian_field(self, x: np.ndarray, par: Any):
        """Jacobian of the vector field at one slice."""
        return self.J(x, par)

    def extract_period(self, u: np.ndarray) -> float:
        return float(u[-1])

    def time_slices(self, u: np.ndarray) -> np.ndarray:
        """Return the ``(M, N)`` array of slices (a view on ``u``)."""
        u = np.asarray(u)
        if u.size != self.M * self.N + 1:
            raise ValueError(f"Trapezoid vector of length {u.size} is not M*N + 1 = {self.M * self.N + 1}.")
        return u[:-1].reshape(self.M, self.N)

    def _phase(self, u0: np.ndarray, par: Any) -> tuple[np.ndarray, np.ndarray]:
        reference = u0 if self.phase_reference is None else np.asarray(self.phase_reference, dtype=float)
        normal = np.asarray(self.F(reference, par), dtype=float) if self.phase_normal is None else np.asarray(self.phase_normal, dtype=float)
        return reference, normal

    def residual(self, u: np.ndarray, par: Any) -> np.ndarray:
        uc = self.time_slices(u)
        T = self.extract_period(u)
        M, N = self.M, self.N
        out = np.empty(M * N + 1)
        for i in range(M - 1):
            prev = M - 2 if i == 0 else i - 1
            h = T * self.mesh[i]
            out[i * N:(i + 1) * N] = uc[i] - uc[prev] - h / 2 * (
                np.asarray(self.F(uc[i], par)) + np.asarray(self.F(uc[prev], par))
            )
        out[(M - 1) * N:M * N] = uc[M - 1] - uc[0]
        reference, normal = self._phase(uc[0], par)
        out[-1] = np.dot(normal, uc[0] - reference)
        return out

    def jacobian(self, u: np.ndarray, par: Any) -> sp.csr_matrix:
        """Sparse extended Jacobian of :meth:`residual`, shape ``(M*N + 1, M*N + 1)``."""
        uc = self.time_slices(u)
        T = self.extract_period(u)
        M, N = self.M, self.N
        I = sp.identity(N, format="csr")
        blocks = [[None] * (M + 1) for _ in range(M + 1)]

        def add(i, j, block):
            blocks[i][j] = block if blocks[i][j] is None else blocks[i][j] + block

        for i in range(M - 1):
            prev = M - 2 if i == 0 else i - 1
            h = T * self.mesh[i]
            add(i, i, I - h / 2 * sp.csr_matrix(self.J(uc[i], par)))
            add(i, prev, -(I + h / 2 * sp.csr_matrix(self.J(uc[prev], par))))
            dT = -self.mesh[i] / 2 * (np.asarray(self.F(uc[i], par)) + np.asarray(self.F(uc[prev], par)))
            blocks[i][M] = sp.csr_matrix(dT.reshape(N, 1))

        add(M - 1, M - 1, I)
        add(M - 1, 0, -I)
        blocks[M - 1][M] = sp.csr_matrix((N, 1))
        _, normal = self._phase(uc[0], par)
        blocks[M][0] = sp.csr_matrix(normal.reshape(1, N))
        blocks[M][M] = sp.csr_matrix((1, 1))
        return sp.bmat(blocks, format="csr")
