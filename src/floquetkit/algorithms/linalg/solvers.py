"""Concrete linear solvers: direct factorization and GMRES."""

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
import scipy.sparse as sp
from scipy.linalg import solve
from scipy.sparse.linalg import LinearOperator, gmres, spsolve

from floquetkit.algorithms.linalg.base import (_LinearSolver,
                                               _shifted_matrix,
                                               _shifted_operator)
from floquetkit.algorithms.utils.config import (LINSOLVE_MAXITER,
                                                LINSOLVE_RESTART,
                                                LINSOLVE_RTOL)


class DefaultLinearSolver(_LinearSolver):
    """Direct solve: LAPACK for dense ``J``, SuperLU for sparse ``J``.

    A singular dense system raises :class:`numpy.linalg.LinAlgError`, which is
    propagated to the caller.
    """

    def __call__(self, J: Any, rhs: np.ndarray, *, a0: float = 0.0, a1: float = 1.0) -> tuple[np.ndarray, bool]:
        if isinstance(J, LinearOperator):
            raise TypeError("DefaultLinearSolver needs an explicit matrix; use GMRESLinearSolver for operators.")
        A = _shifted_matrix(J, a0, a1)
        if sp.issparse(A):
            x = spsolve(A, rhs)
            return np.asarray(x), bool(np.all(np.isfinite(x)))
        return solve(A, rhs), True


@dataclass
class GMRESLinearSolver(_LinearSolver):
    """Restarted GMRES on the shifted operator.

    Parameters
    ----------
    rtol : float, default=1e-10
        Relative residual tolerance.
    restart : int, default=50
        Krylov dimension between restarts.
    maxiter : int, default=200
        Maximum number of restart cycles.
    x0 : ndarray or None, default=None
        Initial guess.
    """

    rtol: float = LINSOLVE_RTOL
    restart: int = LINSOLVE_RESTART
    maxiter: int = LINSOLVE_MAXITER
    x0: Optional[np.ndarray] = None

    def __call__(self, J: Any, rhs: np.ndarray, *, a0: float = 0.0, a1: float = 1.0) -> tuple[np.ndarray, bool]:
        A = _shifted_operator(J, a0, a1)
        x, code = gmres(A, rhs, x0=self.x0, rtol=self.rtol, atol=0.0,
                        restart=self.restart, maxiter=self.maxiter)
        return x, code == 0
