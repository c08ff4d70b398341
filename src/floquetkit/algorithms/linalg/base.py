"""Base class for the linear-solve collaborators.

A linear solver solves shifted systems ``(a0 * I + a1 * J) x = rhs`` where
``J`` is a dense array, a scipy sparse matrix or a
:class:`scipy.sparse.linalg.LinearOperator`.
"""

from abc import ABC, abstractmethod
from typing import Any

import numpy as np
import scipy.sparse as sp
from scipy.sparse.linalg import LinearOperator, aslinearoperator


class _LinearSolver(ABC):
    """Define the interface of every linear solver."""

    @abstractmethod
    def __call__(self, J: Any, rhs: np.ndarray, *, a0: float = 0.0, a1: float = 1.0) -> tuple[np.ndarray, Any]:
        """Solve ``(a0 * I + a1 * J) x = rhs``.

        Returns
        -------
        tuple
            ``(x, info)``. ``info`` is truthy when the solve succeeded.
        """
        ...


def _shifted_operator(J: Any, a0: float, a1: float) -> LinearOperator:
    """Matrix-free ``a0 * I + a1 * J``."""
    op = aslinearoperator(J)
    n = op.shape[0]

    def matvec(v):
        v = np.ravel(v)
        return a0 * v + a1 * (op @ v)

    return LinearOperator((n, n), matvec=matvec, dtype=np.result_type(op.dtype, float))


def _shifted_matrix(J: Any, a0: float, a1: float):
    """Explicit ``a0 * I + a1 * J`` for dense or sparse ``J``."""
    if sp.issparse(J):
        return (a0 * sp.identity(J.shape[0], format="csc", dtype=J.dtype) + a1 * J).tocsc()
    J = np.asarray(J)
    return a0 * np.eye(J.shape[0], dtype=J.dtype) + a1 * J
