"""Types for the eigen module."""

from dataclasses import dataclass, field
from typing import Any, Union

import numpy as np
from scipy.sparse.linalg import LinearOperator

#: Anything an eigen backend accepts: a dense matrix or a matrix-free operator.
EigenOperator = Union[np.ndarray, LinearOperator]


@dataclass
class EigenSolverOutput:
    """Raw output of one eigensolver run.

    Attributes
    ----------
    eigenvalues : ndarray, shape (k,)
        Eigenvalues in the order chosen by the solver's comparison key.
    eigenvectors : ndarray, shape (n, k)
        Eigenvectors stored column-wise, ``eigenvectors[:, i]`` belongs to
        ``eigenvalues[i]``.
    converged : bool
        Whether every requested pair converged.
    info : dict
        Solver specific diagnostics (iterations, matvecs, residuals, ...).
    """

    eigenvalues: np.ndarray
    eigenvectors: np.ndarray
    converged: bool
    info: dict[str, Any] = field(default_factory=dict)
