"""Types and dataclasses for the Floquet module."""

from dataclasses import dataclass, field
from typing import Any, Iterator

import numpy as np

from floquetkit.algorithms.eigen.config import _EigenSolverConfig


@dataclass(frozen=True, eq=False)
class FloquetWrapper:
    """Periodic orbit at which the monodromy operator is evaluated.

    Parameters
    ----------
    problem : object
        Discretization (shooting, Poincaré shooting or trapezoid problem).
    x : ndarray
        Orbit vector in the layout of ``problem``. Stored as a read-only copy.
    par : object
        Parameters forwarded to the vector field.
    jacobian : array_like or sparse matrix, optional
        Already assembled Jacobian of the discretized problem at ``x``.
    """

    problem: Any
    x: np.ndarray
    par: Any
    jacobian: Any = None

    def __post_init__(self) -> None:
        x = np.array(self.x, dtype=float)
        x.setflags(write=False)
        object.__setattr__(self, "x", x)


@dataclass
class FloquetResult:
    """Floquet exponents of a periodic orbit, by descending multiplier modulus.

    Attributes
    ----------
    exponents : ndarray of complex
        ``log`` of the Floquet multipliers. ``Re`` is ``log|multiplier|``.
    eigenvectors : ndarray, shape (n, k)
        ``eigenvectors[:, i]`` belongs to ``exponents[i]``.
    converged : bool
        Convergence flag of the eigensolver, passed through unchanged.
    info : dict
        Eigensolver diagnostics.

    Notes
    -----
    The result unpacks as ``exponents, eigenvectors, converged, info``.
    """

    exponents: np.ndarray
    eigenvectors: np.ndarray
    converged: bool
    info: dict[str, Any] = field(default_factory=dict)

    def __iter__(self) -> Iterator[Any]:
        return iter((self.exponents, self.eigenvectors, self.converged, self.info))

    @property
    def multipliers(self) -> np.ndarray:
        return np.exp(self.exponents)

    def n_unstable(self, tol: float = 1e-6) -> int:
        """Number of multipliers with modulus above ``exp(tol)``."""
        return int(np.count_nonzero(self.exponents.real > tol))

    def is_stable(self, tol: float = 1e-6) -> bool:
        return self.n_unstable(tol) == 0


@dataclass(frozen=True, eq=False)
class _FloquetProblem:
    """Problem definition for one Floquet computation.

    Attributes
    ----------
    wrapper : :class:`FloquetWrapper`
        Orbit, parameters and optional Jacobian.
    eigsolver : :class:`~floquetkit.algorithms.eigen.config._EigenSolverConfig`
        Normalized eigensolver configuration.
    nev : int
        Number of exponents requested.
    """

    wrapper: FloquetWrapper
    eigsolver: _EigenSolverConfig
    nev: int
