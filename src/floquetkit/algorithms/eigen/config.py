"""Eigensolver configurations and the Floquet normalization step.

Each solver family is a frozen dataclass carrying a *selection criterion*
(``which``, ARPACK-style codes) and a *comparison key* (``by``) that ranks the
returned eigenvalues. Like most eigensolvers, all families default to
"largest real part". Floquet analysis needs the eigenvalues of largest
modulus: the multipliers that cross the unit circle are not necessarily those
closest to the positive real axis. Use :func:`check_floquet_options` before any
monodromy eigen-computation.
"""

from dataclasses import dataclass, field, replace
from typing import Literal, Optional

import numpy as np

from floquetkit.algorithms.types.core import _FloquetBaseConfig
from floquetkit.algorithms.utils.config import EIG_MAXITER, EIG_TOL, KRYLOV_DIM
from floquetkit.algorithms.utils.exceptions import UnsupportedSolverFamilyError

WhichCode = Literal["LM", "SM", "LR", "SR", "LI", "SI"]
ComparisonKey = Literal["abs", "real", "imag"]

_WHICH_CODES = ("LM", "SM", "LR", "SR", "LI", "SI")
_COMPARISON_KEYS = ("abs", "real", "imag")


@dataclass(frozen=True)
class _EigenSolverConfig(_FloquetBaseConfig):
    """Common fields of every eigensolver family.

    Parameters
    ----------
    which : {'LM', 'SM', 'LR', 'SR', 'LI', 'SI'}, default='LR'
        Which part of the spectrum the solver targets.
    by : {'abs', 'real', 'imag'}, default='real'
        Scalar key used to rank the returned eigenvalues, descending.
    """

    which: WhichCode = "LR"
    by: ComparisonKey = "real"

    def _validate(self) -> None:
        if self.which not in _WHICH_CODES:
            raise ValueError(f"which must be one of {_WHICH_CODES}, got {self.which!r}")
        if self.by not in _COMPARISON_KEYS:
            raise ValueError(f"by must be one of {_COMPARISON_KEYS}, got {self.by!r}")

    @property
    def is_dense(self) -> bool:
        """Whether the family needs an explicit matrix."""
        return False


@dataclass(frozen=True)
class DefaultEig(_EigenSolverConfig):
    """Dense eigensolver (LAPACK through :func:`scipy.linalg.eig`).

    All eigenpairs are computed and the first ``nev`` after ranking are kept.
    """

    @property
    def is_dense(self) -> bool:
        return True


@dataclass(frozen=True)
class EigArpack(_EigenSolverConfig):
    """Implicitly restarted Arnoldi via ARPACK (:func:`scipy.sparse.linalg.eigs`).

    Parameters
    ----------
    tol : float, default=0.0
        Relative accuracy of the Ritz values; ``0`` means machine precision.
    maxiter : int or None, default=None
        Maximum number of Arnoldi update iterations.
    ncv : int or None, default=None
        Number of Lanczos vectors; ARPACK's own default when None.
    v0 : ndarray or None, default=None
        Starting vector.
    """

    tol: float = 0.0
    maxiter: Optional[int] = None
    ncv: Optional[int] = None
    v0: Optional[np.ndarray] = field(default=None, compare=False)

    def _validate(self) -> None:
        super()._validate()
        if self.tol < 0:
            raise ValueError("tol must be non-negative.")
        if self.maxiter is not None and self.maxiter <= 0:
            raise ValueError("maxiter must be positive.")


@dataclass(frozen=True)
class EigArnoldi(_EigenSolverConfig):
    """Krylov-Schur restarted Arnoldi iteration implemented in floquetkit.

    Parameters
    ----------
    tol : float, default=1e-10
        A Ritz pair is converged when its residual is below
        ``tol * max(1, |theta|)``.
    krylovdim : int, default=30
        Dimension of the Krylov subspace built before each restart; raised
        to ``2 * nev + 1`` when smaller.
    maxiter : int, default=300
        Maximum number of restarts.
    seed : int, default=0
        Seed of the random starting vector.
    """

    tol: float = EIG_TOL
    krylovdim: int = KRYLOV_DIM
    maxiter: int = EIG_MAXITER
    seed: int = 0

    def _validate(self) -> None:
        super()._validate()
        if self.tol <= 0:
            raise ValueError("tol must be positive.")
        if self.krylovdim < 2:
            raise ValueError("krylovdim must be at least 2.")
        if self.maxiter <= 0:
            raise ValueError("maxiter must be positive.")


def check_floquet_options(eigsolver: _EigenSolverConfig) -> _EigenSolverConfig:
    """Return a copy of ``eigsolver`` asking for eigenvalues of largest modulus.

    Parameters
    ----------
    eigsolver : :class:`_EigenSolverConfig`
        Configuration of any supported family.

    Returns
    -------
    :class:`_EigenSolverConfig`
        New configuration with ``which='LM'`` and ``by='abs'``. The input is
        left untouched.

    Raises
    ------
    :class:`~floquetkit.algorithms.utils.exceptions.UnsupportedSolverFamilyError`
        If ``eigsolver`` is not one of the known families.
    """
    if isinstance(eigsolver, (DefaultEig, EigArpack, EigArnoldi)):
        return replace(eigsolver, which="LM", by="abs")
    raise UnsupportedSolverFamilyError(
        f"Unsupported eigensolver family {type(eigsolver).__name__!r} for Floquet analysis."
    )
