"""Eigensolver backends.

:class:`_EigenBackend` is the collaborator used by the Floquet engines: one
``run(operator, nev, config=...)`` call returns an
:class:`~floquetkit.algorithms.eigen.types.EigenSolverOutput` whose pairs are
ranked by the configuration's comparison key.
"""

import numpy as np
from scipy.linalg import eig
from scipy.sparse.linalg import (ArpackNoConvergence, LinearOperator,
                                 aslinearoperator, eigs)

from floquetkit.algorithms.eigen.arnoldi import (_restarted_arnoldi,
                                                 _selection_order)
from floquetkit.algorithms.eigen.config import (DefaultEig, EigArnoldi,
                                                EigArpack, _EigenSolverConfig)
from floquetkit.algorithms.eigen.types import EigenOperator, EigenSolverOutput
from floquetkit.algorithms.types.core import _FloquetBaseBackend
from floquetkit.algorithms.utils.exceptions import UnsupportedSolverFamilyError
from floquetkit.utils.log_config import logger

_KEYS = {"abs": np.abs, "real": np.real, "imag": np.imag}


def _rank(values: np.ndarray, vectors: np.ndarray, by: str) -> tuple[np.ndarray, np.ndarray]:
    """Sort eigenpairs by descending ``by`` key, keeping pairs aligned."""
    order = np.argsort(-_KEYS[by](values), kind="stable")
    return values[order], vectors[:, order]


def _materialize(operator: EigenOperator) -> np.ndarray:
    """Return ``operator`` as a dense array, one matvec per column if needed."""
    if isinstance(operator, np.ndarray):
        return operator
    n = operator.shape[1]
    return np.asarray(operator.matmat(np.eye(n)))


def _solve_dense(operator: EigenOperator, nev: int, config: DefaultEig) -> EigenSolverOutput:
    A = _materialize(operator)
    values, vectors = eig(A)
    keep = _selection_order(values, config.which)[:nev]
    values, vectors = _rank(values[keep], vectors[:, keep], config.by)
    return EigenSolverOutput(values, vectors, True, {"method": "dense", "n": A.shape[0]})


def _solve_arpack(operator: EigenOperator, nev: int, config: EigArpack) -> EigenSolverOutput:
    n = operator.shape[0]
    if nev >= n - 1:
        # ARPACK requires nev < n - 1.
        logger.debug("ARPACK cannot return %d of %d eigenvalues; solving densely.", nev, n)
        out = _solve_dense(operator, nev, DefaultEig(which=config.which, by=config.by))
        out.info["method"] = "arpack-dense-fallback"
        return out

    try:
        values, vectors = eigs(
            aslinearoperator(operator),
            k=nev,
            which=config.which,
            tol=config.tol,
            maxiter=config.maxiter,
            ncv=config.ncv,
            v0=config.v0,
        )
        converged = True
        info = {"method": "arpack", "nconv": int(values.size)}
    except ArpackNoConvergence as exc:
        logger.debug("ARPACK did not converge: %s", exc)
        values, vectors = exc.eigenvalues, exc.eigenvectors
        converged = False
        info = {"method": "arpack", "nconv": int(values.size), "message": str(exc)}

    values, vectors = _rank(np.asarray(values), np.asarray(vectors), config.by)
    return EigenSolverOutput(values, vectors, converged, info)


def _solve_arnoldi(operator: EigenOperator, nev: int, config: EigArnoldi) -> EigenSolverOutput:
    n = operator.shape[0]
    matvec = operator.__matmul__ if isinstance(operator, np.ndarray) else operator.matvec
    values, vectors, converged, info = _restarted_arnoldi(
        matvec,
        n,
        min(nev, n),
        which=config.which,
        tol=config.tol,
        krylovdim=config.krylovdim,
        maxiter=config.maxiter,
        seed=config.seed,
    )
    info["method"] = "arnoldi"
    values, vectors = _rank(values, vectors, config.by)
    return EigenSolverOutput(values, vectors, converged, info)


_SOLVERS = {
    DefaultEig: _solve_dense,
    EigArpack: _solve_arpack,
    EigArnoldi: _solve_arnoldi,
}


class _EigenBackend(_FloquetBaseBackend):
    """Dispatch an eigenproblem to the routine of the configured family."""

    def run(self, operator: EigenOperator, nev: int, *, config: _EigenSolverConfig) -> EigenSolverOutput:
        """Compute ``nev`` eigenpairs of ``operator``.

        Parameters
        ----------
        operator : ndarray or :class:`scipy.sparse.linalg.LinearOperator`
            Square operator. Dense families materialize matrix-free input.
        nev : int
            Number of eigenpairs requested.
        config : :class:`~floquetkit.algorithms.eigen.config._EigenSolverConfig`
            Solver family and its settings.

        Returns
        -------
        :class:`~floquetkit.algorithms.eigen.types.EigenSolverOutput`
        """
        for family in type(config).__mro__:
            solver = _SOLVERS.get(family)
            if solver is not None:
                break
        else:
            raise UnsupportedSolverFamilyError(
                f"No eigen backend registered for {type(config).__name__!r}."
            )

        if not isinstance(operator, (np.ndarray, LinearOperator)):
            operator = aslinearoperator(operator)
        logger.debug("Running %s eigen backend for %d eigenvalues of a %dx%d operator",
                     type(config).__name__, nev, operator.shape[0], operator.shape[1])
        return solver(operator, nev, config)
