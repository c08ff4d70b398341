"""Interfaces (adapters) for the Floquet engines.

They turn a periodic orbit into the operator handed to the eigen backend and
turn the raw eigenpairs into sorted Floquet exponents.
"""

from typing import Any, Optional

import numpy as np
from scipy.sparse.linalg import aslinearoperator

from floquetkit.algorithms.eigen.config import check_floquet_options
from floquetkit.algorithms.eigen.types import EigenSolverOutput
from floquetkit.algorithms.floquet.backends import _monodromy_backend_for
from floquetkit.algorithms.floquet.backends.trapezoid import _dense
from floquetkit.algorithms.floquet.config import FloquetConfig
from floquetkit.algorithms.floquet.types import (FloquetResult,
                                                 FloquetWrapper,
                                                 _FloquetProblem)
from floquetkit.algorithms.periodic.trapezoid import TrapezoidProblem
from floquetkit.algorithms.types.core import (_BackendCall,
                                              _FloquetBaseInterface)


def _sort_exponents(values: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(logvals, order)`` with ``order`` sorting ``Re(logvals)`` descending.

    ``Re(log(z)) = log|z|``, so this is the descending-modulus order.
    """
    with np.errstate(divide="ignore"):
        logvals = np.log(np.asarray(values, dtype=np.complex128))
    order = np.argsort(-logvals.real, kind="stable")
    return logvals, order


class _FloquetInterface(
    _FloquetBaseInterface[FloquetConfig, _FloquetProblem, FloquetResult, EigenSolverOutput]
):
    """Adapter producing Floquet problems from periodic orbits."""

    def create_problem(
        self,
        *,
        config: FloquetConfig,
        problem: Any,
        x: np.ndarray,
        par: Any,
        jacobian: Any = None,
        nev: Optional[int] = None,
    ) -> _FloquetProblem:
        self._config = config
        nev = config.nev if nev is None else int(nev)
        if nev < 1:
            raise ValueError(f"nev must be positive, got {nev}")
        return _FloquetProblem(
            wrapper=FloquetWrapper(problem, x, par, jacobian),
            eigsolver=check_floquet_options(config.eigsolver),
            nev=nev,
        )

    def to_backend_inputs(self, problem: _FloquetProblem) -> _BackendCall:
        monodromy = _monodromy_backend_for(problem.wrapper.problem)
        if problem.eigsolver.is_dense:
            operator = monodromy.assemble(problem.wrapper)
        else:
            operator = monodromy.as_operator(problem.wrapper)
        return _BackendCall(args=(operator, problem.nev), kwargs={"config": problem.eigsolver})

    def to_results(self, outputs: EigenSolverOutput, *, problem: _FloquetProblem) -> FloquetResult:
        logvals, order = _sort_exponents(outputs.eigenvalues)
        vectors = np.asarray(outputs.eigenvectors)
        return FloquetResult(
            exponents=logvals[order],
            eigenvectors=vectors[:, order],
            converged=bool(outputs.converged),
            info=outputs.info,
        )


class _SimplifiedFloquetInterface(_FloquetInterface):
    """Use the leading block of the extended trapezoid Jacobian as the monodromy.

    Cheaper than the trapezoid recurrence, and less accurate for very large or
    very small multipliers; good enough to locate bifurcations.
    """

    def to_backend_inputs(self, problem: _FloquetProblem) -> _BackendCall:
        wrapper: FloquetWrapper = problem.wrapper
        if not isinstance(wrapper.problem, TrapezoidProblem):
            raise TypeError(
                f"The simplified Floquet solver only supports TrapezoidProblem, got {type(wrapper.problem).__name__!r}."
            )
        if wrapper.jacobian is None:
            raise ValueError("The simplified Floquet solver needs the precomputed extended Jacobian.")

        M, N = wrapper.problem.size
        n = N * M - N
        block = wrapper.jacobian[:n, :n]
        operator = _dense(block) if problem.eigsolver.is_dense else aslinearoperator(block)
        return _BackendCall(args=(operator, problem.nev), kwargs={"config": problem.eigsolver})
