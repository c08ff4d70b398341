"""User-facing entry points for Floquet multiplier computations."""

from dataclasses import replace
from typing import Any, Optional, Union

import numpy as np
from scipy.sparse.linalg import LinearOperator

from floquetkit.algorithms.eigen.backends import _EigenBackend
from floquetkit.algorithms.eigen.config import (_EigenSolverConfig,
                                                check_floquet_options)
from floquetkit.algorithms.floquet.backends import _monodromy_backend_for
from floquetkit.algorithms.floquet.backends.trapezoid import \
    _TrapezoidMonodromy
from floquetkit.algorithms.floquet.config import FloquetConfig
from floquetkit.algorithms.floquet.engine import (_FloquetEngine,
                                                  _SimplifiedFloquetEngine)
from floquetkit.algorithms.floquet.interfaces import (
    _FloquetInterface, _SimplifiedFloquetInterface)
from floquetkit.algorithms.floquet.protocols import DiagnosticsSink
from floquetkit.algorithms.floquet.types import FloquetResult, FloquetWrapper
from floquetkit.algorithms.periodic.trapezoid import TrapezoidProblem


class FloquetSolver:
    """Floquet exponents of periodic orbits.

    If the eigensolver is :class:`~floquetkit.algorithms.eigen.config.DefaultEig`,
    the monodromy matrix is formed and all its eigenvalues are computed.
    Otherwise a matrix-free version of the monodromy is used.

    The eigensolver is always switched to largest-modulus selection: with the
    usual "largest real part" default, multipliers crossing the unit circle
    away from the positive real axis would be missed and so would the
    bifurcations they signal.

    Parameters
    ----------
    config : :class:`~floquetkit.algorithms.floquet.config.FloquetConfig`, optional
        Eigensolver and number of exponents. A bare eigensolver configuration
        is accepted as a shortcut for ``FloquetConfig(eigsolver=...)``.
    engine : :class:`~floquetkit.algorithms.floquet.engine._FloquetEngine`, optional
        Engine to use; built by :meth:`with_default_engine` when omitted.

    Examples
    --------
    >>> from floquetkit import EigArpack, FloquetConfig, FloquetSolver
    >>> solver = FloquetSolver(FloquetConfig(eigsolver=EigArpack(), nev=4))
    >>> exponents, vectors, converged, info = solver(problem, x, par)  # doctest: +SKIP
    """

    _engine_cls = _FloquetEngine
    _interface_cls = _FloquetInterface

    def __init__(
        self,
        config: Union[FloquetConfig, _EigenSolverConfig, None] = None,
        *,
        engine: Optional[_FloquetEngine] = None,
        diagnostics: Optional[DiagnosticsSink] = None,
    ) -> None:
        if config is None:
            config = FloquetConfig()
        elif isinstance(config, _EigenSolverConfig):
            config = FloquetConfig(eigsolver=config)
        self._config = replace(config, eigsolver=check_floquet_options(config.eigsolver))
        self._engine = self._build_engine(diagnostics) if engine is None else engine

    @classmethod
    def with_default_engine(
        cls,
        *,
        config: Optional[FloquetConfig] = None,
        diagnostics: Optional[DiagnosticsSink] = None,
    ) -> "FloquetSolver":
        return cls(config, engine=cls._build_engine(diagnostics))

    @classmethod
    def _build_engine(cls, diagnostics: Optional[DiagnosticsSink]) -> _FloquetEngine:
        return cls._engine_cls(
            backend=_EigenBackend(),
            interface=cls._interface_cls(),
            diagnostics=diagnostics,
        )

    @property
    def config(self) -> FloquetConfig:
        return self._config

    @property
    def eigsolver(self) -> _EigenSolverConfig:
        return self._config.eigsolver

    @property
    def diagnostics(self) -> DiagnosticsSink:
        return self._engine.diagnostics

    def compute(
        self,
        problem: Any,
        x: np.ndarray,
        par: Any,
        *,
        nev: Optional[int] = None,
        jacobian: Any = None,
    ) -> FloquetResult:
        """Compute the Floquet exponents of the orbit ``x``.

        Parameters
        ----------
        problem : object
            A :class:`~floquetkit.algorithms.periodic.ShootingProblem`,
            :class:`~floquetkit.algorithms.periodic.PoincareShootingProblem` or
            :class:`~floquetkit.algorithms.periodic.TrapezoidProblem`.
        x : ndarray
            Orbit vector in the layout of ``problem``.
        par : object
            Parameters of the vector field.
        nev : int, optional
            Number of exponents; defaults to ``config.nev``.
        jacobian : array_like or sparse matrix, optional
            Jacobian of ``problem`` at ``x`` when already available.

        Returns
        -------
        :class:`~floquetkit.algorithms.floquet.types.FloquetResult`
            Exponents sorted by descending real part, with aligned
            eigenvectors.
        """
        interface = self._engine._get_interface()
        fl_problem = interface.create_problem(
            config=self._config,
            problem=problem,
            x=x,
            par=par,
            jacobian=jacobian,
            nev=nev,
        )
        return self._engine.solve(fl_problem)

    __call__ = compute


class SimplifiedFloquetSolver(FloquetSolver):
    """Quick Floquet estimate for :class:`~floquetkit.algorithms.periodic.TrapezoidProblem`.

    The leading ``(N*M - N) x (N*M - N)`` block of the extended Jacobian stands
    in for the monodromy operator, so ``jacobian`` is required. The estimate
    is not numerically precise for large or small Floquet exponents but
    allows bifurcations to be detected.
    """

    _engine_cls = _SimplifiedFloquetEngine
    _interface_cls = _SimplifiedFloquetInterface


def compute_floquet(
    problem: Any,
    x: np.ndarray,
    par: Any,
    *,
    eigsolver: Optional[_EigenSolverConfig] = None,
    nev: int = 10,
    jacobian: Any = None,
    diagnostics: Optional[DiagnosticsSink] = None,
) -> FloquetResult:
    """Functional shortcut for ``FloquetSolver(...)(problem, x, par)``."""
    config = FloquetConfig(nev=nev) if eigsolver is None else FloquetConfig(eigsolver=eigsolver, nev=nev)
    return FloquetSolver(config, diagnostics=diagnostics)(problem, x, par, jacobian=jacobian)


def monodromy_matrix(problem: Any, x: np.ndarray, par: Any, *, jacobian: Any = None) -> np.ndarray:
    """Dense monodromy matrix of the orbit ``x``."""
    return _monodromy_backend_for(problem).assemble(FloquetWrapper(problem, x, par, jacobian))


def monodromy_operator(problem: Any, x: np.ndarray, par: Any) -> LinearOperator:
    """Matrix-free monodromy operator of the orbit ``x``."""
    return _monodromy_backend_for(problem).as_operator(FloquetWrapper(problem, x, par))


def trapezoid_eigenvector_slices(problem: TrapezoidProblem, u: np.ndarray, par: Any, dx: np.ndarray) -> list[np.ndarray]:
    """Express the monodromy eigenvector ``dx`` at every slice of a trapezoid orbit.

    See :meth:`~floquetkit.algorithms.floquet.backends.trapezoid._TrapezoidMonodromy.eigenvector_slices`.
    """
    return _TrapezoidMonodromy().eigenvector_slices(FloquetWrapper(problem, u, par), dx)
