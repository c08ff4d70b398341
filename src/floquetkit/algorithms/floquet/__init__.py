"""Floquet multipliers of periodic orbits.

The :mod:`~floquetkit.algorithms.floquet` package computes the Floquet
exponents (logarithms of the monodromy eigenvalues) of a periodic orbit
discretized by standard shooting, Poincaré shooting or the trapezoid method.

Examples
--------
>>> from floquetkit.algorithms.eigen import EigArpack
>>> from floquetkit.algorithms.floquet import FloquetConfig, FloquetSolver
>>> solver = FloquetSolver(FloquetConfig(eigsolver=EigArpack(), nev=3))
>>> result = solver(problem, x, par)  # doctest: +SKIP
>>> result.n_unstable()  # doctest: +SKIP
0

See Also
--------
:mod:`~floquetkit.algorithms.periodic`
    Discretizations accepted by the solvers.
:mod:`~floquetkit.algorithms.eigen`
    Eigensolver families.
"""

from .backends import _monodromy_backend_for, register_monodromy
from .base import (FloquetSolver, SimplifiedFloquetSolver, compute_floquet,
                   monodromy_matrix, monodromy_operator,
                   trapezoid_eigenvector_slices)
from .config import FloquetConfig
from .diagnostics import (DENSE_MONODROMY, INFINITE_EIGENVALUE,
                          CollectingDiagnostics, LoggingDiagnostics)
from .engine import _FloquetEngine, _SimplifiedFloquetEngine
from .interfaces import _FloquetInterface, _SimplifiedFloquetInterface
from .protocols import DiagnosticsSink
from .types import FloquetResult, FloquetWrapper

__all__ = [
    "FloquetSolver",
    "SimplifiedFloquetSolver",
    "FloquetConfig",
    "FloquetResult",
    "FloquetWrapper",

    "compute_floquet",
    "monodromy_matrix",
    "monodromy_operator",
    "trapezoid_eigenvector_slices",
    "register_monodromy",

    "DiagnosticsSink",
    "LoggingDiagnostics",
    "CollectingDiagnostics",
    "DENSE_MONODROMY",
    "INFINITE_EIGENVALUE",

    "_FloquetEngine",
    "_SimplifiedFloquetEngine",
    "_FloquetInterface",
    "_SimplifiedFloquetInterface",
    "_monodromy_backend_for",
]
