"""Floquet multipliers of periodic orbits of ODEs."""

from .algorithms import (DefaultEig, DefaultLinearSolver, EigArnoldi,
                         EigArpack, Flow, FloquetConfig, FloquetResult,
                         FloquetSolver, GMRESLinearSolver, HyperplaneSections,
                         PoincareShootingProblem, ShootingProblem,
                         SimplifiedFloquetSolver, TrapezoidProblem,
                         compute_floquet)
from .algorithms.utils.exceptions import (BackendError,
                                          DimensionMismatchError, EngineError,
                                          FloquetError, LinearSolveError,
                                          MonodromyNotImplementedError,
                                          UnsupportedSolverFamilyError)

__version__ = "0.1.0"

__all__ = [
    "DefaultEig",
    "EigArpack",
    "EigArnoldi",
    "FloquetSolver",
    "SimplifiedFloquetSolver",
    "FloquetConfig",
    "FloquetResult",
    "compute_floquet",
    "DefaultLinearSolver",
    "GMRESLinearSolver",
    "Flow",
    "HyperplaneSections",
    "ShootingProblem",
    "PoincareShootingProblem",
    "TrapezoidProblem",

    "FloquetError",
    "BackendError",
    "EngineError",
    "LinearSolveError",
    "UnsupportedSolverFamilyError",
    "DimensionMismatchError",
    "MonodromyNotImplementedError",
]
