""" Public API for the :mod:`~floquetkit.algorithms` package.
"""

from .eigen.config import DefaultEig, EigArnoldi, EigArpack
from .floquet.base import (FloquetSolver, SimplifiedFloquetSolver,
                           compute_floquet)
from .floquet.config import FloquetConfig
from .floquet.types import FloquetResult
from .linalg.solvers import DefaultLinearSolver, GMRESLinearSolver
from .periodic.flow import Flow
from .periodic.poincare import PoincareShootingProblem
from .periodic.sections import HyperplaneSections
from .periodic.shooting import ShootingProblem
from .periodic.trapezoid import TrapezoidProblem

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
]
