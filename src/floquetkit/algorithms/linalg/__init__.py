"""Linear algebra module public API.

Exposes the linear-solve collaborators used by the finite-difference
periodic-orbit problems.
"""

from .base import _LinearSolver
from .solvers import DefaultLinearSolver, GMRESLinearSolver

__all__ = [
    "_LinearSolver",
    "DefaultLinearSolver",
    "GMRESLinearSolver",
]
