"""Periodic-orbit discretizations and their flow/section collaborators."""

from .flow import Flow
from .poincare import PoincareShootingProblem
from .sections import HyperplaneSections
from .shooting import ShootingProblem
from .trapezoid import TrapezoidProblem

__all__ = [
    "Flow",
    "HyperplaneSections",
    "ShootingProblem",
    "PoincareShootingProblem",
    "TrapezoidProblem",
]
