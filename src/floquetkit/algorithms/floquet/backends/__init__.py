"""Monodromy operators, one per periodic-orbit discretization.

Importing this package registers every operator with
:func:`~floquetkit.algorithms.floquet.backends.base._monodromy_backend_for`.
"""

from .base import _monodromy_backend_for, _MonodromyOperator, register_monodromy
from .poincare import _PoincareShootingMonodromy
from .shooting import _ShootingMonodromy
from .trapezoid import _TrapezoidMonodromy

__all__ = [
    "_MonodromyOperator",
    "_monodromy_backend_for",
    "register_monodromy",
    "_ShootingMonodromy",
    "_PoincareShootingMonodromy",
    "_TrapezoidMonodromy",
]
