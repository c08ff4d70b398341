"""Configuration of the Floquet solvers."""

from dataclasses import dataclass, field

from floquetkit.algorithms.eigen.config import DefaultEig, _EigenSolverConfig
from floquetkit.algorithms.types.core import _FloquetBaseConfig


@dataclass(frozen=True)
class FloquetConfig(_FloquetBaseConfig):
    """Configuration for Floquet multiplier computations.

    Parameters
    ----------
    eigsolver : :class:`~floquetkit.algorithms.eigen.config._EigenSolverConfig`, default=DefaultEig()
        Eigensolver family. It is normalized to largest-modulus selection
        before use, so the caller may pass the family's default settings.
        :class:`~floquetkit.algorithms.eigen.config.DefaultEig` forms the
        monodromy matrix explicitly; the iterative families only need its
        action on vectors.
    nev : int, default=10
        Number of Floquet exponents to compute. Capped by the operator
        dimension.
    """

    eigsolver: _EigenSolverConfig = field(default_factory=DefaultEig)
    nev: int = 10

    def _validate(self) -> None:
        if self.nev < 1:
            raise ValueError(f"nev must be positive, got {self.nev}")
