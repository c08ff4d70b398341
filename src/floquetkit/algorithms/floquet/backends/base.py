"""Monodromy operators of the periodic-orbit discretizations.

Each discretization registers one :class:`_MonodromyOperator` subclass. The
Floquet interfaces only ever go through :func:`_monodromy_backend_for`, never
through the concrete problem type.
"""

from abc import ABC, abstractmethod
from typing import Callable, Type

import numpy as np
from scipy.sparse.linalg import LinearOperator

from floquetkit.algorithms.floquet.types import FloquetWrapper
from floquetkit.algorithms.utils.exceptions import DimensionMismatchError

_REGISTRY: dict[type, Type["_MonodromyOperator"]] = {}


class _MonodromyOperator(ABC):
    """Monodromy operator ``M`` of a periodic orbit."""

    @abstractmethod
    def dimension(self, wrapper: FloquetWrapper) -> int:
        """Size of the vectors ``M`` acts on."""

    @abstractmethod
    def apply(self, wrapper: FloquetWrapper, dx: np.ndarray) -> np.ndarray:
        """Matrix-free action ``dx -> M dx``."""

    @abstractmethod
    def assemble(self, wrapper: FloquetWrapper) -> np.ndarray:
        """Dense monodromy matrix."""

    def as_operator(self, wrapper: FloquetWrapper) -> LinearOperator:
        """Wrap :meth:`apply` as a :class:`scipy.sparse.linalg.LinearOperator`."""
        n = self.dimension(wrapper)
        return LinearOperator((n, n), matvec=lambda v: self.apply(wrapper, np.ravel(v)), dtype=np.float64)

    @staticmethod
    def _check_tangent(dx: np.ndarray, n: int) -> np.ndarray:
        dx = np.asarray(dx, dtype=float)
        if dx.shape != (n,):
            raise DimensionMismatchError(
                f"Tangent vector has shape {dx.shape}; the monodromy operator acts on vectors of size {n}. "
                "Make sure the matrix-free eigensolver uses this dimension."
            )
        return dx


def register_monodromy(problem_type: type) -> Callable[[Type[_MonodromyOperator]], Type[_MonodromyOperator]]:
    """Class decorator registering a monodromy operator for ``problem_type``."""

    def decorator(cls: Type[_MonodromyOperator]) -> Type[_MonodromyOperator]:
        _REGISTRY[problem_type] = cls
        return cls

    return decorator


def _monodromy_backend_for(problem: object) -> _MonodromyOperator:
    """Instantiate the monodromy operator registered for ``problem``'s type."""
    for klass in type(problem).__mro__:
        backend = _REGISTRY.get(klass)
        if backend is not None:
            return backend()
    raise TypeError(f"No monodromy operator registered for {type(problem).__name__!r}.")
