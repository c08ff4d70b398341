"""Eigensolver configurations and backends.

>>> from floquetkit.algorithms.eigen import EigArpack, check_floquet_options
>>> check_floquet_options(EigArpack()).which
'LM'
"""

from .backends import _EigenBackend
from .config import (DefaultEig, EigArnoldi, EigArpack, _EigenSolverConfig,
                     check_floquet_options)
from .types import EigenOperator, EigenSolverOutput

__all__ = [
    "DefaultEig",
    "EigArpack",
    "EigArnoldi",
    "check_floquet_options",
    "EigenSolverOutput",
    "EigenOperator",
    "_EigenSolverConfig",
    "_EigenBackend",
]
