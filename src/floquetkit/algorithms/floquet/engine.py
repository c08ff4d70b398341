"""Engines orchestrating the monodromy interfaces and the eigen backend."""

from typing import Optional

import numpy as np

from floquetkit.algorithms.eigen.backends import _EigenBackend
from floquetkit.algorithms.eigen.types import EigenSolverOutput
from floquetkit.algorithms.floquet.diagnostics import (DENSE_MONODROMY,
                                                       INFINITE_EIGENVALUE,
                                                       LoggingDiagnostics)
from floquetkit.algorithms.floquet.interfaces import _FloquetInterface
from floquetkit.algorithms.floquet.protocols import DiagnosticsSink
from floquetkit.algorithms.floquet.types import FloquetResult, _FloquetProblem
from floquetkit.algorithms.types.core import _BackendCall, _FloquetBaseEngine
from floquetkit.algorithms.utils.exceptions import EngineError, FloquetError
from floquetkit.utils.log_config import logger


class _FloquetEngine(_FloquetBaseEngine[_FloquetProblem, FloquetResult, EigenSolverOutput]):
    """Compute Floquet exponents with a single eigen backend call.

    Parameters
    ----------
    backend : :class:`~floquetkit.algorithms.eigen.backends._EigenBackend`
        Eigensolver collaborator.
    interface : :class:`~floquetkit.algorithms.floquet.interfaces._FloquetInterface`, optional
        Adapter building the monodromy operator.
    diagnostics : :class:`~floquetkit.algorithms.floquet.protocols.DiagnosticsSink`, optional
        Receiver of non-fatal diagnostics. Defaults to
        :class:`~floquetkit.algorithms.floquet.diagnostics.LoggingDiagnostics`.
    """

    def __init__(
        self,
        *,
        backend: _EigenBackend,
        interface: Optional[_FloquetInterface] = None,
        diagnostics: Optional[DiagnosticsSink] = None,
    ) -> None:
        super().__init__(backend=backend, interface=interface)
        self._diagnostics = LoggingDiagnostics() if diagnostics is None else diagnostics

    @property
    def diagnostics(self) -> DiagnosticsSink:
        return self._diagnostics

    def _before_backend(self, problem: _FloquetProblem, call: _BackendCall) -> None:
        if problem.eigsolver.is_dense:
            self._diagnostics.report(
                DENSE_MONODROMY,
                "The full monodromy matrix is formed explicitly; this is not practical "
                "for large scale problems, consider a matrix-free eigensolver.",
            )

    def _after_backend_success(self, outputs: EigenSolverOutput, *, problem: _FloquetProblem) -> None:
        if np.any(np.isinf(outputs.eigenvalues)):
            self._diagnostics.report(
                INFINITE_EIGENVALUE,
                "Detecting infinite eigenvalue during the computation of Floquet coefficients.",
            )
        logger.debug(
            "Floquet eigen backend returned %d eigenvalues (converged=%s)",
            len(outputs.eigenvalues),
            outputs.converged,
        )

    def _handle_backend_failure(self, exc: Exception, *, problem: _FloquetProblem, call: _BackendCall) -> None:
        if isinstance(exc, (FloquetError, np.linalg.LinAlgError)):
            raise exc
        raise EngineError("Unexpected error during the Floquet eigen computation") from exc


class _SimplifiedFloquetEngine(_FloquetEngine):
    """Floquet engine fed with a block of the extended Jacobian.

    No monodromy matrix is formed, so the dense-cost diagnostic is not emitted.
    """

    def _before_backend(self, problem: _FloquetProblem, call: _BackendCall) -> None:
        logger.debug("Simplified Floquet computation on a %dx%d Jacobian block", *call.args[0].shape)
