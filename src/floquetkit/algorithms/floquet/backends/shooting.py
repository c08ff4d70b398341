"""Monodromy operator of the multiple shooting discretization."""

import numpy as np
import scipy.sparse as sp
from numba import njit

from floquetkit.algorithms.floquet.backends.base import (_MonodromyOperator,
                                                         register_monodromy)
from floquetkit.algorithms.floquet.types import FloquetWrapper
from floquetkit.algorithms.periodic.shooting import ShootingProblem
from floquetkit.algorithms.utils.config import FASTMATH
from floquetkit.utils.log_config import logger


@njit(fastmath=FASTMATH, cache=False)
def _ordered_block_product(blocks: np.ndarray) -> np.ndarray:
    """Return ``blocks[M-1] @ ... @ blocks[1] @ blocks[0]``.

    Parameters
    ----------
    blocks : numpy.ndarray
        Array of shape ``(M, N, N)``.
    """
    mono = blocks[0].copy()
    for ii in range(1, blocks.shape[0]):
        mono = blocks[ii] @ mono
    return mono


@register_monodromy(ShootingProblem)
class _ShootingMonodromy(_MonodromyOperator):
    """Monodromy of ``x = [x_0, ..., x_{M-1}, T]``: composition of slice differentials."""

    def dimension(self, wrapper: FloquetWrapper) -> int:
        return wrapper.problem.state_dimension(wrapper.x)

    def apply(self, wrapper: FloquetWrapper, dx: np.ndarray) -> np.ndarray:
        sh = wrapper.problem
        xc = sh.time_slices(wrapper.x)
        T = sh.extract_period(wrapper.x)
        out = self._check_tangent(dx, xc.shape[1]).copy()
        for ii in range(sh.M):
            out = sh.flow.differential_flow(xc[ii], wrapper.par, out, sh.step_fraction(ii) * T)
        return out

    def assemble(self, wrapper: FloquetWrapper) -> np.ndarray:
        if wrapper.jacobian is not None:
            return self._assemble_from_jacobian(wrapper)

        sh = wrapper.problem
        xc = sh.time_slices(wrapper.x)
        T = sh.extract_period(wrapper.x)
        N = xc.shape[1]
        logger.debug("Assembling %dx%d shooting monodromy column by column", N, N)

        mono = np.zeros((N, N))
        du = np.zeros(N)
        for ii in range(N):
            du[ii] = 1.0
            # the slice flows compose into the full-period flow from slice 0
            mono[:, ii] = sh.flow.differential_flow(xc[0], wrapper.par, du, T)
            du[ii] = 0.0
        return mono

    def _assemble_from_jacobian(self, wrapper: FloquetWrapper) -> np.ndarray:
        J = wrapper.jacobian
        M = wrapper.problem.M
        N = wrapper.problem.state_dimension(wrapper.x)
        logger.debug("Assembling shooting monodromy from %d Jacobian blocks", M)

        blocks = np.empty((M, N, N))
        for ii in range(M):
            r = ii * N
            block = J[r:r + N, r:r + N]
            blocks[ii] = block.toarray() if sp.issparse(block) else np.asarray(block)
        if M == 1:
            # a single slice stores dphi - I on its diagonal
            blocks[0] += np.eye(N)
        return _ordered_block_product(blocks)
