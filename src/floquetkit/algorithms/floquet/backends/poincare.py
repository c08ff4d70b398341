"""Monodromy operator of the Poincaré shooting discretization (matrix-free only)."""

import numpy as np

from floquetkit.algorithms.floquet.backends.base import (_MonodromyOperator,
                                                         register_monodromy)
from floquetkit.algorithms.floquet.types import FloquetWrapper
from floquetkit.algorithms.periodic.poincare import PoincareShootingProblem
from floquetkit.algorithms.utils.exceptions import MonodromyNotImplementedError


@register_monodromy(PoincareShootingProblem)
class _PoincareShootingMonodromy(_MonodromyOperator):
    """Composition of the differential return maps, in reduced coordinates."""

    def dimension(self, wrapper: FloquetWrapper) -> int:
        return wrapper.problem.N - 1

    def apply(self, wrapper: FloquetWrapper, dx_bar: np.ndarray) -> np.ndarray:
        psh = wrapper.problem
        section = psh.section
        x_barc = psh.time_slices(wrapper.x)
        outbar = self._check_tangent(dx_bar, x_barc.shape[1]).copy()

        for ii in range(psh.M):
            xc = section.embed(x_barc[ii], ii)
            outc = section.embed_tangent(outbar, ii)
            outc = psh.diff_poincare_map(xc, wrapper.par, outc, ii)
            # outc is tangent to the section the return map lands on
            outbar = section.retract_tangent(outc, (ii + 1) % psh.M)
        return outbar

    def assemble(self, wrapper: FloquetWrapper) -> np.ndarray:
        raise MonodromyNotImplementedError(
            "The dense monodromy matrix is not available for Poincaré shooting. "
            "Please use an iterative eigensolver (EigArpack or EigArnoldi) for the "
            "computation of Floquet coefficients."
        )
