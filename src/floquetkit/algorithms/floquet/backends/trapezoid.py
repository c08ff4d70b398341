"""Monodromy operator of the trapezoid (finite-difference) discretization.

One implicit trapezoid step from slice ``p`` to slice ``i`` maps a tangent
vector through ``(I - h/2 J_i)^{-1} (I + h/2 J_p)``. Composing the ``M - 1``
steps around the cycle ``M-2 -> 0 -> 1 -> ... -> M-2`` gives the monodromy.
"""

from typing import Any, Iterator

import numpy as np
import scipy.sparse as sp
from scipy.linalg import solve

from floquetkit.algorithms.floquet.backends.base import (_MonodromyOperator,
                                                         register_monodromy)
from floquetkit.algorithms.floquet.types import FloquetWrapper
from floquetkit.algorithms.periodic.trapezoid import TrapezoidProblem
from floquetkit.algorithms.utils.exceptions import LinearSolveError


def _dense(J: Any) -> np.ndarray:
    return J.toarray() if sp.issparse(J) else np.asarray(J, dtype=float)


@register_monodromy(TrapezoidProblem)
class _TrapezoidMonodromy(_MonodromyOperator):

    def dimension(self, wrapper: FloquetWrapper) -> int:
        return wrapper.problem.N

    def _steps(self, wrapper: FloquetWrapper) -> Iterator[tuple[float, Any, Any]]:
        """Yield ``(h, J_prev, J_cur)`` for every step of the cycle, in order."""
        pb = wrapper.problem
        par = wrapper.par
        M, _ = pb.size
        T = pb.extract_period(wrapper.x)
        uc = pb.time_slices(wrapper.x)

        yield T * pb.step_fraction(0), pb.jacobian_field(uc[M - 2], par), pb.jacobian_field(uc[0], par)
        for ii in range(1, M - 1):
            yield T * pb.step_fraction(ii), pb.jacobian_field(uc[ii - 1], par), pb.jacobian_field(uc[ii], par)

    @staticmethod
    def _implicit_solve(pb: TrapezoidProblem, J: Any, rhs: np.ndarray, h: float) -> np.ndarray:
        res, info = pb.linsolver(J, rhs, a0=1.0, a1=-h / 2)
        if not info:
            raise LinearSolveError(f"Linear solve of (I - h/2 J) x = v failed (h={h:.3e}).", info=info)
        return np.asarray(res)

    def apply(self, wrapper: FloquetWrapper, dx: np.ndarray) -> np.ndarray:
        pb = wrapper.problem
        out = self._check_tangent(dx, pb.N).copy()
        for h, J_prev, J_cur in self._steps(wrapper):
            out = out + h / 2 * (J_prev @ out)
            out = self._implicit_solve(pb, J_cur, out, h)
        return out

    def eigenvector_slices(self, wrapper: FloquetWrapper, dx: np.ndarray) -> list[np.ndarray]:
        """Run the :meth:`apply` recurrence and keep every intermediate vector.

        Returns
        -------
        list of ndarray
            The ``M - 1`` vectors produced by the steps, followed by a copy of
            the input ``dx``.
        """
        pb = wrapper.problem
        out = self._check_tangent(dx, pb.N).copy()
        out_a = []
        for h, J_prev, J_cur in self._steps(wrapper):
            out = out + h / 2 * (J_prev @ out)
            out = self._implicit_solve(pb, J_cur, out, h)
            out_a.append(out.copy())
        out_a.append(np.array(dx, dtype=float))
        return out_a

    def assemble(self, wrapper: FloquetWrapper) -> np.ndarray:
        N = wrapper.problem.N
        I = np.eye(N)
        mono = None
        for h, J_prev, J_cur in self._steps(wrapper):
            # I - h/2 * J is formed before the solve, do not pre-scale J
            transfer = solve(I - h / 2 * _dense(J_cur), I + h / 2 * _dense(J_prev))
            mono = transfer if mono is None else transfer @ mono
        return mono
