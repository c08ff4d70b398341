"""Poincaré shooting discretization of a periodic orbit.

The unknown is ``x_bar = [x_bar_0, ..., x_bar_{M-1}]`` where ``x_bar_i`` are
reduced coordinates (dimension ``N - 1``) of a point on section ``i``. The
period is not an unknown: it is the sum of the section return times.
"""

from typing import Any

import numpy as np

from floquetkit.algorithms.periodic.flow import Flow
from floquetkit.algorithms.periodic.sections import HyperplaneSections


class PoincareShootingProblem:
    """Poincaré shooting between ``M`` hyperplane sections.

    Parameters
    ----------
    flow : :class:`~floquetkit.algorithms.periodic.flow.Flow`
        Flow collaborator.
    sections : :class:`~floquetkit.algorithms.periodic.sections.HyperplaneSections`
        Section collaborator. Section ``i`` maps to section ``(i + 1) % M``.
    t_max : float, default=1e3
        Maximum flight time between two sections.
    min_return_time : float, default=1e-4
        Crossings earlier than this are ignored when leaving a section.
    direction : {1, -1, 0}, default=1
        Sign of ``<n, F>`` at the crossings that count.
    """

    def __init__(
        self,
        flow: Flow,
        sections: HyperplaneSections,
        *,
        t_max: float = 1e3,
        min_return_time: float = 1e-4,
        direction: int = 1,
    ) -> None:
        self.flow = flow
        self.section = sections
        self.t_max = float(t_max)
        self.min_return_time = float(min_return_time)
        self.direction = int(direction)

    @property
    def M(self) -> int:
        return self.section.M

    @property
    def N(self) -> int:
        return self.section.N

    def time_slices(self, x_bar: np.ndarray) -> np.ndarray:
        """Return the ``(M, N - 1)`` array of reduced points."""
        x_bar = np.asarray(x_bar)
        if x_bar.size != self.M * (self.N - 1):
            raise ValueError(
                f"Poincaré shooting vector of length {x_bar.size} is not M*(N-1) = {self.M * (self.N - 1)}."
            )
        return x_bar.reshape(self.M, self.N - 1)

    def _to_next_section(self, x: np.ndarray, par: Any, ii: int) -> tuple[float, np.ndarray, np.ndarray]:
        j = (ii + 1) % self.M
        return self.flow.evolve_to_event(
            x,
            par,
            lambda z: self.section.event(z, j),
            t_max=self.t_max,
            t_min=self.min_return_time,
            direction=self.direction,
        )

    def poincare_map(self, x: np.ndarray, par: Any, ii: int) -> tuple[np.ndarray, float]:
        """Flow the ambient point ``x`` of section ``ii`` to the next section.

        Returns
        -------
        tuple
            ``(x_next, return_time)``.
        """
        t, y, _ = self._to_next_section(x, par, ii)
        return y, t

    def diff_poincare_map(self, x: np.ndarray, par: Any, dx: np.ndarray, ii: int) -> np.ndarray:
        """Differential of the return map from section ``ii`` applied to ``dx``.

        With ``Phi`` the STM up to the hitting time and ``n`` the normal of the
        target section, ``dP dx = Phi dx - F(y) <n, Phi dx> / <n, F(y)>``.
        """
        _, y, phi = self._to_next_section(x, par, ii)
        n = self.section.normals[(ii + 1) % self.M]
        f = self.flow.vector_field(y, par)
        out = phi @ np.asarray(dx, dtype=float)
        return out - f * (np.dot(n, out) / np.dot(n, f))

    def residual(self, x_bar: np.ndarray, par: Any) -> np.ndarray:
        """Mismatch ``R_{i+1}(P_i(E_i(x_bar_i))) - x_bar_{i+1}`` for every section."""
        xc = self.time_slices(x_bar)
        out = np.empty_like(xc, dtype=float)
        for i in range(self.M):
            j = (i + 1) % self.M
            y, _ = self.poincare_map(self.section.embed(xc[i], i), par, i)
            out[i] = self.section.retract(y, j) - xc[j]
        return out.ravel()

    def period(self, x_bar: np.ndarray, par: Any) -> float:
        """Sum of the return times between consecutive sections."""
        xc = self.time_slices(x_bar)
        return float(sum(self.poincare_map(self.section.embed(xc[i], i), par, i)[1] for i in range(self.M)))
