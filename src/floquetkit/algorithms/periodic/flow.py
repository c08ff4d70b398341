"""Flow of an autonomous vector field and of its variational equations.

This is the flow collaborator of the shooting discretizations. Trajectories
and state transition matrices (STM) are integrated with
:func:`scipy.integrate.solve_ivp`; the tangent dynamics follow the
variational equation ``dv/dt = J(x(t)) v`` along the base trajectory.
"""

from typing import Any, Callable

import numpy as np
from scipy.integrate import solve_ivp

from floquetkit.algorithms.utils.config import FLOW_ATOL, FLOW_METHOD, FLOW_RTOL
from floquetkit.algorithms.utils.exceptions import BackendError

VectorField = Callable[[np.ndarray, Any], np.ndarray]
JacobianField = Callable[[np.ndarray, Any], np.ndarray]


class Flow:
    """Flow map of ``x' = F(x, par)``.

    Parameters
    ----------
    F : callable
        Vector field ``F(x, par) -> ndarray``.
    J : callable
        Jacobian of the vector field ``J(x, par) -> ndarray`` of shape ``(n, n)``.
    method : str, default='DOP853'
        Integration method passed to :func:`scipy.integrate.solve_ivp`.
    rtol, atol : float
        Integration tolerances.

    Notes
    -----
    Instances hold no per-call state, so different time slices may be
    integrated concurrently from several threads.
    """

    def __init__(
        self,
        F: VectorField,
        J: JacobianField,
        *,
        method: str = FLOW_METHOD,
        rtol: float = FLOW_RTOL,
        atol: float = FLOW_ATOL,
    ) -> None:
        self._F = F
        self._J = J
        self.method = method
        self.rtol = rtol
        self.atol = atol

    def vector_field(self, x: np.ndarray, par: Any) -> np.ndarray:
        return np.asarray(self._F(x, par), dtype=float)

    def jacobian(self, x: np.ndarray, par: Any) -> np.ndarray:
        return np.asarray(self._J(x, par), dtype=float)

    def _integrate(self, rhs, y0: np.ndarray, t: float, **kwargs):
        sol = solve_ivp(rhs, (0.0, t), y0, method=self.method, rtol=self.rtol, atol=self.atol, **kwargs)
        if sol.status < 0:
            raise BackendError(f"Flow integration failed: {sol.message}")
        return sol

    def evolve(self, x: np.ndarray, par: Any, t: float) -> np.ndarray:
        """Return ``phi_t(x)``."""
        x = np.asarray(x, dtype=float)
        if t == 0:
            return x.copy()
        sol = self._integrate(lambda _, y: self.vector_field(y, par), x, t)
        return sol.y[:, -1]

    def differential_flow(self, x: np.ndarray, par: Any, dx: np.ndarray, t: float) -> np.ndarray:
        """Return ``d phi_t(x) . dx`` by integrating one tangent vector."""
        x = np.asarray(x, dtype=float)
        dx = np.asarray(dx, dtype=float)
        if t == 0:
            return dx.copy()
        n = x.size

        def rhs(_, y):
            return np.concatenate((self.vector_field(y[:n], par), self.jacobian(y[:n], par) @ y[n:]))

        sol = self._integrate(rhs, np.concatenate((x, dx)), t)
        return sol.y[n:, -1]

    def _stm_rhs(self, par: Any, n: int):
        def rhs(_, y):
            phi = y[n:].reshape(n, n)
            return np.concatenate((self.vector_field(y[:n], par), (self.jacobian(y[:n], par) @ phi).ravel()))
        return rhs

    def stm(self, x: np.ndarray, par: Any, t: float) -> tuple[np.ndarray, np.ndarray]:
        """Return ``(phi_t(x), d phi_t(x))``, the end state and the full STM."""
        x = np.asarray(x, dtype=float)
        n = x.size
        if t == 0:
            return x.copy(), np.eye(n)
        sol = self._integrate(self._stm_rhs(par, n), np.concatenate((x, np.eye(n).ravel())), t)
        y = sol.y[:, -1]
        return y[:n], y[n:].reshape(n, n)

    def evolve_to_event(
        self,
        x: np.ndarray,
        par: Any,
        event: Callable[[np.ndarray], float],
        *,
        t_max: float,
        t_min: float = 0.0,
        direction: int = 1,
    ) -> tuple[float, np.ndarray, np.ndarray]:
        """Integrate ``x`` and its STM until ``event`` changes sign.

        Parameters
        ----------
        event : callable
            Scalar function of the state; the flow stops at its first zero
            crossed in ``direction`` after ``t_min``.
        t_max : float
            Give up after this time.
        t_min : float, default=0.0
            Crossings before ``t_min`` are ignored, which allows starting on
            the surface itself.
        direction : {1, -1, 0}, default=1
            Crossing direction, as in :func:`scipy.integrate.solve_ivp`.

        Returns
        -------
        tuple
            ``(t_hit, x_hit, stm)``.

        Raises
        ------
        :class:`~floquetkit.algorithms.utils.exceptions.BackendError`
            If no crossing occurs before ``t_max``.
        """
        x = np.asarray(x, dtype=float)
        n = x.size
        rhs = self._stm_rhs(par, n)
        y0 = np.concatenate((x, np.eye(n).ravel()))
        if t_min > 0:
            y0 = self._integrate(rhs, y0, t_min).y[:, -1]

        def g(_, y):
            return event(y[:n])

        g.terminal = True
        g.direction = direction

        sol = solve_ivp(rhs, (t_min, t_max), y0, method=self.method, rtol=self.rtol, atol=self.atol, events=g)
        if sol.status < 0:
            raise BackendError(f"Flow integration failed: {sol.message}")
        if sol.t_events[0].size == 0:
            raise BackendError(f"No section crossing found before t_max={t_max}")
        y = sol.y_events[0][0]
        return float(sol.t_events[0][0]), y[:n], y[n:].reshape(n, n)
