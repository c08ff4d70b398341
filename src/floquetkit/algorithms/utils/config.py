"""Numerical defaults shared across :mod:`floquetkit.algorithms`."""

FASTMATH = False  # Global flag for Numba's fastmath option

# Flow integration (scipy.integrate.solve_ivp)
FLOW_METHOD = "DOP853"
FLOW_RTOL = 1e-10
FLOW_ATOL = 1e-12

# Eigensolvers
EIG_TOL = 1e-10
EIG_MAXITER = 300
KRYLOV_DIM = 30

# Iterative linear solvers
LINSOLVE_RTOL = 1e-10
LINSOLVE_RESTART = 50
LINSOLVE_MAXITER = 200
