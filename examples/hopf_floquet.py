"""Example script: Floquet exponents of the Hopf normal form limit cycle with
the three periodic-orbit discretizations.

The cycle ``r = 1`` has period ``2*pi`` and multipliers ``{1, exp(-4*pi)}``.

Run with
    python examples/hopf_floquet.py
"""

import os
import sys

import numpy as np

sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from floquetkit import (EigArnoldi, EigArpack, Flow, FloquetConfig,
                        FloquetSolver, HyperplaneSections,
                        PoincareShootingProblem, ShootingProblem,
                        SimplifiedFloquetSolver, TrapezoidProblem)
from floquetkit.utils.log_config import logger


def hopf_F(x, par):
    r2 = x[0] ** 2 + x[1] ** 2
    return np.array([par * x[0] - x[1] - x[0] * r2, x[0] + par * x[1] - x[1] * r2])


def hopf_J(x, par):
    return np.array([
        [par - 3.0 * x[0] ** 2 - x[1] ** 2, -1.0 - 2.0 * x[0] * x[1]],
        [1.0 - 2.0 * x[0] * x[1], par - x[0] ** 2 - 3.0 * x[1] ** 2],
    ])


def cycle(M: int) -> np.ndarray:
    theta = 2.0 * np.pi * np.arange(M) / M
    return np.column_stack((np.cos(theta), np.sin(theta)))


def main() -> None:
    par = 1.0
    flow = Flow(hopf_F, hopf_J)

    M = 4
    shooting = ShootingProblem(flow, M=M, n_workers=2)
    x = np.concatenate((cycle(M).ravel(), [2.0 * np.pi]))
    result = FloquetSolver(FloquetConfig(nev=2))(shooting, x, par)
    logger.info("Shooting exponents (dense): %s", result.exponents)

    result = FloquetSolver(FloquetConfig(eigsolver=EigArnoldi(), nev=2))(shooting, x, par)
    logger.info("Shooting exponents (Arnoldi): %s, converged=%s", result.exponents, result.converged)

    sections = HyperplaneSections([[0.0, 1.0]], [[0.0, 0.0]])
    poincare = PoincareShootingProblem(flow, sections)
    result = FloquetSolver(FloquetConfig(eigsolver=EigArpack(), nev=1))(poincare, np.array([1.0]), par)
    logger.info("Poincaré shooting exponent: %s", result.exponents)

    M = 60
    trapezoid = TrapezoidProblem(hopf_F, hopf_J, M, 2)
    u = np.concatenate((cycle(M - 1).ravel(), cycle(1).ravel(), [2.0 * np.pi]))
    result = FloquetSolver(FloquetConfig(eigsolver=EigArnoldi(), nev=2))(trapezoid, u, par)
    logger.info("Trapezoid exponents: %s (stable=%s)", result.exponents, result.is_stable())

    J = trapezoid.jacobian(u, par)
    result = SimplifiedFloquetSolver(FloquetConfig(eigsolver=EigArpack(), nev=2))(trapezoid, u, par, jacobian=J)
    logger.info("Simplified trapezoid estimate: %s", result.exponents)


if __name__ == "__main__":
    main()
