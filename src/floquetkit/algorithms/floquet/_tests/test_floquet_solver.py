import numpy as np
import pytest
from scipy.linalg import expm

from floquetkit.algorithms.eigen import (DefaultEig, EigArnoldi, EigArpack,
                                         EigenSolverOutput, _EigenSolverConfig)
from floquetkit.algorithms.floquet import (DENSE_MONODROMY,
                                           INFINITE_EIGENVALUE,
                                           CollectingDiagnostics,
                                           FloquetConfig, FloquetResult,
                                           FloquetSolver,
                                           SimplifiedFloquetSolver,
                                           _FloquetEngine, _FloquetInterface,
                                           compute_floquet)
from floquetkit.algorithms.floquet.interfaces import _sort_exponents
from floquetkit.algorithms.linalg import GMRESLinearSolver
from floquetkit.algorithms.periodic import (Flow, HyperplaneSections,
                                            PoincareShootingProblem,
                                            ShootingProblem, TrapezoidProblem)
from floquetkit.algorithms.types.core import _FloquetBaseBackend
from floquetkit.algorithms.utils.exceptions import (
    EngineError, LinearSolveError, MonodromyNotImplementedError,
    UnsupportedSolverFamilyError)


def hopf_F(x, par):
    r2 = x[0] ** 2 + x[1] ** 2
    return np.array([x[0] - x[1] - x[0] * r2, x[0] + x[1] - x[1] * r2])


def hopf_J(x, par):
    return np.array([
        [1.0 - 3.0 * x[0] ** 2 - x[1] ** 2, -1.0 - 2.0 * x[0] * x[1]],
        [1.0 - 2.0 * x[0] * x[1], 1.0 - x[0] ** 2 - 3.0 * x[1] ** 2],
    ])


def hopf_orbit(M):
    theta = 2.0 * np.pi * np.arange(M) / M
    return np.concatenate((np.column_stack((np.cos(theta), np.sin(theta))).ravel(), [2.0 * np.pi]))


# radial contraction rate of the Hopf cycle is -2
HOPF_EXPONENTS = np.array([0.0, -4.0 * np.pi])


def block_diagonal_system():
    A = np.zeros((6, 6))
    A[:2, :2] = [[-0.1, -2.0], [2.0, -0.1]]
    A[2, 2] = -0.5
    A[3, 3] = -1.0
    A[4:, 4:] = [[-2.0, 1.0], [-1.0, -2.0]]
    return A


class _StubBackend(_FloquetBaseBackend):

    def __init__(self, output=None, exc=None):
        self.output = output
        self.exc = exc

    def run(self, operator, nev, *, config):
        if self.exc is not None:
            raise self.exc
        return self.output


def _linear_shooting(A, M=2):
    return ShootingProblem(Flow(lambda x, par: A @ x, lambda x, par: A), M=M)


@pytest.mark.parametrize("eigsolver", [DefaultEig(), EigArnoldi()])
def test_hopf_cycle_with_shooting(eigsolver):
    sh = ShootingProblem(Flow(hopf_F, hopf_J), M=3)
    exponents, vectors, converged, info = FloquetSolver(FloquetConfig(eigsolver=eigsolver, nev=2))(
        sh, hopf_orbit(3), None
    )

    assert converged
    assert vectors.shape == (2, 2)
    assert abs(exponents[0]) < 1e-6
    assert abs(exponents[1].real - HOPF_EXPONENTS[1]) < 1e-3


def test_hopf_cycle_with_poincare_shooting():
    sections = HyperplaneSections([[0.0, 1.0]], [[0.0, 0.0]])
    psh = PoincareShootingProblem(Flow(hopf_F, hopf_J), sections)
    result = FloquetSolver(FloquetConfig(eigsolver=EigArpack(), nev=1))(psh, np.array([1.0]), None)

    assert result.exponents.shape == (1,)
    assert abs(result.exponents[0].real - HOPF_EXPONENTS[1]) < 1e-3
    assert result.is_stable()


@pytest.mark.parametrize("eigsolver", [EigArpack(), EigArnoldi()])
def test_hopf_cycle_with_two_poincare_sections(eigsolver):
    # the two sections drop different coordinates (y on the first, x on the second)
    sections = HyperplaneSections([[0.0, 1.0], [-1.0, 0.0]], [[0.0, 0.0], [0.0, 0.0]])
    psh = PoincareShootingProblem(Flow(hopf_F, hopf_J), sections)
    x_bar = np.array([1.0, 1.0])

    assert np.allclose(psh.residual(x_bar, None), 0.0, atol=1e-8)
    result = FloquetSolver(FloquetConfig(eigsolver=eigsolver, nev=1))(psh, x_bar, None)

    assert result.converged
    assert abs(result.exponents[0].real - HOPF_EXPONENTS[1]) < 1e-3


def test_poincare_shooting_with_dense_solver_is_rejected():
    sections = HyperplaneSections([[0.0, 1.0]], [[0.0, 0.0]])
    psh = PoincareShootingProblem(Flow(hopf_F, hopf_J), sections)
    with pytest.raises(MonodromyNotImplementedError):
        FloquetSolver()(psh, np.array([1.0]), None)


def test_exponents_sorted_by_modulus_with_aligned_vectors():
    A = block_diagonal_system()
    T = 1.0
    sh = _linear_shooting(A)
    x = np.concatenate((np.zeros(12), [T]))
    result = FloquetSolver(FloquetConfig(eigsolver=EigArpack(tol=1e-8), nev=3))(sh, x, None)

    assert result.converged
    assert np.allclose(result.exponents.real, [-0.1, -0.1, -0.5], atol=1e-7)
    assert np.all(np.diff(result.exponents.real) <= 1e-12)

    mono = expm(T * A)
    for i, mu in enumerate(result.multipliers):
        v = result.eigenvectors[:, i]
        assert np.linalg.norm(mono @ v - mu * v) < 1e-6 * np.linalg.norm(v)


def test_default_solver_returns_all_exponents_and_reports_dense_cost():
    A = block_diagonal_system()
    sink = CollectingDiagnostics()
    x = np.concatenate((np.zeros(12), [1.0]))
    result = FloquetSolver(diagnostics=sink)(_linear_shooting(A), x, None)

    assert sink.codes == [DENSE_MONODROMY]
    assert result.exponents.shape == (6,)
    assert np.allclose(np.sort(result.exponents.real)[::-1],
                       np.sort(np.linalg.eigvals(A).real)[::-1], atol=1e-7)


def test_matrix_free_solver_emits_no_diagnostics():
    A = block_diagonal_system()
    sink = CollectingDiagnostics()
    x = np.concatenate((np.zeros(12), [1.0]))
    FloquetSolver(FloquetConfig(eigsolver=EigArnoldi(), nev=2), diagnostics=sink)(_linear_shooting(A), x, None)
    assert sink.records == []


def test_solver_normalizes_eigensolver():
    solver = FloquetSolver(FloquetConfig(eigsolver=EigArpack(tol=1e-9)))
    assert solver.eigsolver.which == "LM"
    assert solver.eigsolver.by == "abs"
    assert solver.eigsolver.tol == 1e-9
    assert FloquetSolver(EigArnoldi()).eigsolver == EigArnoldi(which="LM", by="abs")

    sink = CollectingDiagnostics()
    solver = FloquetSolver.with_default_engine(config=FloquetConfig(nev=2), diagnostics=sink)
    assert solver.diagnostics is sink
    assert solver.config.nev == 2


def test_unsupported_family_fails_at_construction():
    from dataclasses import dataclass

    @dataclass(frozen=True)
    class Custom(_EigenSolverConfig):
        pass

    with pytest.raises(UnsupportedSolverFamilyError):
        FloquetSolver(FloquetConfig(eigsolver=Custom()))


def test_infinite_eigenvalue_is_reported_and_kept():
    output = EigenSolverOutput(np.array([0.5, np.inf, 2.0]), np.eye(3), True, {"method": "stub"})
    sink = CollectingDiagnostics()
    engine = _FloquetEngine(backend=_StubBackend(output), interface=_FloquetInterface(), diagnostics=sink)
    A = -np.eye(3)
    x = np.concatenate((np.zeros(3), [1.0]))

    result = FloquetSolver(FloquetConfig(nev=3), engine=engine)(_linear_shooting(A, M=1), x, None)

    assert sink.codes == [DENSE_MONODROMY, INFINITE_EIGENVALUE]
    assert np.isposinf(result.exponents[0].real)
    assert np.allclose(result.exponents[1:].real, [np.log(2.0), np.log(0.5)])
    assert np.array_equal(result.eigenvectors[:, 0], [0.0, 1.0, 0.0])
    assert np.array_equal(result.eigenvectors[:, 1], [0.0, 0.0, 1.0])
    assert result.info == {"method": "stub"}


def test_zero_multiplier_maps_to_minus_infinity():
    output = EigenSolverOutput(np.array([0.0, 1.0]), np.eye(2), True, {})
    engine = _FloquetEngine(backend=_StubBackend(output), interface=_FloquetInterface(),
                            diagnostics=CollectingDiagnostics())
    x = np.concatenate((np.zeros(2), [1.0]))
    result = FloquetSolver(FloquetConfig(eigsolver=EigArnoldi(), nev=2), engine=engine)(
        _linear_shooting(-np.eye(2), M=1), x, None
    )

    assert result.exponents[0] == 0.0
    assert np.isneginf(result.exponents[1].real)


@pytest.mark.parametrize(
    "exc, expected",
    [
        (RuntimeError("boom"), EngineError),
        (np.linalg.LinAlgError("singular"), np.linalg.LinAlgError),
        (LinearSolveError("gmres stalled", info=3), LinearSolveError),
    ],
)
def test_backend_failures(exc, expected):
    engine = _FloquetEngine(backend=_StubBackend(exc=exc), interface=_FloquetInterface(),
                            diagnostics=CollectingDiagnostics())
    x = np.concatenate((np.zeros(2), [1.0]))
    with pytest.raises(expected) as excinfo:
        FloquetSolver(FloquetConfig(eigsolver=EigArnoldi(), nev=1), engine=engine)(
            _linear_shooting(-np.eye(2), M=1), x, None
        )
    if expected is EngineError:
        assert excinfo.value.__cause__ is exc


def test_trapezoid_matrix_free_with_gmres():
    M = 40
    pb = TrapezoidProblem(hopf_F, hopf_J, M, 2, linsolver=GMRESLinearSolver())
    u = hopf_orbit(M - 1)[:-1]
    u = np.concatenate((u, u[:2], [2.0 * np.pi]))

    dense = compute_floquet(pb, u, None, nev=2, diagnostics=CollectingDiagnostics())
    arnoldi = compute_floquet(pb, u, None, eigsolver=EigArnoldi(), nev=2)

    assert abs(dense.exponents[0] - arnoldi.exponents[0]) < 1e-6
    # the contracting multiplier is tiny, so its logarithm is only known to a few digits
    assert abs(dense.exponents[1].real - arnoldi.exponents[1].real) < 1e-2
    assert abs(dense.exponents[0].real) < 0.1
    assert dense.exponents[1].real < -5.0


def test_trapezoid_failed_linear_solve_is_propagated():
    def failing_solver(J, rhs, *, a0=0.0, a1=1.0):
        return rhs, False

    pb = TrapezoidProblem(hopf_F, hopf_J, 3, 2, linsolver=failing_solver)
    u = np.concatenate((hopf_orbit(2)[:-1], [1.0, 0.0], [2.0 * np.pi]))
    with pytest.raises(LinearSolveError):
        compute_floquet(pb, u, None, eigsolver=EigArnoldi(), nev=1)


def test_simplified_solver_uses_leading_jacobian_block():
    M, N = 6, 2
    pb = TrapezoidProblem(hopf_F, hopf_J, M, N)
    u = hopf_orbit(M - 1)[:-1]
    u = np.concatenate((u, u[:N], [2.0 * np.pi]))
    J = pb.jacobian(u, None)
    n = N * (M - 1)

    sink = CollectingDiagnostics()
    result = SimplifiedFloquetSolver(FloquetConfig(nev=n), diagnostics=sink)(pb, u, None, jacobian=J)

    expected = np.log(np.linalg.eigvals(J.toarray()[:n, :n]).astype(complex))
    assert sink.records == []
    assert result.exponents.shape == (n,)
    assert np.allclose(np.sort(result.exponents.real), np.sort(expected.real))

    iterative = SimplifiedFloquetSolver(FloquetConfig(eigsolver=EigArpack(), nev=2))(pb, u, None, jacobian=J)
    assert np.allclose(iterative.exponents.real, result.exponents.real[:2])


def test_simplified_solver_requirements():
    M, N = 4, 2
    pb = TrapezoidProblem(hopf_F, hopf_J, M, N)
    u = np.concatenate((hopf_orbit(M - 1)[:-1], [1.0, 0.0], [2.0 * np.pi]))
    with pytest.raises(ValueError):
        SimplifiedFloquetSolver()(pb, u, None)
    sh = ShootingProblem(Flow(hopf_F, hopf_J), M=1)
    with pytest.raises(TypeError):
        SimplifiedFloquetSolver()(sh, hopf_orbit(1), None, jacobian=np.eye(3))


def test_result_helpers():
    result = FloquetResult(np.array([0.2 + 0j, 0.0 + 1j, -1.0 + 0j]), np.eye(3), True)
    exponents, vectors, converged, info = result

    assert result.n_unstable() == 1
    assert not result.is_stable()
    assert np.allclose(np.abs(result.multipliers), np.exp([0.2, 0.0, -1.0]))
    assert info == {}


@pytest.mark.parametrize("eigsolver", [DefaultEig(), EigArpack(), EigArnoldi()])
def test_linear_system_with_neutral_and_contracting_directions(eigsolver):
    # monodromy over T is diag(1, rho) with rho = exp(-0.5 * T)
    A = np.array([[0.0, 0.0], [0.0, -0.5]])
    T = 1.3
    x = np.concatenate((np.zeros(4), [T]))
    result = FloquetSolver(eigsolver, diagnostics=CollectingDiagnostics())(
        _linear_shooting(A), x, None, nev=2
    )

    assert result.converged
    assert np.allclose(result.exponents, [0.0, -0.5 * T], atol=1e-6)


def test_exponent_order_follows_multiplier_modulus():
    values = np.array([0.3, -2.0, 1.0 + 1.0j, -0.5j, 1.0 - 1.0j, -1.2, 0.0, 3.0j])

    logvals, order = _sort_exponents(values)

    assert np.allclose(logvals.real[values != 0], np.log(np.abs(values[values != 0])))
    assert np.isneginf(logvals.real[values == 0]).all()
    assert np.array_equal(np.abs(values[order]), np.abs(values[np.argsort(-np.abs(values), kind="stable")]))
    assert np.all(np.diff(logvals.real[order]) <= 0.0)
    # conjugate multipliers of equal modulus keep their input order
    assert list(order[2:4]) == [2, 4]
