from dataclasses import dataclass

import numpy as np
import pytest
from scipy.sparse.linalg import ArpackNoConvergence, aslinearoperator

from floquetkit.algorithms.eigen import backends as eigen_backends
from floquetkit.algorithms.eigen import (DefaultEig, EigArnoldi, EigArpack,
                                         _EigenBackend, _EigenSolverConfig,
                                         check_floquet_options)
from floquetkit.algorithms.utils.exceptions import \
    UnsupportedSolverFamilyError


@dataclass(frozen=True)
class _UnknownFamily(_EigenSolverConfig):
    pass


def _triangular(d, seed=0):
    # eigenvalues are exactly d
    rng = np.random.default_rng(seed)
    n = len(d)
    return np.diag(d) + 0.05 * np.triu(rng.standard_normal((n, n)), 1)


@pytest.mark.parametrize("family", [DefaultEig(), EigArpack(tol=1e-8), EigArnoldi(krylovdim=12)])
def test_check_floquet_options_selects_largest_modulus(family):
    normalized = check_floquet_options(family)

    assert type(normalized) is type(family)
    assert normalized.which == "LM"
    assert normalized.by == "abs"
    # input untouched
    assert family.which == "LR"
    assert family.by == "real"
    assert check_floquet_options(normalized) == normalized


def test_check_floquet_options_keeps_family_settings():
    normalized = check_floquet_options(EigArnoldi(tol=1e-6, krylovdim=17, maxiter=5, seed=3))
    assert (normalized.tol, normalized.krylovdim, normalized.maxiter, normalized.seed) == (1e-6, 17, 5, 3)


def test_unknown_family_is_rejected():
    with pytest.raises(UnsupportedSolverFamilyError):
        check_floquet_options(_UnknownFamily())
    with pytest.raises(TypeError):
        _EigenBackend().run(np.eye(3), 1, config=_UnknownFamily())


def test_invalid_selection_codes():
    with pytest.raises(ValueError):
        DefaultEig(which="XX")
    with pytest.raises(ValueError):
        EigArpack(by="modulus")
    with pytest.raises(ValueError):
        EigArnoldi(krylovdim=1)


def test_dense_ranking_by_modulus_and_real_part():
    A = np.diag([1.0, -3.0, 2.0])
    backend = _EigenBackend()

    out = backend.run(A, 2, config=DefaultEig(which="LM", by="abs"))
    assert np.allclose(out.eigenvalues, [-3.0, 2.0])
    assert out.converged
    for i, lam in enumerate(out.eigenvalues):
        assert np.allclose(A @ out.eigenvectors[:, i], lam * out.eigenvectors[:, i])

    out = backend.run(A, 3, config=DefaultEig())
    assert np.allclose(out.eigenvalues, [2.0, 1.0, -3.0])


def test_dense_family_materializes_operators():
    A = _triangular(np.array([0.5, -4.0, 1.5, 2.5]))
    out = _EigenBackend().run(aslinearoperator(A), 4, config=DefaultEig(which="LM", by="abs"))
    assert np.allclose(out.eigenvalues, [-4.0, 2.5, 1.5, 0.5])
    assert out.info["n"] == 4


def test_arpack_largest_modulus():
    d = np.linspace(1.0, 50.0, 50)
    A = _triangular(d)
    out = _EigenBackend().run(aslinearoperator(A), 4, config=check_floquet_options(EigArpack()))

    assert out.converged
    assert out.info["method"] == "arpack"
    assert np.allclose(out.eigenvalues, [50.0, 49.0, 48.0, 47.0])
    assert out.eigenvectors.shape == (50, 4)


def test_arpack_falls_back_to_dense_for_small_operators():
    A = np.diag([3.0, -1.0, 0.5])
    out = _EigenBackend().run(A, 2, config=check_floquet_options(EigArpack()))
    assert out.info["method"] == "arpack-dense-fallback"
    assert np.allclose(out.eigenvalues, [3.0, -1.0])


def test_arpack_partial_convergence_is_passed_through(monkeypatch):
    def fake_eigs(*args, **kwargs):
        raise ArpackNoConvergence("no convergence", np.array([2.0 + 0j]), np.ones((10, 1), dtype=complex))

    monkeypatch.setattr(eigen_backends, "eigs", fake_eigs)
    out = _EigenBackend().run(np.eye(10), 3, config=EigArpack(which="LM", by="abs"))

    assert not out.converged
    assert out.eigenvalues.shape == (1,)
    assert out.info["nconv"] == 1


def test_arnoldi_largest_modulus():
    d = np.linspace(1.0, 50.0, 50)
    A = _triangular(d, seed=1)
    out = _EigenBackend().run(aslinearoperator(A), 3, config=check_floquet_options(EigArnoldi()))

    assert out.converged
    assert out.info["method"] == "arnoldi"
    assert np.allclose(out.eigenvalues, [50.0, 49.0, 48.0], atol=1e-7)
    for i, lam in enumerate(out.eigenvalues):
        v = out.eigenvectors[:, i]
        assert np.isclose(np.linalg.norm(v), 1.0)
        assert np.linalg.norm(A @ v - lam * v) < 1e-6


def test_arnoldi_complex_pair():
    c, s = np.cos(0.3), np.sin(0.3)
    A = np.zeros((6, 6))
    A[:2, :2] = 2.0 * np.array([[c, -s], [s, c]])
    A[2:, 2:] = np.diag([0.5, 0.4, 0.3, 0.2])
    out = _EigenBackend().run(A, 2, config=EigArnoldi(which="LM", by="abs"))

    assert out.converged
    assert np.allclose(np.abs(out.eigenvalues), [2.0, 2.0])
    assert np.allclose(sorted(out.eigenvalues.imag), [-2.0 * s, 2.0 * s])


def test_arnoldi_nev_capped_by_dimension():
    out = _EigenBackend().run(np.diag([1.0, 2.0]), 5, config=EigArnoldi(which="LM", by="abs"))
    assert np.allclose(out.eigenvalues, [2.0, 1.0])


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
@pytest.mark.parametrize("n,nev", [(60, 4), (200, 6)])
def test_arnoldi_matches_dense_moduli_on_random_operators(seed, n, nev):
    rng = np.random.default_rng(seed)
    A = rng.standard_normal((n, n)) / np.sqrt(n)
    expected = np.sort(np.abs(np.linalg.eigvals(A)))[::-1][:nev]

    out = _EigenBackend().run(aslinearoperator(A), nev, config=check_floquet_options(EigArnoldi()))

    assert out.converged
    assert np.allclose(np.abs(out.eigenvalues), expected, rtol=1e-7)
    for i, lam in enumerate(out.eigenvalues):
        v = out.eigenvectors[:, i]
        assert np.linalg.norm(A @ v - lam * v) < 1e-6


def test_arnoldi_reports_unfinished_iteration():
    rng = np.random.default_rng(4)
    A = rng.standard_normal((200, 200)) / np.sqrt(200)
    config = check_floquet_options(EigArnoldi(krylovdim=8, maxiter=1))

    out = _EigenBackend().run(A, 3, config=config)

    assert not out.converged
    assert out.eigenvalues.shape == (3,)
    assert out.info["iterations"] == 1
    assert np.max(out.info["residuals"]) > config.tol
