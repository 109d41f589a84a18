import numpy as np
import pytest

from scipy.linalg import svdvals
from scipy.sparse.linalg import LinearOperator

from pytrsvd import (BrokenArrowBidiagonal, InvariantSubspaceError, NotConvergedWarning,
                     PreconditionError, default_parameters, thick_restart_bidiag)
from pytrsvd.matrices import CountingOperator, matrix_with_singular_values, random_sparse



def test_top_singular_values_of_random_dense_matrix():
    rng = np.random.default_rng(1)
    m, n = 300, 200
    l, k = 5, 10

    A = rng.standard_normal((m, n))
    q = rng.standard_normal(n)
    q /= np.linalg.norm(q)

    sigma, L, info = thick_restart_bidiag(A, q, l, k, tol=1e-5, return_info=True)

    assert info["converged"]
    assert info["status"] == "converged"
    assert sigma.shape == (l,)
    assert np.linalg.norm(sigma - np.linalg.svd(A, compute_uv=False)[:l]) < k**2 * 1e-5

    assert isinstance(L.B, BrokenArrowBidiagonal)
    assert L.P.shape == (m, k)
    assert L.Q.shape == (n, k + 1)
    P_err, Q_err = info["orthogonality"]
    assert P_err < 1e-8 and Q_err < 1e-8



def test_known_spectrum_and_ritz_vectors():
    s_true = np.concatenate([[10.0, 7.0, 5.0, 3.0], np.linspace(1.0, 0.01, 76)])
    A = matrix_with_singular_values(160, 80, s_true, rseed=2)

    sigma, L = thick_restart_bidiag(A, l=4, k=12, tol=1e-10, rseed=3)
    np.testing.assert_allclose(sigma, s_true[:4], rtol=1e-8)

    F = L.B.svd()
    U_A, s, V_A = L.ritz_vectors(F, 4)
    np.testing.assert_allclose(s, sigma)
    np.testing.assert_allclose(A @ V_A, U_A * s, atol=1e-8)
    assert np.all(np.linalg.norm(A.T @ U_A - V_A * s, axis=0) < 1e-4)



def test_matvec_counts():
    rng = np.random.default_rng(4)
    A = rng.standard_normal((100, 60))
    l, k = 3, 8

    _, _, info = thick_restart_bidiag(A, l=l, k=k, maxiter=4, tol=0.0, return_info=True)

    it = info["n_iters"]
    assert it == 4
    assert info["n_matvec"] == k + it * (k - l)
    assert info["n_rmatvec"] == k + it * (k - l + 1)
    assert len(info["history"]) == it



def test_zero_iterations_is_exhausted():
    rng = np.random.default_rng(5)
    A = rng.standard_normal((40, 30))

    sigma, L, info = thick_restart_bidiag(A, l=3, k=6, maxiter=0, return_info=True)

    assert info["status"] == "exhausted"
    assert not info["converged"]
    assert info["n_iters"] == 0
    assert info["history"] == []
    assert sigma.shape == (3,)
    assert np.all(np.isfinite(sigma))
    assert L.B.shape == (6, 6)



def test_exhaustion_warns_when_asked():
    rng = np.random.default_rng(6)
    A = rng.standard_normal((40, 30))
    with pytest.warns(NotConvergedWarning):
        thick_restart_bidiag(A, l=2, k=4, maxiter=1, tol=0.0, warn=True)



def test_error_bounds_decrease_across_seeds():
    s_true = np.concatenate([[1.0, 0.95, 0.9], np.linspace(0.85, 0.01, 147)])
    A = matrix_with_singular_values(200, 150, s_true, rseed=7)

    n_steps = 0
    n_increases = 0
    for rseed in range(5):
        _, _, info = thick_restart_bidiag(A, l=3, k=8, tol=1e-10, rseed=rseed, return_info=True)
        assert info["converged"]
        largest = np.array([np.amax(h["bounds"]) for h in info["history"]])
        if largest.size > 1:
            assert largest[-1] < largest[0]
        n_steps += largest.size - 1
        n_increases += np.sum(np.diff(largest) > 1e-12 * largest[:-1])

    assert n_increases <= 0.25 * max(n_steps, 1)



def test_large_sparse_matrix_uses_only_products():
    A = CountingOperator(random_sparse(30000, 20000, density=1e-4, rseed=8))

    sigma, L, info = thick_restart_bidiag(A, l=5, k=10, maxiter=5, tol=1e-5, return_info=True)

    assert sigma.shape == (5,)
    assert np.all(np.isfinite(sigma))
    assert np.all(np.diff(sigma) <= 0)
    assert A.n_matvec == info["n_matvec"]
    assert A.n_rmatvec == info["n_rmatvec"]
    assert L.P.shape == (30000, 10)
    assert L.Q.shape == (20000, 11)



def test_counting_operator_refuses_block_products():
    A = CountingOperator(np.eye(4))
    with pytest.raises(PreconditionError):
        A.matmat(np.eye(4))



def test_unnormalized_and_default_starting_vectors():
    rng = np.random.default_rng(9)
    A = rng.standard_normal((60, 40))
    q = rng.standard_normal(40)

    sigma_scaled, L = thick_restart_bidiag(A, 5.0 * q, l=2, k=6, maxiter=3)
    sigma_unit, _ = thick_restart_bidiag(A, q / np.linalg.norm(q), l=2, k=6, maxiter=3)
    np.testing.assert_allclose(sigma_scaled, sigma_unit, rtol=1e-10)
    np.testing.assert_allclose(np.linalg.norm(L.Q[:, 0]), 1.0)

    sigma_a, _ = thick_restart_bidiag(A, l=2, k=6, maxiter=3, rseed=11)
    sigma_b, _ = thick_restart_bidiag(A, l=2, k=6, maxiter=3, rseed=11)
    assert np.array_equal(sigma_a, sigma_b)



def test_preconditions_fail_fast():
    A = CountingOperator(np.random.default_rng(10).standard_normal((30, 20)))
    q = np.ones(20) / np.sqrt(20)

    with pytest.raises(PreconditionError):
        thick_restart_bidiag(A, q, l=4, k=4)
    with pytest.raises(PreconditionError):
        thick_restart_bidiag(A, q, l=4, k=20)
    with pytest.raises(PreconditionError):
        thick_restart_bidiag(A, q, l=0, k=4)
    with pytest.raises(PreconditionError):
        thick_restart_bidiag(A, q, l=2, k=4, tol=-1.0)
    with pytest.raises(PreconditionError):
        thick_restart_bidiag(A, q, l=2, k=4, maxiter=-1)
    with pytest.raises(PreconditionError):
        thick_restart_bidiag(A, np.ones(19), l=2, k=4)
    with pytest.raises(PreconditionError):
        thick_restart_bidiag(A, np.zeros(20), l=2, k=4)
    with pytest.raises(PreconditionError):
        thick_restart_bidiag(A, np.full(20, np.nan), l=2, k=4)

    # nothing was computed
    assert A.n_matvec == 0 and A.n_rmatvec == 0



def test_rank_deficient_matrix_surfaces_invariant_subspace():
    A = matrix_with_singular_values(60, 50, [4.0, 3.0, 2.0], rseed=12)
    with pytest.raises(InvariantSubspaceError) as excinfo:
        thick_restart_bidiag(A, l=2, k=6, breakdown_tol=1e-8)
    err = excinfo.value
    assert err.dim == 3
    assert err.step == "build:alpha"
    assert err.factorization.ncv == 3
    np.testing.assert_allclose(err.sigma, [4.0, 3.0], rtol=1e-8)



def test_default_parameters():
    A = np.zeros((50, 30))
    params = default_parameters(A)
    assert params["l"] == 6
    assert params["k"] == 12
    assert params["maxiter"] == 30
    assert params["tol"] == np.sqrt(np.finfo(float).eps)
    assert params["reorthonormalize"] is True



def test_long_run_keeps_bases_orthonormal():
    rng = np.random.default_rng(13)
    A = rng.standard_normal((150, 100))

    sigma, L, info = thick_restart_bidiag(A, l=5, k=10, maxiter=100, tol=0.0, return_info=True)

    assert info["status"] == "exhausted"
    assert info["n_iters"] == 100
    P_err, Q_err = info["orthogonality"]
    assert P_err < 1e-8 and Q_err < 1e-8
    np.testing.assert_allclose(sigma, svdvals(A)[:5], rtol=1e-6)



class _VanishingOperator(LinearOperator):
    """Behaves like A for the first `n_products` products each way, then like zero."""

    def __init__(self, A, n_products):
        self.A = A
        self.n_products = n_products
        self.n_matvec = 0
        self.n_rmatvec = 0
        super().__init__(dtype=float, shape=A.shape)


    def _matvec(self, x):
        self.n_matvec += 1
        if self.n_matvec > self.n_products:
            return np.zeros(self.shape[0])
        return self.A @ x


    def _rmatvec(self, x):
        self.n_rmatvec += 1
        if self.n_rmatvec > self.n_products:
            return np.zeros(self.shape[1])
        return self.A.T @ x



def test_breakdown_after_restart_carries_last_factorization():
    rng = np.random.default_rng(14)
    A = rng.standard_normal((80, 60))
    l, k = 3, 8
    q = rng.standard_normal(60)
    q /= np.linalg.norm(q)

    # Build succeeds; the new left vector of the first restart then vanishes
    with pytest.raises(InvariantSubspaceError) as excinfo:
        thick_restart_bidiag(_VanishingOperator(A, k), q, l=l, k=k)
    err = excinfo.value
    assert err.step == "truncate:alpha"
    assert err.dim == l

    L = err.factorization
    assert L.ncv == k and not L.truncated
    np.testing.assert_allclose(err.sigma, L.B.svd().s[:l])
    # the Build factorization of A itself
    L_ref = thick_restart_bidiag(A, q, l=l, k=k, maxiter=0)[1]
    np.testing.assert_allclose(L.B.todense(), L_ref.B.todense())



def test_working_size_may_equal_number_of_rows():
    rng = np.random.default_rng(15)
    A = rng.standard_normal((8, 50))

    sigma, L, info = thick_restart_bidiag(A, l=3, k=8, maxiter=100, tol=1e-10, return_info=True)

    assert info["converged"]
    assert L.P.shape == (8, 8)
    np.testing.assert_allclose(sigma, svdvals(A)[:3], rtol=1e-8)

    with pytest.raises(PreconditionError):
        thick_restart_bidiag(A, l=3, k=9)
    with pytest.raises(PreconditionError):
        thick_restart_bidiag(A.T, l=3, k=8)



def test_prescribed_spectrum_rejects_invalid_values():
    with pytest.raises(PreconditionError):
        matrix_with_singular_values(10, 5, np.ones(6))
    with pytest.raises(PreconditionError):
        matrix_with_singular_values(10, 5, [2.0, -1.0])

    A = matrix_with_singular_values(10, 5, [3.0, 1.0, 2.0], rseed=1)
    np.testing.assert_allclose(svdvals(A)[:3], [3.0, 2.0, 1.0])
    np.testing.assert_allclose(svdvals(A)[3:], 0.0, atol=1e-12)
