import numpy as np

import scipy.sparse as sps
from scipy.sparse.linalg import LinearOperator, aslinearoperator

from .exceptions import PreconditionError



def matrix_with_singular_values(m, n, s, rseed=0):
    """Constructs a dense m x n matrix U diag(s) V^T with random orthonormal U, V.
    Useful as a test problem with a known spectrum.
    """

    s = np.sort(np.asarray(s, dtype=float).reshape(-1))[::-1]
    r = s.size
    if r > min(m, n):
        raise PreconditionError("Cannot prescribe more than min(m, n) singular values.")
    if np.any(s < 0):
        raise PreconditionError("Singular values must be nonnegative.")

    rng = np.random.default_rng(rseed)
    U, _ = np.linalg.qr(rng.standard_normal((m, r)))
    V, _ = np.linalg.qr(rng.standard_normal((n, r)))

    return (U * s) @ V.T



def random_sparse(m, n, density=0.01, rseed=0):
    """Constructs a SciPy sparse CSR matrix with standard normal nonzeros.
    """

    rng = np.random.default_rng(rseed)
    return sps.random(m, n, density=density, format="csr", random_state=rng, data_rvs=rng.standard_normal)



class CountingOperator(LinearOperator):
    """Wraps a matrix-like object, counting the products A x and A^T y.

    Block products (A @ X for a 2D X) are refused, so that any attempt to
    densify A through the operator fails loudly.
    """

    def __init__(self, A):
        self.A = aslinearoperator(A)
        self.n_matvec = 0
        self.n_rmatvec = 0
        super().__init__(dtype=self.A.dtype, shape=self.A.shape)


    def _matvec(self, x):
        self.n_matvec += 1
        return self.A.matvec(x)


    def _rmatvec(self, x):
        self.n_rmatvec += 1
        return self.A.rmatvec(x)


    def _matmat(self, X):
        raise PreconditionError("CountingOperator only supports matrix-vector products.")


    def _rmatmat(self, X):
        raise PreconditionError("CountingOperator only supports matrix-vector products.")
