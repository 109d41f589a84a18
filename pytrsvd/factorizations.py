import numpy as np
from scipy.linalg import svdvals
from scipy.sparse.linalg import aslinearoperator

from .bidiagonal import Bidiagonal
from .exceptions import InvariantSubspaceError, PreconditionError
from .util import breakdown_threshold, normalize, orthogonalize, orthogonality_error, reorth_passes



class BidiagonalFactorization:
    r"""Partial bidiagonalization A Q_c = P_c B, A^T P_c = Q_c B^T + beta q_{c+1} e_c^T.

    P : ndarray, shape (m, c)
        Orthonormal range-side (left) basis.
    Q : ndarray, shape (n, c+1)
        Orthonormal domain-side (right) basis, the last column being the
        normalized residual direction q_{c+1}.
    B : Bidiagonal or BrokenArrowBidiagonal, shape (c, c)
        Projection of A onto the two bases.
    beta : float
        Norm of the last unnormalized residual.

    Right after a thick restart (and before the next extension) the residual
    direction has not been appended yet, so Q has as many columns as P.
    """

    def __init__(self, P, Q, B, beta):

        self.P = P
        self.Q = Q
        self.B = B
        self.beta = float(beta)
        self.check_shapes()


    @property
    def ncv(self):
        """Working size c (number of columns of P)."""
        return self.P.shape[1]


    @property
    def truncated(self):
        """True between a thick restart and the following extension."""
        return self.Q.shape[1] == self.P.shape[1]


    def check_shapes(self):
        c = self.P.shape[1]
        if self.Q.shape[1] not in (c, c + 1):
            raise PreconditionError(f"Q must have {c} or {c+1} columns, got {self.Q.shape[1]}.")
        if self.B.shape != (c, c):
            raise PreconditionError(f"B must be {c}x{c}, got {self.B.shape}.")
        if self.beta < 0 or not np.isfinite(self.beta):
            raise PreconditionError("beta must be finite and nonnegative.")


    def orthogonality_error(self):
        """Returns (||P^T P - I||_F, ||Q^T Q - I||_F).
        """
        return orthogonality_error(self.P), orthogonality_error(self.Q)


    def residual_norms(self, F, l):
        """Residual norms beta*|U[c-1, i]| of the top l Ritz triplets for the SVD F of B.
        """
        return self.beta * np.abs(F.U[-1, :l])


    def ritz_vectors(self, F, l):
        """Approximate singular triplets of A from the SVD F of B.

        Returns
        -------
        U_A : ndarray, shape (m, l)
        s : ndarray, shape (l,)
        V_A : ndarray, shape (n, l)
        """
        c = self.ncv
        if F.U.shape[0] != c:
            raise PreconditionError("F is not the SVD of this factorization's B.")
        U_A = self.P @ F.U[:, :l]
        V_A = self.Q[:, :c] @ F.V[:, :l]
        return U_A, F.s[:l].copy(), V_A


    def __repr__(self):
        return f"BidiagonalFactorization(ncv={self.ncv}, B={self.B!r}, beta={self.beta:.3e})"



def build(A, q, k, reorth="cgs", breakdown_tol=None):
    """
    Golub–Kahan–Lanczos bidiagonalization of A (m×n) started from q ∈ R^n.

    Each new right vector is reorthogonalized against the whole current Q
    (one-sided reorthogonalization), which keeps Q orthonormal to working
    precision; P is kept orthonormal implicitly.

    Parameters
    ----------
    A : array_like, sparse matrix or scipy.sparse.linalg.LinearOperator
        Must support A.matvec(x) and A.rmatvec(y) once wrapped by aslinearoperator.
    q : ndarray, shape (n,)
        Unit-norm starting vector; becomes Q[:, 0].
    k : int
        Number of Lanczos steps (working size).
    reorth : {"cgs", "cgs2"}, default "cgs"
        One or two passes of classical Gram–Schmidt against the full Q.
    breakdown_tol : float or None
        Treat norms ≤ breakdown_tol as breakdown. If None, uses
        max(m, n)*eps*||A||_est.

    Returns
    -------
    BidiagonalFactorization with P (m×k), Q (n×(k+1)) and B = Bidiagonal(alphas, betas).

    Raises
    ------
    InvariantSubspaceError
        If an invariant subspace of dimension < k is found. The exception
        carries the partial factorization and the singular values of A on
        that subspace (`factorization`, `sigma`).
    """
    A = aslinearoperator(A)
    m, n = A.shape
    passes = reorth_passes(reorth)
    q = np.asarray(q, dtype=float).reshape(-1)
    if q.size != n:
        raise PreconditionError("q has incompatible length with A.")
    if k < 1:
        raise PreconditionError("k must be a positive integer.")

    # Allocate
    P = np.zeros((m, k))
    Q = np.zeros((n, k + 1))
    alphas = np.zeros(k)
    betas = np.zeros(k - 1)

    Q[:, 0] = q
    anorm = 0.0
    beta = 0.0
    j = 0
    try:
        for j in range(k):
            # p = A q_j - beta_{j-1} p_{j-1}
            p = np.asarray(A.matvec(Q[:, j]), dtype=float).reshape(-1)
            if j > 0:
                betas[j - 1] = beta
                p = p - beta * P[:, j - 1]
            p, alpha = normalize(p, breakdown_threshold((m, n), anorm, breakdown_tol), step="build:alpha", dim=j)
            anorm = max(anorm, alpha)
            alphas[j] = alpha
            P[:, j] = p

            # q = A^T p_j, orthogonalized against everything in Q so far
            r = np.asarray(A.rmatvec(p), dtype=float).reshape(-1)
            r = orthogonalize(r, Q[:, :j + 1], passes)
            r, beta = normalize(r, breakdown_threshold((m, n), anorm, breakdown_tol), step="build:beta", dim=j + 1)
            anorm = max(anorm, beta)
            Q[:, j + 1] = r
    except InvariantSubspaceError as err:
        err.factorization, err.sigma = _partial_build(P, Q, alphas, betas, beta, j, err.step)
        raise

    return BidiagonalFactorization(P, Q, Bidiagonal(alphas, betas), beta)



def _partial_build(P, Q, alphas, betas, beta, j, step):
    """The factorization computed by build up to a breakdown at step j, and the
    singular values of A restricted to the subspace it spans.
    """
    if step == "build:beta":
        # A^T P_c = Q_c B^T exactly, so B carries the singular values
        B = Bidiagonal(alphas[:j + 1], betas[:j])
        L = BidiagonalFactorization(P[:, :j + 1].copy(), Q[:, :j + 1].copy(), B, 0.0)
        return L, B.svd().s
    if j == 0:
        return None, np.empty(0)

    # A Q_{c+1} = P_c [B, beta e_c] once p_{c+1} vanishes
    B = Bidiagonal(alphas[:j], betas[:j - 1])
    L = BidiagonalFactorization(P[:, :j].copy(), Q[:, :j + 1].copy(), B, beta)
    M = np.column_stack([B.todense(), np.zeros(j)])
    M[j - 1, j] = beta
    return L, svdvals(M)
