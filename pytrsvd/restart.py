import numpy as np
from scipy.sparse.linalg import aslinearoperator

from .bidiagonal import BrokenArrowBidiagonal
from .exceptions import PreconditionError
from .factorizations import BidiagonalFactorization
from .util import breakdown_threshold, normalize, orthogonalize, reorth_passes, sign_preserving_qr



def truncate(A, L, F, l, reorthonormalize=True, reorth="cgs", breakdown_tol=None):
    """Thick restart: keeps the l dominant Ritz directions of L and re-expands by one Lanczos step.

    Following [Hernandez2008], with B = U diag(s) V^T the SVD F of L.B (k×k):

        Q <- [Q[:, :k] V[:, :l], q_{k+1}]
        P <- P[:, :k] U[:, :l]
        rho = beta U[k-1, :l]
        f = A q_{k+1} - P rho,  alpha = ||f||
        g = A^T (f/alpha) - alpha q_{k+1},  beta_new = ||g||

    and the new working matrix is BrokenArrowBidiagonal([s[:l], alpha], rho, []).

    The residual direction g is not appended to Q; the next call to extend
    recomputes it against the full Q.

    Parameters
    ----------
    reorthonormalize : bool, default True
        Re-orthonormalize the compressed bases with a sign-preserving QR. In
        exact arithmetic compression by an orthonormal factor keeps them
        orthonormal, but with one Gram-Schmidt pass per step the rounding
        error left in Q is amplified at every restart unless it is reset here.
    reorth : {"cgs", "cgs2"}, default "cgs"
        Gram-Schmidt passes used to clean f against the compressed P.

    Returns
    -------
    BidiagonalFactorization of working size l+1 (in its truncated form).
    """
    A = aslinearoperator(A)
    m, n = A.shape
    passes = reorth_passes(reorth)
    k = F.V.shape[0]
    if L.P.shape != (m, k) or L.Q.shape != (n, k + 1):
        raise PreconditionError(f"Expected P of shape {(m, k)} and Q of shape {(n, k + 1)}, got {L.P.shape} and {L.Q.shape}.")
    if not (1 <= l < k):
        raise PreconditionError(f"Must have 1 <= l < k, got l = {l} and k = {k}.")

    Q = np.empty((n, l + 1))
    Q[:, :l] = L.Q[:, :k] @ F.V[:, :l]
    Q[:, l] = L.Q[:, k]
    if reorthonormalize:
        Q = sign_preserving_qr(Q)

    f = np.asarray(A.matvec(Q[:, l]), dtype=float).reshape(-1)
    rho = L.beta * F.U[k - 1, :l]
    P = L.P[:, :k] @ F.U[:, :l]
    if reorthonormalize:
        P = sign_preserving_qr(P)

    # rho[i] = f . P[:, i] in exact arithmetic
    f = orthogonalize(f - P @ rho, P, passes)
    anorm = max(F.s[0], L.beta)
    f, alpha = normalize(f, breakdown_threshold((m, n), anorm, breakdown_tol), step="truncate:alpha", dim=l)
    P = np.column_stack([P, f])

    g = np.asarray(A.rmatvec(f), dtype=float).reshape(-1) - alpha * Q[:, -1]
    _, beta = normalize(g, breakdown_threshold((m, n), max(anorm, alpha), breakdown_tol), step="truncate:beta", dim=l + 1)

    B = BrokenArrowBidiagonal(np.append(F.s[:l], alpha), rho, [], capacity=k)

    return BidiagonalFactorization(P, Q, B, beta)



def extend(A, L, k, reorth="cgs", breakdown_tol=None):
    """Continues the Lanczos recurrence of a truncated factorization back up to working size k.

    Since Q is no longer a Krylov sequence after a thick restart, every new
    right vector is orthogonalized against the entire Q rather than only the
    previous vector. New left vectors are likewise orthogonalized against P
    (two-sided reorthogonalization).

    The input factorization is left untouched; a new one is returned.
    """
    A = aslinearoperator(A)
    m, n = A.shape
    passes = reorth_passes(reorth)
    if not L.truncated or not isinstance(L.B, BrokenArrowBidiagonal):
        raise PreconditionError("extend requires a factorization produced by truncate.")
    l = L.ncv - 1
    if k <= l:
        raise PreconditionError(f"Cannot extend a factorization of size {l + 1} to k = {k}.")

    P = np.zeros((m, k))
    P[:, :l + 1] = L.P
    Q = np.zeros((n, k + 1))
    Q[:, :l + 1] = L.Q
    B = L.B.copy()

    anorm = max(np.amax(B.dv), L.beta)
    p = P[:, l].copy()
    for j in range(l + 1, k + 1):
        # q = A^T p, orthogonalized against the full Q
        q = np.asarray(A.rmatvec(p), dtype=float).reshape(-1)
        q = orthogonalize(q, Q[:, :j], passes)
        q, beta = normalize(q, breakdown_threshold((m, n), anorm, breakdown_tol), step="extend:beta", dim=j)
        anorm = max(anorm, beta)
        Q[:, j] = q
        if j == k:
            break

        # p = A q - beta p, orthogonalized against the full P
        p = np.asarray(A.matvec(q), dtype=float).reshape(-1) - beta * P[:, j - 1]
        p = orthogonalize(p, P[:, :j], passes)
        p, alpha = normalize(p, breakdown_threshold((m, n), anorm, breakdown_tol), step="extend:alpha", dim=j)
        anorm = max(anorm, alpha)
        B.append_diagonal(alpha)
        B.append_superdiagonal(beta)
        P[:, j] = p

    return BidiagonalFactorization(P, Q, B, beta)
