import warnings

import numpy as np
from scipy.sparse.linalg import aslinearoperator

from .convergence import error_bounds, is_converged
from .exceptions import InvariantSubspaceError, NotConvergedWarning, PreconditionError
from .factorizations import build
from .logs import get_logger
from .matrices import CountingOperator
from .restart import extend, truncate



def default_parameters(A, l=6):
    """Returns the default keyword arguments of thick_restart_bidiag for the matrix A.
    """
    m, n = A.shape
    return {
        "l": l,
        "k": 2 * l,
        "maxiter": min(m, n),
        "tol": np.sqrt(np.finfo(float).eps),
        "reorth": "cgs",
        "reorthonormalize": True,
        "breakdown_tol": None,
    }



def _starting_vector(q, n, rseed, log):

    if q is None:
        rng = np.random.default_rng(rseed)
        q = rng.standard_normal(n)
    q = np.asarray(q, dtype=float).reshape(-1)
    if q.size != n:
        raise PreconditionError(f"q must have length {n} (number of columns of A), got {q.size}.")
    if not np.all(np.isfinite(q)):
        raise PreconditionError("q must be finite.")
    q_norm = np.linalg.norm(q)
    if q_norm == 0:
        raise PreconditionError("q must be nonzero.")
    if abs(q_norm - 1.0) > 1e-12:
        log.debug("Normalizing starting vector (||q|| = %.6e).", q_norm)
    return q / q_norm



def thick_restart_bidiag(A, q=None, l=6, k=None, maxiter=None, tol=None, reorth="cgs",
                         reorthonormalize=True, breakdown_tol=None, rseed=0,
                         return_info=False, warn=False, logger_name="pytrsvd.thick_restart"):
    """
    The thick-restarted variant of Golub-Kahan-Lanczos bidiagonalization.

    Computes the l largest singular values of A using only products A x and
    A^T y. This implementation follows closely that of SLEPc as described in
    [Hernandez2008].

    Parameters
    ----------
    A : array_like, sparse matrix or scipy.sparse.linalg.LinearOperator
        The matrix or matrix-like object whose singular values are desired.
    q : ndarray, shape (n,), optional
        Starting vector in the domain of A. Normalized if it does not have unit
        norm. If None, a Gaussian vector drawn with `rseed` is used.
    l : int, default 6
        Number of singular values requested.
    k : int, default 2*l
        Number of Lanczos vectors to compute before restarting. Must satisfy
        l < k < n and k <= m.
    maxiter : int, default min(m, n)
        Maximum number of restarts.
    tol : float, default sqrt(eps)
        Maximum error in each desired singular value.
    reorth : {"cgs", "cgs2"}, default "cgs"
        Number of classical Gram-Schmidt passes per reorthogonalization.
    reorthonormalize : bool, default True
        Re-orthonormalize the compressed bases at every restart.
    breakdown_tol : float, optional
        Residual norm below which an invariant subspace is declared.
    return_info : bool, default False
        Also return a dict with the status, the iteration count and the
        history of error bounds.
    warn : bool, default False
        Issue a NotConvergedWarning when maxiter is exhausted.
    logger_name : str
        Name of the logger receiving per-iteration diagnostics.

    Returns
    -------
    sigma : ndarray, shape (l,)
        The l largest Ritz values, in descending order.
    L : BidiagonalFactorization
        The final factorization; with F = L.B.svd(), L.ritz_vectors(F, l)
        recovers approximate singular vectors.
    info : dict, only if return_info
        status ("converged" or "exhausted"), converged, n_iters, n_matvec,
        n_rmatvec, history (list of error_bounds dicts), orthogonality.

    Raises
    ------
    PreconditionError
        On invalid arguments, before any product with A.
    InvariantSubspaceError
        If a Lanczos residual vanishes. The exception carries the last
        consistent factorization and its Ritz values.

    References
    ----------
    V. Hernandez, J. E. Roman and A. Tomas, A Robust and Efficient Parallel
    SVD Solver based on Restarted Lanczos Bidiagonalization, ETNA 31 (2008),
    68-85.
    """

    log = get_logger(logger_name)

    Aop = CountingOperator(aslinearoperator(A))
    m, n = Aop.shape
    defaults = default_parameters(Aop, l)
    if k is None: k = defaults["k"]
    if maxiter is None: maxiter = defaults["maxiter"]
    if tol is None: tol = defaults["tol"]

    # Preconditions
    if l < 1:
        raise PreconditionError("l must be a positive integer.")
    if not k > l:
        raise PreconditionError(f"Must have k > l, got k = {k} and l = {l}.")
    if not (k < n and k <= m):
        raise PreconditionError(f"Must have k < n = {n} and k <= m = {m}, got k = {k}.")
    if tol < 0:
        raise PreconditionError("tol must be nonnegative.")
    if maxiter < 0:
        raise PreconditionError("maxiter must be nonnegative.")
    q = _starting_vector(q, n, rseed, log)

    # Build
    try:
        L = build(Aop, q, k, reorth=reorth, breakdown_tol=breakdown_tol)
    except InvariantSubspaceError as err:
        err.sigma = err.sigma[:l]
        log.warning("Invariant subspace found while building: %s", err)
        raise

    # Decompose
    F = L.B.svd()

    history = []
    converged = False
    n_iters = 0
    for i in range(maxiter):
        log.info("Iteration %d", i + 1)
        try:
            L_trunc = truncate(Aop, L, F, l, reorthonormalize=reorthonormalize, reorth=reorth,
                               breakdown_tol=breakdown_tol)
            L_next = extend(Aop, L_trunc, k, reorth=reorth, breakdown_tol=breakdown_tol)
        except InvariantSubspaceError as err:
            err.factorization = L
            err.sigma = F.s[:l].copy()
            log.warning("Invariant subspace found at iteration %d: %s", i + 1, err)
            raise
        L = L_next
        F = L.B.svd()
        n_iters = i + 1

        bounds = error_bounds(L, F, l, logger=log)
        history.append(bounds)
        if is_converged(L, F, l, tol, bounds=bounds):
            converged = True
            break

    status = "converged" if converged else "exhausted"
    if converged:
        log.info("Converged after %d iterations.", n_iters)
    else:
        msg = f"No convergence to tol = {tol:.3e} within maxiter = {maxiter} iterations."
        log.warning(msg)
        if warn:
            warnings.warn(msg, NotConvergedWarning)

    sigma = F.s[:l].copy()
    if not return_info:
        return sigma, L

    info = {
        "status": status,
        "converged": converged,
        "n_iters": n_iters,
        "n_matvec": Aop.n_matvec,
        "n_rmatvec": Aop.n_rmatvec,
        "history": history,
        "orthogonality": L.orthogonality_error(),
        "tol": tol,
        "l": l,
        "k": k,
    }

    return sigma, L, info
