import numpy as np
from scipy.linalg import qr

from .exceptions import InvariantSubspaceError, PreconditionError



REORTH_PASSES = {"cgs": 1, "cgs2": 2}



def reorth_passes(reorth):
    """Maps a reorthogonalization mode to the number of Gram-Schmidt passes.
    """
    if reorth not in REORTH_PASSES:
        raise PreconditionError(f"reorth must be one of {sorted(REORTH_PASSES)}, got {reorth!r}.")
    return REORTH_PASSES[reorth]



def orthogonalize(vec, Q, passes=1):
    """Classical Gram-Schmidt projection of 'vec' against the full column span of Q, 'passes' times.
    """
    if Q.size == 0:
        return vec
    for _ in range(passes):
        vec = vec - Q @ (Q.T @ vec)
    return vec



def breakdown_threshold(shape, anorm, breakdown_tol=None):
    """Norm below which a Lanczos residual is treated as zero.

    If breakdown_tol is given it is used as is. Otherwise the threshold is
    max(m, n) * eps * anorm, where anorm is the running estimate of ||A||_2
    (largest alpha/beta seen so far). With no estimate yet, only an exact zero
    counts as breakdown.
    """
    if breakdown_tol is not None:
        if breakdown_tol < 0:
            raise PreconditionError("breakdown_tol must be nonnegative.")
        return float(breakdown_tol)
    eps = np.finfo(float).eps
    return max(shape) * eps * anorm



def normalize(vec, threshold, step="", dim=None):
    """Returns (vec/||vec||, ||vec||).

    Raises
    ------
    InvariantSubspaceError
        If ||vec|| <= threshold or is not finite.
    """
    nrm = np.linalg.norm(vec)
    if (not np.isfinite(nrm)) or nrm <= threshold:
        raise InvariantSubspaceError(
            f"Invariant subspace of dimension {dim} found at step '{step}' (norm = {nrm:.3e}).",
            dim=dim, step=step,
        )
    return vec / nrm, nrm



def orthogonality_error(X):
    """Frobenius norm of X^T X - I, i.e., the loss of orthonormality of the columns of X.
    """
    X = np.asarray(X)
    if X.ndim != 2:
        raise PreconditionError("X must be a 2D array.")
    return np.linalg.norm(X.T @ X - np.eye(X.shape[1]))



def min_spectral_gap(s):
    """Smallest pairwise gap |s_i - s_j| among the given values (inf if fewer than 2).
    """
    s = np.sort(np.asarray(s, dtype=float))
    if s.size < 2:
        return np.inf
    return float(np.amin(np.diff(s)))



def sign_preserving_qr(X):
    """Economic QR of X with the signs of R's diagonal made nonnegative.

    For an X whose columns are already close to orthonormal the returned Q is
    close to X itself, so it can be used to re-orthonormalize a basis without
    flipping its directions.
    """
    Qx, R = qr(X, mode="economic")
    signs = np.sign(np.diag(R))
    signs[signs == 0] = 1.0
    return Qx * signs
