"""
Error bounds for the Ritz values of a bidiagonal factorization.

The simple error bound dates back at least to Wilkinson's classic book
[Wilkinson1965:Ch.3 §53 p.170]. The Rayleigh-Ritz bounds were presented in
[Wilkinson1965:Ch.3 §54-55 p.173, Yamamoto1980, Ortega1990].

References
----------
J. H. Wilkinson, The Algebraic Eigenvalue Problem, Oxford, 1965.
J. M. Ortega, Numerical Analysis: A Second Course, 2nd ed., SIAM, 1990.
T. Yamamoto, Error bounds for computed eigenvalues and eigenvectors,
    Numer. Math. 34 (1980), 189-199.
F. Chatelin, Eigenvalues of Matrices, Wiley, 1993.
A. Deif, A relative backward perturbation theorem for the eigenvalue
    problem, Numer. Math. 56 (1989), 625-626.
"""
import numpy as np

from .exceptions import PreconditionError
from .logs import get_logger
from .util import min_spectral_gap



def error_bounds(L, F, l, logger=None):
    """Computes error bounds for the top l Ritz values of L, given the SVD F of L.B.

    Parameters
    ----------
    L : BidiagonalFactorization
    F : SmallSVD
        SVD of L.B.
    l : int
        Number of Ritz values to bound.
    logger : logging.Logger, optional
        Sink for the diagnostics. Defaults to the `pytrsvd.convergence` logger.

    Returns
    -------
    data : dict
        ritz_values, simple_bounds, spectral_gap, vector_bounds, value_bounds,
        bounds (best available), subspace_backward_error, backward_errors.
    """

    if logger is None:
        logger = get_logger("pytrsvd.convergence")
    if not (1 <= l <= F.s.size):
        raise PreconditionError(f"l must be between 1 and {F.s.size}.")

    sigma = F.s[:l].copy()
    simple_bounds = L.beta * np.abs(F.U[-1, :l])

    # Best available eigenvalue bounds
    bounds = simple_bounds.copy()
    vector_bounds = np.full(l, np.nan)
    value_bounds = np.full(l, np.nan)

    # Rayleigh-Ritz bounds only apply while the gap between the wanted Ritz
    # values is large compared to the simple bound. With a single value there
    # is no gap to speak of and the simple bound is kept.
    d = min_spectral_gap(sigma)
    logger.debug("Smallest empirical spectral gap: %.6e", d)

    # Normwise backward error associated with the approximate invariant
    # subspace [Chatelin1993]; sigma[0] estimates ||A||_2.
    sigma_max = sigma[0] if sigma[0] > 0 else np.inf
    subspace_backward_error = L.beta / sigma_max
    logger.debug("Normwise backward error associated with subspace: %.6e", subspace_backward_error)

    for i in range(l):
        alpha = simple_bounds[i]
        logger.debug("Ritz value %d: %.16e", i + 1, sigma[i])
        logger.debug("Simple error bound on eigenvalue: %.6e", alpha)

        if np.isfinite(d) and 2 * alpha <= d:
            ratio = alpha / (d - alpha)
            x = ratio * np.sqrt(1 + ratio**2)
            logger.debug("Rayleigh-Ritz error bound on eigenvector: %.6e", x)
            vector_bounds[i] = x

            # [Wilkinson1965:Ch.3 Appendix (4), p.188]
            y = alpha**2 / d
            logger.debug("Rayleigh-Ritz error bound on eigenvalue: %.6e", y)
            value_bounds[i] = y

            bounds[i] = min(bounds[i], x, y)

        # Normwise backward error estimate [Deif1989]
        logger.debug("Normwise backward error estimate: %.6e", alpha / sigma_max)

    backward_errors = simple_bounds / sigma_max
    logger.info("Largest error bound: %.3e (gap %.3e, subspace backward error %.3e)", np.amax(bounds), d, subspace_backward_error)

    data = {
        "ritz_values": sigma,
        "simple_bounds": simple_bounds,
        "spectral_gap": d,
        "vector_bounds": vector_bounds,
        "value_bounds": value_bounds,
        "bounds": bounds,
        "subspace_backward_error": subspace_backward_error,
        "backward_errors": backward_errors,
    }

    return data



def is_converged(L, F, l, tol, logger=None, bounds=None):
    """True iff every refined error bound on the top l Ritz values is strictly below tol.

    Precomputed error_bounds output may be passed as `bounds`.
    """

    if tol < 0:
        raise PreconditionError("tol must be nonnegative.")
    if bounds is None:
        bounds = error_bounds(L, F, l, logger=logger)

    return bool(np.all(bounds["bounds"][:l] < tol))
