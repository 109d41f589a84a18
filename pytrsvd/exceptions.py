# pytrsvd-specific exceptions.


class PreconditionError(ValueError):
    """
    Raised when the arguments of a routine are inconsistent (bad sizes,
    k <= l, negative tolerance, ...). Nothing has been computed yet.
    """
    pass


class InvariantSubspaceError(RuntimeError):
    """
    Raised when a Lanczos step produces a residual of (numerically) zero norm,
    i.e., an invariant subspace of dimension `dim` has been found and there is
    no direction left to extend with.

    factorization: the last consistent BidiagonalFactorization, if any.
    sigma: Ritz values available at the time of the breakdown, if any.
    """
    def __init__(self, message, dim=None, step=None, factorization=None, sigma=None):
        super().__init__(message)
        self.dim = dim
        self.step = step
        self.factorization = factorization
        self.sigma = sigma


class NotConvergedWarning(RuntimeWarning):
    """
    Issued when the iteration budget is exhausted before the error bounds
    fall below the requested tolerance.
    """
    pass
