from collections import namedtuple

import numpy as np
from scipy.linalg import svd

from .exceptions import PreconditionError



SmallSVD = namedtuple("SmallSVD", ["U", "s", "V"])
SmallSVD.__doc__ = """SVD B = U diag(s) V^T of a working matrix, with s in descending order."""



def _dense_svd(M):
    U, s, Vt = svd(M, full_matrices=False, lapack_driver="gesdd")
    return SmallSVD(U, s, Vt.T)



class Bidiagonal:
    """Upper bidiagonal n x n matrix with diagonal dv and super-diagonal ev.

    This is the working matrix produced by the initial Golub-Kahan build.
    """

    def __init__(self, dv, ev):

        self.dv = np.array(dv, dtype=float).reshape(-1)
        self.ev = np.array(ev, dtype=float).reshape(-1)
        n = self.dv.size
        if self.ev.size != max(n - 1, 0):
            raise PreconditionError("ev must have length len(dv) - 1.")


    @property
    def shape(self):
        n = self.dv.size
        return (n, n)


    def size(self, axis):
        if axis not in (0, 1):
            raise PreconditionError(f"invalid dimension {axis}")
        return self.dv.size


    def todense(self):
        """Returns the full n x n ndarray.
        """
        n = self.dv.size
        M = np.zeros((n, n))
        M[np.arange(n), np.arange(n)] = self.dv
        if n > 1:
            M[np.arange(n - 1), np.arange(1, n)] = self.ev
        return M


    def svd(self):
        """Dense SVD of the matrix (the Decompose step).
        """
        return _dense_svd(self.todense())


    def copy(self):
        return Bidiagonal(self.dv, self.ev)


    def __repr__(self):
        return f"Bidiagonal(n={self.dv.size})"



class BrokenArrowBidiagonal:
    r"""Matrix of the form

        d_1               a_1
             d_2          a_2
                  ...     ...
                     d_k  a_k
                          d_{k+1}  e_1
                                   ...   e_{n-k-2}
                                         d_n

    i.e. diagonal in its first k = len(av) columns, a dense column k+1 holding
    av, and upper bidiagonal from there on. It is created by a thick restart
    with an empty ev and grown in place by appending to dv and ev.

    The arrays live in buffers with reserved capacity, so that appending
    during an extension does not reallocate.
    """

    def __init__(self, dv, av, ev=(), capacity=None):

        dv = np.asarray(dv, dtype=float).reshape(-1)
        av = np.asarray(av, dtype=float).reshape(-1)
        ev = np.asarray(ev, dtype=float).reshape(-1)
        if av.size > 0 and dv.size <= av.size:
            raise PreconditionError("dv must be longer than av (the arrow column must exist).")
        if ev.size > max(dv.size - av.size - 1, 0):
            raise PreconditionError("ev must have length at most len(dv) - len(av) - 1.")

        if capacity is None:
            capacity = dv.size
        capacity = max(int(capacity), dv.size, 1)

        self.av = av.copy()
        self._dv = np.zeros(capacity)
        self._dv[:dv.size] = dv
        self._nd = dv.size
        self._ev = np.zeros(capacity)
        self._ev[:ev.size] = ev
        self._ne = ev.size


    @property
    def dv(self):
        return self._dv[:self._nd]


    @property
    def ev(self):
        return self._ev[:self._ne]


    @property
    def shape(self):
        return (self._nd, self._nd)


    def size(self, axis):
        if axis not in (0, 1):
            raise PreconditionError(f"invalid dimension {axis}")
        return self._nd


    def append_diagonal(self, alpha):
        """Grows the matrix by one row and column with diagonal entry alpha.
        """
        if self._nd == self._dv.size:
            self._dv = np.concatenate([self._dv, np.zeros(self._dv.size)])
        self._dv[self._nd] = alpha
        self._nd += 1


    def append_superdiagonal(self, beta):
        """Fills the next super-diagonal entry of the trailing bidiagonal block.
        """
        if self._ne >= self._nd - self.av.size - 1:
            raise PreconditionError("no room for another super-diagonal entry; append a diagonal entry first.")
        if self._ne == self._ev.size:
            self._ev = np.concatenate([self._ev, np.zeros(max(self._ev.size, 1))])
        self._ev[self._ne] = beta
        self._ne += 1


    def todense(self):
        """Returns the full n x n ndarray.
        """
        n = self._nd
        k = self.av.size
        M = np.zeros((n, n))
        for i in range(n):
            M[i, i] = self._dv[i]
        for i in range(k):
            M[i, k] = self.av[i]
        for i in range(self._ne):
            M[k + i, k + i + 1] = self._ev[i]
        return M


    def svd(self):
        """Dense SVD of the matrix (the Decompose step).
        """
        return _dense_svd(self.todense())


    def copy(self):
        return BrokenArrowBidiagonal(self.dv, self.av, self.ev, capacity=self._dv.size)


    def __repr__(self):
        return f"BrokenArrowBidiagonal(n={self._nd}, arrow={self.av.size})"
