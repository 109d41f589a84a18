import numpy as np
from scipy.linalg import svdvals
from scipy.sparse.linalg import LinearOperator, aslinearoperator, svds

from .thick_restart import thick_restart_bidiag




def all_svd_methods(A, l=6, k=None, q=None, dense_limit=2000, **kwargs):
    """Runs the thick-restart solver next to scipy's svds (and a dense SVD if A is small and explicit).
    """

    m, n = A.shape
    sigma, L, info = thick_restart_bidiag(A, q, l=l, k=k, return_info=True, **kwargs)

    # svds wants v0 of length min(m, n)
    v0 = L.Q[:, 0] if n <= m else None
    svds_vals = svds(aslinearoperator(A), k=l, v0=v0, return_singular_vectors=False)
    svds_vals = np.sort(svds_vals)[::-1]

    data = {
        "thick_restart": sigma,
        "thick_restart_info": info,
        "svds": svds_vals,
        "svds_diff": np.linalg.norm(sigma - svds_vals),
    }

    if (not isinstance(A, LinearOperator)) and min(m, n) <= dense_limit:
        A_dense = A.toarray() if hasattr(A, "toarray") else np.asarray(A)
        ref = svdvals(A_dense)[:l]
        data["dense"] = ref
        data["dense_diff"] = np.linalg.norm(sigma - ref)
        data["svds_dense_diff"] = np.linalg.norm(svds_vals - ref)

    return data
