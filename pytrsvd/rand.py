import numpy as np

from .thick_restart import thick_restart_bidiag





def rand_thick_restart(A, l=6, k=None, n_samples=10, rseed=0, **kwargs):
    """Runs the thick-restart solver from n_samples random unit starting vectors.

    Returns the list of computed singular values and the list of info dicts.
    Useful to check that a behavior (e.g. decreasing error bounds) holds
    across seeds rather than for one lucky starting vector.
    """

    assert n_samples >= 1, "Must draw at least one sample."

    rng = np.random.default_rng(rseed)
    n = A.shape[1]

    sigmas = []
    infos = []
    for j in range(n_samples):
        # draw new starting vector
        q = rng.standard_normal(n)
        q /= np.linalg.norm(q)

        sigma, _, info = thick_restart_bidiag(A, q, l=l, k=k, return_info=True, **kwargs)
        sigmas.append(sigma)
        infos.append(info)

    return sigmas, infos
