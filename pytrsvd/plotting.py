import matplotlib.pyplot as plt
import numpy as np



def plot_convergence(info, plot_path=None):
    """Generates a plot of the error bound of each Ritz value against the iteration count.
    """

    history = info["history"]
    iters = np.arange(1, len(history) + 1)

    fig, axs = plt.subplots(figsize=(8,5))
    if len(history) > 0:
        bounds = np.vstack([h["bounds"] for h in history])
        subspace = np.array([h["subspace_backward_error"] for h in history])
        for i in range(bounds.shape[1]):
            axs.semilogy(iters, bounds[:, i], label=f"$\\sigma_{{{i+1}}}$")
        axs.semilogy(iters, subspace, color="black", ls=":", label="subspace backward error")
    axs.axhline(info["tol"], color="red", ls="--", label=f"tol = {info['tol']:.1e}")

    axs.set_title(f"Thick-restart convergence ({info['status']})")
    axs.set_xlabel("iteration")
    axs.set_ylabel("error bound")
    axs.legend()
    axs.grid()

    fig.tight_layout()

    if plot_path is not None:
        fig.savefig(plot_path, dpi=250)
        plt.close()
        return None
    else:
        plt.show()
        return None



def plot_ritz_values(info, sigma_true=None, plot_path=None):
    """Generates a plot of the Ritz values against the iteration count, with the true singular values if given.
    """

    history = info["history"]
    iters = np.arange(1, len(history) + 1)

    fig, axs = plt.subplots(figsize=(8,5))
    if len(history) > 0:
        ritz = np.vstack([h["ritz_values"] for h in history])
        for i in range(ritz.shape[1]):
            axs.plot(iters, ritz[:, i], marker="o", ms=3, color="blue")
    if sigma_true is not None:
        for s in np.asarray(sigma_true)[:info["l"]]:
            axs.axhline(s, color="black", ls="--", zorder=-10)

    axs.set_title("Ritz values")
    axs.set_xlabel("iteration")
    axs.set_ylabel("$\\sigma$")
    axs.grid()

    fig.tight_layout()

    if plot_path is not None:
        fig.savefig(plot_path, dpi=250)
        plt.close()
        return None
    else:
        plt.show()
        return None
