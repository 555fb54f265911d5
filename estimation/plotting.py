"""
Chain diagnostics figures: trace and posterior histogram per parameter.
"""

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from .mcmc import post_burn_in

STYLE = {
    "figure.facecolor": "#FAFAFA", "axes.facecolor": "#FAFAFA",
    "axes.edgecolor": "#333", "axes.labelcolor": "#222",
    "xtick.color": "#555", "ytick.color": "#555", "text.color": "#222",
    "font.size": 10, "axes.titlesize": 12, "axes.titleweight": "bold",
    "axes.grid": True, "grid.alpha": 0.25, "grid.color": "#AAA",
}
CB, CG, CR, CY = "#2171B5", "#31A354", "#DE2D26", "#888"


def plot_trace_hist(trace, names=None, burn_in=0, truth=None, path=None):
    """
    Two-column figure: the post-burn-in trace (left) and its histogram
    with mean and 95% credible interval (right), one row per parameter.

    Parameters
    ----------
    trace : ndarray, shape (n_iter, k)
    names : list of str or None
    burn_in : int
    truth : sequence of float or None
        True values to mark, when known.
    path : str or None
        If given, the figure is saved there and closed.

    Returns
    -------
    matplotlib.figure.Figure
    """
    kept = post_burn_in(trace, burn_in)
    k = kept.shape[1]
    if names is None:
        names = [f"beta_{j}" for j in range(k)]
    steps = np.arange(burn_in, burn_in + len(kept))

    with plt.rc_context(STYLE):
        fig, axes = plt.subplots(k, 2, figsize=(11, 2.6 * k), squeeze=False)
        for j in range(k):
            draws = kept[:, j]
            lo, hi = np.percentile(draws, [2.5, 97.5])

            ax = axes[j, 0]
            ax.plot(steps, draws, c=CB, lw=0.6)
            ax.set_ylabel(names[j])
            ax.set_title(f"Trace: {names[j]}")

            ax = axes[j, 1]
            ax.hist(draws, bins=40, color=CB, alpha=0.7, edgecolor="white")
            ax.axvline(draws.mean(), color=CR, ls="--", lw=1.5, label="mean")
            ax.axvspan(lo, hi, color=CY, alpha=0.15, label="95% CI")
            if truth is not None:
                ax.axvline(truth[j], color=CG, ls=":", lw=1.5, label="true")
            ax.set_title(f"Posterior: {names[j]}")
            ax.legend(fontsize=8)
        axes[-1, 0].set_xlabel("iteration")
        fig.tight_layout()

    if path is not None:
        fig.savefig(path, bbox_inches="tight", dpi=150)
        plt.close(fig)
    return fig
