"""
Section 7: Simulation -- Law of Large Numbers and Central Limit Theorem

Both illustrations use the donation experiment's response rates: draws
from Bernoulli(p_control) and Bernoulli(p_treat).

LLN: the running average of paired differences settles at
p_treat - p_control as the number of draws grows.

CLT: for a fixed sample size n, the mean difference over n pairs is
approximately Normal with mean p_treat - p_control and variance
(p_t(1-p_t) + p_c(1-p_c)) / n. Small n gives a lumpy distribution that
frequently straddles zero; large n concentrates away from it.
"""

import numpy as np


def lln_path(p_control=0.018, p_treat=0.022, n_draws=10_000, seed=None):
    """
    Cumulative average of treatment-minus-control Bernoulli differences.

    Returns
    -------
    dict with keys:
        diffs       : per-draw differences (-1, 0 or 1)
        running_avg : cumulative mean after each draw
        true_diff   : p_treat - p_control
    """
    if n_draws < 1:
        raise ValueError("n_draws must be positive")
    rng = np.random.default_rng(seed)
    control = rng.random(n_draws) < p_control
    treat = rng.random(n_draws) < p_treat
    diffs = treat.astype(float) - control.astype(float)
    running = np.cumsum(diffs) / np.arange(1, n_draws + 1)
    return dict(diffs=diffs, running_avg=running, true_diff=p_treat - p_control)


def clt_sampling_distribution(p_control=0.018, p_treat=0.022,
                              sample_sizes=(50, 200, 500, 1000), n_reps=1000,
                              seed=None):
    """
    Sampling distribution of the mean difference at several sample sizes.

    Returns
    -------
    dict mapping sample size -> dict(means, mean, sd, theory_sd, share_le_zero)
    """
    rng = np.random.default_rng(seed)
    theory_var = p_treat * (1 - p_treat) + p_control * (1 - p_control)
    out = {}
    for n in sample_sizes:
        control = rng.binomial(n, p_control, n_reps) / n
        treat = rng.binomial(n, p_treat, n_reps) / n
        means = treat - control
        out[n] = dict(means=means, mean=means.mean(), sd=means.std(ddof=1),
                      theory_sd=np.sqrt(theory_var / n),
                      share_le_zero=zero_quantile(means))
    return out


def zero_quantile(samples):
    """Share of simulated values at or below zero."""
    return float(np.mean(np.asarray(samples) <= 0))
