"""
Section 6: Bayesian estimation -- random-walk Metropolis-Hastings

Approximates the posterior of a parameter vector beta given a
log-likelihood over fixed data and independent Normal priors:
  log p(beta | data) = l(beta) + Sum_j log N(beta_j; 0, sd_j^2) + const

From the current state, propose  beta* = beta + N(0, diag(proposal_sd^2))
and accept with probability  min(1, exp(lp(beta*) - lp(beta))).
The test is done in log space against a fresh uniform draw, so a
proposal with a non-finite log-posterior is simply rejected. Rejected
proposals repeat the current state in the trace, which therefore always
has n_iter rows.

The chain is correlated and its mixing is not guaranteed; check the
trace, the acceptance rate and the multi-chain diagnostics below.
The proposal scale is fixed (no adaptation).
"""

import numbers

import numpy as np
import pandas as pd
from scipy import stats

from .utils import as_param_vector


def log_normal_prior(beta, prior_sd, prior_mean=0.0):
    """
    Sum of independent Normal log-densities at each coordinate of beta.

    Parameters
    ----------
    beta : ndarray, shape (k,)
    prior_sd : float or ndarray, shape (k,)
        Per-coordinate prior standard deviation.
    prior_mean : float or ndarray, shape (k,)

    Returns
    -------
    float
    """
    return float(np.sum(stats.norm.logpdf(beta, loc=prior_mean,
                                          scale=prior_sd)))


def make_log_posterior(log_lik, log_prior):
    """Combine a log-likelihood and a log-prior into beta -> log posterior."""
    def log_post(beta):
        return log_lik(beta) + log_prior(beta)
    return log_post


def _check_count(value, name):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")
    return int(value)


def _check_config(start, proposal_sd, n_iter, burn_in):
    n_iter = _check_count(n_iter, "n_iter")
    burn_in = _check_count(burn_in, "burn_in")
    if burn_in >= n_iter:
        raise ValueError(
            f"burn_in ({burn_in}) must be smaller than n_iter ({n_iter})"
        )
    start = as_param_vector(start, "start")
    if start.size == 0:
        raise ValueError("start must have at least one coordinate")
    proposal_sd = as_param_vector(proposal_sd, "proposal_sd", size=start.size)
    if np.any(proposal_sd <= 0):
        raise ValueError("proposal_sd entries must be positive")
    return start, proposal_sd, n_iter, burn_in


def metropolis_hastings(log_post, start, proposal_sd, n_iter, burn_in,
                        seed=None):
    """
    Random-walk Metropolis-Hastings sampler.

    Parameters
    ----------
    log_post : callable
        beta -> log posterior (up to a constant). Exceptions it raises
        propagate to the caller.
    start : ndarray, shape (k,)
        Initial state; becomes the first row of the trace.
    proposal_sd : float or ndarray, shape (k,)
        Per-coordinate standard deviation of the Normal random-walk step.
    n_iter : int
        Total number of states in the trace (including the start).
    burn_in : int
        Number of leading states to discard when summarizing.
    seed : int, SeedSequence or None
        Seed for numpy.random.default_rng; identical seeds reproduce the
        trace exactly.

    Returns
    -------
    dict with keys:
        trace           : ndarray (n_iter, k), one state per iteration
        log_post        : ndarray (n_iter,), log posterior of each state
        accepted        : ndarray (n_iter - 1,), bool per proposal
        acceptance_rate : float
        burn_in         : int

    Raises
    ------
    ValueError
        On an invalid configuration, or when the log posterior at
        ``start`` is not finite.
    """
    start, proposal_sd, n_iter, burn_in = _check_config(
        start, proposal_sd, n_iter, burn_in)
    rng = np.random.default_rng(seed)
    k = start.size

    current = start.copy()
    lp_curr = float(log_post(current))
    if not np.isfinite(lp_curr):
        raise ValueError(
            f"log posterior at the starting state is {lp_curr}; "
            "it must be finite"
        )

    trace = np.empty((n_iter, k))
    lp_trace = np.empty(n_iter)
    accepted = np.zeros(n_iter - 1, dtype=bool)
    trace[0] = current
    lp_trace[0] = lp_curr

    for t in range(1, n_iter):
        proposal = current + rng.normal(0.0, proposal_sd, size=k)
        lp_prop = float(log_post(proposal))
        # log of a Uniform(0, 1] draw
        log_u = np.log1p(-rng.random())
        if np.isfinite(lp_prop) and log_u < lp_prop - lp_curr:
            current, lp_curr = proposal, lp_prop
            accepted[t - 1] = True
        trace[t] = current
        lp_trace[t] = lp_curr

    return dict(
        trace=trace,
        log_post=lp_trace,
        accepted=accepted,
        acceptance_rate=float(accepted.mean()) if accepted.size else 0.0,
        burn_in=burn_in,
    )


def post_burn_in(trace, burn_in):
    """Rows of the trace at index >= burn_in."""
    trace = np.asarray(trace, dtype=float)
    if trace.ndim == 1:
        trace = trace[:, None]
    if not 0 <= burn_in < trace.shape[0]:
        raise ValueError(
            f"burn_in ({burn_in}) must lie in [0, {trace.shape[0]})"
        )
    return trace[burn_in:]


def summarize_trace(trace, burn_in, names=None):
    """
    Posterior summary per coordinate from the post-burn-in draws.

    Returns
    -------
    pandas.DataFrame indexed by parameter name with columns
    mean, sd, ci_lo (2.5%), ci_hi (97.5%).
    """
    kept = post_burn_in(trace, burn_in)
    k = kept.shape[1]
    if names is None:
        names = [f"beta_{j}" for j in range(k)]
    if len(names) != k:
        raise ValueError(f"got {len(names)} names for {k} parameters")

    lo, hi = np.percentile(kept, [2.5, 97.5], axis=0)
    return pd.DataFrame(
        {
            "mean": kept.mean(axis=0),
            "sd": kept.std(axis=0, ddof=1) if len(kept) > 1 else np.zeros(k),
            "ci_lo": lo,
            "ci_hi": hi,
        },
        index=pd.Index(list(names), name="parameter"),
    )


def run_chains(log_post, starts, proposal_sd, n_iter, burn_in, seed=None):
    """
    Run independent chains, one per starting vector.

    Each chain draws from its own child of ``SeedSequence(seed)``, so the
    chains share no random state and the whole set is reproducible.

    Returns
    -------
    list of dicts as returned by :func:`metropolis_hastings`
    """
    starts = np.atleast_2d(np.asarray(starts, dtype=float))
    children = np.random.SeedSequence(seed).spawn(len(starts))
    return [
        metropolis_hastings(log_post, s, proposal_sd, n_iter, burn_in,
                            seed=child)
        for s, child in zip(starts, children)
    ]


def split_rhat(chains):
    """
    Split R-hat for one scalar quantity.

    Each chain is cut in half and the halves are treated as separate
    chains. Returns NaN when fewer than two halves of length >= 2 exist,
    1.0 when every chain is constant at a common value, and inf when
    the chains are constant at different values.
    """
    halves = []
    for c in chains:
        c = np.asarray(c, dtype=float)
        half = len(c) // 2
        if half >= 2:
            halves.extend([c[:half], c[half:2 * half]])
    m = len(halves)
    if m < 2:
        return float("nan")
    n = min(len(x) for x in halves)
    h = np.vstack([x[:n] for x in halves])

    W = h.var(axis=1, ddof=1).mean()
    B = n * h.mean(axis=1).var(ddof=1)
    if W <= 0.0:
        # frozen chains: agreed only if they all sit at the same value
        return 1.0 if B <= 0.0 else float("inf")
    var_hat = (n - 1) / n * W + B / n
    return float(np.sqrt(var_hat / W))


def effective_sample_size(chains, max_lag=200):
    """
    Effective sample size for one scalar quantity across chains.

    Sums the chain-averaged autocorrelations until the first negative one.
    NaN when the chains never move.
    """
    n = min(len(c) for c in chains) if len(chains) else 0
    if n < 3:
        return float("nan")
    c = np.vstack([np.asarray(x[:n], dtype=float) for x in chains])
    m = c.shape[0]
    centered = c - c.mean(axis=1, keepdims=True)

    W = c.var(axis=1, ddof=1).mean()
    if W <= 0.0:
        return float("nan")
    B = n * c.mean(axis=1).var(ddof=1) if m > 1 else 0.0
    var_hat = (n - 1) / n * W + B / n

    rho_sum = 0.0
    for lag in range(1, min(max_lag, n - 1) + 1):
        acov = np.mean(np.sum(centered[:, :-lag] * centered[:, lag:], axis=1)
                       / n)
        rho = acov / var_hat
        if rho < 0:
            break
        rho_sum += rho
    return float(max(1.0, m * n / (1.0 + 2.0 * rho_sum)))


def diagnose(results, names=None):
    """
    Convergence table for a list of chain results.

    Returns
    -------
    pandas.DataFrame indexed by parameter with columns rhat, ess,
    acceptance (mean acceptance rate over chains).
    """
    kept = [post_burn_in(r["trace"], r["burn_in"]) for r in results]
    k = kept[0].shape[1]
    if names is None:
        names = [f"beta_{j}" for j in range(k)]
    rows = {
        name: dict(
            rhat=split_rhat([x[:, j] for x in kept]),
            ess=effective_sample_size([x[:, j] for x in kept]),
        )
        for j, name in enumerate(names)
    }
    out = pd.DataFrame.from_dict(rows, orient="index")
    out.index.name = "parameter"
    out["acceptance"] = np.mean([r["acceptance_rate"] for r in results])
    return out
