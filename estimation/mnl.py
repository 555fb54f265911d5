"""
Section 5: Multinomial Logit -- conjoint choice data

Each respondent completes several choice tasks; in every task they pick
exactly one of a small set of alternatives. With utility
  U_ij = x_j' beta + eps_ij,   eps ~ Gumbel(0, 1)
the probability that alternative j is chosen within its task is the
softmax of the linear scores over the task's alternatives:
  P_j = exp(x_j' beta) / Sum_l exp(x_l' beta)

The log-likelihood sums log P over the chosen rows. Scores are shifted by
the task maximum before exponentiating so large linear indices cannot
overflow.
"""

from dataclasses import dataclass
from itertools import product
from typing import List, Tuple

import numpy as np
import pandas as pd

from .mcmc import log_normal_prior, make_log_posterior, metropolis_hastings
from .mle import fit_mle, wald_interval
from .utils import as_param_vector

BRANDS = ("N", "P", "H")
PRICES = tuple(range(8, 33, 4))
FEATURES = ["brand_N", "brand_P", "ad", "price"]
TRUE_BETA = {"brand_N": 1.0, "brand_P": 0.5, "ad": -0.8, "price": -0.1}


def default_prior_sd(k):
    """Normal(0, 5) on every coefficient but the last, Normal(0, 1) on it."""
    return np.r_[np.full(k - 1, 5.0), 1.0]


def default_proposal_sd(k):
    return np.r_[np.full(k - 1, 0.05), 0.005]


# Reference Bayesian set-up: wide priors on the binary attributes, a
# tighter prior and smaller steps on price (its scale is ~10x larger).
PRIOR_SD = default_prior_sd(len(FEATURES))
PROPOSAL_SD = default_proposal_sd(len(FEATURES))
N_ITER = 11_000
BURN_IN = 1_000


@dataclass
class ChoiceData:
    """Choice observations sorted by (respondent, task)."""
    X: np.ndarray  # (n_rows, k) alternative attributes
    chosen: np.ndarray  # (n_rows,) bool
    group: np.ndarray  # (n_rows,) task index 0..n_groups-1
    starts: np.ndarray  # first row of each task
    keys: List[Tuple]  # (resp, task) per task
    feature_names: List[str]

    @property
    def n_groups(self):
        return len(self.starts)

    @property
    def n_features(self):
        return self.X.shape[1]


def simulate_conjoint(n_resp=100, n_tasks=10, n_alts=3, true_beta=None,
                      seed=None):
    """
    Simulate a streaming-service conjoint survey.

    Each task shows ``n_alts`` profiles drawn without replacement from the
    full factorial of brand (N, P, H), ads (0/1) and monthly price
    (8..32 by 4). The respondent picks the profile with the highest
    utility  part-worths + Gumbel noise.

    Returns
    -------
    pandas.DataFrame with columns resp, task, brand, ad, price, choice
    """
    beta = dict(TRUE_BETA if true_beta is None else true_beta)
    rng = np.random.default_rng(seed)
    profiles = pd.DataFrame(list(product(BRANDS, (0, 1), PRICES)),
                            columns=["brand", "ad", "price"])

    frames = []
    for resp in range(1, n_resp + 1):
        for task in range(1, n_tasks + 1):
            idx = rng.choice(len(profiles), size=n_alts, replace=False)
            alts = profiles.iloc[idx].reset_index(drop=True)
            v = (beta["brand_N"] * (alts["brand"] == "N")
                 + beta["brand_P"] * (alts["brand"] == "P")
                 + beta["ad"] * alts["ad"]
                 + beta["price"] * alts["price"])
            u = v.to_numpy(dtype=float) + rng.gumbel(0.0, 1.0, n_alts)
            alts["choice"] = (np.arange(n_alts) == np.argmax(u)).astype(int)
            alts.insert(0, "task", task)
            alts.insert(0, "resp", resp)
            frames.append(alts)
    return pd.concat(frames, ignore_index=True)


def encode_features(df):
    """
    Dummy-code the conjoint attributes (brand H is the base level).

    Price enters linearly in its own units, so a negative coefficient
    means a higher price lowers the choice probability.
    """
    out = df.copy()
    out["brand_N"] = (out["brand"] == "N").astype(float)
    out["brand_P"] = (out["brand"] == "P").astype(float)
    out["ad"] = out["ad"].astype(float)
    out["price"] = out["price"].astype(float)
    return out


def prepare_choice_data(df, feature_cols=None, resp_col="resp",
                        task_col="task", choice_col="choice"):
    """
    Build a :class:`ChoiceData` from long-format choice rows.

    Raises
    ------
    ValueError
        If a column is missing, a row lacks a respondent or task id,
        a choice flag is not 0/1, or any
        (respondent, task) group does not have exactly one chosen row.
    """
    feature_cols = list(FEATURES if feature_cols is None else feature_cols)
    missing = [c for c in [resp_col, task_col, choice_col, *feature_cols]
               if c not in df.columns]
    if missing:
        raise ValueError(f"choice data is missing columns: {missing}")
    if df.empty:
        raise ValueError("choice data has no rows")
    no_key = df[[resp_col, task_col]].isna().any(axis=1)
    if no_key.any():
        raise ValueError(
            f"{int(no_key.sum())} rows lack a {resp_col} or {task_col} id"
        )

    df = df.sort_values([resp_col, task_col], kind="mergesort")
    flags = df[choice_col].to_numpy()
    if not np.isin(flags, (0, 1)).all():
        raise ValueError(f"{choice_col} must be a 0/1 flag")

    counts = df.groupby([resp_col, task_col], sort=True)[choice_col].sum()
    bad = counts[counts != 1]
    if len(bad):
        key = bad.index[0]
        raise ValueError(
            f"group (resp={key[0]}, task={key[1]}) has {int(bad.iloc[0])} "
            f"chosen alternatives; exactly one is required "
            f"({len(bad)} bad groups in total)"
        )

    group = df.groupby([resp_col, task_col], sort=True).ngroup().to_numpy()
    starts = np.flatnonzero(np.r_[True, group[1:] != group[:-1]])
    return ChoiceData(
        X=df[feature_cols].to_numpy(dtype=float),
        chosen=flags.astype(bool),
        group=group,
        starts=starts,
        keys=list(counts.index),
        feature_names=feature_cols,
    )


def _group_log_normalizer(scores, data):
    """log Sum_j exp(score_j) per task, shifted by the task max."""
    gmax = np.maximum.reduceat(scores, data.starts)
    shifted = np.exp(scores - gmax[data.group])
    return np.log(np.add.reduceat(shifted, data.starts)) + gmax


def mnl_log_likelihood(beta, data):
    """
    Multinomial logit log-likelihood.

    Parameters
    ----------
    beta : ndarray, shape (k,)
    data : ChoiceData

    Returns
    -------
    float
    """
    beta = np.asarray(beta, dtype=float)
    if beta.shape != (data.n_features,):
        raise ValueError(
            f"beta has shape {beta.shape}, expected ({data.n_features},)"
        )
    scores = data.X @ beta
    # rows are sorted by group, so chosen scores line up with groups
    return float(np.sum(scores[data.chosen]
                        - _group_log_normalizer(scores, data)))


def choice_probabilities(beta, data):
    """Per-row choice probabilities (each task sums to one)."""
    scores = data.X @ np.asarray(beta, dtype=float)
    return np.exp(scores - _group_log_normalizer(scores, data)[data.group])


def _nll_mnl(beta, data):
    return -mnl_log_likelihood(beta, data)


def fit_mnl(data, start=None):
    """
    Multinomial logit MLE via BFGS.

    Returns
    -------
    dict with keys:
        beta, se, ci_lo, ci_hi : per-feature estimates and 95% Wald CI
        nll                    : negative log-likelihood at optimum
        converged              : bool
        names                  : feature names
    """
    if start is None:
        start = np.zeros(data.n_features)
    res = fit_mle(_nll_mnl, start, args=(data,))
    lo, hi = wald_interval(res["beta"], res["se"])
    return dict(beta=res["beta"], se=res["se"], ci_lo=lo, ci_hi=hi,
                nll=res["nll"], converged=res["converged"],
                names=list(data.feature_names))


def sample_mnl_posterior(data, n_iter=N_ITER, burn_in=BURN_IN, prior_sd=None,
                         proposal_sd=None, start=None, seed=None):
    """
    Posterior draws for the MNL coefficients by Metropolis-Hastings.

    Defaults to Normal(0, 5) priors on every coefficient except the last
    (price), which gets Normal(0, 1), steps of 0.05 (0.005 on the last
    coefficient) and a zero starting vector, for any number of features.

    Returns
    -------
    dict from :func:`estimation.mcmc.metropolis_hastings`, plus ``names``
    """
    k = data.n_features
    if prior_sd is None:
        prior_sd = default_prior_sd(k)
    if proposal_sd is None:
        proposal_sd = default_proposal_sd(k)
    prior_sd = as_param_vector(prior_sd, "prior_sd", size=k)
    if np.any(prior_sd <= 0):
        raise ValueError("prior_sd entries must be positive")
    proposal_sd = as_param_vector(proposal_sd, "proposal_sd", size=k)
    start = as_param_vector(np.zeros(k) if start is None else start,
                            "start", size=k)

    log_post = make_log_posterior(
        lambda b: mnl_log_likelihood(b, data),
        lambda b: log_normal_prior(b, prior_sd),
    )
    result = metropolis_hastings(log_post, start, proposal_sd, n_iter,
                                 burn_in, seed=seed)
    result["names"] = list(data.feature_names)
    return result
