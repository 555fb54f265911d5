"""
Section 1: Randomized Field Experiments -- difference in means

A charitable-giving mail experiment: letters either carry a matching-
grant offer (treatment, with a 1:1, 2:1 or 3:1 match ratio) or not
(control). Randomization makes the simple difference in means an
unbiased estimate of the average treatment effect; the same number is
the slope from regressing the outcome on a treatment dummy, and a
Welch t-test gives its sampling uncertainty.

Balance checks apply the same machinery to pre-treatment covariates:
under successful randomization they should show no significant
difference between arms.
"""

import numpy as np
import pandas as pd
from scipy import stats

from .binary_outcomes import fit_probit, probit_ame
from .utils import ols_fit, add_const


def simulate_field_experiment(n=50_000, p_control=0.018, p_treat=0.022,
                              share_treated=2 / 3, seed=None):
    """
    Simulate a matching-grant donation experiment.

    DGP:
        treatment ~ Bernoulli(share_treated)
        ratio     ~ uniform over {1, 2, 3} among treated, 0 for control
        gave      ~ Bernoulli(p_treat if treated else p_control)
        amount    = LogNormal(3.6, 0.8) if gave else 0
        mrm2      ~ Gamma(2, 6.5)  months since last donation (pre-treatment)

    Returns
    -------
    pandas.DataFrame with columns treatment, control, ratio, gave,
    amount, mrm2
    """
    rng = np.random.default_rng(seed)
    treatment = (rng.random(n) < share_treated).astype(int)
    ratio = np.where(treatment == 1, rng.integers(1, 4, n), 0)
    p = np.where(treatment == 1, p_treat, p_control)
    gave = (rng.random(n) < p).astype(int)
    amount = np.where(gave == 1, rng.lognormal(3.6, 0.8, n), 0.0)
    mrm2 = np.round(rng.gamma(2.0, 6.5, n))
    return pd.DataFrame(dict(treatment=treatment, control=1 - treatment,
                             ratio=ratio, gave=gave, amount=amount,
                             mrm2=mrm2))


def _split(y, treated):
    y = np.asarray(y, dtype=float)
    treated = np.asarray(treated).astype(bool)
    if y.shape != treated.shape:
        raise ValueError(
            f"outcome and treatment lengths differ: {y.shape} vs {treated.shape}"
        )
    keep = ~np.isnan(y)
    y1, y0 = y[keep & treated], y[keep & ~treated]
    if len(y1) < 2 or len(y0) < 2:
        raise ValueError("each arm needs at least two non-missing observations")
    return y1, y0


def diff_in_means(y, treated):
    """
    Treatment minus control mean.

    Returns
    -------
    dict with keys mean_treat, mean_control, diff, n_treat, n_control
    """
    y1, y0 = _split(y, treated)
    return dict(mean_treat=y1.mean(), mean_control=y0.mean(),
                diff=y1.mean() - y0.mean(), n_treat=len(y1),
                n_control=len(y0))


def welch_t_test(y, treated):
    """
    Two-sample t-test without assuming equal variances.

        t  = (ybar_1 - ybar_0) / sqrt(s1^2/n1 + s0^2/n0)
        df = (v1 + v0)^2 / (v1^2/(n1-1) + v0^2/(n0-1)),  v = s^2/n

    Returns
    -------
    dict with keys diff, se, t_stat, df, p_value
    """
    y1, y0 = _split(y, treated)
    v1 = y1.var(ddof=1) / len(y1)
    v0 = y0.var(ddof=1) / len(y0)
    se = np.sqrt(v1 + v0)
    diff = y1.mean() - y0.mean()
    t_stat = diff / se
    df = (v1 + v0) ** 2 / (v1 ** 2 / (len(y1) - 1) + v0 ** 2 / (len(y0) - 1))
    p_value = 2 * stats.t.sf(abs(t_stat), df)
    return dict(diff=diff, se=se, t_stat=t_stat, df=df, p_value=p_value)


def regress_on_treatment(y, treated):
    """
    OLS of the outcome on a constant and the treatment dummy.

    The slope equals the difference in means.

    Returns
    -------
    dict with keys beta, se, t_stat, p_value
    """
    y1, y0 = _split(y, treated)
    yy = np.r_[y1, y0]
    d = np.r_[np.ones(len(y1)), np.zeros(len(y0))]
    b, se, _, _ = ols_fit(add_const(d), yy)
    t_stat = b / se
    p_value = 2 * stats.t.sf(np.abs(t_stat), len(yy) - 2)
    return dict(beta=b, se=se, t_stat=t_stat, p_value=p_value)


def balance_table(df, covariates, treat_col="treatment"):
    """
    Balance check of pre-treatment covariates by t-test and regression.

    Returns
    -------
    pandas.DataFrame indexed by covariate with columns mean_treat,
    mean_control, diff, t_stat, p_value, ols_diff, ols_p_value
    """
    rows = {}
    for cov in covariates:
        tt = welch_t_test(df[cov], df[treat_col])
        reg = regress_on_treatment(df[cov], df[treat_col])
        dm = diff_in_means(df[cov], df[treat_col])
        rows[cov] = dict(mean_treat=dm["mean_treat"],
                         mean_control=dm["mean_control"], diff=tt["diff"],
                         t_stat=tt["t_stat"], p_value=tt["p_value"],
                         ols_diff=reg["beta"][1], ols_p_value=reg["p_value"][1])
    return pd.DataFrame.from_dict(rows, orient="index")


def response_rate_by_group(df, outcome="gave", group_col="treatment"):
    """Mean outcome, count and standard error by group."""
    g = df.groupby(group_col)[outcome]
    out = pd.DataFrame(dict(rate=g.mean(), n=g.size()))
    out["se"] = np.sqrt(out["rate"] * (1 - out["rate"]) / out["n"])
    return out


def ratio_comparison(df, a, b, outcome="gave", ratio_col="ratio"):
    """
    Welch test of the outcome between two match ratios (b minus a).
    """
    sub = df[df[ratio_col].isin([a, b])]
    return welch_t_test(sub[outcome], sub[ratio_col] == b)


def probit_on_treatment(df, outcome="gave", treat_col="treatment"):
    """
    Probit of a binary outcome on a constant and the treatment dummy.

    Returns
    -------
    dict from :func:`estimation.binary_outcomes.fit_probit` plus ``ame``,
    the average effect of switching treatment on, in probability units.
    """
    X = add_const(df[treat_col].to_numpy(dtype=float))
    res = fit_probit(X, df[outcome].to_numpy(dtype=float))
    res["ame"] = probit_ame(X, res["beta"], coef_idx=1, discrete=True)
    return res
