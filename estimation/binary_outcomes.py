"""
Section 2: Binary Outcomes -- Probit and Logit

Probit and logit MLE for a 0/1 response (e.g. "did the recipient
donate?"), with standard errors from the observed information and
average marginal effects.
"""

import numpy as np
from scipy import stats

from .mle import fit_mle


def logistic(z):
    """Logistic CDF: 1 / (1 + exp(-z))."""
    return 1 / (1 + np.exp(-np.clip(z, -500, 500)))


def _bernoulli_nll(p, y):
    p = np.clip(p, 1e-12, 1 - 1e-12)
    return -np.sum(y * np.log(p) + (1 - y) * np.log(1 - p))


def _nll_logit(b, X, y):
    return _bernoulli_nll(logistic(X @ b), y)


def _nll_probit(b, X, y):
    return _bernoulli_nll(stats.norm.cdf(X @ b), y)


def _check_binary(X, y):
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    if X.ndim != 2 or X.shape[0] != y.shape[0]:
        raise ValueError(
            f"X must be (n, k) with n = len(y); got {X.shape} and {y.shape}"
        )
    if not np.isin(y, (0.0, 1.0)).all():
        raise ValueError("y must be a 0/1 outcome")
    return X, y


def _fit(nll, cdf, X, y, start):
    X, y = _check_binary(X, y)
    if start is None:
        start = np.zeros(X.shape[1])
    res = fit_mle(nll, start, args=(X, y))
    return dict(beta=res["beta"], se=res["se"], p_hat=cdf(X @ res["beta"]),
                nll=res["nll"], converged=res["converged"])


def fit_logit(X, y, start=None):
    """
    Logit MLE via BFGS.

    Returns
    -------
    dict with keys beta, se, p_hat, nll, converged
    """
    return _fit(_nll_logit, logistic, X, y, start)


def fit_probit(X, y, start=None):
    """
    Probit MLE via BFGS.

    P(y=1 | x) = Phi(x' beta). Returns the same keys as :func:`fit_logit`.
    """
    return _fit(_nll_probit, stats.norm.cdf, X, y, start)


def logit_ame(X, beta, coef_idx=1):
    """
    Average marginal effect for a logit:  mean( beta_j * p_i * (1 - p_i) ).
    """
    p = logistic(np.asarray(X) @ beta)
    return float(np.mean(beta[coef_idx] * p * (1 - p)))


def probit_ame(X, beta, coef_idx=1, discrete=False):
    """
    Average marginal effect for a probit.

    With ``discrete=True`` the regressor is treated as a 0/1 dummy and the
    effect is  mean( Phi(x_i1' b) - Phi(x_i0' b) ), switching the column
    on and off for every observation; otherwise the derivative
    mean( beta_j * phi(x_i' beta) ).
    """
    X = np.asarray(X, dtype=float)
    if discrete:
        X1, X0 = X.copy(), X.copy()
        X1[:, coef_idx] = 1.0
        X0[:, coef_idx] = 0.0
        return float(np.mean(stats.norm.cdf(X1 @ beta)
                             - stats.norm.cdf(X0 @ beta)))
    return float(np.mean(beta[coef_idx] * stats.norm.pdf(X @ beta)))
