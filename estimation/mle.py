"""
Section 4: Maximum Likelihood Estimation

A generic MLE wrapper shared by the probit, Poisson and multinomial
logit modules: BFGS via scipy, standard errors from the observed
Fisher information (numerical Hessian), and Wald intervals.
"""

import warnings

import numpy as np
from scipy import stats
from scipy.optimize import minimize, approx_fprime


def fit_mle(neg_log_lik, start, args=(), method="BFGS", track_path=False):
    """
    Generic MLE via scipy.optimize.minimize.

    Parameters
    ----------
    neg_log_lik : callable
        Negative log-likelihood: f(beta, *args) -> float.
    start : ndarray
        Starting parameter values.
    args : tuple
        Extra arguments passed to neg_log_lik.
    method : str
        Optimization method (default BFGS).
    track_path : bool
        If True, record the optimizer's path.

    Returns
    -------
    dict with keys:
        beta      : MLE estimates
        se        : standard errors from observed Fisher info
        nll       : negative log-likelihood at optimum
        hessian   : numerical Hessian at the MLE
        converged : bool
        path      : ndarray of iterates (if track_path)
    """
    start = np.asarray(start, dtype=float)
    path = [start.copy()]
    callback = (lambda xk: path.append(xk.copy())) if track_path else None

    res = minimize(neg_log_lik, start, args=args, method=method,
                   callback=callback)
    if not res.success:
        warnings.warn(f"optimizer did not converge: {res.message}",
                      RuntimeWarning, stacklevel=2)

    beta = res.x
    hess = numerical_hessian(neg_log_lik, beta, args=args)
    try:
        cov = np.linalg.inv(hess)
        se = np.sqrt(np.diag(cov))
    except np.linalg.LinAlgError:
        se = np.full(len(beta), np.nan)

    result = dict(
        beta=beta,
        se=se,
        nll=float(res.fun),
        hessian=hess,
        converged=bool(res.success),
    )
    if track_path:
        result["path"] = np.array(path)
    return result


def numerical_hessian(neg_log_lik, beta, args=(), eps=1e-5):
    """
    Finite-difference Hessian of the negative log-likelihood at ``beta``,
    symmetrized.
    """
    k = len(beta)
    H = np.array([
        approx_fprime(
            beta,
            lambda b, j=j: approx_fprime(b, neg_log_lik, eps, *args)[j],
            eps,
        )
        for j in range(k)
    ])
    return 0.5 * (H + H.T)


def wald_interval(beta, se, level=0.95):
    """
    Wald confidence interval  beta_hat +/- z_{1-a/2} * SE.

    Returns
    -------
    lo, hi : ndarray
    """
    z = stats.norm.ppf(0.5 + level / 2)
    beta = np.asarray(beta, dtype=float)
    se = np.asarray(se, dtype=float)
    return beta - z * se, beta + z * se
