"""
Shared helpers used across the estimation modules.
"""

import numpy as np


def ols_fit(X, y):
    """
    OLS via least squares.

    Parameters
    ----------
    X : ndarray, shape (n, k)
        Design matrix (include a constant column for an intercept).
    y : ndarray, shape (n,)
        Outcome vector.

    Returns
    -------
    b : ndarray, shape (k,)
        Coefficients  beta_hat = (X'X)^{-1} X'y.
    se : ndarray, shape (k,)
        Homoskedastic standard errors.
    e : ndarray, shape (n,)
        Residuals.
    s2 : float
        Error variance  e'e / (n - k).
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    n, k = X.shape
    if n <= k:
        raise ValueError(f"need more observations than regressors (n={n}, k={k})")
    b = np.linalg.lstsq(X, y, rcond=None)[0]
    e = y - X @ b
    s2 = (e @ e) / (n - k)
    se = np.sqrt(np.diag(s2 * np.linalg.pinv(X.T @ X)))
    return b, se, e, s2


def add_const(x):
    """
    Prepend a column of ones to a regressor vector or matrix.

    Parameters
    ----------
    x : ndarray
        1-d array or 2-d matrix of regressors.

    Returns
    -------
    X : ndarray, shape (n, k+1)
    """
    x = np.asarray(x, dtype=float)
    x = x[:, None] if x.ndim == 1 else x
    return np.column_stack([np.ones(x.shape[0]), x])


def as_param_vector(values, name, size=None):
    """
    Coerce ``values`` to a finite 1-d float array, optionally broadcasting a
    scalar to length ``size``.

    Raises ValueError naming ``name`` when the shape or values are invalid.
    """
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 0 and size is not None:
        arr = np.full(size, float(arr))
    if arr.ndim != 1:
        raise ValueError(f"{name} must be a 1-d vector, got shape {arr.shape}")
    if size is not None and arr.shape[0] != size:
        raise ValueError(
            f"{name} has length {arr.shape[0]} but the parameter dimension is {size}"
        )
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} contains non-finite values")
    return arr
