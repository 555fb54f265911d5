"""
Tests for probit and logit MLE
"""

import numpy as np
import pytest
from scipy import stats

from estimation import binary_outcomes as m_bin
from estimation.utils import add_const


def create_test_data(link, n=5_000, beta=(-0.5, 1.0), seed=0):
    rng = np.random.default_rng(seed)
    x = rng.normal(size=n)
    X = add_const(x)
    p = stats.norm.cdf(X @ beta) if link == "probit" else m_bin.logistic(X @ beta)
    y = (rng.random(n) < p).astype(float)
    return X, y, np.asarray(beta)


class TestFit:

    @pytest.mark.parametrize("link", ["probit", "logit"])
    def test_recovers_coefficients(self, link):
        X, y, beta = create_test_data(link)
        fit = m_bin.fit_probit(X, y) if link == "probit" else m_bin.fit_logit(X, y)
        assert np.all(np.abs(fit["beta"] - beta) < 4 * fit["se"])
        assert fit["p_hat"].shape == y.shape
        assert np.all((fit["p_hat"] > 0) & (fit["p_hat"] < 1))

    def test_rejects_non_binary_outcome(self):
        X = add_const(np.arange(5.0))
        with pytest.raises(ValueError, match="0/1"):
            m_bin.fit_probit(X, np.array([0, 1, 2, 0, 1]))

    def test_rejects_shape_mismatch(self):
        with pytest.raises(ValueError, match="X must be"):
            m_bin.fit_logit(add_const(np.arange(5.0)), np.zeros(4))


class TestMarginalEffects:

    def test_probit_ame_positive_slope(self):
        X, y, beta = create_test_data("probit")
        assert m_bin.probit_ame(X, beta) > 0

    def test_discrete_ame_for_dummy(self):
        X = add_const(np.r_[np.zeros(10), np.ones(10)])
        beta = np.array([-1.0, 0.5])
        expected = stats.norm.cdf(-0.5) - stats.norm.cdf(-1.0)
        assert m_bin.probit_ame(X, beta, discrete=True) == pytest.approx(expected)

    def test_logit_ame_formula(self):
        X = add_const(np.zeros(3))
        beta = np.array([0.0, 2.0])
        # p = 0.5 everywhere, so AME = 2 * 0.25
        assert m_bin.logit_ame(X, beta) == pytest.approx(0.5)
