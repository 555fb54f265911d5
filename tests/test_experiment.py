"""
Tests for the field-experiment estimators
"""

import numpy as np
import pandas as pd
import pytest
from scipy import stats

from estimation import experiment as m_exp


def create_test_data(n=20_000, seed=42):
    """Synthetic matching-grant letters"""
    return m_exp.simulate_field_experiment(n=n, seed=seed)


@pytest.fixture(scope="module")
def letters():
    return create_test_data()


class TestSimulation:

    def test_columns_and_arms(self, letters):
        assert list(letters.columns) == ["treatment", "control", "ratio",
                                         "gave", "amount", "mrm2"]
        assert (letters["treatment"] + letters["control"] == 1).all()
        assert set(letters.loc[letters["treatment"] == 0, "ratio"]) == {0}
        assert set(letters.loc[letters["treatment"] == 1, "ratio"]) == {1, 2, 3}

    def test_amount_only_for_donors(self, letters):
        assert (letters.loc[letters["gave"] == 0, "amount"] == 0).all()
        assert (letters.loc[letters["gave"] == 1, "amount"] > 0).all()


class TestDifferenceInMeans:

    def test_welch_matches_scipy(self, letters):
        y, d = letters["mrm2"], letters["treatment"]
        ours = m_exp.welch_t_test(y, d)
        ref = stats.ttest_ind(y[d == 1], y[d == 0], equal_var=False)
        assert ours["t_stat"] == pytest.approx(ref.statistic, rel=1e-8)
        assert ours["p_value"] == pytest.approx(ref.pvalue, rel=1e-6)

    def test_regression_slope_equals_difference(self, letters):
        dm = m_exp.diff_in_means(letters["gave"], letters["treatment"])
        reg = m_exp.regress_on_treatment(letters["gave"], letters["treatment"])
        assert reg["beta"][1] == pytest.approx(dm["diff"], abs=1e-10)
        assert reg["beta"][0] == pytest.approx(dm["mean_control"], abs=1e-10)

    def test_counts(self, letters):
        dm = m_exp.diff_in_means(letters["gave"], letters["treatment"])
        assert dm["n_treat"] + dm["n_control"] == len(letters)

    def test_missing_values_dropped(self):
        y = np.array([1.0, 2.0, np.nan, 4.0, 5.0, 6.0])
        d = np.array([1, 1, 1, 0, 0, 0])
        dm = m_exp.diff_in_means(y, d)
        assert dm["mean_treat"] == 1.5
        assert dm["n_treat"] == 2

    def test_length_mismatch(self):
        with pytest.raises(ValueError, match="lengths differ"):
            m_exp.diff_in_means(np.ones(5), np.ones(4))

    def test_empty_arm(self):
        with pytest.raises(ValueError, match="each arm"):
            m_exp.welch_t_test(np.arange(5.0), np.ones(5))


class TestBalanceAndRates:

    def test_pre_treatment_covariate_balanced(self, letters):
        table = m_exp.balance_table(letters, ["mrm2"])
        assert list(table.index) == ["mrm2"]
        assert table.loc["mrm2", "p_value"] > 0.001
        assert table.loc["mrm2", "ols_diff"] == pytest.approx(
            table.loc["mrm2", "diff"])

    def test_response_rate_by_group(self, letters):
        rates = m_exp.response_rate_by_group(letters, "gave", "treatment")
        assert isinstance(rates, pd.DataFrame)
        assert list(rates.columns) == ["rate", "n", "se"]
        assert rates["n"].sum() == len(letters)
        assert rates.loc[1, "rate"] == pytest.approx(
            letters.loc[letters["treatment"] == 1, "gave"].mean())

    def test_ratio_comparison_sign(self):
        df = pd.DataFrame(dict(ratio=[1] * 4 + [2] * 4,
                               gave=[0, 0, 0, 1, 0, 1, 1, 1]))
        res = m_exp.ratio_comparison(df, 1, 2)
        assert res["diff"] == pytest.approx(0.5)


class TestProbit:

    def test_probit_effect_matches_difference(self):
        df = create_test_data(n=100_000, seed=7)
        res = m_exp.probit_on_treatment(df)
        dm = m_exp.diff_in_means(df["gave"], df["treatment"])
        assert res["beta"][1] > 0
        assert res["ame"] == pytest.approx(dm["diff"], abs=5e-4)
