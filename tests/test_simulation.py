"""
Tests for the LLN / CLT simulations
"""

import numpy as np
import pytest

from estimation import simulation as m_sim


class TestLLN:

    def test_running_average_converges(self):
        res = m_sim.lln_path(n_draws=100_000, seed=1)
        assert res["true_diff"] == pytest.approx(0.004)
        assert res["running_avg"][-1] == pytest.approx(0.004, abs=0.003)
        assert set(np.unique(res["diffs"])) <= {-1.0, 0.0, 1.0}

    def test_running_average_definition(self):
        res = m_sim.lln_path(n_draws=50, seed=2)
        assert res["running_avg"][9] == pytest.approx(res["diffs"][:10].mean())

    def test_seeded(self):
        a = m_sim.lln_path(n_draws=100, seed=3)
        b = m_sim.lln_path(n_draws=100, seed=3)
        assert np.array_equal(a["diffs"], b["diffs"])

    def test_bad_draw_count(self):
        with pytest.raises(ValueError):
            m_sim.lln_path(n_draws=0)


class TestCLT:

    def test_spread_matches_theory(self):
        res = m_sim.clt_sampling_distribution(n_reps=2_000, seed=4)
        assert list(res) == [50, 200, 500, 1000]
        for n, r in res.items():
            assert len(r["means"]) == 2_000
            assert r["sd"] == pytest.approx(r["theory_sd"], rel=0.15)

    def test_mass_below_zero_shrinks_with_n(self):
        res = m_sim.clt_sampling_distribution(sample_sizes=(50, 5000),
                                              n_reps=2_000, seed=5)
        assert res[5000]["share_le_zero"] < res[50]["share_le_zero"]

    def test_zero_quantile(self):
        assert m_sim.zero_quantile([-1, 0, 1, 2]) == 0.5
