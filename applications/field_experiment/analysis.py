"""
Matching Grants and Charitable Giving -- Field Experiment
=========================================================

Replication-style analysis of a mail experiment on matching grants:
balance checks, difference in means, regression, probit, match-ratio
comparisons, and LLN / CLT simulations, using methods from the
estimation/ package.

Status: stub -- simulated letters replace the experiment's microdata.
"""

import argparse
import sys
from pathlib import Path

# Add project root to path so the estimation package is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from estimation import experiment as m_exp
from estimation import simulation as m_sim


def main():
    parser = argparse.ArgumentParser(
        description="Matching grants -- field experiment analysis"
    )
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--letters", type=int, default=50_000)
    args = parser.parse_args()

    print("=" * 60)
    print("Matching Grants -- Field Experiment")
    print("=" * 60)

    df = m_exp.simulate_field_experiment(n=args.letters, seed=args.seed)
    print(f"\n[Data] N={len(df)}  treated={int(df['treatment'].sum())}")

    # --- 1) Balance ---
    bal = m_exp.balance_table(df, ["mrm2"])
    print("\n[Balance] months since last donation")
    print(bal.round(4).to_string())

    # --- 2) Response rate ---
    rates = m_exp.response_rate_by_group(df, "gave", "treatment")
    tt = m_exp.welch_t_test(df["gave"], df["treatment"])
    reg = m_exp.regress_on_treatment(df["gave"], df["treatment"])
    print("\n[Response] share donating by arm")
    print(rates.round(4).to_string())
    print(f"  Diff = {tt['diff']:.4f}  t = {tt['t_stat']:.2f}  "
          f"p = {tt['p_value']:.4f}")
    print(f"  OLS slope = {reg['beta'][1]:.4f}  SE = {reg['se'][1]:.4f}")

    probit = m_exp.probit_on_treatment(df)
    print(f"\n[Probit] treatment coef = {probit['beta'][1]:.4f}  "
          f"SE = {probit['se'][1]:.4f}  AME = {probit['ame']:.4f}")

    # --- 3) Match ratios ---
    print("\n[Ratios] response by match ratio (treated only)")
    treated = df[df["treatment"] == 1]
    print(m_exp.response_rate_by_group(treated, "gave", "ratio")
          .round(4).to_string())
    for a, b in [(1, 2), (2, 3)]:
        cmp_ = m_exp.ratio_comparison(treated, a, b)
        print(f"  {b}:1 vs {a}:1  diff = {cmp_['diff']:+.4f}  "
              f"p = {cmp_['p_value']:.3f}")

    # --- 4) Amount given ---
    amt = m_exp.welch_t_test(df["amount"], df["treatment"])
    donors = df[df["gave"] == 1]
    amt_cond = m_exp.welch_t_test(donors["amount"], donors["treatment"])
    print(f"\n[Amount] unconditional diff = {amt['diff']:.3f} "
          f"(p = {amt['p_value']:.3f})")
    print(f"  among donors diff = {amt_cond['diff']:.3f} "
          f"(p = {amt_cond['p_value']:.3f}, not causal)")

    # --- 5) LLN / CLT ---
    lln = m_sim.lln_path(seed=args.seed)
    print(f"\n[LLN] running average after {len(lln['diffs'])} draws: "
          f"{lln['running_avg'][-1]:.4f}  (true {lln['true_diff']:.4f})")
    clt = m_sim.clt_sampling_distribution(seed=args.seed)
    print("[CLT] mean difference by sample size")
    for n, r in clt.items():
        print(f"  n={n:>5}: mean={r['mean']:+.4f}  sd={r['sd']:.4f}  "
              f"(theory {r['theory_sd']:.4f})  P(<=0)={r['share_le_zero']:.2f}")


if __name__ == "__main__":
    main()
