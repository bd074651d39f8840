"""
core.selfcheck
Minimal "it runs" proof for the core economy (no engine, no LLM).

Run:
  python -m core.selfcheck
"""

from __future__ import annotations

from dataclasses import replace

from .audit import record_audit_entry, verify_audit_chain
from .effects import (
    build_financials,
    cost_of_goods,
    drift_competitors,
    drift_market_share,
    drift_sentiment,
    grow_products,
    split_budget,
)
from .modes import get_mode_spec
from .rng import rng_from
from .scenario import PLAYER_IDENTITY, default_start_state
from .state import ResourceAllocation, StrategyFocus


def run_10_years_smoke() -> None:
    base_seed = 42
    spec = get_mode_spec("Balanced")
    state = default_start_state(created_at=0)
    alloc = ResourceAllocation()

    for i in range(10):
        year = state.current_year + 1
        company = state.player_company

        budget = split_budget(company.cash * 0.15, alloc)
        capex = budget.pop("capital_investment")
        products, _ = grow_products(
            company.product_lines, rng_from("products", year, base_seed=base_seed),
            rd_share=alloc.rd, focus=StrategyFocus.INNOVATION, spec=spec, year=year,
        )
        revenue = sum(p.revenue for p in products)
        fin = build_financials(
            company.financials, beginning_cash=company.cash, revenue=revenue,
            cogs=cost_of_goods(products), expenses=budget, capex=capex,
        )
        competitors, _ = drift_competitors(state.competitors, rng_from("competitors", year, base_seed=base_seed))
        log, _ = record_audit_entry(state.audit_log, state.identities, PLAYER_IDENTITY, "SelfCheck", {"year": year}, now_ms=i)

        state = replace(
            state,
            current_year=year,
            player_company=replace(
                company,
                cash=fin.balance_sheet.cash,
                revenue=revenue,
                profit=fin.income_statement.net_profit,
                market_share=drift_market_share(company.market_share, rng_from("company", year, base_seed=base_seed), StrategyFocus.INNOVATION),
                product_lines=products,
                financials=fin,
            ),
            competitors=competitors,
            global_market_sentiment=drift_sentiment(state.global_market_sentiment, rng_from("sentiment", year, base_seed=base_seed), spec),
            audit_log=log,
        )

        # invariants
        bs = state.player_company.financials.balance_sheet
        assert abs(bs.total_assets - bs.total_liabilities_and_equity) < 1e-6
        assert 0.0 <= state.player_company.market_share <= 100.0
        assert all(1.0 <= c.market_share <= 100.0 for c in state.competitors)
        assert spec.sentiment_floor <= state.global_market_sentiment <= spec.sentiment_ceiling
        assert verify_audit_chain(state.audit_log, state.identities) is None

    print("OK: 10-year core smoke test passed.")
    print("Final cash:", round(state.player_company.cash, 2))
    print("Audit entries:", len(state.audit_log))


if __name__ == "__main__":
    run_10_years_smoke()
