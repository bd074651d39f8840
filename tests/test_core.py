"""
Tests for the pure core: seeded RNG, economy rules, identities and the audit chain.
"""

import math
from dataclasses import replace

import pytest

from core.audit import entry_hash, record_audit_entry, verify_audit_chain
from core.effects import (
    NEWS_BOOM,
    NEWS_DOWNTURN,
    NEWS_STEADY,
    apply_hr_initiative,
    apply_pricing,
    build_financials,
    drift_competitors,
    drift_market_share,
    drift_sentiment,
    grow_products,
    grow_segments,
    growth_rate,
    market_news,
    soft_metrics,
    split_budget,
)
from core.identity import authorize_action, sign_data, verify_signature
from core.modes import get_mode_spec
from core.rng import rng_from, stable_int_seed, uniform_rounded, weighted_pick
from core.state import PricingAdjustment, ResourceAllocation, StrategyFocus


class TestRng:
    def test_seed_is_stable(self):
        assert stable_int_seed(42, "products", 2025) == stable_int_seed(42, "products", 2025)
        assert stable_int_seed(42, "products", 2025) != stable_int_seed(42, "products", 2026)

    def test_same_parts_same_stream(self):
        a = rng_from("x", 1, base_seed=7)
        b = rng_from("x", 1, base_seed=7)
        assert [a.random() for _ in range(5)] == [b.random() for _ in range(5)]

    def test_uniform_rounded(self):
        rng = rng_from("u", base_seed=1)
        for _ in range(50):
            v = uniform_rounded(rng, 0.01, 0.15, 4)
            assert 0.01 <= v <= 0.15
            assert v * 10_000 == pytest.approx(round(v * 10_000))

    def test_weighted_pick(self):
        rng = rng_from("w", base_seed=1)
        assert {weighted_pick(rng, [("a", 0.0), ("b", 1.0)]) for _ in range(20)} == {"b"}
        with pytest.raises(ValueError):
            weighted_pick(rng, [])


class TestEffects:
    def test_growth_rate(self):
        assert growth_rate(110, 100) == pytest.approx(10.0)
        assert growth_rate(5, 0) == math.inf
        assert growth_rate(0, 0) == 0.0

    def test_split_budget(self):
        budget = split_budget(1_000.0, ResourceAllocation())
        assert budget["rd"] == pytest.approx(250.0)
        assert budget["customer_service"] == pytest.approx(50.0)
        assert sum(budget.values()) == pytest.approx(1_000.0)

    def test_pricing_skips_unknown_and_non_positive(self, start_state):
        products = start_state.player_company.product_lines
        out = apply_pricing(products, [PricingAdjustment("p1", 0.0), PricingAdjustment("zz", 10.0)])
        assert out == products

    def test_downsizing_keeps_one_employee(self):
        assert apply_hr_initiative(1, 5.0, "downsizing") == (1, 0.0)

    def test_introduction_moves_to_growth(self, start_state):
        product = replace(start_state.player_company.product_lines[0], lifecycle_stage="introduction", customer_count=9_950)
        out, new_customers = grow_products(
            [product], rng_from("p", base_seed=3),
            rd_share=25.0, focus=StrategyFocus.INNOVATION, spec=get_mode_spec("Balanced"), year=2025,
        )
        assert out[0].lifecycle_stage == "growth"
        assert new_customers == out[0].customer_count - 9_950

    def test_financial_statements(self, start_state):
        prev = start_state.player_company.financials
        fin = build_financials(
            prev, beginning_cash=5_000_000.0, revenue=1_000_000.0, cogs=300_000.0,
            expenses={"rd": 100_000.0}, capex=0.0,
        )
        income = fin.income_statement

        assert income.depreciation == pytest.approx(50_000.0)
        assert income.interest_expenses == pytest.approx(60_000.0)
        assert income.operating_profit == pytest.approx(550_000.0)
        assert income.taxes == pytest.approx(102_900.0)
        assert income.net_profit == pytest.approx(387_100.0)
        assert fin.cash_flow_statement.ending_cash == pytest.approx(5_437_100.0)
        assert fin.balance_sheet.total_assets == pytest.approx(fin.balance_sheet.total_liabilities_and_equity)

    def test_losses_are_not_taxed(self, start_state):
        fin = build_financials(
            start_state.player_company.financials, beginning_cash=100.0, revenue=0.0, cogs=0.0,
            expenses={"rd": 500_000.0}, capex=200_000.0,
        )
        assert fin.income_statement.taxes == 0.0
        assert fin.cash_flow_statement.investing_activities == pytest.approx(-200_000.0)
        assert fin.balance_sheet.fixed_assets == pytest.approx(1_000_000.0 + 200_000.0 - 50_000.0)

    @pytest.mark.parametrize("mode", ["Balanced", "Volatile", "Recession"])
    def test_sentiment_stays_in_band(self, mode):
        spec = get_mode_spec(mode)
        for seed in range(100):
            v = drift_sentiment(99.0, rng_from("s", base_seed=seed), spec)
            assert spec.sentiment_floor <= v <= spec.sentiment_ceiling

    def test_competitor_history_is_capped(self, start_state):
        comp = replace(start_state.competitors[0], recent_actions=[f"old {i}" for i in range(5)])
        out, actions = drift_competitors([comp], rng_from("c", base_seed=1))

        assert len(out[0].recent_actions) == 5
        assert out[0].recent_actions[-1] == actions[0]
        assert "FinFuture Inc." in actions[0]

    def _grow(self, product, focus=StrategyFocus.INNOVATION, rd_share=25.0, seed=3):
        out, _ = grow_products(
            [product], rng_from("p", base_seed=seed),
            rd_share=rd_share, focus=focus, spec=get_mode_spec("Balanced"), year=2025,
        )
        return out[0]

    def test_old_growth_product_matures(self, start_state):
        product = replace(start_state.player_company.product_lines[0], lifecycle_stage="growth", launch_year=2018)
        assert self._grow(product).lifecycle_stage == "maturity"

    def test_stale_mature_product_declines(self, start_state):
        product = replace(start_state.player_company.product_lines[0], lifecycle_stage="maturity", innovation_level=10.0)
        grown = self._grow(product, focus=StrategyFocus.COST_REDUCTION, rd_share=0.0)

        assert grown.innovation_level == pytest.approx(9.0)
        assert grown.lifecycle_stage == "decline"

    def test_mature_innovative_product_holds(self, start_state):
        product = replace(start_state.player_company.product_lines[0], lifecycle_stage="maturity", innovation_level=40.0)
        assert self._grow(product).lifecycle_stage == "maturity"

    def test_cost_reduction_trims_unit_cost(self, start_state):
        product = start_state.player_company.product_lines[0]
        assert self._grow(product, focus=StrategyFocus.COST_REDUCTION).base_cost == pytest.approx(5.0 * 0.95)
        assert self._grow(product).base_cost == pytest.approx(5.0)

    @pytest.mark.parametrize(
        "focus,lo,hi",
        [(StrategyFocus.INNOVATION, -1.0, 2.0), (StrategyFocus.MARKET_EXPANSION, -0.5, 2.5)],
    )
    def test_market_share_drift_range(self, focus, lo, hi):
        for seed in range(100):
            v = drift_market_share(7.0, rng_from("m", base_seed=seed), focus)
            assert 7.0 + lo - 1e-9 <= v <= 7.0 + hi + 1e-9

    def test_segments_grow_and_penetration_is_recomputed(self, start_state):
        segment = start_state.market_segments[0]
        products = start_state.player_company.product_lines
        out = grow_segments([segment], products, start_state.competitors, rng_from("s", base_seed=1))[0]

        assert 50_000_000.0 * 1.03 - 1 <= out.total_size <= 50_000_000.0 * 1.07 + 1
        assert out.current_player_penetration == pytest.approx(100_000 / out.total_size)
        assert out.competitor_penetration == {"comp1": 0.35}

    def test_segment_without_player_products(self, start_state):
        segment = replace(start_state.market_segments[0], id="s9")
        out = grow_segments([segment], start_state.player_company.product_lines, [], rng_from("s", base_seed=1))[0]

        assert out.current_player_penetration == 0.0
        assert out.competitor_penetration == {"comp1": 0.30}

    @pytest.mark.parametrize(
        "prev,new,pool",
        [(50, 60, NEWS_BOOM), (50, 55, NEWS_BOOM), (60, 50, NEWS_DOWNTURN), (50, 54, NEWS_STEADY), (50, 46, NEWS_STEADY)],
    )
    def test_market_news_pool(self, prev, new, pool):
        news = market_news(prev, new, rng_from("n", base_seed=1))
        assert len(news) == 1
        assert news[0] in pool

    def test_soft_metrics_clamp_high(self, start_state):
        company = replace(start_state.player_company, brand_reputation=99.0, customer_satisfaction=99.0, employee_morale=99.0)
        alloc = ResourceAllocation(rd=0, marketing=50, sales=0, operations=0, hr=25, customer_service=25)
        brand, satisfaction, morale = soft_metrics(company, alloc, StrategyFocus.CUSTOMER_RETENTION, 5_000_000.0)

        assert (brand, satisfaction, morale) == (100.0, 100.0, 100.0)

    def test_soft_metrics_clamp_low(self, start_state):
        company = replace(start_state.player_company, brand_reputation=1.0, customer_satisfaction=1.0, employee_morale=1.0)
        alloc = ResourceAllocation(rd=100, marketing=0, sales=0, operations=0, hr=0, customer_service=0)
        brand, satisfaction, morale = soft_metrics(company, alloc, StrategyFocus.COST_REDUCTION, 0.0)

        assert (brand, satisfaction, morale) == (0.0, 0.0, 0.0)


class TestIdentity:
    def test_signatures(self):
        sig = sign_data("payload", "sec_a")
        assert sig == sign_data("payload", "sec_a")
        assert sig != sign_data("payload", "sec_b")
        assert verify_signature("payload", sig, "sec_a")
        assert not verify_signature("payload!", sig, "sec_a")

    def test_authorize_action(self, start_state):
        ids = start_state.identities
        assert authorize_action(ids, "p_nexus", ["Player"])
        assert not authorize_action(ids, "c_fin", ["Player"])
        assert not authorize_action(ids, "nobody", ["Player", "System"])


class TestAuditChain:
    def _log(self, ids):
        log = []
        for i, (agent, action) in enumerate([("p_nexus", "A"), ("c_fin", "B"), ("s_sys", "C")]):
            log, entry = record_audit_entry(log, ids, agent, action, {"n": i}, now_ms=i)
            assert entry is not None
        return log

    def test_chain_links(self, start_state):
        log = self._log(start_state.identities)

        assert log[0].previous_entry_hash is None
        assert log[1].previous_entry_hash == entry_hash(log[0])
        assert log[2].previous_entry_hash == entry_hash(log[1])
        assert log[1].agent_name == "FinFuture Inc."
        assert verify_audit_chain(log, start_state.identities) is None

    def test_unknown_agent_skipped(self, start_state):
        log, entry = record_audit_entry([], start_state.identities, "ghost", "X", {}, now_ms=0)
        assert entry is None
        assert log == []

    def test_tampered_details_detected(self, start_state):
        log = self._log(start_state.identities)
        log[1] = replace(log[1], details={"n": 99})

        assert verify_audit_chain(log, start_state.identities) == 1

    def test_dropped_entry_detected(self, start_state):
        log = self._log(start_state.identities)

        assert verify_audit_chain(log[1:], start_state.identities) == 0
        assert verify_audit_chain([log[0], log[2]], start_state.identities) == 1


def test_selfcheck_runs(capsys):
    from core.selfcheck import run_10_years_smoke

    run_10_years_smoke()
    assert "OK: 10-year core smoke test passed." in capsys.readouterr().out
