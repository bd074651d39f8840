"""
Tests for engine.report (KPIs, insights, recommendations).
"""

from dataclasses import replace

import pytest

from core.state import PlayerDirective, ResourceAllocation, StrategyFocus
from engine.report import compute_kpis, generate_year_end_report, key_insights, recommendations


@pytest.fixture
def company(start_state):
    return start_state.player_company


class TestKpis:
    def test_growth_and_margin(self, company):
        curr = replace(company, revenue=2_200_000.0, profit=220_000.0, market_share=7.7)
        kpis = compute_kpis(company, curr, new_customers=0)

        assert kpis.revenue_growth == pytest.approx(10.0)
        assert kpis.market_share_growth == pytest.approx(10.0)
        assert kpis.profit_margin == pytest.approx(10.0)
        assert kpis.customer_acquisition_cost == 0.0
        assert kpis.innovation_index == pytest.approx(55.0)
        assert kpis.employee_morale == pytest.approx(65.0)

    def test_zero_revenue(self, company):
        curr = replace(company, revenue=0.0, profit=-50_000.0, product_lines=[])
        kpis = compute_kpis(company, curr, new_customers=0)

        assert kpis.profit_margin == 0.0
        assert kpis.innovation_index == 0.0

    def test_acquisition_cost(self, company):
        kpis = compute_kpis(company, company, new_customers=1_000)
        # seeded statement: 300k marketing + 150k sales
        assert kpis.customer_acquisition_cost == pytest.approx(450.0)


class TestInsights:
    def test_healthy_company(self, company):
        curr = replace(company, market_share=8.0)
        kpis = compute_kpis(company, curr, 0)
        out = key_insights(curr, kpis)

        assert out[:2] == ["Strong market positioning.", "Capital reserves are healthy."]

    def test_struggling_company(self, company):
        curr = replace(company, market_share=6.0, cash=500_000.0, profit=-10_000.0, customer_satisfaction=40.0)
        out = key_insights(curr, compute_kpis(company, curr, 0))

        assert "Market share dilution detected." in out
        assert "Warning: Liquidity constraints." in out
        assert "Operations are loss-making: costs outpace revenue." in out
        assert "Customer satisfaction is eroding." in out


class TestRecommendations:
    def test_low_rd_flagged(self, company):
        d = PlayerDirective(StrategyFocus.INNOVATION, ResourceAllocation(rd=10, marketing=40))
        curr = replace(company, market_share=8.0)
        out = recommendations(curr, d, compute_kpis(company, curr, 0))

        assert "Consider increasing R&D spend to maintain edge." in out

    def test_fallback_is_never_empty(self, company, directive):
        curr = replace(company, market_share=8.0, customer_satisfaction=80.0)
        out = recommendations(curr, directive, compute_kpis(company, curr, 0))

        assert out == ["Target SMB segment for expansion."]

    def test_report_shape(self, company, directive):
        report = generate_year_end_report(
            year=2025, prev=company, curr=company, directive=directive, new_customers=0,
            competitor_actions=["FinFuture Inc. launched aggressive marketing."],
            market_news_events=["Global Economic Boom announced."],
        )

        assert report.year == 2025
        assert report.competitor_actions == ["FinFuture Inc. launched aggressive marketing."]
        assert report.market_news_events == ["Global Economic Boom announced."]
        assert report.recommendations
