"""engine.report

Year-end report: KPIs + rule-based insights and recommendations.
"""

from __future__ import annotations

from typing import List, Sequence

from core.effects import growth_rate
from core.state import (
    CompanyState,
    FinancialStatement,
    Kpis,
    PlayerDirective,
    StrategyFocus,
    YearEndReport,
    clamp,
)

HEALTHY_CASH = 1_000_000.0


def compute_kpis(prev: CompanyState, curr: CompanyState, new_customers: int) -> Kpis:
    income: FinancialStatement = curr.financials.income_statement
    acquisition_spend = float(income.marketing_expenses) + float(income.sales_expenses)
    products = list(curr.product_lines)
    return Kpis(
        market_share_growth=growth_rate(curr.market_share, prev.market_share),
        revenue_growth=growth_rate(curr.revenue, prev.revenue),
        profit_margin=(curr.profit / curr.revenue * 100.0) if curr.revenue else 0.0,
        customer_acquisition_cost=(acquisition_spend / new_customers) if new_customers > 0 else 0.0,
        customer_retention_rate=clamp(60.0 + 0.4 * curr.customer_satisfaction, 0.0, 100.0),
        innovation_index=(sum(p.innovation_level for p in products) / len(products)) if products else 0.0,
        employee_morale=float(curr.employee_morale),
    )


def key_insights(curr: CompanyState, kpis: Kpis) -> List[str]:
    out = [
        "Strong market positioning." if kpis.market_share_growth > 0 else "Market share dilution detected.",
        "Capital reserves are healthy." if curr.cash > HEALTHY_CASH else "Warning: Liquidity constraints.",
    ]
    if kpis.profit_margin < 0:
        out.append("Operations are loss-making: costs outpace revenue.")
    elif kpis.profit_margin > 15:
        out.append("Margins are best-in-class for the sector.")
    if curr.customer_satisfaction < 50:
        out.append("Customer satisfaction is eroding.")
    if not curr.product_lines:
        out.append("No active product lines: revenue has stopped.")
    return out


def recommendations(curr: CompanyState, directive: PlayerDirective, kpis: Kpis) -> List[str]:
    alloc = directive.resource_allocation
    out: List[str] = []
    if alloc.rd < 20:
        out.append("Consider increasing R&D spend to maintain edge.")
    if kpis.market_share_growth <= 0 and directive.overall_focus != StrategyFocus.MARKET_EXPANSION:
        out.append("Shift focus to market expansion to win back share.")
    if curr.customer_satisfaction < 60 or alloc.customer_service < 5:
        out.append("Invest in customer service to protect retention.")
    if curr.cash <= HEALTHY_CASH:
        out.append("Preserve cash: trim operating spend or raise capital.")
    if curr.employee_morale < 50:
        out.append("Run a training initiative to lift employee morale.")
    if not out:
        out.append("Target SMB segment for expansion.")
    return out


def generate_year_end_report(
    *,
    year: int,
    prev: CompanyState,
    curr: CompanyState,
    directive: PlayerDirective,
    new_customers: int,
    competitor_actions: Sequence[str],
    market_news_events: Sequence[str],
) -> YearEndReport:
    kpis = compute_kpis(prev, curr, new_customers)
    return YearEndReport(
        year=int(year),
        company_state=curr,
        competitor_actions=list(competitor_actions),
        market_news_events=list(market_news_events),
        directive=directive,
        kpis=kpis,
        key_insights=key_insights(curr, kpis),
        recommendations=recommendations(curr, directive, kpis),
    )
