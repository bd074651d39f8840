"""
core.scenario
Seeded starting world.

Keep it in core so headless tests and UI share the same baseline.
"""

from __future__ import annotations

import time
from typing import Dict, List, Optional

from .modes import get_mode_spec
from .state import (
    AgentIdentity,
    BalanceSheet,
    CashFlowStatement,
    CompanyState,
    CompetitorProfile,
    FinancialStatement,
    Financials,
    GameState,
    MarketSegment,
    ProductLine,
    ProductType,
    StrategyFocus,
)

START_YEAR = 2024
PLAYER_IDENTITY = "p_nexus"
SYSTEM_IDENTITY = "s_sys"


def _identity(id_: str, name: str, role: str, created_at: int) -> AgentIdentity:
    short = id_.split("_", 1)[-1]
    return AgentIdentity(
        id=id_,
        name=name,
        role=role,
        public_key=f"pub_{short}",
        signing_key=f"sec_{short}",
        created_at=int(created_at),
    )


# Optional rivals a market mode may add on top of FinFuture.
EXTRA_COMPETITORS: Dict[str, CompetitorProfile] = {
    "comp2": CompetitorProfile(
        id="comp2",
        name="Innovatech Solutions",
        description="Venture-backed AI lab turning research into products fast.",
        market_share=12.0,
        financial_strength=60.0,
        innovation_focus=92.0,
        marketing_aggression=55.0,
        strategy="disruptive_innovation",
        identity_id="c_inno",
        product_offerings=[{"id": "inno_ai", "name": "Innovatech Core", "type": ProductType.AI_PLATFORM.value}],
    ),
    "comp3": CompetitorProfile(
        id="comp3",
        name="ValueCore Ltd.",
        description="Lean operator that wins on price.",
        market_share=18.0,
        financial_strength=70.0,
        innovation_focus=30.0,
        marketing_aggression=45.0,
        strategy="cost_leadership",
        identity_id="c_value",
        product_offerings=[{"id": "vc_fin", "name": "ValueCore Pay", "type": ProductType.FINTECH_APP.value}],
    ),
}

_EXTRA_IDENTITY_NAMES = {"c_inno": "Innovatech Solutions", "c_value": "ValueCore Ltd."}


def default_start_state(mode_key: str = "Balanced", created_at: Optional[int] = None) -> GameState:
    """Baseline start state for a new run."""
    now = int(created_at if created_at is not None else time.time() * 1000)
    spec = get_mode_spec(mode_key)

    identities: Dict[str, AgentIdentity] = {
        PLAYER_IDENTITY: _identity(PLAYER_IDENTITY, "Nexus Innovations", "Player", now),
        "c_fin": _identity("c_fin", "FinFuture Inc.", "Competitor", now),
        SYSTEM_IDENTITY: _identity(SYSTEM_IDENTITY, "System Core", "System", now),
    }

    company = CompanyState(
        id="nexus",
        name="Nexus Innovations",
        year_established=START_YEAR,
        cash=5_000_000.0,
        market_share=7.0,
        revenue=2_000_000.0,
        profit=100_000.0,
        employee_count=150,
        rd_budget=200_000.0,
        marketing_budget=300_000.0,
        sales_budget=150_000.0,
        operations_budget=100_000.0,
        hr_budget=200_000.0,
        customer_service_budget=50_000.0,
        capital_investment_budget=0.0,
        brand_reputation=65.0,
        customer_satisfaction=70.0,
        strategic_focus=StrategyFocus.INNOVATION,
        identity_id=PLAYER_IDENTITY,
        product_lines=[
            ProductLine(
                id="p1",
                name="Nexus App",
                type=ProductType.FINTECH_APP,
                base_cost=5.0,
                base_price=15.0,
                market_share=5.0,
                customer_count=100_000,
                revenue=1_500_000.0,
                profit=750_000.0,
                innovation_level=55.0,
                quality_score=70.0,
                lifecycle_stage="growth",
                target_segment_ids=["s1"],
                launch_year=START_YEAR,
            )
        ],
        financials=Financials(
            income_statement=FinancialStatement(
                revenue=2_000_000.0, cogs=800_000.0, gross_profit=1_200_000.0,
                rd_expenses=200_000.0, marketing_expenses=300_000.0, sales_expenses=150_000.0,
                operations_expenses=100_000.0, hr_expenses=200_000.0, customer_service_expenses=50_000.0,
                depreciation=50_000.0, operating_profit=150_000.0, interest_expenses=20_000.0,
                taxes=30_000.0, net_profit=100_000.0,
            ),
            balance_sheet=BalanceSheet(
                cash=5_000_000.0, accounts_receivable=100_000.0, inventory=0.0, fixed_assets=1_000_000.0,
                digital_assets=0.0, total_assets=6_100_000.0, accounts_payable=50_000.0,
                short_term_debt=200_000.0, long_term_debt=1_000_000.0, total_liabilities=1_250_000.0,
                equity=4_850_000.0, total_liabilities_and_equity=6_100_000.0,
            ),
            cash_flow_statement=CashFlowStatement(
                operating_activities=100_000.0, investing_activities=-50_000.0, financing_activities=0.0,
                net_change_in_cash=50_000.0, beginning_cash=4_950_000.0, ending_cash=5_000_000.0,
            ),
        ),
        employee_morale=65.0,
    )

    competitors: List[CompetitorProfile] = [
        CompetitorProfile(
            id="comp1",
            name="FinFuture Inc.",
            description="Established giant.",
            market_share=35.0,
            financial_strength=85.0,
            innovation_focus=60.0,
            marketing_aggression=90.0,
            strategy="market_capture",
            identity_id="c_fin",
        )
    ]
    penetration = {"comp1": 0.30}
    for key in spec.extra_competitors:
        comp = EXTRA_COMPETITORS[key]
        competitors.append(comp)
        identities[comp.identity_id] = _identity(comp.identity_id, _EXTRA_IDENTITY_NAMES[comp.identity_id], "Competitor", now)
        penetration[comp.id] = round(comp.market_share / 100.0, 4)

    segments = [
        MarketSegment(
            id="s1",
            name="Consumer Mass",
            total_size=50_000_000.0,
            growth_rate=(0.03, 0.07),
            sensitivity_to_price=0.7,
            sensitivity_to_innovation=0.3,
            current_player_penetration=0.05,
            competitor_penetration=penetration,
            customer_loyalty=60.0,
        )
    ]

    return GameState(
        current_year=START_YEAR,
        player_company=company,
        competitors=competitors,
        market_segments=segments,
        historical_reports=[],
        global_market_sentiment=65.0,
        audit_log=[],
        identities=identities,
    )
