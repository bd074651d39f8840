"""
core.effects
Economy / physics rules for one simulated year:
- budget split (allocation % of the yearly spend)
- directive actions (pricing, divestment, launches, campaigns, HR)
- product growth + lifecycle
- soft metrics (brand, satisfaction, morale)
- competitor drift + actions, segment growth
- financial statements
- market sentiment drift
"""

from __future__ import annotations

import math
import random
from dataclasses import replace
from typing import Dict, List, Mapping, Sequence, Tuple

from .modes import ModeSpec
from .rng import uniform_rounded, weighted_pick
from .state import (
    BalanceSheet,
    CashFlowStatement,
    CompanyState,
    CompetitorProfile,
    FinancialStatement,
    Financials,
    MarketingCampaign,
    MarketSegment,
    NewProductPlan,
    PricingAdjustment,
    ProductFeature,
    ProductLine,
    ProductType,
    ResourceAllocation,
    StrategyFocus,
    clamp,
)

DEFAULT_SPEND_RATE = 0.15
TAX_RATE = 0.21
INTEREST_RATE = 0.05
DEPRECIATION_RATE = 0.05
NEW_PRODUCT_LAUNCH_COST = 250_000.0
NEW_PRODUCT_SEED_CUSTOMERS = 1_000
RECENT_ACTIONS_KEPT = 5

# Per-focus nudges on top of the base draws.
FOCUS_MODIFIERS: Dict[StrategyFocus, Dict[str, float]] = {
    StrategyFocus.INNOVATION:          {"growth": 0.00, "innovation": 2.0, "satisfaction": 0.0, "cost_factor": 1.00, "brand": 0.5, "share": 0.0},
    StrategyFocus.COST_REDUCTION:      {"growth": -0.01, "innovation": -1.0, "satisfaction": -1.0, "cost_factor": 0.95, "brand": 0.0, "share": 0.0},
    StrategyFocus.MARKET_EXPANSION:    {"growth": 0.02, "innovation": 0.0, "satisfaction": -0.5, "cost_factor": 1.00, "brand": 1.0, "share": 0.5},
    StrategyFocus.CUSTOMER_RETENTION:  {"growth": 0.00, "innovation": 0.0, "satisfaction": 2.0, "cost_factor": 1.00, "brand": 0.5, "share": 0.0},
    StrategyFocus.RISK_MANAGEMENT:     {"growth": -0.005, "innovation": 0.0, "satisfaction": 0.5, "cost_factor": 0.99, "brand": 0.5, "share": 0.0},
    StrategyFocus.DIGITAL_ASSET_FOCUS: {"growth": 0.01, "innovation": 1.0, "satisfaction": 0.0, "cost_factor": 1.00, "brand": 0.0, "share": 0.0},
}

# (base_cost, base_price, innovation_level) for freshly launched products.
PRODUCT_TEMPLATES: Dict[ProductType, Tuple[float, float, float]] = {
    ProductType.AI_PLATFORM: (12.0, 40.0, 60.0),
    ProductType.FINTECH_APP: (5.0, 15.0, 45.0),
    ProductType.DATA_ANALYTICS: (8.0, 25.0, 50.0),
    ProductType.CONSULTING_SERVICE: (60.0, 120.0, 30.0),
    ProductType.TOKENIZED_ASSET_SERVICE: (10.0, 30.0, 55.0),
}

COMPETITOR_PLAYBOOK: Dict[str, List[Tuple[str, float]]] = {
    "innovate": [
        ("{name} filed a batch of new AI patents.", 3.0),
        ("{name} shipped a major platform upgrade.", 2.0),
        ("{name} opened a new research lab.", 1.0),
    ],
    "cost_leadership": [
        ("{name} cut prices across its core line.", 3.0),
        ("{name} moved operations to a cheaper region.", 1.5),
        ("{name} announced a lean restructuring.", 1.0),
    ],
    "market_capture": [
        ("{name} launched aggressive marketing.", 3.0),
        ("{name} signed an exclusive distribution deal.", 1.5),
        ("{name} acquired a regional challenger.", 1.0),
    ],
    "niche_focus": [
        ("{name} doubled down on a specialist segment.", 2.0),
        ("{name} launched a premium tier for power users.", 1.0),
    ],
    "adapt_to_player": [
        ("{name} copied a recent feature from the market leader.", 2.0),
        ("{name} repositioned its brand to mirror rivals.", 1.0),
    ],
    "disruptive_innovation": [
        ("{name} released a free tier that undercuts incumbents.", 2.5),
        ("{name} raised a large funding round for a moonshot product.", 1.5),
        ("{name} open-sourced part of its stack.", 1.0),
    ],
}

NEWS_BOOM = [
    "Global Economic Boom announced.",
    "Consumer confidence hits a multi-year high.",
    "Venture funding surges across the tech sector.",
]
NEWS_DOWNTURN = [
    "Markets slide as recession fears grow.",
    "Central bank raises rates to cool inflation.",
    "Tech layoffs dominate the headlines.",
]
NEWS_STEADY = [
    "Markets trade sideways as investors wait for direction.",
    "Regulators open consultation on digital finance rules.",
    "Analysts expect steady demand for fintech services.",
]


def growth_rate(current: float, previous: float) -> float:
    """Percentage change. previous == 0 gives +inf for positive current, else 0."""
    if previous == 0:
        return math.inf if current > 0 else 0.0
    return (float(current) - float(previous)) / float(previous) * 100.0


def split_budget(spend: float, allocation: ResourceAllocation) -> Dict[str, float]:
    return {k: float(spend) * float(v) / 100.0 for k, v in allocation.as_dict().items()}


# -------------------------
# Directive actions
# -------------------------


def apply_pricing(products: Sequence[ProductLine], adjustments: Sequence[PricingAdjustment]) -> List[ProductLine]:
    prices = {str(a.product_id): float(a.new_price) for a in adjustments if float(a.new_price) > 0}
    return [replace(p, base_price=prices[p.id]) if p.id in prices else p for p in products]


def divest_products(products: Sequence[ProductLine], product_ids: Sequence[str]) -> List[ProductLine]:
    drop = {str(x) for x in product_ids}
    return [p for p in products if p.id not in drop]


def _next_product_id(products: Sequence[ProductLine], year: int) -> str:
    # Launch year in the id: divested ids are never handed out again.
    used = {p.id for p in products}
    n = 1
    while f"p{year}_{n}" in used:
        n += 1
    return f"p{year}_{n}"


def launch_products(products: Sequence[ProductLine], plans: Sequence[NewProductPlan], year: int) -> Tuple[List[ProductLine], float]:
    """Add planned products. Returns (products, launch_cost)."""
    out = list(products)
    cost = 0.0
    for plan in plans:
        base_cost, base_price, innovation = PRODUCT_TEMPLATES[plan.type]
        pid = _next_product_id(out, year)
        features = [
            ProductFeature(
                id=f"{pid}_f{i + 1}",
                name=str(name),
                development_cost=50_000.0,
                development_time_years=1,
                market_impact=(0.5, 2.0),
                customer_satisfaction_boost=(1.0, 3.0),
                innovation_score=innovation,
                status="developing",
            )
            for i, name in enumerate(plan.features_to_develop)
        ]
        out.append(
            ProductLine(
                id=pid,
                name=str(plan.name),
                type=plan.type,
                base_cost=base_cost,
                base_price=base_price,
                market_share=0.0,
                customer_count=NEW_PRODUCT_SEED_CUSTOMERS,
                revenue=0.0,
                profit=0.0,
                innovation_level=innovation,
                quality_score=60.0,
                lifecycle_stage="introduction",
                target_segment_ids=list(plan.target_segment_ids),
                features=features,
                launch_year=int(year),
            )
        )
        cost += NEW_PRODUCT_LAUNCH_COST + 50_000.0 * len(features)
    return out, cost


def campaign_spend(campaigns: Sequence[MarketingCampaign]) -> float:
    return float(sum(max(0.0, float(c.budget)) for c in campaigns))


def apply_hr_initiative(employee_count: int, morale: float, initiative: str) -> Tuple[int, float]:
    if initiative == "hiring":
        return int(round(employee_count * 1.10)), clamp(morale + 2.0, 0.0, 100.0)
    if initiative == "downsizing":
        return max(1, int(round(employee_count * 0.90))), clamp(morale - 8.0, 0.0, 100.0)
    if initiative == "training":
        return int(employee_count), clamp(morale + 6.0, 0.0, 100.0)
    return int(employee_count), float(morale)


# -------------------------
# Products
# -------------------------


def _next_stage(p: ProductLine, year: int, growth: float) -> str:
    stage = p.lifecycle_stage
    age = int(year) - int(p.launch_year if p.launch_year is not None else year)
    if stage == "introduction" and p.customer_count >= 10_000:
        return "growth"
    if stage == "growth" and (age >= 5 or growth < 0.03):
        return "maturity"
    if stage == "maturity" and p.innovation_level < 30.0:
        return "decline"
    return stage


def launch_features(features: Sequence[ProductFeature], year: int) -> List[ProductFeature]:
    return [replace(f, status="launched", launch_year=int(year)) if f.status == "developing" else f for f in features]


def grow_products(
    products: Sequence[ProductLine],
    rng: random.Random,
    *,
    rd_share: float,
    focus: StrategyFocus,
    spec: ModeSpec,
    year: int,
) -> Tuple[List[ProductLine], int]:
    """One year of product growth. Returns (products, new_customers)."""
    mods = FOCUS_MODIFIERS[focus]
    out: List[ProductLine] = []
    new_customers = 0
    for p in products:
        growth = uniform_rounded(rng, 0.01, 0.15, 4) * spec.swing + spec.growth_bias + mods["growth"]
        if p.lifecycle_stage == "decline":
            growth -= 0.05
        customers = max(0, int(round(p.customer_count * (1.0 + growth))))
        revenue = customers * float(p.base_price)
        margin = uniform_rounded(rng, 0.10, 0.25, 4)
        innovation = clamp(p.innovation_level + float(rd_share) / 10.0 + mods["innovation"], 0.0, 100.0)
        base_cost = float(p.base_cost) * mods["cost_factor"]
        grown = replace(
            p,
            customer_count=customers,
            revenue=float(revenue),
            profit=float(revenue * margin),
            innovation_level=float(innovation),
            base_cost=base_cost,
            features=launch_features(p.features, year),
        )
        out.append(replace(grown, lifecycle_stage=_next_stage(grown, year, growth)))
        new_customers += max(0, customers - int(p.customer_count))
    return out, new_customers


def cost_of_goods(products: Sequence[ProductLine]) -> float:
    return float(sum(p.customer_count * float(p.base_cost) for p in products))


# -------------------------
# Company-level metrics
# -------------------------


def drift_market_share(share: float, rng: random.Random, focus: StrategyFocus) -> float:
    return clamp(share + uniform_rounded(rng, -1.0, 2.0, 2) + FOCUS_MODIFIERS[focus]["share"], 0.0, 100.0)


def soft_metrics(
    company: CompanyState,
    allocation: ResourceAllocation,
    focus: StrategyFocus,
    campaigns_total: float,
) -> Tuple[float, float, float]:
    """(brand_reputation, customer_satisfaction, employee_morale) after a year."""
    mods = FOCUS_MODIFIERS[focus]
    brand = company.brand_reputation + (allocation.marketing - 20.0) / 10.0 + min(10.0, campaigns_total / 250_000.0) + mods["brand"]
    satisfaction = company.customer_satisfaction + (allocation.customer_service - 5.0) / 2.0 + mods["satisfaction"]
    morale = company.employee_morale + (allocation.hr - 10.0) / 4.0
    return clamp(brand, 0.0, 100.0), clamp(satisfaction, 0.0, 100.0), clamp(morale, 0.0, 100.0)


# -------------------------
# Competitors + segments
# -------------------------


def competitor_action(comp: CompetitorProfile, rng: random.Random) -> str:
    playbook = COMPETITOR_PLAYBOOK.get(comp.strategy, COMPETITOR_PLAYBOOK["adapt_to_player"])
    return weighted_pick(rng, playbook).format(name=comp.name)


def drift_competitors(competitors: Sequence[CompetitorProfile], rng: random.Random) -> Tuple[List[CompetitorProfile], List[str]]:
    out: List[CompetitorProfile] = []
    actions: List[str] = []
    for c in competitors:
        share = clamp(c.market_share + uniform_rounded(rng, -1.0, 1.0, 2), 1.0, 100.0)
        action = competitor_action(c, rng)
        actions.append(action)
        recent = [*c.recent_actions, action][-RECENT_ACTIONS_KEPT:]
        out.append(replace(c, market_share=float(share), recent_actions=recent))
    return out, actions


def grow_segments(
    segments: Sequence[MarketSegment],
    products: Sequence[ProductLine],
    competitors: Sequence[CompetitorProfile],
    rng: random.Random,
) -> List[MarketSegment]:
    shares = {c.id: round(float(c.market_share) / 100.0, 4) for c in competitors}
    out: List[MarketSegment] = []
    for s in segments:
        lo, hi = s.growth_rate
        size = float(s.total_size) * (1.0 + uniform_rounded(rng, lo, hi, 4))
        customers = sum(p.customer_count for p in products if s.id in p.target_segment_ids)
        penetration = float(customers) / size if size > 0 else 0.0
        comp_pen = {k: shares.get(k, v) for k, v in s.competitor_penetration.items()}
        for cid, v in shares.items():
            comp_pen.setdefault(cid, v)
        out.append(replace(s, total_size=size, current_player_penetration=penetration, competitor_penetration=comp_pen))
    return out


# -------------------------
# Financials
# -------------------------


def build_financials(
    prev: Financials,
    *,
    beginning_cash: float,
    revenue: float,
    cogs: float,
    expenses: Mapping[str, float],
    capex: float,
) -> Financials:
    """Regenerate the three statements for the year.

    `expenses` holds operating spend per department (rd, marketing, sales,
    operations, hr, customer_service). Debt is carried unchanged.
    """
    bs0 = prev.balance_sheet
    depreciation = float(bs0.fixed_assets) * DEPRECIATION_RATE
    opex = float(sum(float(v) for v in expenses.values()))
    gross = float(revenue) - float(cogs)
    operating = gross - opex - depreciation
    interest = (float(bs0.short_term_debt) + float(bs0.long_term_debt)) * INTEREST_RATE
    pre_tax = operating - interest
    taxes = max(0.0, pre_tax) * TAX_RATE
    net = pre_tax - taxes

    income = FinancialStatement(
        revenue=float(revenue),
        cogs=float(cogs),
        gross_profit=gross,
        rd_expenses=float(expenses.get("rd", 0.0)),
        marketing_expenses=float(expenses.get("marketing", 0.0)),
        sales_expenses=float(expenses.get("sales", 0.0)),
        operations_expenses=float(expenses.get("operations", 0.0)),
        hr_expenses=float(expenses.get("hr", 0.0)),
        customer_service_expenses=float(expenses.get("customer_service", 0.0)),
        depreciation=depreciation,
        operating_profit=operating,
        interest_expenses=interest,
        taxes=taxes,
        net_profit=net,
    )

    operating_cf = net + depreciation
    investing_cf = -float(capex)
    financing_cf = 0.0
    net_change = operating_cf + investing_cf + financing_cf
    ending_cash = float(beginning_cash) + net_change

    cash_flow = CashFlowStatement(
        operating_activities=operating_cf,
        investing_activities=investing_cf,
        financing_activities=financing_cf,
        net_change_in_cash=net_change,
        beginning_cash=float(beginning_cash),
        ending_cash=ending_cash,
    )

    receivable = float(revenue) * 0.05
    fixed = max(0.0, float(bs0.fixed_assets) + float(capex) - depreciation)
    total_assets = ending_cash + receivable + float(bs0.inventory) + fixed + float(bs0.digital_assets)
    payable = float(cogs) * 0.0625
    total_liabilities = payable + float(bs0.short_term_debt) + float(bs0.long_term_debt)
    balance = BalanceSheet(
        cash=ending_cash,
        accounts_receivable=receivable,
        inventory=float(bs0.inventory),
        fixed_assets=fixed,
        digital_assets=float(bs0.digital_assets),
        total_assets=total_assets,
        accounts_payable=payable,
        short_term_debt=float(bs0.short_term_debt),
        long_term_debt=float(bs0.long_term_debt),
        total_liabilities=total_liabilities,
        equity=total_assets - total_liabilities,
        total_liabilities_and_equity=total_assets,
    )
    return Financials(income_statement=income, balance_sheet=balance, cash_flow_statement=cash_flow)


# -------------------------
# Sentiment + news
# -------------------------


def drift_sentiment(sentiment: float, rng: random.Random, spec: ModeSpec) -> float:
    lo = clamp(float(sentiment) - spec.sentiment_step, spec.sentiment_floor, spec.sentiment_ceiling)
    hi = clamp(float(sentiment) + spec.sentiment_step, spec.sentiment_floor, spec.sentiment_ceiling)
    return uniform_rounded(rng, lo, hi, 0)


def market_news(prev_sentiment: float, new_sentiment: float, rng: random.Random) -> List[str]:
    delta = float(new_sentiment) - float(prev_sentiment)
    if delta >= 5:
        pool = NEWS_BOOM
    elif delta <= -5:
        pool = NEWS_DOWNTURN
    else:
        pool = NEWS_STEADY
    return [rng.choice(pool)]
