"""engine.pipeline

Core year flow (headless).

Responsibilities:
- Validate a PlayerDirective
- Record the directive in the audit log
- Apply economy rules for the next year (core.effects)
- Move competitors, segments and market sentiment
- Build the YearEndReport and close the year in the audit log

This layer is UI-agnostic.
"""

from __future__ import annotations

import copy
import math
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

from core.audit import record_audit_entry
from core.effects import (
    apply_hr_initiative,
    apply_pricing,
    build_financials,
    campaign_spend,
    cost_of_goods,
    divest_products,
    drift_competitors,
    drift_market_share,
    drift_sentiment,
    grow_products,
    grow_segments,
    launch_products,
    market_news,
    soft_metrics,
    split_budget,
)
from core.identity import authorize_action
from core.modes import get_mode_spec
from core.rng import rng_from
from core.scenario import SYSTEM_IDENTITY
from core.state import (
    ALLOCATION_KEYS,
    HR_INITIATIVES,
    AuditLogEntry,
    GameState,
    PlayerDirective,
    StrategyFocus,
    YearEndReport,
    to_dict,
)

from .config import EngineConfig
from .logging import get_logger
from .report import generate_year_end_report

log = get_logger(__name__)


def validate_directive(directive: PlayerDirective) -> None:
    alloc = directive.resource_allocation
    for k in ALLOCATION_KEYS:
        v = float(getattr(alloc, k))
        if not math.isfinite(v) or v < 0 or v > 100:
            raise ValueError(f"Allocation for {k} must be within 0..100 (got {v:g})")
    if abs(alloc.total() - 100.0) > 1e-6:
        raise ValueError("Allocation must total 100%")
    if not isinstance(directive.overall_focus, StrategyFocus):
        raise ValueError(f"Unknown strategic focus: {directive.overall_focus!r}")
    if directive.hr_initiative not in HR_INITIATIVES:
        raise ValueError(f"Unknown HR initiative: {directive.hr_initiative!r}")
    for c in directive.marketing_campaigns:
        if not math.isfinite(float(c.budget)) or float(c.budget) < 0:
            raise ValueError(f"Campaign {c.name!r}: budget must be a finite amount >= 0")
    for p in directive.pricing_adjustments:
        if not math.isfinite(float(p.new_price)):
            raise ValueError(f"Price for {p.product_id!r} must be a finite amount")


def _audit(
    entries: List[AuditLogEntry],
    state: GameState,
    agent_id: str,
    action: str,
    details: Dict[str, Any],
    now_ms: Optional[int],
) -> List[AuditLogEntry]:
    out, entry = record_audit_entry(entries, state.identities, agent_id, action, details, now_ms=now_ms)
    if entry is None:
        log.warning("audit_entry_skipped", agent_id=agent_id, action=action)
    return out


def advance_year(
    *,
    state: GameState,
    directive: PlayerDirective,
    config: EngineConfig,
    now_ms: Optional[int] = None,
) -> Tuple[GameState, YearEndReport]:
    """Apply a directive and advance the world one year.

    Returns (new_state, report). The input state is left untouched.
    """
    validate_directive(directive)

    spec = get_mode_spec(config.mode_key)
    company = state.player_company
    year = int(state.current_year) + 1
    seed = int(config.base_seed)

    if not authorize_action(state.identities, company.identity_id, ["Player"]):
        raise PermissionError(f"Identity {company.identity_id!r} may not set strategic directives")

    # 1) audit the directive
    audit = _audit(
        list(state.audit_log), state, company.identity_id, "SetStrategicDirective",
        {"year": year, "directive": to_dict(directive)}, now_ms,
    )

    # 2) spend split + directive actions
    alloc = directive.resource_allocation
    focus = directive.overall_focus
    beginning_cash = float(company.cash)
    spend = max(0.0, beginning_cash) * float(config.spend_rate)
    budget = split_budget(spend, alloc)
    capex = budget.pop("capital_investment")

    products = apply_pricing(company.product_lines, directive.pricing_adjustments)
    products = divest_products(products, directive.divest_product_lines)
    products, launch_cost = launch_products(products, directive.new_products, year)
    campaigns = campaign_spend(directive.marketing_campaigns)

    # 3) product growth
    products, new_customers = grow_products(
        products,
        rng_from("products", year, base_seed=seed),
        rd_share=float(alloc.rd),
        focus=focus,
        spec=spec,
        year=year,
    )
    revenue = float(sum(p.revenue for p in products))

    expenses = dict(budget)
    expenses["rd"] = expenses.get("rd", 0.0) + launch_cost
    expenses["marketing"] = expenses.get("marketing", 0.0) + campaigns
    financials = build_financials(
        company.financials,
        beginning_cash=beginning_cash,
        revenue=revenue,
        cogs=cost_of_goods(products),
        expenses=expenses,
        capex=capex,
    )

    # 4) company-level metrics
    brand, satisfaction, morale = soft_metrics(company, alloc, focus, campaigns)
    employees, morale = apply_hr_initiative(company.employee_count, morale, directive.hr_initiative)
    new_company = replace(
        company,
        strategic_focus=focus,
        cash=financials.balance_sheet.cash,
        revenue=revenue,
        profit=financials.income_statement.net_profit,
        market_share=drift_market_share(company.market_share, rng_from("company", year, base_seed=seed), focus),
        employee_count=employees,
        rd_budget=expenses["rd"],
        marketing_budget=expenses["marketing"],
        sales_budget=expenses.get("sales", 0.0),
        operations_budget=expenses.get("operations", 0.0),
        hr_budget=expenses.get("hr", 0.0),
        customer_service_budget=expenses.get("customer_service", 0.0),
        capital_investment_budget=capex,
        brand_reputation=brand,
        customer_satisfaction=satisfaction,
        employee_morale=morale,
        product_lines=products,
        financials=financials,
    )

    # 5) world
    competitors, competitor_actions = drift_competitors(state.competitors, rng_from("competitors", year, base_seed=seed))
    segments = grow_segments(state.market_segments, products, competitors, rng_from("segments", year, base_seed=seed))
    sentiment = drift_sentiment(state.global_market_sentiment, rng_from("sentiment", year, base_seed=seed), spec)
    news = market_news(state.global_market_sentiment, sentiment, rng_from("news", year, base_seed=seed))

    # 6) report
    report = generate_year_end_report(
        year=year,
        prev=company,
        curr=new_company,
        directive=directive,
        new_customers=new_customers,
        competitor_actions=competitor_actions,
        market_news_events=news,
    )

    # 7) close the year in the audit log
    for comp, action in zip(competitors, competitor_actions):
        if comp.identity_id in state.identities:
            audit = _audit(audit, state, comp.identity_id, "CompetitorAction", {"year": year, "action": action}, now_ms)
    audit = _audit(
        audit, state, SYSTEM_IDENTITY, "YearEndReport",
        {
            "year": year,
            "revenue": new_company.revenue,
            "net_profit": new_company.profit,
            "cash": new_company.cash,
            "market_share": new_company.market_share,
            "global_market_sentiment": sentiment,
        },
        now_ms,
    )

    new_state = replace(
        state,
        current_year=year,
        player_company=new_company,
        competitors=competitors,
        market_segments=segments,
        historical_reports=[*state.historical_reports, report],
        global_market_sentiment=sentiment,
        audit_log=audit,
    )

    log.info(
        "year_advanced",
        year=year,
        focus=focus.value,
        revenue=round(new_company.revenue, 2),
        net_profit=round(new_company.profit, 2),
        cash=round(new_company.cash, 2),
        market_share=new_company.market_share,
        sentiment=sentiment,
    )
    return new_state, report


class SimulationEngine:
    """Stateful wrapper used by the UI: set a directive, then advance.

    Works on its own copy of the initial state.
    """

    def __init__(self, initial_state: GameState, config: EngineConfig) -> None:
        self._state = copy.deepcopy(initial_state)
        self._config = config
        self._directive: Optional[PlayerDirective] = None

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def pending_directive(self) -> Optional[PlayerDirective]:
        return self._directive

    def set_player_directive(self, directive: PlayerDirective) -> None:
        validate_directive(directive)
        self._directive = directive
        log.info("directive_set", year=self._state.current_year + 1, focus=directive.overall_focus.value)

    def get_game_state(self) -> GameState:
        return self._state

    def advance_year(self, now_ms: Optional[int] = None) -> YearEndReport:
        if self._directive is None:
            raise RuntimeError("No directive set.")
        new_state, report = advance_year(state=self._state, directive=self._directive, config=self._config, now_ms=now_ms)
        self._state = new_state
        self._directive = None
        return report
