"""content.schemas

Contracts for directives coming from the outside (UI widgets, imported JSON):
- loose input is normalized here (aliases, casing, missing fields)
- the engine only ever sees a typed PlayerDirective

Validation of the economic rules (allocation must total 100%) stays in
engine.pipeline.validate_directive.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping

from core.state import (
    ALLOCATION_KEYS,
    HR_INITIATIVES,
    MarketingCampaign,
    NewProductPlan,
    PlayerDirective,
    PricingAdjustment,
    ProductType,
    ResourceAllocation,
    StrategyFocus,
    to_dict,
)


def _as_float(x: Any, default: float = 0.0) -> float:
    try:
        v = float(x)
    except (TypeError, ValueError):
        return float(default)
    return v if math.isfinite(v) else float(default)


def _slug(x: Any) -> str:
    return str(x or "").strip().lower().replace("-", "_").replace(" ", "_")


FOCUS_ALIASES: Dict[str, StrategyFocus] = {
    "rd": StrategyFocus.INNOVATION,
    "r&d": StrategyFocus.INNOVATION,
    "cost": StrategyFocus.COST_REDUCTION,
    "efficiency": StrategyFocus.COST_REDUCTION,
    "growth": StrategyFocus.MARKET_EXPANSION,
    "expansion": StrategyFocus.MARKET_EXPANSION,
    "retention": StrategyFocus.CUSTOMER_RETENTION,
    "risk": StrategyFocus.RISK_MANAGEMENT,
    "digital_assets": StrategyFocus.DIGITAL_ASSET_FOCUS,
    "tokens": StrategyFocus.DIGITAL_ASSET_FOCUS,
}

ALLOCATION_ALIASES = {
    "service": "customer_service",
    "customerservice": "customer_service",
    "capital": "capital_investment",
    "capitalinvestment": "capital_investment",
    "r&d": "rd",
}


def normalize_focus(focus: Any, default: StrategyFocus = StrategyFocus.INNOVATION) -> StrategyFocus:
    if isinstance(focus, StrategyFocus):
        return focus
    s = _slug(focus)
    for f in StrategyFocus:
        if f.value == s:
            return f
    return FOCUS_ALIASES.get(s, default)


def normalize_product_type(t: Any, default: ProductType = ProductType.FINTECH_APP) -> ProductType:
    if isinstance(t, ProductType):
        return t
    s = _slug(t)
    for p in ProductType:
        if p.value.lower() == s:
            return p
    return default


def normalize_hr_initiative(x: Any, default: str = "none") -> str:
    s = _slug(x)
    if s in HR_INITIATIVES:
        return s
    aliases = {"hire": "hiring", "train": "training", "layoffs": "downsizing", "downsize": "downsizing", "": "none"}
    return aliases.get(s, default)


def normalize_id_list(x: Any) -> List[str]:
    if x is None:
        return []
    if isinstance(x, str):
        return [p.strip() for p in x.split(",") if p.strip()]
    return [str(v).strip() for v in list(x) if str(v or "").strip()]


def allocation_from_mapping(d: Mapping[str, Any]) -> ResourceAllocation:
    """Build a ResourceAllocation. Missing keys become 0; UI aliases are accepted."""
    vals: Dict[str, float] = {k: 0.0 for k in ALLOCATION_KEYS}
    for k, v in dict(d or {}).items():
        raw = str(k).strip().lower()
        key = ALLOCATION_ALIASES.get(raw.replace("_", ""), raw)
        if key in vals:
            vals[key] = _as_float(v, 0.0)
    return ResourceAllocation(**vals)


def directive_from_dict(d: Mapping[str, Any]) -> PlayerDirective:
    """Loose -> typed. Unknown or malformed entries are dropped."""
    new_products: List[NewProductPlan] = []
    for p in list(d.get("new_products") or []):
        name = str((p or {}).get("name") or "").strip()
        if not name:
            continue
        new_products.append(
            NewProductPlan(
                name=name,
                type=normalize_product_type(p.get("type")),
                target_segment_ids=normalize_id_list(p.get("target_segment_ids")),
                features_to_develop=normalize_id_list(p.get("features_to_develop")),
            )
        )

    campaigns: List[MarketingCampaign] = []
    for c in list(d.get("marketing_campaigns") or []):
        name = str((c or {}).get("name") or "").strip()
        budget = _as_float(c.get("budget"), 0.0) if c else 0.0
        if not name or budget <= 0:
            continue
        campaigns.append(
            MarketingCampaign(
                name=name,
                budget=budget,
                message=str(c.get("message") or ""),
                target_segment_ids=normalize_id_list(c.get("target_segment_ids")),
            )
        )

    pricing: List[PricingAdjustment] = []
    for p in list(d.get("pricing_adjustments") or []):
        pid = str((p or {}).get("product_id") or "").strip()
        price = _as_float(p.get("new_price"), 0.0) if p else 0.0
        if pid and price > 0:
            pricing.append(PricingAdjustment(product_id=pid, new_price=price))

    return PlayerDirective(
        overall_focus=normalize_focus(d.get("overall_focus")),
        resource_allocation=allocation_from_mapping(d.get("resource_allocation") or {}),
        new_products=new_products,
        marketing_campaigns=campaigns,
        pricing_adjustments=pricing,
        hr_initiative=normalize_hr_initiative(d.get("hr_initiative")),
        risk_mitigation=[str(x).strip() for x in list(d.get("risk_mitigation") or []) if str(x or "").strip()],
        divest_product_lines=normalize_id_list(d.get("divest_product_lines")),
    )


def directive_to_dict(directive: PlayerDirective) -> Dict[str, Any]:
    return to_dict(directive)


def describe_directive(directive: PlayerDirective) -> str:
    alloc = directive.resource_allocation.as_dict()
    parts = ", ".join(f"{k} {v:g}%" for k, v in alloc.items() if v)
    return f"Focus: {directive.overall_focus.value.replace('_', ' ')} · Allocation: {parts} · HR: {directive.hr_initiative}"
