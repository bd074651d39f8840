"""
core.state
Core domain data models (UI/LLM independent).

Everything is a frozen dataclass. Transitions build new objects with
dataclasses.replace(); nothing in core mutates a state in place.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


ValueRange = Tuple[float, float]


class StrategyFocus(str, Enum):
    INNOVATION = "innovation"
    COST_REDUCTION = "cost_reduction"
    MARKET_EXPANSION = "market_expansion"
    CUSTOMER_RETENTION = "customer_retention"
    RISK_MANAGEMENT = "risk_management"
    DIGITAL_ASSET_FOCUS = "digital_asset_focus"


class ProductType(str, Enum):
    AI_PLATFORM = "AI_Platform"
    FINTECH_APP = "FinTech_App"
    DATA_ANALYTICS = "Data_Analytics"
    CONSULTING_SERVICE = "Consulting_Service"
    TOKENIZED_ASSET_SERVICE = "Tokenized_Asset_Service"


ALLOCATION_KEYS = ("rd", "marketing", "sales", "operations", "hr", "customer_service", "capital_investment")

HR_INITIATIVES = ("training", "hiring", "downsizing", "none")
LIFECYCLE_STAGES = ("introduction", "growth", "maturity", "decline")
COMPETITOR_STRATEGIES = (
    "innovate",
    "cost_leadership",
    "market_capture",
    "niche_focus",
    "adapt_to_player",
    "disruptive_innovation",
)
AGENT_ROLES = ("Player", "Competitor", "System", "Auditor", "Regulator")


@dataclass(frozen=True)
class ResourceAllocation:
    """Share of the yearly budget per department, in percent (0..100 each)."""

    rd: float = 25.0
    marketing: float = 25.0
    sales: float = 20.0
    operations: float = 15.0
    hr: float = 10.0
    customer_service: float = 5.0
    capital_investment: float = 0.0

    def total(self) -> float:
        return float(sum(float(getattr(self, k)) for k in ALLOCATION_KEYS))

    def as_dict(self) -> Dict[str, float]:
        return {k: float(getattr(self, k)) for k in ALLOCATION_KEYS}


@dataclass(frozen=True)
class ProductFeature:
    id: str
    name: str
    development_cost: float
    development_time_years: int
    market_impact: ValueRange
    customer_satisfaction_boost: ValueRange
    innovation_score: float
    status: str = "planned"  # planned|developing|launched|obsolete
    launch_year: Optional[int] = None


@dataclass(frozen=True)
class ProductLine:
    id: str
    name: str
    type: ProductType
    base_cost: float
    base_price: float
    market_share: float
    customer_count: int
    revenue: float
    profit: float
    innovation_level: float    # 0..100
    quality_score: float       # 0..100
    lifecycle_stage: str       # introduction|growth|maturity|decline
    target_segment_ids: List[str] = field(default_factory=list)
    features: List[ProductFeature] = field(default_factory=list)
    launch_year: Optional[int] = None


@dataclass(frozen=True)
class MarketSegment:
    id: str
    name: str
    total_size: float
    growth_rate: ValueRange
    sensitivity_to_price: float
    sensitivity_to_innovation: float
    current_player_penetration: float
    competitor_penetration: Dict[str, float] = field(default_factory=dict)
    customer_loyalty: float = 50.0


@dataclass(frozen=True)
class CompetitorProfile:
    id: str
    name: str
    description: str
    market_share: float
    financial_strength: float
    innovation_focus: float
    marketing_aggression: float
    strategy: str
    identity_id: str
    product_offerings: List[Dict[str, str]] = field(default_factory=list)
    recent_actions: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class FinancialStatement:
    revenue: float = 0.0
    cogs: float = 0.0
    gross_profit: float = 0.0
    rd_expenses: float = 0.0
    marketing_expenses: float = 0.0
    sales_expenses: float = 0.0
    operations_expenses: float = 0.0
    hr_expenses: float = 0.0
    customer_service_expenses: float = 0.0
    depreciation: float = 0.0
    operating_profit: float = 0.0
    interest_expenses: float = 0.0
    taxes: float = 0.0
    net_profit: float = 0.0


@dataclass(frozen=True)
class BalanceSheet:
    cash: float = 0.0
    accounts_receivable: float = 0.0
    inventory: float = 0.0
    fixed_assets: float = 0.0
    digital_assets: float = 0.0
    total_assets: float = 0.0
    accounts_payable: float = 0.0
    short_term_debt: float = 0.0
    long_term_debt: float = 0.0
    total_liabilities: float = 0.0
    equity: float = 0.0
    total_liabilities_and_equity: float = 0.0


@dataclass(frozen=True)
class CashFlowStatement:
    operating_activities: float = 0.0
    investing_activities: float = 0.0
    financing_activities: float = 0.0
    net_change_in_cash: float = 0.0
    beginning_cash: float = 0.0
    ending_cash: float = 0.0


@dataclass(frozen=True)
class Financials:
    income_statement: FinancialStatement = field(default_factory=FinancialStatement)
    balance_sheet: BalanceSheet = field(default_factory=BalanceSheet)
    cash_flow_statement: CashFlowStatement = field(default_factory=CashFlowStatement)


@dataclass(frozen=True)
class CompanyState:
    """The player's company.

    Budgets hold the last year's spend per department (absolute currency).
    brand_reputation / customer_satisfaction / employee_morale are 0..100.
    """

    id: str
    name: str
    year_established: int
    cash: float
    market_share: float
    revenue: float
    profit: float
    employee_count: int
    rd_budget: float
    marketing_budget: float
    sales_budget: float
    operations_budget: float
    hr_budget: float
    customer_service_budget: float
    capital_investment_budget: float
    brand_reputation: float
    customer_satisfaction: float
    strategic_focus: StrategyFocus
    identity_id: str
    product_lines: List[ProductLine] = field(default_factory=list)
    financials: Financials = field(default_factory=Financials)
    employee_morale: float = 65.0


@dataclass(frozen=True)
class NewProductPlan:
    name: str
    type: ProductType
    target_segment_ids: List[str] = field(default_factory=list)
    features_to_develop: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class MarketingCampaign:
    name: str
    budget: float
    message: str = ""
    target_segment_ids: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PricingAdjustment:
    product_id: str
    new_price: float


@dataclass(frozen=True)
class PlayerDirective:
    overall_focus: StrategyFocus
    resource_allocation: ResourceAllocation
    new_products: List[NewProductPlan] = field(default_factory=list)
    marketing_campaigns: List[MarketingCampaign] = field(default_factory=list)
    pricing_adjustments: List[PricingAdjustment] = field(default_factory=list)
    hr_initiative: str = "none"  # training|hiring|downsizing|none
    risk_mitigation: List[str] = field(default_factory=list)
    divest_product_lines: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Kpis:
    market_share_growth: float
    revenue_growth: float
    profit_margin: float
    customer_acquisition_cost: float
    customer_retention_rate: float
    innovation_index: float
    employee_morale: float


@dataclass(frozen=True)
class YearEndReport:
    year: int
    company_state: CompanyState
    competitor_actions: List[str]
    market_news_events: List[str]
    directive: PlayerDirective
    kpis: Kpis
    key_insights: List[str]
    recommendations: List[str]


@dataclass(frozen=True)
class AgentIdentity:
    id: str
    name: str
    role: str  # Player|Competitor|System|Auditor|Regulator
    public_key: str
    signing_key: str
    created_at: int


@dataclass(frozen=True)
class AuditLogEntry:
    id: str
    timestamp: int  # ms since epoch
    agent_id: str
    agent_name: str
    action: str
    details: Dict[str, Any]
    signature: str
    previous_entry_hash: Optional[str] = None


@dataclass(frozen=True)
class GameState:
    current_year: int
    player_company: CompanyState
    competitors: List[CompetitorProfile] = field(default_factory=list)
    market_segments: List[MarketSegment] = field(default_factory=list)
    historical_reports: List[YearEndReport] = field(default_factory=list)
    global_market_sentiment: float = 65.0
    audit_log: List[AuditLogEntry] = field(default_factory=list)
    identities: Dict[str, AgentIdentity] = field(default_factory=dict)


# -------------------------
# (de)serialization helpers
# -------------------------


def _plain(x: Any) -> Any:
    if isinstance(x, Enum):
        return x.value
    if isinstance(x, dict):
        return {str(k): _plain(v) for k, v in x.items()}
    if isinstance(x, (list, tuple)):
        return [_plain(v) for v in x]
    return x


def to_dict(obj: Any) -> Dict[str, Any]:
    """asdict() with enums flattened to their values (JSON-friendly)."""
    return _plain(asdict(obj))


def _range(x: Any, default: ValueRange = (0.0, 0.0)) -> ValueRange:
    try:
        lo, hi = list(x)[:2]
        return (float(lo), float(hi))
    except (TypeError, ValueError):
        return default


def feature_from_dict(d: Mapping[str, Any]) -> ProductFeature:
    return ProductFeature(
        id=str(d["id"]),
        name=str(d.get("name", "")),
        development_cost=float(d.get("development_cost", 0.0)),
        development_time_years=int(d.get("development_time_years", 1)),
        market_impact=_range(d.get("market_impact")),
        customer_satisfaction_boost=_range(d.get("customer_satisfaction_boost")),
        innovation_score=float(d.get("innovation_score", 0.0)),
        status=str(d.get("status", "planned")),
        launch_year=d.get("launch_year"),
    )


def product_from_dict(d: Mapping[str, Any]) -> ProductLine:
    return ProductLine(
        id=str(d["id"]),
        name=str(d.get("name", "")),
        type=ProductType(d.get("type", ProductType.FINTECH_APP.value)),
        base_cost=float(d.get("base_cost", 0.0)),
        base_price=float(d.get("base_price", 0.0)),
        market_share=float(d.get("market_share", 0.0)),
        customer_count=int(d.get("customer_count", 0)),
        revenue=float(d.get("revenue", 0.0)),
        profit=float(d.get("profit", 0.0)),
        innovation_level=float(d.get("innovation_level", 50.0)),
        quality_score=float(d.get("quality_score", 50.0)),
        lifecycle_stage=str(d.get("lifecycle_stage", "introduction")),
        target_segment_ids=[str(x) for x in d.get("target_segment_ids") or []],
        features=[feature_from_dict(f) for f in d.get("features") or []],
        launch_year=d.get("launch_year"),
    )


def company_from_dict(d: Mapping[str, Any]) -> CompanyState:
    fin = dict(d.get("financials") or {})
    return CompanyState(
        id=str(d["id"]),
        name=str(d["name"]),
        year_established=int(d.get("year_established", 2024)),
        cash=float(d.get("cash", 0.0)),
        market_share=float(d.get("market_share", 0.0)),
        revenue=float(d.get("revenue", 0.0)),
        profit=float(d.get("profit", 0.0)),
        employee_count=int(d.get("employee_count", 0)),
        rd_budget=float(d.get("rd_budget", 0.0)),
        marketing_budget=float(d.get("marketing_budget", 0.0)),
        sales_budget=float(d.get("sales_budget", 0.0)),
        operations_budget=float(d.get("operations_budget", 0.0)),
        hr_budget=float(d.get("hr_budget", 0.0)),
        customer_service_budget=float(d.get("customer_service_budget", 0.0)),
        capital_investment_budget=float(d.get("capital_investment_budget", 0.0)),
        brand_reputation=float(d.get("brand_reputation", 50.0)),
        customer_satisfaction=float(d.get("customer_satisfaction", 50.0)),
        strategic_focus=StrategyFocus(d.get("strategic_focus", StrategyFocus.INNOVATION.value)),
        identity_id=str(d.get("identity_id", "")),
        product_lines=[product_from_dict(p) for p in d.get("product_lines") or []],
        financials=Financials(
            income_statement=FinancialStatement(**dict(fin.get("income_statement") or {})),
            balance_sheet=BalanceSheet(**dict(fin.get("balance_sheet") or {})),
            cash_flow_statement=CashFlowStatement(**dict(fin.get("cash_flow_statement") or {})),
        ),
        employee_morale=float(d.get("employee_morale", 65.0)),
    )


def competitor_from_dict(d: Mapping[str, Any]) -> CompetitorProfile:
    return CompetitorProfile(
        id=str(d["id"]),
        name=str(d.get("name", "")),
        description=str(d.get("description", "")),
        market_share=float(d.get("market_share", 0.0)),
        financial_strength=float(d.get("financial_strength", 50.0)),
        innovation_focus=float(d.get("innovation_focus", 50.0)),
        marketing_aggression=float(d.get("marketing_aggression", 50.0)),
        strategy=str(d.get("strategy", "adapt_to_player")),
        identity_id=str(d.get("identity_id", "")),
        product_offerings=[dict(x) for x in d.get("product_offerings") or []],
        recent_actions=[str(x) for x in d.get("recent_actions") or []],
    )


def segment_from_dict(d: Mapping[str, Any]) -> MarketSegment:
    return MarketSegment(
        id=str(d["id"]),
        name=str(d.get("name", "")),
        total_size=float(d.get("total_size", 0.0)),
        growth_rate=_range(d.get("growth_rate")),
        sensitivity_to_price=float(d.get("sensitivity_to_price", 0.5)),
        sensitivity_to_innovation=float(d.get("sensitivity_to_innovation", 0.5)),
        current_player_penetration=float(d.get("current_player_penetration", 0.0)),
        competitor_penetration={str(k): float(v) for k, v in dict(d.get("competitor_penetration") or {}).items()},
        customer_loyalty=float(d.get("customer_loyalty", 50.0)),
    )


def directive_from_plain(d: Mapping[str, Any]) -> PlayerDirective:
    """Strict rebuild from to_dict() output. Use content.schemas for loose UI/LLM input."""
    return PlayerDirective(
        overall_focus=StrategyFocus(d["overall_focus"]),
        resource_allocation=ResourceAllocation(**{k: float(v) for k, v in dict(d["resource_allocation"]).items()}),
        new_products=[
            NewProductPlan(
                name=str(p["name"]),
                type=ProductType(p["type"]),
                target_segment_ids=list(p.get("target_segment_ids") or []),
                features_to_develop=list(p.get("features_to_develop") or []),
            )
            for p in d.get("new_products") or []
        ],
        marketing_campaigns=[MarketingCampaign(**dict(c)) for c in d.get("marketing_campaigns") or []],
        pricing_adjustments=[PricingAdjustment(**dict(p)) for p in d.get("pricing_adjustments") or []],
        hr_initiative=str(d.get("hr_initiative", "none")),
        risk_mitigation=list(d.get("risk_mitigation") or []),
        divest_product_lines=list(d.get("divest_product_lines") or []),
    )


def report_from_dict(d: Mapping[str, Any]) -> YearEndReport:
    return YearEndReport(
        year=int(d["year"]),
        company_state=company_from_dict(d["company_state"]),
        competitor_actions=list(d.get("competitor_actions") or []),
        market_news_events=list(d.get("market_news_events") or []),
        directive=directive_from_plain(d["directive"]),
        kpis=Kpis(**{k: float(v) for k, v in dict(d["kpis"]).items()}),
        key_insights=list(d.get("key_insights") or []),
        recommendations=list(d.get("recommendations") or []),
    )


def game_state_from_dict(d: Mapping[str, Any]) -> GameState:
    """Rebuild a GameState from to_dict() output (run import)."""
    return GameState(
        current_year=int(d["current_year"]),
        player_company=company_from_dict(d["player_company"]),
        competitors=[competitor_from_dict(c) for c in d.get("competitors") or []],
        market_segments=[segment_from_dict(s) for s in d.get("market_segments") or []],
        historical_reports=[report_from_dict(r) for r in d.get("historical_reports") or []],
        global_market_sentiment=float(d.get("global_market_sentiment", 65.0)),
        audit_log=[AuditLogEntry(**dict(e)) for e in d.get("audit_log") or []],
        identities={str(k): AgentIdentity(**dict(v)) for k, v in dict(d.get("identities") or {}).items()},
    )
