"""
Tests for content.schemas (loose directive input -> PlayerDirective).
"""

import pytest

from content.schemas import (
    allocation_from_mapping,
    describe_directive,
    directive_from_dict,
    directive_to_dict,
    normalize_focus,
    normalize_hr_initiative,
    normalize_id_list,
    normalize_product_type,
)
from core.state import ProductType, ResourceAllocation, StrategyFocus, directive_from_plain


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("innovation", StrategyFocus.INNOVATION),
        ("Cost Reduction", StrategyFocus.COST_REDUCTION),
        ("market-expansion", StrategyFocus.MARKET_EXPANSION),
        ("retention", StrategyFocus.CUSTOMER_RETENTION),
        ("tokens", StrategyFocus.DIGITAL_ASSET_FOCUS),
        ("moonshot", StrategyFocus.INNOVATION),
        (None, StrategyFocus.INNOVATION),
    ],
)
def test_normalize_focus(raw, expected):
    assert normalize_focus(raw) == expected


def test_normalize_small_fields():
    assert normalize_product_type("ai_platform") == ProductType.AI_PLATFORM
    assert normalize_product_type("toaster") == ProductType.FINTECH_APP
    assert normalize_hr_initiative("Hire") == "hiring"
    assert normalize_hr_initiative("layoffs") == "downsizing"
    assert normalize_hr_initiative("") == "none"
    assert normalize_id_list("s1, s2,,") == ["s1", "s2"]
    assert normalize_id_list(None) == []


def test_allocation_aliases():
    alloc = allocation_from_mapping(
        {"R&D": 30, "marketing": "20", "sales": 20, "operations": 10, "hr": 10, "service": 5, "capital": 5, "bogus": 99}
    )
    assert alloc == ResourceAllocation(
        rd=30.0, marketing=20.0, sales=20.0, operations=10.0, hr=10.0, customer_service=5.0, capital_investment=5.0
    )
    assert alloc.total() == pytest.approx(100.0)


def test_directive_from_dict_drops_malformed_entries():
    d = directive_from_dict(
        {
            "overall_focus": "growth",
            "resource_allocation": {"rd": 100},
            "new_products": [{"name": "Nexus AI", "type": "AI_Platform", "features_to_develop": "copilot, alerts"}, {"name": " "}],
            "marketing_campaigns": [{"name": "Blitz", "budget": 1000}, {"name": "Free", "budget": 0}],
            "pricing_adjustments": [{"product_id": "p1", "new_price": 19.99}, {"product_id": "p1", "new_price": -1}],
            "hr_initiative": "train",
            "divest_product_lines": "p9",
        }
    )

    assert d.overall_focus == StrategyFocus.MARKET_EXPANSION
    assert d.resource_allocation.rd == 100.0
    assert d.resource_allocation.marketing == 0.0
    assert [p.name for p in d.new_products] == ["Nexus AI"]
    assert d.new_products[0].features_to_develop == ["copilot", "alerts"]
    assert [c.name for c in d.marketing_campaigns] == ["Blitz"]
    assert len(d.pricing_adjustments) == 1
    assert d.hr_initiative == "training"
    assert d.divest_product_lines == ["p9"]


def test_plain_dict_rebuilds_directive():
    d = directive_from_dict({"overall_focus": "risk", "resource_allocation": ResourceAllocation().as_dict()})
    assert directive_from_plain(directive_to_dict(d)) == d


def test_describe_directive(directive):
    text = describe_directive(directive)
    assert text.startswith("Focus: innovation")
    assert "rd 25%" in text
    assert "capital_investment" not in text
