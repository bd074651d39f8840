"""
Shared fixtures. Nothing here touches the network.
"""

from __future__ import annotations

import pytest

from core.scenario import default_start_state
from core.state import PlayerDirective, ResourceAllocation, StrategyFocus
from engine.config import EngineConfig
from engine.sim_runner import FakeAdvisor

NOW_MS = 1_700_000_000_000


@pytest.fixture
def start_state():
    return default_start_state(created_at=0)


@pytest.fixture
def config():
    return EngineConfig(base_seed=42, mode_key="Balanced")


@pytest.fixture
def directive():
    return PlayerDirective(
        overall_focus=StrategyFocus.INNOVATION,
        resource_allocation=ResourceAllocation(),
    )


@pytest.fixture
def fake_advisor():
    return FakeAdvisor()
