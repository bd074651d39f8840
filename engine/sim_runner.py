"""engine.sim_runner

Headless runner for quick sanity checks.

This keeps tests deterministic and CI-friendly by avoiding network calls.
It ships a tiny built-in fake advisor provider.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from content.providers.base import ProviderStatus
from core.scenario import default_start_state
from core.state import PlayerDirective, ResourceAllocation, StrategyFocus, YearEndReport

from .config import EngineConfig
from .pipeline import SimulationEngine


@dataclass
class FakeAdvisor:
    """Deterministic provider for tests (no LLM). Records every prompt it sees."""

    reply: str = "Cut the vanity projects and double down on what customers pay for."
    ok: bool = True
    error: Optional[Exception] = None
    prompts: List[str] = field(default_factory=list)

    def status(self) -> ProviderStatus:
        if not self.ok:
            return ProviderStatus(False, "fake", "", error="offline")
        return ProviderStatus(True, "fake", "fake-advisor")

    def generate_advice(self, *, prompt: str, temperature: float = 0.7, top_k: int = 40, top_p: float = 0.95, max_output_tokens: int = 1200) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


# Rotates focus so a headless run touches every modifier.
_FOCUS_CYCLE = [
    StrategyFocus.INNOVATION,
    StrategyFocus.MARKET_EXPANSION,
    StrategyFocus.CUSTOMER_RETENTION,
    StrategyFocus.COST_REDUCTION,
]


def scripted_directive(year_index: int) -> PlayerDirective:
    return PlayerDirective(
        overall_focus=_FOCUS_CYCLE[year_index % len(_FOCUS_CYCLE)],
        resource_allocation=ResourceAllocation(rd=25, marketing=25, sales=20, operations=15, hr=10, customer_service=5, capital_investment=0),
        hr_initiative="training" if year_index % 3 == 2 else "none",
    )


def run_headless_sim(years: int = 5, mode_key: str = "Balanced", base_seed: int = 123) -> Dict[str, Any]:
    """Run a deterministic simulation and return summary."""
    cfg = EngineConfig(base_seed=base_seed, mode_key=mode_key)
    engine = SimulationEngine(default_start_state(mode_key, created_at=0), cfg)

    reports: List[YearEndReport] = []
    for i in range(years):
        if engine.get_game_state().player_company.cash <= 0:
            break
        engine.set_player_directive(scripted_directive(i))
        reports.append(engine.advance_year(now_ms=1_700_000_000_000 + i))

    return {
        "years": len(reports),
        "final": engine.get_game_state(),
        "reports": reports,
    }
