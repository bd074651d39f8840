"""
core.modes
Market mode specifications (volatility / sentiment band / advisor temperature).

Kept in core so balancing lives in one place, but UI can still display labels.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class ModeSpec:
    key: str
    desc: str
    temp: float               # advisor temperature
    swing: float              # scales product growth draws
    sentiment_floor: float
    sentiment_ceiling: float
    sentiment_step: float
    growth_bias: float        # added to every product growth draw
    extra_competitors: Tuple[str, ...]
    tone: str


DEFAULT_MODES: Dict[str, ModeSpec] = {
    "Balanced": ModeSpec(
        key="Balanced",
        desc="Steady market. Sentiment drifts inside a wide band; one established rival.",
        temp=0.70,
        swing=1.00,
        sentiment_floor=20.0,
        sentiment_ceiling=95.0,
        sentiment_step=15.0,
        growth_bias=0.0,
        extra_competitors=(),
        tone="insightful, witty and brutally honest",
    ),
    "Volatile": ModeSpec(
        key="Volatile",
        desc="Hype cycles. Sentiment swings hard and a disruptive newcomer enters.",
        temp=0.85,
        swing=1.35,
        sentiment_floor=10.0,
        sentiment_ceiling=98.0,
        sentiment_step=25.0,
        growth_bias=0.0,
        extra_competitors=("comp2",),
        tone="fast, punchy and a little paranoid about the next crash",
    ),
    "Recession": ModeSpec(
        key="Recession",
        desc="Money is expensive. Growth is slower and sentiment is capped.",
        temp=0.60,
        swing=0.80,
        sentiment_floor=15.0,
        sentiment_ceiling=70.0,
        sentiment_step=10.0,
        growth_bias=-0.01,
        extra_competitors=("comp3",),
        tone="sober, cash-focused and unsentimental",
    ),
}


def get_mode_spec(mode_key: str) -> ModeSpec:
    return DEFAULT_MODES.get(mode_key, DEFAULT_MODES["Balanced"])
