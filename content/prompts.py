"""content.prompts

Prompt builders for the advisory layer.

The model never touches the economy: it only reads a summary of the state
and answers the CEO's question in free text.
"""

from __future__ import annotations

from typing import List, Optional

from core.state import GameState, YearEndReport

ORACLE_NAME = "NexusOracle"
DEFAULT_TONE = "insightful, witty, and brutally honest"


def format_currency(amount: float, symbol: str = "$") -> str:
    """1234.5 -> "$1,234.50" (sign goes before the symbol)."""
    amount = float(amount)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def _joined(items: Optional[List[str]]) -> str:
    return "; ".join(items or []) or "N/A"


def build_advice_prompt(state: GameState, query: str, *, tone: str = DEFAULT_TONE) -> str:
    player = state.player_company
    last: Optional[YearEndReport] = state.historical_reports[-1] if state.historical_reports else None
    competitors = ", ".join(
        f"{c.name} ({c.market_share:.2f}% share, strategy: {c.strategy})" for c in state.competitors
    ) or "none"

    return f"""
You are an expert business strategy AI consultant named '{ORACLE_NAME}'.
You are advising the CEO of "{player.name}" within a complex market simulation.
Your tone should be {tone}.

CURRENT SITUATION (Year {state.current_year}):
- Company: {player.name}
- Cash: {format_currency(player.cash)}
- Market Share: {player.market_share:.2f}%
- Net Profit (Last Year): {format_currency(player.profit)}
- Strategic Focus: {player.strategic_focus.value}
- Brand Reputation: {player.brand_reputation:.0f}/100
- Core Competitors: {competitors}
- Global Market Sentiment: {state.global_market_sentiment:g}/100

LAST YEAR'S REPORT SUMMARY:
- Key Insights: {_joined(last.key_insights if last else None)}
- Recommendations: {_joined(last.recommendations if last else None)}
- Major Market Events: {_joined(last.market_news_events if last else None)}

The CEO has the following query: "{query}"

Your task is to provide a concise, actionable, and strategic response based on this data.
Do not just repeat the data. Synthesize it. Provide your expert opinion as {ORACLE_NAME}.
""".strip()
