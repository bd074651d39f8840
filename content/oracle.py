"""content.oracle

NexusOracle: chat-style strategic advice.

get_strategic_advice() always returns text for the chat window. Provider
problems become an in-character error line instead of an exception, so a bad
key or a flaky model never breaks the game loop.
"""

from __future__ import annotations

from typing import Optional

from core.state import GameState
from engine.logging import get_logger

from .prompts import DEFAULT_TONE, ORACLE_NAME, build_advice_prompt
from .providers.base import AdvisorProvider

log = get_logger(__name__)

GREETING = (
    f"CEO, the market data is flowing. I am {ORACLE_NAME}. "
    "How can I guide your next multi-million dollar gamble?"
)
OFFLINE_MESSAGE = (
    f"{ORACLE_NAME}: System offline. "
    "(API Key missing. Please ensure GEMINI_API_KEY is set in environment.)"
)
EMPTY_RESPONSE_MESSAGE = "I'm contemplating the futility of corporate strategy. Please try again."

TOP_K = 40
TOP_P = 0.95


def get_strategic_advice(
    provider: Optional[AdvisorProvider],
    state: GameState,
    query: str,
    *,
    temperature: float = 0.7,
    tone: str = DEFAULT_TONE,
) -> str:
    q = str(query or "").strip()
    if not q:
        raise ValueError("Query must not be empty")

    if provider is None or not provider.status().ok:
        return OFFLINE_MESSAGE

    prompt = build_advice_prompt(state, q, tone=tone)
    try:
        text = provider.generate_advice(prompt=prompt, temperature=float(temperature), top_k=TOP_K, top_p=TOP_P)
    except Exception as e:
        log.error("oracle_request_failed", error=str(e), year=state.current_year)
        return f"{ORACLE_NAME}: Failed to process request. Error: {e}"

    text = (text or "").strip()
    if not text:
        return EMPTY_RESPONSE_MESSAGE
    log.info("oracle_answered", year=state.current_year, chars=len(text))
    return text
