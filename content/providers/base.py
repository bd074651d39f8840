"""content.providers.base

Provider interfaces.

A provider's job is to turn an advice prompt into free text.
It knows nothing about the game state; content.oracle builds the prompt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ProviderStatus:
    ok: bool
    backend: str
    model: str
    note: str = ""
    error: str = ""


class AdvisorProvider(Protocol):
    def status(self) -> ProviderStatus: ...

    def generate_advice(
        self,
        *,
        prompt: str,
        temperature: float = 0.7,
        top_k: int = 40,
        top_p: float = 0.95,
        max_output_tokens: int = 1200,
    ) -> str:
        """Return raw model text (may be empty). Raise on transport/model errors."""
        ...
