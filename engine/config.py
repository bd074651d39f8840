"""engine.config

Engine configuration passed from UI, plus process-level settings read from env.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from core.effects import DEFAULT_SPEND_RATE


@dataclass(frozen=True)
class EngineConfig:
    base_seed: int
    mode_key: str = "Balanced"
    spend_rate: float = DEFAULT_SPEND_RATE
    season_length: int = 10


def _truthy(raw: Optional[str]) -> bool:
    return str(raw or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str = ""
    log_level: str = "INFO"
    log_json: bool = False

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        key = env.get("GEMINI_API_KEY") or env.get("GOOGLE_API_KEY") or env.get("API_KEY") or ""
        return Settings(
            gemini_api_key=str(key),
            log_level=str(env.get("LOG_LEVEL") or "INFO").upper(),
            log_json=_truthy(env.get("LOG_JSON")),
        )

    def api_keys(self) -> List[str]:
        return [k.strip() for k in self.gemini_api_key.split(",") if k.strip()]
