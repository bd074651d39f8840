"""content.providers.gemini

Gemini provider (LLM) on top of google-genai.

- Accepts one key or a comma-separated list; rotates keys on failure.
- Walks a list of candidate models until one answers.

Important: This provider is UI-agnostic (no Streamlit dependency).
Secrets/env loading is done in the Streamlit app.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from engine.logging import get_logger

from .base import ProviderStatus

log = get_logger(__name__)

CANDIDATE_MODELS = [
    "gemini-3-flash-preview",
    "gemini-2.5-flash",
    "gemini-2.5-pro",
    "gemini-2.0-flash",
]


@dataclass
class GeminiProvider:
    api_keys: List[str]
    models: List[str] = field(default_factory=lambda: list(CANDIDATE_MODELS))

    # runtime
    backend: str = "none"  # genai | none
    model_in_use: str = ""
    last_error: str = ""

    _client: Any = None

    def __post_init__(self) -> None:
        self.api_keys = [k.strip() for k in (self.api_keys or []) if str(k).strip()]
        self._init_backend()

    @staticmethod
    def from_api_key_string(raw: str) -> "GeminiProvider":
        if not raw:
            return GeminiProvider([])
        keys = [x.strip() for x in str(raw).split(",") if x.strip()]
        return GeminiProvider(keys)

    def _init_backend(self) -> None:
        self._client = None
        self.backend = "none"
        self.model_in_use = ""

        if not self.api_keys:
            self.last_error = "API key missing."
            return

        try:
            from google import genai

            self._client = genai.Client(api_key=self.api_keys[0])
            self.backend = "genai"
            self.model_in_use = self.models[0] if self.models else ""
            self.last_error = ""
        except Exception as e:
            self.last_error = f"google-genai init failed: {e}"
            log.error("gemini_init_failed", error=str(e))

    def status(self) -> ProviderStatus:
        if self.backend == "none":
            return ProviderStatus(False, "none", "", note="", error=str(self.last_error or ""))
        return ProviderStatus(True, self.backend, self.model_in_use, note=f"{len(self.api_keys)} key(s)", error="")

    def _rotate_key(self) -> None:
        if len(self.api_keys) <= 1:
            return
        self.api_keys = self.api_keys[1:] + self.api_keys[:1]
        self._init_backend()

    def generate_advice(
        self,
        *,
        prompt: str,
        temperature: float = 0.7,
        top_k: int = 40,
        top_p: float = 0.95,
        max_output_tokens: int = 1200,
    ) -> str:
        cfg: Dict[str, Any] = {
            "temperature": float(temperature),
            "top_k": int(top_k),
            "top_p": float(top_p),
            "max_output_tokens": int(max_output_tokens),
        }
        last_err: Optional[Exception] = None

        for _ in range(max(1, len(self.api_keys))):
            if self.backend == "genai" and self._client is not None:
                for m in self.models:
                    try:
                        resp = self._client.models.generate_content(model=m, contents=prompt, config=cfg)
                    except Exception as e:
                        last_err = e
                        log.warning("gemini_model_failed", model=m, error=str(e))
                        continue
                    self.model_in_use = m
                    return (getattr(resp, "text", "") or "").strip()
            self._rotate_key()

        self.last_error = str(last_err) if last_err else "Gemini did not respond."
        raise RuntimeError(f"Gemini error: {last_err}" if last_err else "Gemini did not respond.")
