"""
Tests for the advisory layer: prompt building, NexusOracle and the Gemini provider.
No test talks to the network; the Gemini client is mocked.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from content.oracle import EMPTY_RESPONSE_MESSAGE, OFFLINE_MESSAGE, get_strategic_advice
from content.prompts import build_advice_prompt, format_currency
from content.providers.gemini import CANDIDATE_MODELS, GeminiProvider
from engine.pipeline import advance_year
from engine.sim_runner import FakeAdvisor

from .conftest import NOW_MS


@pytest.mark.parametrize(
    "amount,expected",
    [(1234.5, "$1,234.50"), (0, "$0.00"), (-1000, "-$1,000.00"), (5_000_000, "$5,000,000.00")],
)
def test_format_currency(amount, expected):
    assert format_currency(amount) == expected


class TestPrompt:
    def test_first_year_prompt(self, start_state):
        prompt = build_advice_prompt(start_state, "Should we raise prices?")

        assert "CURRENT SITUATION (Year 2024)" in prompt
        assert "- Cash: $5,000,000.00" in prompt
        assert "- Market Share: 7.00%" in prompt
        assert "FinFuture Inc. (35.00% share, strategy: market_capture)" in prompt
        assert "- Global Market Sentiment: 65/100" in prompt
        assert "- Key Insights: N/A" in prompt
        assert 'The CEO has the following query: "Should we raise prices?"' in prompt

    def test_prompt_uses_last_report(self, start_state, directive, config):
        state, report = advance_year(state=start_state, directive=directive, config=config, now_ms=NOW_MS)
        prompt = build_advice_prompt(state, "What now?", tone="calm")

        assert "CURRENT SITUATION (Year 2025)" in prompt
        assert "Your tone should be calm." in prompt
        assert "; ".join(report.key_insights) in prompt
        assert "- Key Insights: N/A" not in prompt


class TestOracle:
    def test_answer(self, start_state, fake_advisor):
        answer = get_strategic_advice(fake_advisor, start_state, "  Where do we grow?  ")

        assert answer == fake_advisor.reply
        assert len(fake_advisor.prompts) == 1
        assert '"Where do we grow?"' in fake_advisor.prompts[0]

    def test_blank_query_rejected(self, start_state, fake_advisor):
        with pytest.raises(ValueError):
            get_strategic_advice(fake_advisor, start_state, "   ")
        assert fake_advisor.prompts == []

    def test_offline(self, start_state):
        assert get_strategic_advice(None, start_state, "Hi") == OFFLINE_MESSAGE
        offline = FakeAdvisor(ok=False)
        assert get_strategic_advice(offline, start_state, "Hi") == OFFLINE_MESSAGE
        assert offline.prompts == []

    def test_provider_error_becomes_text(self, start_state):
        answer = get_strategic_advice(FakeAdvisor(error=RuntimeError("quota exceeded")), start_state, "Hi")
        assert answer == "NexusOracle: Failed to process request. Error: quota exceeded"

    def test_empty_reply(self, start_state):
        assert get_strategic_advice(FakeAdvisor(reply="  "), start_state, "Hi") == EMPTY_RESPONSE_MESSAGE


def _mocked_provider(*responses):
    provider = GeminiProvider([])
    provider.api_keys = ["k1"]
    provider.backend = "genai"
    provider._client = MagicMock()
    provider._client.models.generate_content.side_effect = list(responses)
    return provider


class TestGeminiProvider:
    def test_without_key(self):
        provider = GeminiProvider([])
        status = provider.status()

        assert not status.ok
        assert status.error == "API key missing."
        with pytest.raises(RuntimeError):
            provider.generate_advice(prompt="hi")

    def test_key_string_is_split(self, monkeypatch):
        monkeypatch.setattr(GeminiProvider, "_init_backend", lambda self: None)
        provider = GeminiProvider.from_api_key_string(" a, b ,, ")
        assert provider.api_keys == ["a", "b"]

    def test_generate_advice(self):
        provider = _mocked_provider(SimpleNamespace(text="  Focus on retention.  "))

        assert provider.generate_advice(prompt="p", temperature=0.5) == "Focus on retention."
        kwargs = provider._client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == CANDIDATE_MODELS[0]
        assert kwargs["contents"] == "p"
        assert kwargs["config"] == {"temperature": 0.5, "top_k": 40, "top_p": 0.95, "max_output_tokens": 1200}

    def test_falls_back_to_next_model(self):
        provider = _mocked_provider(Exception("404 model not found"), SimpleNamespace(text="ok"))

        assert provider.generate_advice(prompt="p") == "ok"
        assert provider.model_in_use == CANDIDATE_MODELS[1]
        assert provider.status().ok

    def test_all_models_fail(self):
        provider = _mocked_provider(*[Exception("boom")] * len(CANDIDATE_MODELS))

        with pytest.raises(RuntimeError, match="boom"):
            provider.generate_advice(prompt="p")
        assert provider.last_error == "boom"
