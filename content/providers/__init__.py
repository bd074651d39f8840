from .base import AdvisorProvider, ProviderStatus
from .gemini import GeminiProvider

__all__ = ["AdvisorProvider", "GeminiProvider", "ProviderStatus"]
