"""API provider clients."""

from .gemini import GeminiClient
from .openrouter import OpenRouterClient
from .wavespeed import WaveSpeedAIClient

__all__ = ["GeminiClient", "OpenRouterClient", "WaveSpeedAIClient"]
