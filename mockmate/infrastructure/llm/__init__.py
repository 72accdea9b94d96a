"""LLM infrastructure."""

from .client import GeminiRestClient

__all__ = ["GeminiRestClient"]
