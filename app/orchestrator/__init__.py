"""Orchestrator package initialization"""
from app.orchestrator.deepseek_provider import (
    get_deepseek_provider,
    DeepSeekProvider,
    ReasoningServiceError,
    ReasoningTransportError,
    ReasoningStatusError,
    ReasoningResponseError,
)

__all__ = [
    "get_deepseek_provider", "DeepSeekProvider",
    "ReasoningServiceError", "ReasoningTransportError",
    "ReasoningStatusError", "ReasoningResponseError",
]
