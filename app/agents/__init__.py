# Spark AI coach

from .config import Provider, ai_enabled, call_llm, get_providers
from .coach import get_coach_response

__all__ = [
    "Provider",
    "ai_enabled",
    "call_llm",
    "get_providers",
    "get_coach_response",
]
