"""
AI Provider Configuration
Any OpenAI-compatible endpoint works. The defaults point at Groq, with
Cerebras as the backup provider when a fallback key is set.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from openai import AsyncOpenAI, OpenAIError

from app.config import settings
from app.core.exceptions import ServiceUnavailableError, UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Provider:
    name: str
    client: AsyncOpenAI
    model: str


@lru_cache()
def get_providers() -> Tuple[Provider, ...]:
    """Configured providers in the order they are tried."""
    providers = []
    if settings.AI_API_KEY:
        providers.append(
            Provider(
                name="primary",
                client=AsyncOpenAI(
                    api_key=settings.AI_API_KEY,
                    base_url=settings.AI_BASE_URL or None,
                    timeout=settings.AI_TIMEOUT_SECONDS,
                ),
                model=settings.AI_MODEL,
            )
        )
    if settings.AI_FALLBACK_API_KEY:
        providers.append(
            Provider(
                name="fallback",
                client=AsyncOpenAI(
                    api_key=settings.AI_FALLBACK_API_KEY,
                    base_url=settings.AI_FALLBACK_BASE_URL or None,
                    timeout=settings.AI_TIMEOUT_SECONDS,
                ),
                model=settings.AI_FALLBACK_MODEL,
            )
        )
    return tuple(providers)


def ai_enabled() -> bool:
    return bool(get_providers())


async def call_llm(
    system_prompt: str,
    user_prompt: str,
    history: Optional[List[Dict[str, str]]] = None,
    max_tokens: int = 600,
    temperature: float = 0.7,
) -> str:
    """
    Run one chat completion, falling back to the next provider on error.

    Args:
        system_prompt: Instructions for the model
        user_prompt: The current request
        history: Earlier turns as {"role", "content"} dicts
        max_tokens: Reply length cap
        temperature: Sampling temperature

    Returns:
        The model's reply text
    """
    providers = get_providers()
    if not providers:
        raise ServiceUnavailableError("AI coach is not configured")

    messages = [{"role": "system", "content": system_prompt}]
    messages.extend(history or [])
    messages.append({"role": "user", "content": user_prompt})

    for provider in providers:
        try:
            response = await provider.client.chat.completions.create(
                model=provider.model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except OpenAIError as e:
            logger.warning("AI provider %s failed: %s", provider.name, e)
            continue
        return (response.choices[0].message.content or "").strip()

    raise UpstreamError("The AI coach is unavailable right now. Please try again later.")
