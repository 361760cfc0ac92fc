"""Message polishing providers."""

from typing import Optional

from loguru import logger

from changelog_manager.config import Settings

from .base import MessagePolisher, build_prompt, parse_bullets, polish_messages


def _openai(api_key: str, model: Optional[str], timeout: float) -> MessagePolisher:
    from .openai import OpenAIPolisher

    return OpenAIPolisher(api_key, model, timeout)


def _claude(api_key: str, model: Optional[str], timeout: float) -> MessagePolisher:
    from .claude import ClaudePolisher

    return ClaudePolisher(api_key, model, timeout)


def _gemini(api_key: str, model: Optional[str], timeout: float) -> MessagePolisher:
    from .gemini import GeminiPolisher

    return GeminiPolisher(api_key, model, timeout)


_POLISHER_FACTORIES = {
    "openai": _openai,
    "claude": _claude,
    "gemini": _gemini,
}


def get_polisher(settings: Settings) -> Optional[MessagePolisher]:
    """Return the configured polisher, or None when AI polishing is disabled.

    Parameters:
        settings (Settings): Resolved configuration; ``ai_provider`` selects the
            factory and ``ai_api_key`` must be set.
    """
    if not settings.ai_enabled:
        logger.debug("No AI API key configured; using raw commit messages.")
        return None
    factory = _POLISHER_FACTORIES.get(settings.ai_provider or "")
    if factory is None:
        logger.warning(f"Unknown AI provider {settings.ai_provider!r}; polishing disabled.")
        return None
    try:
        return factory(settings.ai_api_key or "", settings.ai_model, settings.http_timeout)
    except Exception as e:
        logger.warning(f"Could not initialize {settings.ai_provider} polisher: {e}")
        return None


__all__ = [
    "MessagePolisher",
    "build_prompt",
    "get_polisher",
    "parse_bullets",
    "polish_messages",
]
