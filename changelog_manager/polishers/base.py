from __future__ import annotations

import textwrap
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from loguru import logger

from changelog_manager.errors import PolisherError

SYSTEM_PROMPT = (
    "You are a helpful assistant that writes clear, professional changelog entries."
)


def build_prompt(messages: Sequence[str], use_emojis: bool = False) -> str:
    """Compose the rewrite instructions for a batch of raw commit messages."""
    style = (
        "Start each entry with one fitting emoji right after the dash "
        '(for example "- ✨ Added ..." or "- 🐛 Fixed ...").'
        if use_emojis
        else "Do not use emojis."
    )
    joined = "\n".join(messages)
    instructions = f"""
    Please rephrase these commit messages into polished, professional changelog entries.
    Each should be a clear, concise bullet point describing what was changed or added.
    Keep exactly one bullet per message, in the same order as given.
    {style}

    {{messages}}

    Return only the polished bullet points, one per line, starting with "- ".
    """
    return textwrap.dedent(instructions).strip().replace("{messages}", joined)


def parse_bullets(text: str) -> List[str]:
    """Keep only the lines of a provider response that are ``- `` bullets."""
    return [line.strip() for line in (text or "").split("\n") if line.strip().startswith("- ")]


class MessagePolisher(ABC):
    """Rewrites raw commit messages into changelog bullets.

    Implementations raise PolisherError on any failure; callers go through
    ``polish_messages`` to get the raw-text fallback.
    """

    name: str = "base"
    default_model: str = ""

    def __init__(
        self, api_key: str, model: Optional[str] = None, timeout: float = 30.0
    ) -> None:
        self.api_key = api_key
        self.model = model or self.default_model
        self.timeout = timeout

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """Send ``prompt`` to the provider and return the generated text."""

    def polish(self, messages: Sequence[str], use_emojis: bool = False) -> List[str]:
        if not self.api_key:
            raise PolisherError(f"{self.name}: missing API key")
        text = self.complete(build_prompt(messages, use_emojis))
        bullets = parse_bullets(text)
        if not bullets:
            raise PolisherError(f"{self.name}: response contained no bullet lines")
        return bullets


def polish_messages(
    polisher: Optional[MessagePolisher],
    messages: Sequence[str],
    use_emojis: bool = False,
) -> List[str]:
    """Polish ``messages`` and always return one bullet per input, in order.

    Missing polisher, provider failures and short responses all fall back to
    ``- <raw message>`` for the affected positions.
    """
    fallback = [f"- {m}" for m in messages]
    if polisher is None or not messages:
        return fallback

    try:
        polished = polisher.polish(messages, use_emojis)
    except Exception as e:
        logger.warning(f"AI API failed, using raw messages: {e}")
        return fallback

    if len(polished) != len(messages):
        logger.warning(
            f"{polisher.name} returned {len(polished)} entries for {len(messages)} messages; "
            "filling gaps with raw messages."
        )
    return [
        polished[i] if i < len(polished) and polished[i] else fallback[i]
        for i in range(len(messages))
    ]
