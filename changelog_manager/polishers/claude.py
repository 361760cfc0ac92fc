from __future__ import annotations

from loguru import logger
import requests

from changelog_manager.errors import PolisherError
from changelog_manager.polishers.base import MessagePolisher, SYSTEM_PROMPT
from changelog_manager.utils.http_client import post as http_post

CLAUDE_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


class ClaudePolisher(MessagePolisher):
    name = "claude"
    default_model = "claude-3-haiku-20240307"

    def complete(self, prompt: str) -> str:
        logger.debug(f"Sending prompt to Claude model '{self.model}' (chars={len(prompt)})")
        try:
            resp = http_post(
                CLAUDE_URL,
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "max_tokens": 500,
                    "system": SYSTEM_PROMPT,
                    "messages": [{"role": "user", "content": prompt}],
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PolisherError(f"claude request failed: {e}") from e
        if resp.status_code < 200 or resp.status_code >= 300:
            raise PolisherError(f"claude API error: {resp.status_code}")
        try:
            blocks = resp.json()["content"]
            return "".join(b.get("text", "") for b in blocks if b.get("type") == "text")
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise PolisherError(f"claude returned an unexpected response: {e}") from e
