from __future__ import annotations

from loguru import logger
import requests

from changelog_manager.errors import PolisherError
from changelog_manager.polishers.base import MessagePolisher, SYSTEM_PROMPT
from changelog_manager.utils.http_client import post as http_post

OPENAI_URL = "https://api.openai.com/v1/chat/completions"


class OpenAIPolisher(MessagePolisher):
    name = "openai"
    default_model = "gpt-4o-mini"

    def complete(self, prompt: str) -> str:
        logger.debug(f"Sending prompt to OpenAI model '{self.model}' (chars={len(prompt)})")
        try:
            resp = http_post(
                OPENAI_URL,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "messages": [
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    "max_tokens": 500,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PolisherError(f"openai request failed: {e}") from e
        if resp.status_code < 200 or resp.status_code >= 300:
            raise PolisherError(f"openai API error: {resp.status_code}")
        try:
            return resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise PolisherError(f"openai returned an unexpected response: {e}") from e
