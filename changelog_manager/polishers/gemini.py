from __future__ import annotations

import traceback

from google import genai
from google.genai import types
from loguru import logger

from changelog_manager.errors import PolisherError
from changelog_manager.polishers.base import MessagePolisher, SYSTEM_PROMPT


class GeminiPolisher(MessagePolisher):
    name = "gemini"
    default_model = "gemini-2.5-flash"

    def _client(self) -> genai.Client:
        return genai.Client(
            api_key=self.api_key,
            http_options=types.HttpOptions(timeout=int(self.timeout * 1000)),
        )

    def complete(self, prompt: str) -> str:
        try:
            client = self._client()
        except Exception as exc:
            logger.debug(f"Gemini client init traceback:\n{traceback.format_exc()}")
            raise PolisherError(f"gemini client init failed: {exc}") from exc

        logger.debug(f"Sending prompt to Gemini model '{self.model}' (chars={len(prompt)})")
        try:
            response = client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(system_instruction=SYSTEM_PROMPT),
            )
        except Exception as exc:
            logger.debug(f"Gemini request traceback:\n{traceback.format_exc()}")
            raise PolisherError(f"gemini request failed: {exc}") from exc

        text = (response.text or "").strip()
        if not text:
            raise PolisherError("gemini returned an empty response")
        return text
