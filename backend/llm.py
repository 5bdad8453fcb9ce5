# llm.py
import logging
from typing import Optional

import google.generativeai as genai

from config import GenerationConfig

logger = logging.getLogger("examgen.llm")


class GenerationFailed(Exception):
    """The model provider could not be reached or rejected the request."""


class GeminiClient:
    """
    Text-in/text-out wrapper around a single Gemini model.

    Build one per process at startup and hand it to whoever needs it;
    nothing here is configured at import time.
    """

    def __init__(self, api_key: str, model_name: str = "gemini-2.0-flash",
                 generation_config: Optional[GenerationConfig] = None):
        if not api_key:
            raise GenerationFailed("GOOGLE_API_KEY is missing in .env")
        self.model_name = model_name
        self.generation_config = generation_config or GenerationConfig()
        genai.configure(api_key=api_key)
        self._model = genai.GenerativeModel(model_name)

    def generate(self, prompt: str) -> str:
        logger.debug("Prompt for %s:\n%s", self.model_name, prompt)
        try:
            chat = self._model.start_chat(history=[])
            resp = chat.send_message(
                prompt, generation_config=self.generation_config.as_dict()
            )
            text = resp.text
        except Exception as e:
            logger.warning("Gemini call failed on %s: %s", self.model_name, e)
            raise GenerationFailed(f"Model {self.model_name} call failed: {e}") from e

        # Blocked or empty candidates come back without text
        if not text or not text.strip():
            raise GenerationFailed(f"Model {self.model_name} returned empty response.")
        logger.debug("Generated text:\n%s", text)
        return text

    # --- Simple ping for /api/llm-test
    def ping(self) -> dict:
        """
        Returns {"ok": True, "model": <model_used>, "content": "..."} on success,
                or {"ok": False, "error": "..."} on failure.
        """
        try:
            resp = self._model.generate_content("Reply with OK")
            text = (resp.text or "").strip()
        except Exception as e:
            return {"ok": False, "model": self.model_name, "error": str(e)}
        if not text:
            return {"ok": False, "model": self.model_name, "error": "Empty response"}
        return {"ok": True, "model": self.model_name, "content": text[:200]}
