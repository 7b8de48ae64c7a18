# Role: Minimal wrapper around Gemini API. Centralizes model name, temperature, and error handling,
# so the rest of the code calls a single method: generate_text(prompt, system_instruction=None).

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from google import genai

import spot_assistant.config as config
from spot_assistant.core.errors import AgentError, TransientServiceError, ValidationError

logger = logging.getLogger(__name__)


class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.1,
    ) -> None:
        # Key lines:
        # - Reads secrets from config/env (no secrets in code).
        # - Model and temperature are configurable for experiments.
        self.api_key = api_key or config.GEMINI_API_KEY
        if not self.api_key:
            raise AgentError("Missing GEMINI_API_KEY in environment or .env", code="CONFIGURATION_ERROR")

        self.model_name = model or config.GEMINI_MODEL
        self.temperature = temperature

        self.client = genai.Client(api_key=self.api_key)

    def generate_text(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        # 1) Validate prompt
        # 2) Call Gemini (single text completion)
        # 3) Validate non-empty response
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt must be non-empty.")

        generation_config: Dict[str, Any] = {"temperature": self.temperature}
        if system_instruction:
            generation_config["system_instruction"] = system_instruction

        try:
            resp = self.client.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=generation_config,
            )
        except Exception as e:
            raise TransientServiceError(f"Gemini API call failed: {e}", cause=e) from e

        text = getattr(resp, "text", None)
        if not text:
            raise TransientServiceError("Gemini returned an empty response.")

        logger.debug("Gemini response: %s", text)
        return text.strip()
