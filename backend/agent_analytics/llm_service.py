"""
LLM service for metric analysis.

Wraps Gemini (google-generativeai). The client is configured once from the
startup settings and handed to the metric processor.
"""

import logging
from typing import Any, Optional
from urllib.parse import urlparse

import google.generativeai as genai

from agent_analytics.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_API_BASE = "https://generativelanguage.googleapis.com"


def _response_text(gen_response: Any) -> Optional[str]:
    """First text part of the first candidate, falling back to `.text`."""
    if getattr(gen_response, "candidates", None):
        content = getattr(gen_response.candidates[0], "content", None)
        for part in getattr(content, "parts", None) or []:
            text = getattr(part, "text", None)
            if text:
                return text
    try:
        text = getattr(gen_response, "text", None)
    except ValueError:
        # .text raises when the candidate was blocked or has no parts
        return None
    return text or None


class GeminiService:
    """Generates text with a Gemini model."""

    def __init__(self, api_key: str, api_base: str = DEFAULT_GEMINI_API_BASE,
                 temperature: float = 0.1, max_output_tokens: int = 1000):
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        # google-generativeai expects just the host for api_endpoint
        parsed = urlparse(api_base)
        api_endpoint = parsed.netloc or parsed.path or api_base
        genai.configure(api_key=api_key, client_options={"api_endpoint": api_endpoint})

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiService":
        return cls(
            settings.gemini_api_key,
            temperature=settings.temperature,
            max_output_tokens=settings.max_output_tokens,
        )

    async def generate_content(
        self,
        model_name: str,
        prompt: str,
        system_instruction: str,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> Optional[str]:
        """
        Generates a completion for `prompt`.

        Args:
            model_name: Gemini model, with or without the "models/" prefix
            prompt: The prompt text
            system_instruction: System instruction for model context
            temperature: Sampling temperature (service default when omitted)
            max_output_tokens: Output token cap (service default when omitted)

        Returns:
            Generated text, or None when the model returned no text
        """
        if not model_name.startswith("models/"):
            model_name = f"models/{model_name}"
        model = genai.GenerativeModel(model_name, system_instruction=system_instruction)
        gen_response = await model.generate_content_async(
            prompt,
            generation_config={
                "temperature": self.temperature if temperature is None else temperature,
                "max_output_tokens": self.max_output_tokens if max_output_tokens is None else max_output_tokens,
            },
        )
        text = _response_text(gen_response)
        if text is None:
            logger.warning(f"Model {model_name} returned no text")
        return text
