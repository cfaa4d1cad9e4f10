"""
ChatGate Backend — Google Gemini Service Implementation
=========================================================

What:  Inference gateway: sends a user prompt to Gemini and returns the text.
How:   google-generativeai SDK, single-turn generate_content_async with a
       request timeout. Any failure is translated into InferenceError.
Who:   Instantiated once at import; called by ChatService per chat request.

No retries here:
    A chat request has already paid one credit when this runs. A failure has
    to surface to ChatService so the credit is handed back, and the user
    decides whether to try again.
"""

import logging
import time
import uuid

import google.generativeai as genai

from chatgate.config import settings
from chatgate.exceptions import InferenceError
from chatgate.services.llm_base import LLMService

logger = logging.getLogger(__name__)


class GeminiService(LLMService):
    """Google Gemini text generation behind the LLMService contract."""

    def __init__(self):
        # The SDK keeps the API key in module-level state
        if settings.gemini_api_key:
            genai.configure(api_key=settings.gemini_api_key)

        self.model = genai.GenerativeModel(settings.gemini_model)
        self.timeout = settings.gemini_timeout_seconds

        logger.info(
            "GeminiService initialized with model=%s, timeout=%ds",
            settings.gemini_model,
            self.timeout,
        )

    async def generate_text(self, prompt: str) -> str:
        """
        Generate a reply for a single user prompt.

        Flow:
            1. Send the prompt as one "user" turn
            2. Read response.text (raises if the candidate was blocked)
            3. Log latency and output size

        Raises:
            InferenceError: on any SDK, network, timeout or safety-block failure
        """
        call_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        try:
            response = await self.model.generate_content_async(
                [{"role": "user", "parts": [prompt]}],
                request_options={"timeout": self.timeout},
            )
            text = response.text
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "[%s] Gemini call failed after %.0fms: %s",
                call_id,
                duration_ms,
                str(e),
            )
            raise InferenceError(
                context={"call_id": call_id, "error_type": type(e).__name__},
            ) from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "[%s] Gemini call completed in %.0fms, generated %d chars",
            call_id,
            duration_ms,
            len(text or ""),
        )
        return text or ""

    def is_configured(self) -> bool:
        return bool(settings.gemini_api_key)


gemini_service = GeminiService()
