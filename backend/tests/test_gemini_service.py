"""
ChatGate Backend — Gemini Service Unit Tests (Mocked)
=======================================================

What:  Tests for GeminiService with a mocked Google Generative AI SDK.
Why:   Tests should not make real API calls (costs money, requires network).
How:   Patches the genai module and model to simulate success/failure.

What we test:
    ✅ Successful call returns the generated text
    ✅ The prompt is sent as a single user turn with the request timeout
    ✅ SDK errors and blocked responses become InferenceError
    ✅ No retry: exactly one SDK call per generate_text
    ❌ Real API calls (use integration tests for that)
"""

from unittest.mock import AsyncMock, MagicMock, PropertyMock, patch

import pytest

from chatgate.exceptions import InferenceError
from chatgate.services.gemini_service import GeminiService


def _service_with_model(model):
    with patch("chatgate.services.gemini_service.genai") as mock_genai:
        mock_genai.GenerativeModel.return_value = model
        return GeminiService()


class TestGeminiServiceMocked:
    """Tests for GeminiService with mocked Gemini API."""

    @pytest.mark.asyncio
    async def test_generate_text_success(self):
        mock_response = MagicMock()
        mock_response.text = "Hello from Gemini"
        mock_model = MagicMock()
        mock_model.generate_content_async = AsyncMock(return_value=mock_response)

        service = _service_with_model(mock_model)
        result = await service.generate_text("Say hello")

        assert result == "Hello from Gemini"
        args, kwargs = mock_model.generate_content_async.call_args
        assert args[0] == [{"role": "user", "parts": ["Say hello"]}]
        assert kwargs["request_options"] == {"timeout": service.timeout}

    @pytest.mark.asyncio
    async def test_empty_text_returns_empty_string(self):
        mock_response = MagicMock()
        mock_response.text = None
        mock_model = MagicMock()
        mock_model.generate_content_async = AsyncMock(return_value=mock_response)

        service = _service_with_model(mock_model)
        assert await service.generate_text("anything") == ""

    @pytest.mark.asyncio
    async def test_sdk_failure_raises_inference_error_once(self):
        mock_model = MagicMock()
        mock_model.generate_content_async = AsyncMock(side_effect=TimeoutError("deadline exceeded"))

        service = _service_with_model(mock_model)
        with pytest.raises(InferenceError) as exc_info:
            await service.generate_text("Say hello")

        assert exc_info.value.context["error_type"] == "TimeoutError"
        assert mock_model.generate_content_async.await_count == 1

    @pytest.mark.asyncio
    async def test_blocked_response_raises_inference_error(self):
        """response.text raises ValueError when the candidate was blocked."""
        mock_response = MagicMock()
        type(mock_response).text = PropertyMock(side_effect=ValueError("blocked by safety"))
        mock_model = MagicMock()
        mock_model.generate_content_async = AsyncMock(return_value=mock_response)

        service = _service_with_model(mock_model)
        with pytest.raises(InferenceError):
            await service.generate_text("Say something unsafe")

    def test_is_configured_reflects_api_key(self):
        service = _service_with_model(MagicMock())
        with patch("chatgate.services.gemini_service.settings") as mock_settings:
            mock_settings.gemini_api_key = ""
            assert service.is_configured() is False
            mock_settings.gemini_api_key = "key"
            assert service.is_configured() is True
