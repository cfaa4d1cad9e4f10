"""
ChatGate Backend — Abstract LLM Service Interface
===================================================

What:  Contract for the inference gateway behind POST /api/chat.
Why:   ChatService only needs "prompt in, text out, or InferenceError".
       Keeping Gemini behind this interface lets tests substitute a fake and
       keeps provider details out of the entitlement flow.
"""

from abc import ABC, abstractmethod


class LLMService(ABC):
    """
    Contract:
        - generate_text() returns the model's text for a single-turn prompt
        - every provider failure is raised as InferenceError
        - implementations never retry on their own; a failed call must reach
          ChatService so it can restore the debited credit
    """

    @abstractmethod
    async def generate_text(self, prompt: str) -> str:
        """
        Send one user prompt and return the generated text.

        Raises:
            InferenceError: the provider failed, timed out, or returned no text
        """
        ...

    @abstractmethod
    def is_configured(self) -> bool:
        """True if credentials are present. Used by /health; makes no network call."""
        ...
