"""Gemini client and the text-completion service used by the chat mentor."""

import logging
import os
import threading
from typing import Protocol, runtime_checkable

from google import genai
from google.genai import types
from google.genai.errors import ClientError, ServerError

from .config import MODEL
from .errors import UpstreamUnavailableError
from .models import ChatTurn

logger = logging.getLogger(__name__)

# Concurrency limiter - prevents thundering-herd 429s when many sessions
# talk to Gemini at once.
_gemini_semaphore = threading.Semaphore(30)


def create_client() -> genai.Client:
    """Create a Gemini client."""
    api_key = os.getenv("GOOGLE_API_KEY")
    if not api_key:
        raise ValueError("GOOGLE_API_KEY environment variable not set")
    return genai.Client(api_key=api_key)


@runtime_checkable
class CompletionService(Protocol):
    """Black-box conversational text completion."""

    def complete(self, system_briefing: str, transcript: list[ChatTurn], new_message: str) -> str:
        """Return the assistant reply to *new_message* given the prior *transcript*.

        Raises:
            UpstreamUnavailableError: The backend failed.
        """
        ...


def _to_contents(transcript: list[ChatTurn], new_message: str) -> list[types.Content]:
    contents = [
        types.Content(
            role="model" if turn.role == "assistant" else "user",
            parts=[types.Part(text=turn.text)],
        )
        for turn in transcript
    ]
    contents.append(types.Content(role="user", parts=[types.Part(text=new_message)]))
    return contents


class GeminiCompletionService:
    """``CompletionService`` backed by ``client.models.generate_content``.

    Makes exactly one attempt per call; retrying a failed turn is up to the
    caller.
    """

    def __init__(
        self,
        client: genai.Client,
        model: str = MODEL,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> None:
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def complete(self, system_briefing: str, transcript: list[ChatTurn], new_message: str) -> str:
        try:
            with _gemini_semaphore:
                response = self.client.models.generate_content(
                    model=self.model,
                    contents=_to_contents(transcript, new_message),
                    config=types.GenerateContentConfig(
                        system_instruction=system_briefing or None,
                        temperature=self.temperature,
                        max_output_tokens=self.max_tokens,
                    ),
                )
        except (ServerError, ClientError) as e:
            logger.warning("Gemini call failed: %s", e)
            raise UpstreamUnavailableError(f"Failed to get response from the AI mentor: {e}") from e

        text = response.text or ""
        if not text.strip():
            raise UpstreamUnavailableError("Failed to get response from the AI mentor: empty reply")
        return text
