"""Gemini provider adapter for try-on image generation."""

import logging
from typing import Any, Protocol

from google import genai
from google.genai import types

from ..errors import ProviderAuthError
from ..models import ImagePart, ReplyPart, TextPart

logger = logging.getLogger(__name__)


class ImageProvider(Protocol):
    """Anything that turns an ordered list of parts into reply parts."""

    async def generate(self, parts: list[ReplyPart], model: str) -> list[ReplyPart]:
        ...


class GeminiProvider:
    """Calls Gemini's content-generation endpoint through google-genai."""

    def __init__(self, api_key: str | None):
        self.api_key = api_key
        self._client: genai.Client | None = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self) -> genai.Client:
        """Get or create the Gemini client."""
        if self._client is None:
            if not self.api_key:
                raise ProviderAuthError("GEMINI_API_KEY is not configured")
            self._client = genai.Client(api_key=self.api_key)
            logger.info("Gemini client initialized")
        return self._client

    async def generate(self, parts: list[ReplyPart], model: str) -> list[ReplyPart]:
        """Submit parts in order and return the reply's parts in order."""
        contents = [self._to_content(part) for part in parts]

        response = await self.client.aio.models.generate_content(
            model=model,
            contents=contents,
            config=types.GenerateContentConfig(
                response_modalities=["TEXT", "IMAGE"],
            ),
        )
        return self._parse_response(response)

    def _to_content(self, part: ReplyPart) -> Any:
        if isinstance(part, ImagePart):
            return types.Part.from_bytes(data=part.data, mime_type=part.mime_type)
        return part.text

    def _parse_response(self, response: Any) -> list[ReplyPart]:
        """Flatten the first candidate into TextPart / ImagePart values."""
        if not response.candidates:
            feedback = getattr(response, "prompt_feedback", None)
            reason = getattr(feedback, "block_reason", None) if feedback else None
            if reason:
                return [TextPart(text=f"Request was blocked: {reason}")]
            return []

        content = response.candidates[0].content
        reply: list[ReplyPart] = []
        for part in (content.parts if content and content.parts else []):
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                reply.append(ImagePart(data=inline.data, mime_type=inline.mime_type or "image/png"))
            elif getattr(part, "text", None):
                reply.append(TextPart(text=part.text))
        return reply

    def reset(self):
        """Drop the cached client so the next call picks up a new key."""
        self._client = None
