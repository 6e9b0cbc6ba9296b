"""Try-on relay: forwards two images plus fixed instructions to the provider."""

import base64
import logging

from ..errors import ProviderError, ValidationError, classify_provider_error
from ..models import ImagePart, ReplyPart, TextPart, TryOnResult, TryOnStatus
from ..prompts import TRYON_INSTRUCTIONS, TRYON_INSTRUCTIONS_VERSION
from ..utils.images import DEFAULT_MIME_TYPE, decode_payload, sniff_mime_type
from .gemini_client import ImageProvider

logger = logging.getLogger(__name__)

NO_IMAGE_MESSAGE = "No image was generated. Please try again with different photos."


class TryOnRelay:
    """Stateless relay between the try-on endpoint and the image provider.

    Flow:
    1. Decode both payloads and sniff their MIME types
    2. Send [person image, clothing image, instructions] in one request
    3. Collect reply text, keep the first inline image

    A single attempt per call: no retries.
    """

    def __init__(self, provider: ImageProvider, model: str):
        self.provider = provider
        self.model = model

    def build_parts(self, user_image: str, article_image: str) -> list[ReplyPart]:
        """Decode both payloads into the ordered request parts.

        Raises:
            ValidationError: if either payload is empty or not base64
        """
        parts: list[ReplyPart] = []
        for label, payload in (("userImage", user_image), ("articleImage", article_image)):
            try:
                data = decode_payload(payload)
            except ValueError as exc:
                raise ValidationError(f"{label}: {exc}") from exc
            parts.append(ImagePart(data=data, mime_type=sniff_mime_type(data) or DEFAULT_MIME_TYPE))
        parts.append(TextPart(text=TRYON_INSTRUCTIONS))
        return parts

    async def try_on(self, user_image: str, article_image: str) -> TryOnResult:
        """Run one try-on attempt.

        Args:
            user_image: Base64 photo of the person
            article_image: Base64 photo of the clothing item

        Returns:
            TryOnResult with status ``success`` or ``no-image-produced``

        Raises:
            ValidationError: bad input payloads
            ProviderError: the provider call itself failed (classified)
        """
        parts = self.build_parts(user_image, article_image)
        logger.info(
            "Relaying try-on to %s (prompt %s, images %d + %d bytes)",
            self.model,
            TRYON_INSTRUCTIONS_VERSION,
            len(parts[0].data),
            len(parts[1].data),
        )

        try:
            reply = await self.provider.generate(parts, self.model)
        except ProviderError:
            raise
        except Exception as exc:
            error = classify_provider_error(exc)
            logger.error("Provider call failed (%s): %s", type(error).__name__, exc)
            raise error from exc

        return self.parse_reply(reply)

    def parse_reply(self, reply: list[ReplyPart]) -> TryOnResult:
        """Accumulate text parts and stop at the first inline image."""
        texts: list[str] = []
        image: ImagePart | None = None
        for part in reply:
            if isinstance(part, ImagePart):
                image = part
                break
            texts.append(part.text)

        message = "\n".join(t.strip() for t in texts if t.strip())
        if image is None:
            logger.warning("Provider returned no image (%d text parts)", len(texts))
            return TryOnResult(status=TryOnStatus.NO_IMAGE, message=message or NO_IMAGE_MESSAGE)

        return TryOnResult(
            status=TryOnStatus.SUCCESS,
            image_payload=base64.b64encode(image.data).decode("ascii"),
            mime_type=image.mime_type,
            message=message,
        )
