"""Try-on request, reply and result models."""

import enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class TextPart(BaseModel):
    """Free text in a provider request or reply."""
    kind: Literal["text"] = "text"
    text: str


class ImagePart(BaseModel):
    """Inline image bytes in a provider request or reply."""
    kind: Literal["image"] = "image"
    data: bytes
    mime_type: str = "image/png"


ReplyPart = Annotated[Union[TextPart, ImagePart], Field(discriminator="kind")]


class TryOnRequest(BaseModel):
    """One try-on attempt: a person photo and one clothing photo (base64)."""
    user_image: str
    article_image: str

    def to_wire(self) -> dict:
        return {"userImage": self.user_image, "articleImages": [self.article_image]}


class TryOnStatus(str, enum.Enum):
    SUCCESS = "success"
    NO_IMAGE = "no-image-produced"
    FAILED = "failed"


class TryOnResult(BaseModel):
    """Normalized outcome of a relay call."""
    status: TryOnStatus
    image_payload: str | None = None
    mime_type: str | None = None
    message: str
