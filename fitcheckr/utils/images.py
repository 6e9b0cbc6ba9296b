"""Helpers for moving image bytes between raw, data-URI and base64 forms."""

import base64
import binascii
import io

from PIL import Image, UnidentifiedImageError

DEFAULT_MIME_TYPE = "image/png"


def to_data_uri(data: bytes, mime_type: str) -> str:
    """Encode raw bytes as a ``data:<mime>;base64,`` URI."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def strip_data_uri(value: str) -> str:
    """Drop a leading ``data:<mime>;base64,`` prefix, if any."""
    if value.startswith("data:") and "," in value:
        _, value = value.split(",", 1)
    return value.strip()


def encode_payload(data: bytes, mime_type: str) -> str:
    """Base64 transport form of an image: the data URI without its prefix."""
    return strip_data_uri(to_data_uri(data, mime_type))


def decode_payload(payload: str) -> bytes:
    """Decode a base64 payload (data-URI prefix tolerated).

    Raises:
        ValueError: if the payload is empty or not valid base64
    """
    encoded = strip_data_uri(payload)
    if not encoded:
        raise ValueError("empty image payload")
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"invalid base64 image payload: {exc}") from exc


def sniff_mime_type(data: bytes) -> str | None:
    """Identify image bytes with Pillow; returns a MIME type or None."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError):
        return None
    if not fmt:
        return None
    return Image.MIME.get(fmt, f"image/{fmt.lower()}")
