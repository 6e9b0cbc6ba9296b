# Test fixtures and configuration
import base64
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fitcheckr.models import ImageFile, ImagePart, TextPart


MINIMAL_PNG = bytes([
    0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A,  # PNG signature
    0x00, 0x00, 0x00, 0x0D, 0x49, 0x48, 0x44, 0x52,  # IHDR chunk
    0x00, 0x00, 0x00, 0x01, 0x00, 0x00, 0x00, 0x01,  # 1x1 dimensions
    0x08, 0x02, 0x00, 0x00, 0x00, 0x90, 0x77, 0x53,
    0xDE, 0x00, 0x00, 0x00, 0x0C, 0x49, 0x44, 0x41,  # IDAT chunk
    0x54, 0x08, 0xD7, 0x63, 0xF8, 0xCF, 0xC0, 0x00,
    0x00, 0x00, 0x03, 0x00, 0x01, 0x00, 0x05, 0xFE,
    0xD4, 0xAA, 0x00, 0x00, 0x00, 0x00, 0x49, 0x45,  # IEND chunk
    0x4E, 0x44, 0xAE, 0x42, 0x60, 0x82
])


def png_of_size(size: int, fill: int = 0) -> bytes:
    """A PNG header padded with trailing bytes up to ``size``."""
    return MINIMAL_PNG + bytes([fill]) * (size - len(MINIMAL_PNG))


class FakeProvider:
    """Stands in for Gemini: replays a fixed reply or raises."""

    def __init__(self, reply=None, error: Exception | None = None):
        self.reply = reply or []
        self.error = error
        self.calls = []

    async def generate(self, parts, model):
        self.calls.append((parts, model))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def minimal_png_bytes():
    """Minimal valid PNG image bytes."""
    return MINIMAL_PNG


@pytest.fixture
def png_2kb():
    """A 2 KB PNG."""
    return png_of_size(2048, fill=0x11)


@pytest.fixture
def png_2kb_b64(png_2kb):
    return base64.b64encode(png_2kb).decode()


@pytest.fixture
def user_file(png_2kb):
    return ImageFile(name="me.png", content_type="image/png", data=png_2kb)


@pytest.fixture
def article_file():
    return ImageFile(name="shirt.png", content_type="image/png", data=png_of_size(2048, fill=0x22))


@pytest.fixture
def generated_png():
    """The image the fake provider 'generates'."""
    return png_of_size(2048, fill=0x33)


@pytest.fixture
def image_reply(generated_png):
    return [TextPart(text="Here is the outfit."), ImagePart(data=generated_png, mime_type="image/png")]


@pytest.fixture
def temp_image_file(tmp_path, minimal_png_bytes):
    """Create a temporary PNG file."""
    img_path = tmp_path / "test_image.png"
    img_path.write_bytes(minimal_png_bytes)
    return img_path
