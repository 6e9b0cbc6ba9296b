"""Unit tests for ImageIngestor - validation and base64 encoding."""

import base64

import httpx
import pytest

from fitcheckr.config import IngestionConfig
from fitcheckr.errors import FetchError, ValidationError
from fitcheckr.models import ClipboardItem, DropEvent, ImageFile, ImageSlot, PreviewRegistry
from fitcheckr.services.ingestion import ImageIngestor
from fitcheckr.utils.images import strip_data_uri, to_data_uri

from conftest import MINIMAL_PNG, png_of_size

TEN_MIB = 10 * 1024 * 1024


class TestAcceptFile:
    """Tests for the shared validation path."""

    @pytest.fixture
    def ingestor(self):
        return ImageIngestor()

    def test_encoded_payload_round_trips(self, ingestor, png_2kb):
        """Decoding the payload gives back the exact file bytes."""
        image = ingestor.accept_file(ImageFile(name="a.png", content_type="image/png", data=png_2kb))

        assert base64.b64decode(image.encoded_payload) == png_2kb
        assert not image.encoded_payload.startswith("data:")

    def test_payload_follows_source_file(self, ingestor, png_2kb):
        image = ingestor.accept_file(ImageFile(name="a.png", content_type="image/png", data=png_2kb))
        other = png_of_size(3000, fill=7)

        copy = image.model_copy(update={"source_file": ImageFile(name="b.png", content_type="image/png", data=other)})

        assert base64.b64decode(copy.encoded_payload) == other
        assert base64.b64decode(image.encoded_payload) == png_2kb
        assert image.model_dump()["encoded_payload"] == image.encoded_payload

    def test_preview_reference_resolves(self, ingestor, png_2kb):
        image = ingestor.accept_file(ImageFile(name="a.png", content_type="image/png", data=png_2kb))

        assert image.preview_reference.startswith("blob:")
        assert ingestor.previews.resolve(image.preview_reference) == png_2kb

    def test_exactly_ten_mib_is_accepted(self, ingestor):
        image = ingestor.accept_file(
            ImageFile(name="big.png", content_type="image/png", data=png_of_size(TEN_MIB))
        )
        assert image.source_file.size == TEN_MIB

    def test_over_ten_mib_is_rejected(self, ingestor):
        with pytest.raises(ValidationError, match="too large"):
            ingestor.accept_file(
                ImageFile(name="big.png", content_type="image/png", data=png_of_size(TEN_MIB + 1))
            )

    @pytest.mark.parametrize("content_type", ["application/pdf", "text/plain", "", "video/mp4"])
    def test_non_image_type_is_rejected(self, ingestor, content_type):
        with pytest.raises(ValidationError, match="Invalid file type"):
            ingestor.accept_file(ImageFile(name="x", content_type=content_type, data=MINIMAL_PNG))

    def test_rejected_file_keeps_existing_slot_image(self, ingestor, png_2kb):
        """A failed ingestion must not touch what the slot already holds."""
        slot = ImageSlot("user", ingestor.previews)
        original = ingestor.accept_file(ImageFile(name="a.png", content_type="image/png", data=png_2kb))
        slot.replace(original)

        for bad in (
            ImageFile(name="doc.pdf", content_type="application/pdf", data=b"%PDF"),
            ImageFile(name="huge.png", content_type="image/png", data=png_of_size(TEN_MIB + 1)),
        ):
            with pytest.raises(ValidationError):
                slot.replace(ingestor.accept_file(bad))

        assert slot.image is original
        assert ingestor.previews.resolve(original.preview_reference) == png_2kb

    def test_custom_limit(self):
        ingestor = ImageIngestor(IngestionConfig(max_image_bytes=100))
        with pytest.raises(ValidationError):
            ingestor.accept_file(ImageFile(name="a.png", content_type="image/png", data=png_of_size(101)))

    def test_from_path_guesses_type(self, ingestor, temp_image_file):
        image = ingestor.accept_file(ImageFile.from_path(temp_image_file))
        assert image.source_file.content_type == "image/png"


class TestImageSlot:
    """Tests for slot replacement and preview release."""

    def test_replace_revokes_previous_preview(self, png_2kb):
        ingestor = ImageIngestor()
        slot = ImageSlot("article", ingestor.previews)
        first = ingestor.accept_file(ImageFile(name="1.png", content_type="image/png", data=png_2kb))
        second = ingestor.accept_file(ImageFile(name="2.png", content_type="image/png", data=MINIMAL_PNG))

        slot.replace(first)
        slot.replace(second)

        assert slot.image is second
        assert ingestor.previews.resolve(first.preview_reference) is None
        assert ingestor.previews.resolve(second.preview_reference) == MINIMAL_PNG

    def test_clear_releases_preview(self, png_2kb):
        previews = PreviewRegistry()
        ingestor = ImageIngestor(previews=previews)
        slot = ImageSlot("user", previews)
        slot.replace(ingestor.accept_file(ImageFile(name="1.png", content_type="image/png", data=png_2kb)))

        slot.clear()

        assert slot.is_empty
        assert len(previews) == 0


class TestClipboardAndDrop:
    """Tests for paste and drag-and-drop sources."""

    @pytest.fixture
    def ingestor(self):
        return ImageIngestor()

    def test_paste_uses_first_image_item(self, ingestor, png_2kb):
        items = [
            ClipboardItem(mime_type="text/plain", data=b"hello"),
            ClipboardItem(mime_type="image/png", data=png_2kb),
        ]
        image = ingestor.accept_clipboard_image(items)

        assert image is not None
        assert base64.b64decode(image.encoded_payload) == png_2kb

    def test_paste_without_image_is_ignored(self, ingestor):
        assert ingestor.accept_clipboard_image([ClipboardItem(mime_type="text/plain", data=b"hi")]) is None
        assert ingestor.accept_clipboard_image([]) is None

    def test_paste_into_text_input_is_ignored(self, ingestor, png_2kb):
        items = [ClipboardItem(mime_type="image/png", data=png_2kb)]
        assert ingestor.accept_clipboard_image(items, text_input_focused=True) is None

    def test_oversized_paste_is_rejected(self, ingestor):
        items = [ClipboardItem(mime_type="image/png", data=png_of_size(TEN_MIB + 1))]
        with pytest.raises(ValidationError):
            ingestor.accept_clipboard_image(items)

    def test_drop_uses_first_file(self, ingestor, png_2kb):
        event = DropEvent(files=[
            ImageFile(name="a.png", content_type="image/png", data=png_2kb),
            ImageFile(name="b.png", content_type="image/png", data=MINIMAL_PNG),
        ])
        image = ingestor.accept_dropped_file(event)
        assert image.source_file.name == "a.png"

    def test_drop_of_non_image_is_rejected(self, ingestor):
        event = DropEvent(files=[ImageFile(name="a.txt", content_type="text/plain", data=b"x")])
        with pytest.raises(ValidationError):
            ingestor.accept_dropped_file(event)

    def test_empty_drop_is_ignored(self, ingestor):
        assert ingestor.accept_dropped_file(DropEvent()) is None


class TestRemoteUrl:
    """Tests for URL fetching with a mocked transport."""

    def make_ingestor(self, handler, config=None):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return ImageIngestor(config, http_client=client)

    @pytest.mark.asyncio
    async def test_fetches_image(self, png_2kb):
        seen = {}

        def handler(request):
            seen["referer"] = request.headers.get("referer")
            return httpx.Response(200, content=png_2kb, headers={"content-type": "image/png"})

        ingestor = self.make_ingestor(handler)
        image = await ingestor.accept_remote_url("https://shop.example.com/img/shirt.png")

        assert base64.b64decode(image.encoded_payload) == png_2kb
        assert image.source_file.name == "shirt.png"
        assert seen["referer"] == "https://shop.example.com/"

    @pytest.mark.asyncio
    async def test_http_error_raises_fetch_error(self):
        ingestor = self.make_ingestor(lambda request: httpx.Response(404))
        with pytest.raises(FetchError, match="404"):
            await ingestor.accept_remote_url("https://shop.example.com/missing.png")

    @pytest.mark.asyncio
    async def test_html_page_raises_fetch_error(self):
        def handler(request):
            return httpx.Response(200, content=b"<html></html>", headers={"content-type": "text/html"})

        ingestor = self.make_ingestor(handler)
        with pytest.raises(FetchError, match="not point to an image"):
            await ingestor.accept_remote_url("https://shop.example.com/product")

    @pytest.mark.asyncio
    async def test_octet_stream_image_is_sniffed(self, png_2kb):
        def handler(request):
            return httpx.Response(200, content=png_2kb, headers={"content-type": "application/octet-stream"})

        ingestor = self.make_ingestor(handler)
        image = await ingestor.accept_remote_url("https://cdn.example.com/abc")
        assert image.source_file.content_type == "image/png"

    @pytest.mark.asyncio
    async def test_oversized_download_is_rejected(self):
        def handler(request):
            return httpx.Response(200, content=png_of_size(1000), headers={"content-type": "image/png"})

        ingestor = self.make_ingestor(handler, IngestionConfig(max_image_bytes=100))
        with pytest.raises(ValidationError, match="too large"):
            await ingestor.accept_remote_url("https://shop.example.com/huge.png")

    @pytest.mark.asyncio
    async def test_download_without_length_stops_at_limit(self):
        sent = []

        async def body():
            for _ in range(100):
                sent.append(64)
                yield b"\x00" * 64

        def handler(request):
            return httpx.Response(200, content=body(), headers={"content-type": "image/png"})

        ingestor = self.make_ingestor(handler, IngestionConfig(max_image_bytes=256))
        with pytest.raises(ValidationError, match="too large"):
            await ingestor.accept_remote_url("https://shop.example.com/endless.png")

        assert len(sent) < 100

    @pytest.mark.asyncio
    async def test_transport_failure_raises_fetch_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        ingestor = self.make_ingestor(handler)
        with pytest.raises(FetchError):
            await ingestor.accept_remote_url("https://down.example.com/a.png")

    @pytest.mark.asyncio
    async def test_invalid_url_raises_fetch_error(self):
        ingestor = self.make_ingestor(lambda request: httpx.Response(200))
        with pytest.raises(FetchError):
            await ingestor.accept_remote_url("not a url")


class TestDataUri:
    """Tests for the data-URI helpers."""

    def test_strip_prefix(self):
        uri = to_data_uri(b"abc", "image/jpeg")
        assert uri.startswith("data:image/jpeg;base64,")
        assert strip_data_uri(uri) == base64.b64encode(b"abc").decode()

    def test_strip_leaves_raw_base64(self):
        assert strip_data_uri("YWJj") == "YWJj"
