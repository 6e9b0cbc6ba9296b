"""Image ingestion: validate user-supplied images and encode them for transport."""

import logging
from urllib.parse import urlparse

import httpx

from ..config import IngestionConfig
from ..errors import FetchError, ValidationError
from ..models import ClipboardItem, DropEvent, ImageFile, PreviewRegistry, UploadedImage
from ..utils.images import sniff_mime_type

logger = logging.getLogger(__name__)

# Hotlink-protected shops reject bare clients
BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "image/avif,image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


class ImageIngestor:
    """Turns files, drops, pastes and URLs into UploadedImage instances.

    Every entry point funnels into :meth:`accept_file`, which is pure: a
    rejected image raises and leaves whatever the caller holds untouched.
    """

    def __init__(
        self,
        config: IngestionConfig | None = None,
        previews: PreviewRegistry | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config or IngestionConfig()
        self.previews = previews or PreviewRegistry()
        self._client = http_client

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client used for remote URLs."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.config.remote_fetch_timeout)
        return self._client

    def accept_file(self, file: ImageFile) -> UploadedImage:
        """Validate a file and produce its preview handle and base64 payload.

        Raises:
            ValidationError: if the type is not ``image/*`` or the file is too large
        """
        content_type = (file.content_type or "").lower()
        if not content_type.startswith("image/"):
            raise ValidationError(f"Invalid file type '{file.content_type or 'unknown'}': please select an image")
        if file.size > self.config.max_image_bytes:
            limit_mb = self.config.max_image_bytes / (1024 * 1024)
            raise ValidationError(f"Image is too large ({file.size} bytes): the limit is {limit_mb:g} MB")

        image = UploadedImage(
            source_file=file,
            preview_reference=self.previews.create(file.data),
        )
        logger.debug("Accepted %s (%s, %d bytes)", file.name, content_type, file.size)
        return image

    async def accept_remote_url(self, url: str) -> UploadedImage:
        """Fetch an image by URL and validate it like a picked file.

        Raises:
            FetchError: on transport failure, non-2xx status, or non-image content
            ValidationError: if the fetched image is too large
        """
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise FetchError(f"Not a valid image URL: {url}")

        origin = f"{parsed.scheme}://{parsed.netloc}"
        headers = {**BROWSER_HEADERS, "Referer": origin + "/", "Origin": origin}

        try:
            async with self.client.stream("GET", url, headers=headers, follow_redirects=True) as response:
                if not response.is_success:
                    raise FetchError(f"Could not fetch image from {url}: HTTP {response.status_code}")
                content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
                content = await self._read_limited(response, url)
        except httpx.HTTPError as exc:
            raise FetchError(f"Could not fetch image from {url}: {exc}") from exc

        if not content_type.startswith("image/"):
            # Some CDNs serve images as octet-stream
            content_type = sniff_mime_type(content) or ""
            if not content_type:
                raise FetchError(f"URL does not point to an image: {url}")

        name = parsed.path.rsplit("/", 1)[-1] or "remote-image"
        logger.info("Fetched remote image %s (%d bytes)", url, len(content))
        return self.accept_file(ImageFile(name=name, content_type=content_type, data=content))

    async def _read_limited(self, response: httpx.Response, url: str) -> bytes:
        """Read a streamed body, giving up as soon as it passes the size limit."""
        limit = self.config.max_image_bytes
        too_large = ValidationError(f"Image at {url} is too large: the limit is {limit / (1024 * 1024):g} MB")

        declared = response.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > limit:
            raise too_large

        content = bytearray()
        async for chunk in response.aiter_bytes():
            content.extend(chunk)
            if len(content) > limit:
                raise too_large
        return bytes(content)

    def accept_clipboard_image(
        self,
        items: list[ClipboardItem],
        text_input_focused: bool = False,
    ) -> UploadedImage | None:
        """Accept the first pasted image; a paste with no image is ignored."""
        if text_input_focused:
            return None
        for item in items:
            if item.mime_type.lower().startswith("image/") and item.data:
                return self.accept_file(
                    ImageFile(name=item.name, content_type=item.mime_type, data=item.data)
                )
        return None

    def accept_dropped_file(self, event: DropEvent) -> UploadedImage | None:
        """Accept the first file of a drag-and-drop."""
        if not event.files:
            return None
        return self.accept_file(event.files[0])

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
