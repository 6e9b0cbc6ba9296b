"""Client-side controller for a full try-on attempt."""

import asyncio
import contextlib
import itertools
import logging
from typing import Callable

import httpx

from ..config import OrchestratorConfig
from ..errors import CancelReason, OperationCancelled, ValidationError
from ..models import (
    ClipboardItem,
    Complete,
    DropEvent,
    Idle,
    ImageFile,
    ImageSlot,
    Processing,
    TryOnRequest,
    TryOnState,
    UploadedImage,
)
from .cancellation import CancellationToken
from .ingestion import ImageIngestor
from .tryon_client import TryOnClient, TryOnResponse

logger = logging.getLogger(__name__)

STATUS_MESSAGES = [
    "Analyzing your photo...",
    "Studying the clothing item...",
    "Matching fit and proportions...",
    "Tailoring the garment to your pose...",
    "Adjusting lighting and shadows...",
    "Adding the finishing touches...",
]

MISSING_IMAGES_MESSAGE = "Please upload both your photo and a clothing item"
TIMEOUT_MESSAGE = "The request timed out. Please try again."
NETWORK_MESSAGE = "Could not reach the try-on service. Check your connection and try again."
NO_IMAGE_FALLBACK = "No image was generated. Please try again with different photos."

ERROR_MESSAGES = {
    400: "The images could not be processed. Please upload them again.",
    401: "The try-on service is not available right now. Please try again later.",
    429: "API quota exceeded. Please try again in a few minutes.",
    503: "The image service is unreachable. Please try again shortly.",
}
GENERIC_ERROR_MESSAGE = "Something went wrong while generating your try-on. Please try again."

StateListener = Callable[[TryOnState], None]


class TryOnOrchestrator:
    """Owns the two upload slots and drives Idle -> Processing -> Complete.

    All outcomes are mapped onto :mod:`fitcheckr.models.state`; only
    cancellation of the calling task propagates out of :meth:`try_on`, after
    the state is back to Idle. After :meth:`close`, no state change is published.
    """

    def __init__(
        self,
        config: OrchestratorConfig | None = None,
        ingestor: ImageIngestor | None = None,
        client: TryOnClient | None = None,
    ):
        self.config = config or OrchestratorConfig()
        self.ingestor = ingestor or ImageIngestor()
        self.client = client or TryOnClient(self.config)

        self.user_slot = ImageSlot("user", self.ingestor.previews)
        self.article_slot = ImageSlot("article", self.ingestor.previews)

        self._state: TryOnState = Idle()
        self._listeners: list[StateListener] = []
        self._token: CancellationToken | None = None
        self._status_task: asyncio.Task | None = None
        self._closed = False

    @property
    def state(self) -> TryOnState:
        return self._state

    @property
    def busy(self) -> bool:
        return isinstance(self._state, Processing)

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _set_state(self, state: TryOnState) -> None:
        if self._closed:
            return
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    # -- Image slots ---------------------------------------------------

    def _fill(self, slot: ImageSlot, image: UploadedImage | None) -> UploadedImage | None:
        if image is not None:
            slot.replace(image)
        return image

    def set_user_image(self, file: ImageFile) -> UploadedImage:
        """Validate and store the person photo; a rejected file keeps the old one."""
        return self._fill(self.user_slot, self.ingestor.accept_file(file))

    def set_article_images(self, files: list[ImageFile]) -> UploadedImage | None:
        """Store the clothing photo. Only the first of a multi-selection is used."""
        if not files:
            return None
        if len(files) > 1:
            logger.info("Ignoring %d extra clothing images", len(files) - 1)
        return self._fill(self.article_slot, self.ingestor.accept_file(files[0]))

    async def set_image_from_url(self, slot: ImageSlot, url: str) -> UploadedImage:
        return self._fill(slot, await self.ingestor.accept_remote_url(url))

    def paste_image(
        self,
        slot: ImageSlot,
        items: list[ClipboardItem],
        text_input_focused: bool = False,
    ) -> UploadedImage | None:
        return self._fill(slot, self.ingestor.accept_clipboard_image(items, text_input_focused))

    def drop_image(self, slot: ImageSlot, event: DropEvent) -> UploadedImage | None:
        return self._fill(slot, self.ingestor.accept_dropped_file(event))

    def remove_image(self, slot: ImageSlot) -> None:
        slot.clear()

    # -- Attempt lifecycle --------------------------------------------

    def build_request(self) -> TryOnRequest:
        """Package both slots into a request.

        Raises:
            ValidationError: if either slot is empty
        """
        user, article = self.user_slot.image, self.article_slot.image
        if user is None or article is None or not user.encoded_payload or not article.encoded_payload:
            raise ValidationError(MISSING_IMAGES_MESSAGE)
        return TryOnRequest(user_image=user.encoded_payload, article_image=article.encoded_payload)

    async def try_on(self) -> TryOnState:
        """Run one attempt and return the state it ended in."""
        if self._closed:
            return self._state
        if self.busy:
            logger.warning("Try-on already in progress; ignoring new attempt")
            return self._state

        try:
            request = self.build_request()
        except ValidationError as exc:
            self._set_state(Idle(error=str(exc)))
            return self._state

        token = CancellationToken()
        token.cancel_after(self.config.request_timeout_seconds)
        self._token = token
        self._set_state(Processing(status_message=STATUS_MESSAGES[0]))
        self._status_task = asyncio.create_task(self._rotate_status(token))

        try:
            response = await token.run(self.client.submit(request))
        except OperationCancelled as exc:
            if exc.reason is CancelReason.TIMEOUT:
                logger.warning("Try-on timed out after %.1fs", self.config.request_timeout_seconds)
                outcome: TryOnState = Idle(error=TIMEOUT_MESSAGE, timed_out=True)
            else:
                logger.info("Try-on cancelled (%s)", exc.reason.value)
                outcome = Idle()
        except httpx.HTTPError as exc:
            logger.error("Try-on request failed: %s", exc)
            outcome = Idle(error=NETWORK_MESSAGE, details=str(exc))
        except asyncio.CancelledError:
            # The caller's task was cancelled; never leave the UI in Processing
            self._set_state(Idle())
            raise
        except Exception as exc:
            logger.exception("Try-on request failed unexpectedly")
            outcome = Idle(error=GENERIC_ERROR_MESSAGE, details=str(exc))
        else:
            outcome = self._map_response(response)
        finally:
            token.dispose()
            await self._stop_status()
            if self._token is token:
                self._token = None

        self._set_state(outcome)
        return self._state

    def _map_response(self, response: TryOnResponse) -> TryOnState:
        body = response.body
        if response.status_code == 200 and body.get("success") and body.get("base64"):
            return Complete(
                outcome="success",
                image_base64=body["base64"],
                message=body.get("analysis") or "",
            )
        if response.status_code == 422 or (response.status_code == 200 and not body.get("base64")):
            return Complete(outcome="no-image", message=body.get("message") or NO_IMAGE_FALLBACK)

        details = body.get("error")
        if body.get("details"):
            details = f"{details}: {body['details']}" if details else body["details"]
        logger.error("Try-on failed with HTTP %d: %s", response.status_code, details)
        return Idle(
            error=ERROR_MESSAGES.get(response.status_code, GENERIC_ERROR_MESSAGE),
            details=details,
        )

    async def _rotate_status(self, token: CancellationToken) -> None:
        """Cycle progress messages; cosmetic only."""
        for message in itertools.islice(itertools.cycle(STATUS_MESSAGES), 1, None):
            await asyncio.sleep(self.config.status_interval_seconds)
            if token.cancelled or self._token is not token or not self.busy:
                return
            self._set_state(Processing(status_message=message, started_at=self._state.started_at))

    async def _stop_status(self) -> None:
        task, self._status_task = self._status_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def cancel(self) -> None:
        """Abort the in-flight attempt; it ends in Idle without an error."""
        if self._token is not None:
            self._token.cancel(CancelReason.USER)

    def reset(self) -> None:
        """Back to Idle with both slots emptied."""
        self.cancel()
        self.user_slot.clear()
        self.article_slot.clear()
        self._set_state(Idle())

    async def close(self) -> None:
        """Tear down: cancel, free timers, release previews, stop publishing."""
        if self._token is not None:
            self._token.cancel(CancelReason.CLOSED)
        self._closed = True
        await self._stop_status()
        self.user_slot.clear()
        self.article_slot.clear()
        self._listeners.clear()
        await self.client.close()
        await self.ingestor.close()
