"""Email subscriptions on top of a SubscriberStore."""

import csv
import io
import logging
import re

from pydantic import BaseModel

from ..errors import ValidationError
from ..storage import SubscriberStore

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class SubscriptionResult(BaseModel):
    message: str
    total_subscribers: int
    created: bool


def is_valid_email(email: object) -> bool:
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email))


class SubscriptionService:
    """Append-only, de-duplicated subscriber list.

    The check-then-add is a plain read-modify-write: two simultaneous signups
    can each write back a list missing the other's address.
    """

    def __init__(self, store: SubscriberStore):
        self.store = store

    @property
    def storage_type(self) -> str:
        return self.store.storage_type

    async def subscribe(self, email: object) -> SubscriptionResult:
        """Add ``email`` unless it is already present.

        Raises:
            ValidationError: malformed address
            StorageError: the store failed
        """
        if not is_valid_email(email):
            raise ValidationError("Invalid email address")

        emails = await self.store.get()
        if email in emails:
            return SubscriptionResult(
                message="Email already subscribed",
                total_subscribers=len(emails),
                created=False,
            )

        emails = [*emails, email]
        await self.store.set(emails)
        logger.info("New email subscriber: %s (total %d)", email, len(emails))
        return SubscriptionResult(
            message="Email subscribed successfully",
            total_subscribers=len(emails),
            created=True,
        )

    async def list(self) -> list[str]:
        return await self.store.get()

    async def count(self) -> int:
        return len(await self.store.get())

    async def export_csv(self) -> str:
        """One address per line, as spreadsheet tools expect."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        for email in await self.store.get():
            writer.writerow([email])
        return buffer.getvalue()
