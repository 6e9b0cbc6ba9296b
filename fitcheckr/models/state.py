"""Orchestrator state machine: Idle | Processing | Complete."""

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class Idle(BaseModel):
    """Waiting for the user; may carry the error of the last attempt."""
    kind: Literal["idle"] = "idle"
    error: str | None = None
    details: str | None = None  # technical details, shown only on request
    timed_out: bool = False


class Processing(BaseModel):
    """A try-on request is in flight."""
    kind: Literal["processing"] = "processing"
    status_message: str
    started_at: datetime = Field(default_factory=datetime.now)


class Complete(BaseModel):
    """The server answered: either an image or an explanation."""
    kind: Literal["complete"] = "complete"
    outcome: Literal["success", "no-image"]
    image_base64: str | None = None
    message: str = ""


TryOnState = Annotated[Union[Idle, Processing, Complete], Field(discriminator="kind")]
