"""Data models for the FitCheckr try-on pipeline."""

from .image import ImageFile, ClipboardItem, DropEvent, UploadedImage, PreviewRegistry, ImageSlot
from .tryon import TextPart, ImagePart, ReplyPart, TryOnRequest, TryOnStatus, TryOnResult
from .state import Idle, Processing, Complete, TryOnState

__all__ = [
    "ImageFile",
    "ClipboardItem",
    "DropEvent",
    "UploadedImage",
    "PreviewRegistry",
    "ImageSlot",
    "TextPart",
    "ImagePart",
    "ReplyPart",
    "TryOnRequest",
    "TryOnStatus",
    "TryOnResult",
    "Idle",
    "Processing",
    "Complete",
    "TryOnState",
]
