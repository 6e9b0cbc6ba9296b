"""Uploaded image models."""

import uuid
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ..utils.images import encode_payload


class ImageFile(BaseModel):
    """A raw file as handed over by a picker, drop or paste."""

    name: str = "image"
    content_type: str = ""
    data: bytes

    @computed_field
    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path, content_type: str | None = None) -> "ImageFile":
        import mimetypes

        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            content_type=content_type or guessed or "",
            data=path.read_bytes(),
        )


class ClipboardItem(BaseModel):
    """One entry of a paste event."""
    mime_type: str
    data: bytes | None = None
    name: str = "pasted-image"


class DropEvent(BaseModel):
    """Files carried by a drag-and-drop."""
    files: list[ImageFile] = Field(default_factory=list)


class UploadedImage(BaseModel):
    """A validated image ready for transmission.

    ``encoded_payload`` is computed from ``source_file`` on access, so a copy
    with a different file never carries a stale payload.
    """

    model_config = ConfigDict(frozen=True)

    source_file: ImageFile
    preview_reference: str

    @computed_field
    @property
    def encoded_payload(self) -> str:
        return encode_payload(self.source_file.data, self.source_file.content_type.lower())


class PreviewRegistry:
    """Hands out local ``blob:`` handles for image previews."""

    def __init__(self):
        self._objects: dict[str, bytes] = {}

    def create(self, data: bytes) -> str:
        ref = f"blob:fitcheckr/{uuid.uuid4().hex}"
        self._objects[ref] = data
        return ref

    def resolve(self, ref: str) -> bytes | None:
        return self._objects.get(ref)

    def revoke(self, ref: str) -> None:
        self._objects.pop(ref, None)

    def __len__(self) -> int:
        return len(self._objects)


class ImageSlot:
    """Single-owner holder for the image of one upload slot."""

    def __init__(self, name: str, previews: PreviewRegistry):
        self.name = name
        self._previews = previews
        self._image: UploadedImage | None = None

    @property
    def image(self) -> UploadedImage | None:
        return self._image

    @property
    def is_empty(self) -> bool:
        return self._image is None

    def replace(self, image: UploadedImage) -> None:
        """Swap in a new image, releasing the old preview."""
        if self._image is not None and self._image.preview_reference != image.preview_reference:
            self._previews.revoke(self._image.preview_reference)
        self._image = image

    def clear(self) -> None:
        if self._image is not None:
            self._previews.revoke(self._image.preview_reference)
        self._image = None
