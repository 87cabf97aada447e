"""Media attachments for prompts and final messages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MediaType(Enum):
    IMAGE = "image"
    DOCUMENT = "document"
    AUDIO = "audio"
    VIDEO = "video"
    STICKER = "sticker"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class Media:
    """A media item referenced by URL.

    ``filename`` is only meaningful for documents.
    """

    url: str
    type: MediaType = MediaType.IMAGE
    filename: str | None = None

    @classmethod
    def image(cls, url: str) -> Media:
        return cls(url, MediaType.IMAGE)

    @classmethod
    def document(cls, url: str, filename: str | None = None) -> Media:
        return cls(url, MediaType.DOCUMENT, filename)

    @classmethod
    def video(cls, url: str) -> Media:
        return cls(url, MediaType.VIDEO)

    @classmethod
    def audio(cls, url: str) -> Media:
        return cls(url, MediaType.AUDIO)


__all__ = (
    "Media",
    "MediaType",
)
