"""USSD renderer: one plain-text screen per response."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flowchat.media import Media, MediaType
from flowchat.theme import DEFAULT_THEME, MediaUI


def render(
    message: str | None,
    choices: Mapping[Any, str] | None = None,
    media: Media | None = None,
    *,
    media_ui: MediaUI = DEFAULT_THEME.media,
) -> str:
    """Media descriptor, message and ``"key. label"`` lines, blank-line separated."""
    parts: list[str] = []
    if media is not None:
        parts.append(describe_media(media, media_ui))
    if message is not None:
        parts.append(message)
    if choices:
        parts.append("\n".join(f"{key}. {label}" for key, label in choices.items()))
    return "\n\n".join(parts)


def describe_media(media: Media, media_ui: MediaUI = DEFAULT_THEME.media) -> str:
    match media.type:
        case MediaType.IMAGE:
            template = media_ui.image
        case MediaType.DOCUMENT:
            template = media_ui.document
        case MediaType.AUDIO:
            template = media_ui.audio
        case MediaType.VIDEO:
            template = media_ui.video
        case MediaType.STICKER:
            template = media_ui.sticker
        case _:
            template = media_ui.other
    return template.format(media.url)


__all__ = (
    "describe_media",
    "render",
)
