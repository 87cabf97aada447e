"""WhatsApp renderer: flow responses to native message shapes.

``render`` picks the message kind, ``cloud_api_payload`` turns it into the
JSON body of a Cloud API ``/messages`` call.

    ≤ 3 choices  → reply buttons (media, if any, becomes the header)
    > 3 choices  → list message, 10 rows per section
    media only   → media message with the text as caption
    otherwise    → text
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from flowchat.errors import ConfigurationError
from flowchat.media import Media, MediaType
from flowchat.theme import DEFAULT_THEME, ActionUI

MAX_BUTTONS = 3
BUTTON_TITLE_LIMIT = 20
ROW_TITLE_LIMIT = 24
ROW_DESCRIPTION_LIMIT = 72
ROWS_PER_SECTION = 10

_HEADER_TYPES = (MediaType.IMAGE, MediaType.VIDEO, MediaType.DOCUMENT, MediaType.TEXT)
_MEDIA_KINDS_SENDABLE = (
    MediaType.IMAGE,
    MediaType.DOCUMENT,
    MediaType.AUDIO,
    MediaType.VIDEO,
    MediaType.STICKER,
)


class MessageKind(Enum):
    TEXT = "text"
    BUTTONS = "buttons"
    LIST = "list"
    IMAGE = "image"
    DOCUMENT = "document"
    AUDIO = "audio"
    VIDEO = "video"
    STICKER = "sticker"


@dataclass(frozen=True, slots=True)
class WhatsappMessage:
    """A rendered message. ``body`` is the text, ``payload`` the widget data."""

    kind: MessageKind
    body: str
    payload: dict[str, Any] = field(default_factory=dict)


def truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


# ═══════════════════════════════════════════════════════════════════════════════
# render
# ═══════════════════════════════════════════════════════════════════════════════


def render(
    message: str | None,
    choices: Mapping[Any, str] | None = None,
    media: Media | None = None,
    *,
    action_ui: ActionUI = DEFAULT_THEME.action,
) -> WhatsappMessage:
    """Pick the message shape for ``(message, choices, media)``.

    :raises ConfigurationError: media that cannot be shown with these choices,
        or a media type WhatsApp cannot send
    """
    text = message or ""
    if choices:
        if not isinstance(choices, Mapping):
            raise TypeError(f"choices must be a mapping, got {type(choices).__name__}")
        if len(choices) <= MAX_BUTTONS:
            return _buttons(text, choices, media)
        if media is not None:
            raise ConfigurationError(
                f"media cannot be attached to a list of {len(choices)} choices; "
                f"use at most {MAX_BUTTONS} choices"
            )
        return _list(text, choices, action_ui)
    if media is not None:
        return _media(text, media)
    return WhatsappMessage(MessageKind.TEXT, text)


def _buttons(text: str, choices: Mapping[Any, str], media: Media | None) -> WhatsappMessage:
    payload: dict[str, Any] = {
        "buttons": [
            {"id": str(key), "title": truncate(str(label), BUTTON_TITLE_LIMIT)}
            for key, label in choices.items()
        ]
    }
    if media is not None:
        payload["header"] = media_header(media)
    return WhatsappMessage(MessageKind.BUTTONS, text, payload)


def _list(text: str, choices: Mapping[Any, str], action_ui: ActionUI) -> WhatsappMessage:
    rows: list[dict[str, str]] = []
    for key, label in choices.items():
        full = str(label)
        row = {"id": str(key), "title": truncate(full, ROW_TITLE_LIMIT)}
        if len(full) > ROW_TITLE_LIMIT:
            row["description"] = truncate(full, ROW_DESCRIPTION_LIMIT)
        rows.append(row)

    if len(rows) <= ROWS_PER_SECTION:
        sections = [{"title": action_ui.list_section, "rows": rows}]
    else:
        sections = []
        for offset in range(0, len(rows), ROWS_PER_SECTION):
            chunk = rows[offset : offset + ROWS_PER_SECTION]
            sections.append({"title": f"{offset + 1}-{offset + len(chunk)}", "rows": chunk})

    return WhatsappMessage(
        MessageKind.LIST,
        text,
        {"button": action_ui.list_button, "sections": sections},
    )


def _media(text: str, media: Media) -> WhatsappMessage:
    if media.type not in _MEDIA_KINDS_SENDABLE:
        raise ConfigurationError(f"Unsupported media type: {media.type.value}")

    payload: dict[str, Any] = {"url": media.url}
    # Stickers cannot carry a caption.
    if media.type is not MediaType.STICKER:
        payload["caption"] = text
    if media.type is MediaType.DOCUMENT and media.filename:
        payload["filename"] = media.filename
    return WhatsappMessage(MessageKind(media.type.value), "", payload)


def media_header(media: Media) -> dict[str, Any]:
    """Interactive message header for ``media``."""
    if media.type not in _HEADER_TYPES:
        supported = ", ".join(t.value for t in _HEADER_TYPES)
        raise ConfigurationError(
            f"Unsupported header media type: {media.type.value}. "
            f"Supported types for button headers: {supported}"
        )
    if media.type is MediaType.TEXT:
        return {"type": "text", "text": media.url}

    link: dict[str, Any] = {"link": media.url}
    if media.type is MediaType.DOCUMENT and media.filename:
        link["filename"] = media.filename
    return {"type": media.type.value, media.type.value: link}


# ═══════════════════════════════════════════════════════════════════════════════
# Cloud API payloads
# ═══════════════════════════════════════════════════════════════════════════════


def cloud_api_payload(message: WhatsappMessage, to: str) -> dict[str, Any]:
    """JSON body for ``POST /{phone_number_id}/messages``."""
    base: dict[str, Any] = {"messaging_product": "whatsapp", "to": to}

    match message.kind:
        case MessageKind.TEXT:
            return {**base, "type": "text", "text": {"body": message.body}}
        case MessageKind.BUTTONS:
            interactive: dict[str, Any] = {
                "type": "button",
                "body": {"text": message.body},
                "action": {
                    "buttons": [
                        {"type": "reply", "reply": {"id": button["id"], "title": button["title"]}}
                        for button in message.payload["buttons"]
                    ]
                },
            }
            if "header" in message.payload:
                interactive["header"] = message.payload["header"]
            return {**base, "type": "interactive", "interactive": interactive}
        case MessageKind.LIST:
            return {
                **base,
                "type": "interactive",
                "interactive": {
                    "type": "list",
                    "body": {"text": message.body},
                    "action": {
                        "button": message.payload.get("button", DEFAULT_THEME.action.list_button),
                        "sections": message.payload["sections"],
                    },
                },
            }
        case _:
            kind = message.kind.value
            media_object: dict[str, Any] = {"link": message.payload["url"]}
            for optional in ("caption", "filename"):
                if message.payload.get(optional):
                    media_object[optional] = message.payload[optional]
            return {**base, "type": kind, kind: media_object}


__all__ = (
    "MessageKind",
    "WhatsappMessage",
    "cloud_api_payload",
    "media_header",
    "render",
    "truncate",
)
