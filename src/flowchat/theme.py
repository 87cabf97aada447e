"""UITheme: configurable user-facing strings.

Prompt labels, error messages and media descriptors are gathered in
frozen dataclasses with sensible defaults.

    from flowchat.theme import UITheme, ErrorUI

    # Override just what you need, everything else keeps defaults
    theme = UITheme(errors=ErrorUI(invalid_selection="Chaguo batili:"))
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ActionUI:
    """Labels of the built-in choice prompts."""

    yes: str = "Yes"
    no: str = "No"
    list_button: str = "Choose"
    list_section: str = "Options"


@dataclass(frozen=True, slots=True)
class ErrorUI:
    """Messages shown to the user when a flow cannot go on as asked."""

    invalid_selection: str = "Invalid selection:"
    unexpected_end: str = "Unexpected end of flow."


@dataclass(frozen=True, slots=True)
class MediaUI:
    """USSD descriptors for media that can only be shown as a link.

    Format strings receive the media URL.
    """

    image: str = "\U0001f4f7 Image: {}"
    document: str = "\U0001f4c4 Document: {}"
    audio: str = "\U0001f3b5 Audio: {}"
    video: str = "\U0001f3a5 Video: {}"
    sticker: str = "\U0001f60a Sticker: {}"
    other: str = "\U0001f4ce Media: {}"


@dataclass(frozen=True, slots=True)
class UITheme:
    """Top-level theme container.

    Override sub-dataclasses to customize strings::

        theme = UITheme(action=ActionUI(yes="Ndiyo", no="Hapana"))
    """

    action: ActionUI = field(default_factory=ActionUI)
    errors: ErrorUI = field(default_factory=ErrorUI)
    media: MediaUI = field(default_factory=MediaUI)


DEFAULT_THEME = UITheme()


__all__ = (
    "ActionUI",
    "DEFAULT_THEME",
    "ErrorUI",
    "MediaUI",
    "UITheme",
)
