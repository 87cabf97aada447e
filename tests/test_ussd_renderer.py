"""Tests for the USSD text renderer."""

from __future__ import annotations

import pytest

from flowchat.media import Media, MediaType
from flowchat.theme import MediaUI
from flowchat.ussd.renderer import describe_media, render


class TestRender:
    def test_text_only(self) -> None:
        assert render("Hello World") == "Hello World"

    def test_choices(self) -> None:
        result = render("Choose:", {"1": "Option 1", "2": "Option 2"})
        assert result == "Choose:\n\n1. Option 1\n2. Option 2"

    def test_media_first(self) -> None:
        result = render("Check this out:", media=Media.image("https://example.com/image.jpg"))
        assert result == "\U0001f4f7 Image: https://example.com/image.jpg\n\nCheck this out:"

    def test_media_message_choices_order(self) -> None:
        result = render(
            "What do you think?",
            {"1": "Like it", "2": "Don't like it"},
            Media.image("https://example.com/photo.jpg"),
        )
        assert result == (
            "\U0001f4f7 Image: https://example.com/photo.jpg\n\n"
            "What do you think?\n\n"
            "1. Like it\n2. Don't like it"
        )

    def test_empty_choices_not_rendered(self) -> None:
        assert render("Test", {}) == "Test"

    def test_missing_message(self) -> None:
        assert render(None, {"1": "Only"}) == "1. Only"

    def test_menu_layout(self) -> None:
        choices = {str(i): f"Option {i}" for i in range(1, 6)}
        lines = render("Select from menu:", choices, Media.document("https://example.com/menu.pdf")).split("\n")

        assert lines[0] == "\U0001f4c4 Document: https://example.com/menu.pdf"
        assert lines[1] == ""
        assert lines[2] == "Select from menu:"
        assert lines[3] == ""
        assert lines[4:] == [f"{i}. Option {i}" for i in range(1, 6)]


class TestDescribeMedia:
    @pytest.mark.parametrize(
        ("media_type", "expected"),
        [
            (MediaType.IMAGE, "\U0001f4f7 Image: u"),
            (MediaType.DOCUMENT, "\U0001f4c4 Document: u"),
            (MediaType.AUDIO, "\U0001f3b5 Audio: u"),
            (MediaType.VIDEO, "\U0001f3a5 Video: u"),
            (MediaType.STICKER, "\U0001f60a Sticker: u"),
            (MediaType.TEXT, "\U0001f4ce Media: u"),
        ],
    )
    def test_descriptors(self, media_type: MediaType, expected: str) -> None:
        assert describe_media(Media("u", media_type)) == expected

    def test_themed(self) -> None:
        ui = MediaUI(image="Picha: {}")
        assert render("Angalia", media=Media.image("u"), media_ui=ui) == "Picha: u\n\nAngalia"
