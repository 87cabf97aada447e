"""Tests for phone number normalization."""

from __future__ import annotations

import pytest

from flowchat.phone import normalize_msisdn


class TestNormalizeMsisdn:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("0244123456", "+233244123456"),
            ("244123456", "+233244123456"),
            ("233244123456", "+233244123456"),
            ("+233244123456", "+233244123456"),
            ("+233 (0)244 123456", "+233244123456"),
            ("024 412 3456", "+233244123456"),
            ("256700123456", "+256700123456"),
            ("+256 700 123 456", "+256700123456"),
            ("00256700123456", "+256700123456"),
        ],
    )
    def test_formats(self, raw: str, expected: str) -> None:
        assert normalize_msisdn(raw) == expected

    def test_other_region(self) -> None:
        assert normalize_msisdn("0700123456", region="UG") == "+256700123456"

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc"])
    def test_not_a_number(self, raw: str | None) -> None:
        assert normalize_msisdn(raw) is None
