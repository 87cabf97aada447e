"""Phone number normalization to E.164."""

from __future__ import annotations

import logging

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat

_log = logging.getLogger(__name__)

DEFAULT_REGION = "GH"


def normalize_msisdn(raw: str | None, region: str = DEFAULT_REGION) -> str | None:
    """E.164 form of ``raw``, or None when it is not a phone number.

    Gateways send numbers as ``"+233244123456"``, ``"233244123456"`` or
    ``"0244123456"``. Digits without a ``+`` or trunk ``0`` are read as an
    international number when that yields a valid one, otherwise as a
    national number of ``region``.
    """
    if not raw or not raw.strip():
        return None
    text = raw.strip()
    try:
        if not text.startswith(("+", "0")):
            international = phonenumbers.parse(f"+{text}", None)
            if phonenumbers.is_valid_number(international):
                return phonenumbers.format_number(international, PhoneNumberFormat.E164)
        number = phonenumbers.parse(text, region)
    except NumberParseException as exc:
        _log.debug("phone: cannot parse %r: %s", raw, exc)
        return None
    return phonenumbers.format_number(number, PhoneNumberFormat.E164)


__all__ = (
    "DEFAULT_REGION",
    "normalize_msisdn",
)
