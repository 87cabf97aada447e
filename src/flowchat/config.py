"""Configuration structs, built once and injected into processors.

No process-wide settings object: every processor receives its own
``FlowChatConfig`` so independent pipelines (one per tenant, say) can
coexist in one process.

    config = FlowChatConfig(
        ussd=UssdConfig(pagination=PaginationConfig(page_size=160)),
        session=SessionConfig(boundaries=(Boundary.FLOW, Boundary.PLATFORM)),
    )
    processor = UssdProcessor(config).use_gateway(NaloGateway()).use_cache(cache)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta

from dotenv import find_dotenv, load_dotenv

from flowchat.errors import ConfigurationError
from flowchat.session_key import Boundary, IdentifierStrategy
from flowchat.theme import DEFAULT_THEME, UITheme

_log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PaginationConfig:
    """USSD page size and the navigation options shown on each page.

    A page reads ``<slice>\\n\\n# More\\n0 Back``: the option is what the
    user types, the text is the label next to it.
    """

    page_size: int = 140
    next_option: str = "#"
    next_text: str = "More"
    back_option: str = "0"
    back_text: str = "Back"

    def __post_init__(self) -> None:
        reserved = 3 + len(self.next_label) + len(self.back_label) + 1
        if self.page_size <= reserved:
            raise ConfigurationError(
                f"page_size {self.page_size} leaves no room for content "
                f"next to the navigation options ({reserved} chars)"
            )
        if self.next_option == self.back_option:
            raise ConfigurationError("next_option and back_option must differ")

    @property
    def next_label(self) -> str:
        return f"{self.next_option} {self.next_text}"

    @property
    def back_label(self) -> str:
        return f"{self.back_option} {self.back_text}"


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """How session keys are derived.

    Attributes:
        boundaries: Context dimensions that scope a session, in key order.
        identifier: DURABLE (phone number) or EPHEMERAL (gateway session id).
            ``None`` lets each channel pick its default.
        hash_identifiers: Replace the identifier by an 8-hex digest in keys.
        prefix: Leading key segment, namespaces keys in a shared cache.
    """

    boundaries: tuple[Boundary, ...] = (Boundary.FLOW, Boundary.GATEWAY, Boundary.PLATFORM)
    identifier: IdentifierStrategy | None = None
    hash_identifiers: bool = True
    prefix: str = "flowchat:session"


@dataclass(frozen=True, slots=True)
class UssdConfig:
    """USSD channel settings.

    With resumable sessions the phone number (not the provider's per-dial
    session id) identifies the session, so a dropped dial resumes where it
    stopped until ``resumable_timeout`` elapses.
    """

    pagination: PaginationConfig = field(default_factory=PaginationConfig)
    session_ttl: timedelta = timedelta(hours=1)
    resumable_sessions: bool = False
    resumable_timeout: timedelta = timedelta(minutes=5)


@dataclass(frozen=True, slots=True)
class WhatsappConfig:
    """WhatsApp Cloud API credentials and channel settings."""

    access_token: str = ""
    phone_number_id: str = ""
    verify_token: str = ""
    app_secret: str = ""
    app_id: str = ""
    business_account_id: str = ""
    skip_signature_validation: bool = False
    session_ttl: timedelta = timedelta(days=7)

    @property
    def is_complete(self) -> bool:
        return bool(self.access_token and self.phone_number_id and self.verify_token)

    @classmethod
    def from_env(cls, *, strict: bool = False) -> WhatsappConfig:
        """Load ``WHATSAPP_*`` variables, reading a ``.env`` from the working directory up.

        :raises ConfigurationError: when ``strict`` and a required value is unset
        """
        load_dotenv(find_dotenv(usecwd=True))
        config = cls(
            access_token=os.getenv("WHATSAPP_ACCESS_TOKEN", ""),
            phone_number_id=os.getenv("WHATSAPP_PHONE_NUMBER_ID", ""),
            verify_token=os.getenv("WHATSAPP_VERIFY_TOKEN", ""),
            app_secret=os.getenv("WHATSAPP_APP_SECRET", ""),
            app_id=os.getenv("WHATSAPP_APP_ID", ""),
            business_account_id=os.getenv("WHATSAPP_BUSINESS_ACCOUNT_ID", ""),
            skip_signature_validation=(
                os.getenv("WHATSAPP_SKIP_SIGNATURE_VALIDATION", "false").lower() == "true"
            ),
        )
        if config.is_complete:
            _log.info("whatsapp config loaded for phone_number_id=%s", config.phone_number_id)
        elif strict:
            raise ConfigurationError(
                "WHATSAPP_ACCESS_TOKEN, WHATSAPP_PHONE_NUMBER_ID and "
                "WHATSAPP_VERIFY_TOKEN must be set"
            )
        else:
            _log.warning("whatsapp config incomplete: required variables missing")
        return config


@dataclass(frozen=True, slots=True)
class FlowChatConfig:
    """Top-level configuration container.

    Attributes:
        combine_validation_error_with_message: On invalid input, show the
            validation error followed by the original question (True) or the
            error alone (False).
        max_restarts: Upper bound of ``go_back`` restarts in one request.
    """

    session: SessionConfig = field(default_factory=SessionConfig)
    ussd: UssdConfig = field(default_factory=UssdConfig)
    whatsapp: WhatsappConfig = field(default_factory=WhatsappConfig)
    theme: UITheme = field(default_factory=lambda: DEFAULT_THEME)
    combine_validation_error_with_message: bool = True
    max_restarts: int = 10


DEFAULT_CONFIG = FlowChatConfig()


__all__ = (
    "DEFAULT_CONFIG",
    "FlowChatConfig",
    "PaginationConfig",
    "SessionConfig",
    "UssdConfig",
    "WhatsappConfig",
)
