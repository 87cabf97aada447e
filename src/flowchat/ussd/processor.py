"""USSD processor: session, pagination and choice mapping around the flow."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import timedelta

from flowchat.app import UssdApp
from flowchat.pipeline import Middleware, Processor
from flowchat.session_key import IdentifierStrategy, SessionKeyStrategy
from flowchat.ussd.choice_mapper import ChoiceMapper
from flowchat.ussd.pagination import Pagination


class UssdProcessor(Processor):
    """``gateway → session → pagination → choice_mapper → user middleware → executor``.

    Sessions follow the provider's session id unless resumable sessions are
    enabled, in which case they follow the phone number and expire after
    ``resumable_timeout`` of inactivity.
    """

    channel = "ussd"
    app_cls = UssdApp
    default_identifier = IdentifierStrategy.EPHEMERAL

    def session_key_strategy(self) -> SessionKeyStrategy:
        identifier = (
            IdentifierStrategy.DURABLE
            if self._config.ussd.resumable_sessions
            else self.default_identifier
        )
        return SessionKeyStrategy.from_config(self._config.session, identifier)

    def session_ttl(self) -> timedelta:
        ussd = self._config.ussd
        return ussd.resumable_timeout if ussd.resumable_sessions else ussd.session_ttl

    def _channel_middleware(self) -> Sequence[tuple[str, Middleware]]:
        return (
            ("pagination", Pagination(self._config.ussd.pagination, self._config.theme.media)),
            ("choice_mapper", ChoiceMapper()),
        )


__all__ = ("UssdProcessor",)
