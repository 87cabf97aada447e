"""WhatsApp processor: ``gateway → session → user middleware → executor``."""

from __future__ import annotations

from datetime import timedelta

from flowchat.app import WhatsappApp
from flowchat.pipeline import Processor
from flowchat.session_key import IdentifierStrategy


class WhatsappProcessor(Processor):
    channel = "whatsapp"
    app_cls = WhatsappApp
    default_identifier = IdentifierStrategy.DURABLE

    def session_ttl(self) -> timedelta:
        return self._config.whatsapp.session_ttl


__all__ = ("WhatsappProcessor",)
