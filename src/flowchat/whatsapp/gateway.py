"""WhatsApp Cloud API webhook gateway.

Handles both webhook endpoints Meta calls:

* ``GET ?hub.mode=subscribe&hub.verify_token=...&hub.challenge=...``:
  subscription check, answered with the challenge or 403.
* ``POST`` with a JSON notification signed in ``X-Hub-Signature-256``
  (HMAC-SHA256 of the raw body with the app secret). Inbound user
  messages run the flow; status notifications are acknowledged only.

Outbound delivery goes through an injected :class:`MessageSender` (an
HTTP client, a job queue...). Without one, the Cloud API payload that
would have been sent is returned as the response body.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

from flowchat.config import WhatsappConfig
from flowchat.context import Context
from flowchat.errors import ConfigurationError
from flowchat.phone import normalize_msisdn
from flowchat.pipeline import GatewayResponse, Handler, InboundRequest
from flowchat.theme import DEFAULT_THEME, ActionUI
from flowchat.whatsapp.renderer import cloud_api_payload, render

_log = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Hub-Signature-256"
LOCATION_INPUT = "$location$"
MEDIA_INPUT = "$media$"

_MEDIA_MESSAGE_TYPES = ("image", "document", "audio", "video")


class MessageSender(Protocol):
    """Delivers a Cloud API message payload."""

    def send(self, payload: dict[str, Any]) -> Any: ...


def sign(body: bytes, app_secret: str) -> str:
    """``X-Hub-Signature-256`` header value for ``body``."""
    digest = hmac.new(app_secret.encode(), body, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


class CloudApiGateway:
    def __init__(
        self,
        config: WhatsappConfig,
        sender: MessageSender | None = None,
        action_ui: ActionUI = DEFAULT_THEME.action,
    ) -> None:
        if not config.app_secret and not config.skip_signature_validation:
            raise ConfigurationError(
                "WhatsApp app_secret is required for webhook signature validation. "
                "Configure app_secret or set skip_signature_validation=True to disable validation."
            )
        self._config = config
        self._sender = sender
        self._action_ui = action_ui

    def __call__(self, context: Context, call_next: Handler) -> GatewayResponse:
        request: InboundRequest = context["request.http"]
        method = request.method.upper()

        if method == "GET" and request.params.get("hub.mode") == "subscribe":
            return self._verify(request)
        if method == "POST":
            return self._webhook(context, request, call_next)
        return GatewayResponse(400)

    # ── verification ─────────────────────────────────────────────────────────

    def _verify(self, request: InboundRequest) -> GatewayResponse:
        token = request.params.get("hub.verify_token", "")
        if self._config.verify_token and hmac.compare_digest(token, self._config.verify_token):
            _log.info("cloud_api: webhook subscription verified")
            return GatewayResponse(200, request.params.get("hub.challenge", ""), "text/plain")
        _log.warning("cloud_api: webhook verification failed, token mismatch")
        return GatewayResponse(403)

    def valid_signature(self, request: InboundRequest) -> bool:
        if self._config.skip_signature_validation:
            return True
        header = request.header(SIGNATURE_HEADER)
        if not header or not header.startswith("sha256="):
            return False
        return hmac.compare_digest(header, sign(request.body, self._config.app_secret))

    # ── notifications ────────────────────────────────────────────────────────

    def _webhook(self, context: Context, request: InboundRequest, call_next: Handler) -> GatewayResponse:
        try:
            body = json.loads(request.body)
        except ValueError as exc:
            _log.warning("cloud_api: failed to parse webhook body: %s", exc)
            return GatewayResponse(400)

        if not self.valid_signature(request):
            _log.warning("cloud_api: invalid webhook signature")
            return GatewayResponse(401)

        value = _dig(body, "entry", 0, "changes", 0, "value")
        if not isinstance(value, Mapping):
            return GatewayResponse(200)

        if value.get("statuses"):
            _log.info("cloud_api: status update %s", value["statuses"])

        messages = value.get("messages") or []
        if not messages:
            return GatewayResponse(200)

        message = messages[0]
        contacts = value.get("contacts") or [{}]
        self._populate(context, message, contacts[0])
        if context["request.msisdn"] is None:
            _log.warning("cloud_api: ignoring message from unparsable sender %r", message.get("from"))
            return GatewayResponse(200)

        response = call_next(context)
        rendered = render(response.message, response.choices, response.media, action_ui=self._action_ui)
        payload = cloud_api_payload(rendered, context["request.msisdn"])

        if self._sender is None:
            return GatewayResponse(200, payload)
        result = self._sender.send(payload)
        _log.debug("cloud_api: message sent to %s: %r", context["request.msisdn"], result)
        return GatewayResponse(200)

    def _populate(self, context: Context, message: Mapping[str, Any], contact: Mapping[str, Any]) -> None:
        sender = str(message.get("from", ""))
        context["request.id"] = sender
        context["request.gateway"] = "whatsapp_cloud_api"
        context["request.platform"] = "whatsapp"
        context["request.message_id"] = message.get("id")
        context["request.msisdn"] = normalize_msisdn(sender if sender.startswith("+") else f"+{sender}")
        context["request.contact_name"] = _dig(contact, "profile", "name")
        context["request.timestamp"] = message.get("timestamp")

        match message.get("type"):
            case "text":
                context.input = _dig(message, "text", "body")
            case "interactive":
                reply_type = _dig(message, "interactive", "type")
                if reply_type in ("button_reply", "list_reply"):
                    context.input = _dig(message, "interactive", reply_type, "id")
            case "location":
                location = message.get("location") or {}
                context["request.location"] = {
                    "latitude": location.get("latitude"),
                    "longitude": location.get("longitude"),
                    "name": location.get("name"),
                    "address": location.get("address"),
                }
                context.input = LOCATION_INPUT
            case media_type if media_type in _MEDIA_MESSAGE_TYPES:
                item = message.get(media_type) or {}
                context["request.media"] = {
                    "type": media_type,
                    "id": item.get("id"),
                    "mime_type": item.get("mime_type"),
                    "caption": item.get("caption"),
                }
                context.input = MEDIA_INPUT
            case other:
                _log.debug("cloud_api: ignoring content of %r message", other)

        _log.info("cloud_api: message %s from %s", context["request.message_id"], context["request.msisdn"])


def _dig(data: Any, *path: str | int) -> Any:
    for step in path:
        if isinstance(step, int):
            if not isinstance(data, list) or len(data) <= step:
                return None
        elif not isinstance(data, Mapping):
            return None
        data = data[step] if isinstance(step, int) else data.get(step)
        if data is None:
            return None
    return data


__all__ = (
    "LOCATION_INPUT",
    "MEDIA_INPUT",
    "SIGNATURE_HEADER",
    "CloudApiGateway",
    "MessageSender",
    "sign",
)
