"""USSD gateway adapters for Nalo and Nsano.

Each adapter reads the provider's request into the context, runs the rest
of the pipeline and shapes the reply the way the provider expects. Both
providers expect HTTP 200 with a JSON body; the body tells the handset
whether to keep the session open.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from flowchat.context import Context
from flowchat.interrupt import FlowResponse
from flowchat.phone import DEFAULT_REGION, normalize_msisdn
from flowchat.pipeline import GatewayResponse, Handler, InboundRequest
from flowchat.ussd.renderer import render

_log = logging.getLogger(__name__)


def read_payload(request: InboundRequest) -> Mapping[str, Any]:
    """Query/form params, or the JSON body when there are none.

    :raises ValueError: the body is not a JSON object
    """
    if request.params:
        return request.params
    if not request.body:
        return {}
    payload = json.loads(request.body)
    if not isinstance(payload, dict):
        raise ValueError("USSD request body must be a JSON object")
    return payload


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1")
    return bool(value)


class _UssdGateway:
    name = "ussd"

    def __init__(self, region: str = DEFAULT_REGION) -> None:
        self._region = region

    def __call__(self, context: Context, call_next: Handler) -> GatewayResponse:
        try:
            payload = read_payload(context["request.http"])
        except ValueError as exc:
            _log.warning("%s: malformed request: %s", self.name, exc)
            return GatewayResponse(400, {"error": "malformed request"})

        context["request.gateway"] = self.name
        context["request.platform"] = "ussd"
        context["request.timestamp"] = datetime.now(UTC).isoformat()
        context["request.message_id"] = str(uuid.uuid4())
        self._parse(context, payload)

        missing = [name for name in ("request.id", "request.msisdn") if not context.get(name)]
        if missing:
            _log.warning("%s: request without %s", self.name, ", ".join(missing))
            return GatewayResponse(400, {"error": "malformed request"})

        _log.info(
            "%s: request %s from %s", self.name, context["request.id"], context["request.msisdn"],
        )

        response = call_next(context)
        return GatewayResponse(200, self._reply(payload, response))

    def _parse(self, context: Context, payload: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def _reply(self, payload: Mapping[str, Any], response: FlowResponse) -> dict[str, Any]:
        raise NotImplementedError


class NaloGateway(_UssdGateway):
    """Nalo Solutions: ``USERID``, ``MSISDN``, ``USERDATA``, ``MSGTYPE``.

    ``MSGTYPE`` is true on the dial that opens a session, when ``USERDATA``
    holds the dialled code rather than an answer. In the reply it is true
    while the session should stay open.
    """

    name = "nalo"

    def _parse(self, context: Context, payload: Mapping[str, Any]) -> None:
        context["request.id"] = payload.get("USERID")
        context["request.msisdn"] = normalize_msisdn(payload.get("MSISDN"), self._region)
        context["request.network"] = payload.get("NETWORK")
        if _flag(payload.get("MSGTYPE")):
            context["request.dial"] = payload.get("USERDATA")
            context.input = None
        else:
            context.input = payload.get("USERDATA") or None

    def _reply(self, payload: Mapping[str, Any], response: FlowResponse) -> dict[str, Any]:
        return {
            "USERID": payload.get("USERID"),
            "MSISDN": payload.get("MSISDN"),
            "MSG": render(response.message, response.choices),
            "MSGTYPE": response.is_prompt,
        }


class NsanoGateway(_UssdGateway):
    """Nsano: JSON body with ``UserSessionID``, ``msisdn``, ``msg``, ``network``.

    The reply action is ``input`` while prompting and ``prompt`` to end the
    session.
    """

    name = "nsano"

    def _parse(self, context: Context, payload: Mapping[str, Any]) -> None:
        context["request.id"] = payload.get("UserSessionID")
        context["request.msisdn"] = normalize_msisdn(payload.get("msisdn"), self._region)
        context["request.network"] = payload.get("network")
        context.input = payload.get("msg") or None

    def _reply(self, payload: Mapping[str, Any], response: FlowResponse) -> dict[str, Any]:
        return {
            "USSDResp": {
                "action": "input" if response.is_prompt else "prompt",
                "menus": "",
                "title": render(response.message, response.choices),
            }
        }


__all__ = (
    "NaloGateway",
    "NsanoGateway",
    "read_payload",
)
