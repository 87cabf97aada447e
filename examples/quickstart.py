"""quickstart: a pizza order flow served over USSD (Nalo) and WhatsApp.

Replays a scripted conversation through both processors and prints what
each gateway would answer.

    uv run python examples/quickstart.py
"""

from __future__ import annotations

import json
import logging

from flowchat import (
    FlowChatConfig,
    InboundRequest,
    MemoryCache,
    PaginationConfig,
    Step,
    UssdConfig,
    WhatsappConfig,
    configure_logging,
)
from flowchat.flow import Flow, action
from flowchat.prompt import to_int
from flowchat.ussd import NaloGateway, UssdProcessor
from flowchat.whatsapp import CloudApiGateway, WhatsappProcessor

SIZES = {"small": "Small (GHS 40)", "medium": "Medium (GHS 60)", "large": "Large (GHS 85)"}
TOPPINGS = [
    "Pepperoni", "Mushrooms", "Onions", "Sausage", "Bacon",
    "Extra cheese", "Black olives", "Green peppers", "Pineapple", "Spinach",
]


# ── Flow ─────────────────────────────────────────────────────────────────────


class PizzaOrder(Flow):
    @action
    def main(self) -> Step[None]:
        size = self.app.screen("size", lambda p: p.select("Pick a size", SIZES)).unwrap()
        topping = self.app.screen("topping", lambda p: p.select("Pick a topping", TOPPINGS)).unwrap()
        quantity = self.app.screen("quantity", lambda p: p.ask(
            "How many? (1-10)",
            convert=to_int,
            validate=lambda n: None if 1 <= n <= 10 else "Enter a number from 1 to 10.",
        )).unwrap()

        confirmed = self.app.screen("confirm", lambda p: p.yes(
            f"{quantity}x {SIZES[size]} with {topping}. Place order?"
        )).unwrap()
        if not confirmed:
            return self.app.say("Order cancelled.")
        return self.app.say(f"Order placed! We'll text {self.app.phone_number} when it's on the way.")


# ── USSD ─────────────────────────────────────────────────────────────────────


def run_ussd(cache: MemoryCache) -> None:
    config = FlowChatConfig(ussd=UssdConfig(pagination=PaginationConfig(page_size=80)))
    processor = UssdProcessor(config).use_gateway(NaloGateway()).use_cache(cache)
    processor.register(PizzaOrder)

    for user_data in ["*920#", "2", "#", "#", "3", "2", "1"]:
        params = {"USERID": "nalo-42", "MSISDN": "0244123456", "USERDATA": user_data}
        if user_data == "*920#":
            params["MSGTYPE"] = "true"
        response = processor.run(PizzaOrder, "main", InboundRequest(params=params))
        print(f"> {user_data}\n{response.body['MSG']}\n")


# ── WhatsApp ─────────────────────────────────────────────────────────────────


def _whatsapp(text: str) -> InboundRequest:
    notification = {"entry": [{"changes": [{"value": {
        "contacts": [{"profile": {"name": "Ama"}}],
        "messages": [{"from": "233244123456", "id": "wamid.1", "type": "text", "text": {"body": text}}],
    }}]}]}
    return InboundRequest(body=json.dumps(notification).encode())


def run_whatsapp(cache: MemoryCache) -> None:
    gateway = CloudApiGateway(WhatsappConfig(skip_signature_validation=True))
    processor = WhatsappProcessor().use_gateway(gateway).use_cache(cache)

    for text in ["hi", "3", "3", "2", "1"]:
        response = processor.run(PizzaOrder, "main", _whatsapp(text))
        print(f"> {text}\n{json.dumps(response.body, indent=2)}\n")


if __name__ == "__main__":
    configure_logging(logging.WARNING)
    run_ussd(MemoryCache())
    run_whatsapp(MemoryCache())
