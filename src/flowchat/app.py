"""App facade: the object a flow receives.

``screen`` memoizes answers in the session. A flow is re-executed from the
top on every request, and answered screens return their stored value
without asking again, so execution falls through to the first unanswered
screen and suspends there.

    class Signup(Flow):
        @action
        def main(self) -> Step[None]:
            name = self.app.screen("name", lambda p: p.ask("Your name?")).unwrap()
            if self.app.screen("confirm", lambda p: p.yes(f"Register {name}?")).unwrap():
                return self.app.say("Welcome!")
            return self.app.say("Cancelled.")
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from kungfu import Error, Ok, Result

from flowchat.config import DEFAULT_CONFIG, FlowChatConfig
from flowchat.context import Context
from flowchat.errors import DuplicateScreenError, UsageError
from flowchat.interrupt import Completed, Interrupt, Restart
from flowchat.media import Media
from flowchat.prompt import Prompt, is_present
from flowchat.session import SessionStore

_log = logging.getLogger(__name__)

type ScreenBlock = Callable[[Prompt], Any]


class FlowApp:
    """Channel-independent facade. Subclasses adapt input and accessors."""

    max_media_choices: int | None = None

    def __init__(self, context: Context, config: FlowChatConfig = DEFAULT_CONFIG) -> None:
        self._context = context
        self._config = config
        self._session = context.require_session()
        self._input = context.input
        self._navigation_stack: list[str] = []

    @property
    def context(self) -> Context:
        return self._context

    @property
    def session(self) -> SessionStore:
        return self._session

    @property
    def input(self) -> str | None:
        return self._input

    @property
    def navigation_stack(self) -> tuple[str, ...]:
        return tuple(self._navigation_stack)

    # ── navigation ───────────────────────────────────────────────────────────

    def screen(self, key: str, block: ScreenBlock | None = None) -> Result[Any, Interrupt]:
        """Answer of screen ``key``, asking through ``block`` when not yet answered.

        :raises UsageError: ``block`` is missing or not callable
        :raises DuplicateScreenError: ``key`` was already presented in this run
        """
        if block is None or not callable(block):
            raise UsageError(f"screen {key!r} needs a block taking a Prompt")
        if key in self._navigation_stack:
            raise DuplicateScreenError(f"screen {key!r} has already been presented")

        self._navigation_stack.append(key)
        stored = self._session.get(key)
        if is_present(stored):
            return Ok(stored)

        prompt = self._build_prompt(self._prepare_input())
        self._input = None

        match block(prompt):
            case Ok(value):
                pass
            case Error(_) as interrupt:
                return interrupt
            case value:
                pass

        self._session.set(key, value)
        return Ok(value)

    def say(self, message: str, media: Media | None = None) -> Error[Completed]:
        return Error(Completed(message, media))

    def go_back(self) -> Result[bool, Restart]:
        """Forget the latest screen's answer and restart the flow.

        ``Ok(False)`` when no screen has been presented yet.
        """
        if not self._navigation_stack:
            return Ok(False)

        self._context.input = None
        self._input = None
        current = self._navigation_stack[-1]
        self._session.delete(current)
        _log.debug("app: going back from screen %r", current)
        return Error(Restart())

    # ── request accessors ────────────────────────────────────────────────────

    @property
    def phone_number(self) -> str | None:
        return self._context["request.msisdn"]

    @property
    def message_id(self) -> str | None:
        return self._context["request.message_id"]

    @property
    def timestamp(self) -> str | None:
        return self._context["request.timestamp"]

    @property
    def contact_name(self) -> str | None:
        return None

    @property
    def location(self) -> dict[str, Any] | None:
        return None

    @property
    def media(self) -> dict[str, Any] | None:
        return None

    # ── hooks ────────────────────────────────────────────────────────────────

    def _prepare_input(self) -> str | None:
        return self._input

    def _build_prompt(self, user_input: str | None) -> Prompt:
        return Prompt(user_input, config=self._config, max_media_choices=self.max_media_choices)


class UssdApp(FlowApp):
    """USSD facade. Chat-only accessors stay ``None``."""


class WhatsappApp(FlowApp):
    """WhatsApp facade.

    The message that opens a conversation ("hi") is a greeting, not an
    answer: on the first interaction of a session it is discarded and
    ``$started_at$`` is recorded.
    """

    max_media_choices = 3

    @property
    def contact_name(self) -> str | None:
        return self._context["request.contact_name"]

    @property
    def location(self) -> dict[str, Any] | None:
        return self._context["request.location"]

    @property
    def media(self) -> dict[str, Any] | None:
        return self._context["request.media"]

    def _prepare_input(self) -> str | None:
        if self._session.get("$started_at$") is None:
            self._session.set("$started_at$", datetime.now(UTC).isoformat())
            return None
        return self._input


__all__ = (
    "FlowApp",
    "ScreenBlock",
    "UssdApp",
    "WhatsappApp",
)
