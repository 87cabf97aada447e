"""Interrupt signals, returned by flow steps as ``Error`` values.

A flow step yields ``Step[T] = Result[T, Interrupt]``. ``Ok(value)`` means
"continue with this value"; an ``Error`` carries one of the three signals
below and is the only way a flow suspends, ends or restarts itself:

    answer = app.screen("name", lambda p: p.ask("Your name?")).unwrap()

``.unwrap()`` on an ``Error`` short-circuits the whole action; the executor
catches it (through ``kungfu.unwrapping``) and turns the signal into a
``FlowResponse`` for the transport.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, NamedTuple

from kungfu import Result

if TYPE_CHECKING:
    from flowchat.media import Media


# ═══════════════════════════════════════════════════════════════════════════════
# Signals
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class AwaitingInput:
    """The flow cannot proceed without another user reply."""

    message: str
    choices: Mapping[str, str] | None = None
    media: Media | None = None


@dataclass(frozen=True, slots=True)
class Completed:
    """The flow reached its end. The session is destroyed."""

    message: str
    media: Media | None = None


@dataclass(frozen=True, slots=True)
class Restart:
    """Re-enter the flow's original action (``go_back``)."""


type Interrupt = AwaitingInput | Completed | Restart
type Step[T] = Result[T, Interrupt]


# ═══════════════════════════════════════════════════════════════════════════════
# Normalized response
# ═══════════════════════════════════════════════════════════════════════════════


class ResponseKind(Enum):
    PROMPT = "prompt"
    TERMINAL = "terminal"


class FlowResponse(NamedTuple):
    """What every middleware returns: ``(kind, message, choices, media)``."""

    kind: ResponseKind
    message: str
    choices: Mapping[Any, str] | None = None
    media: Media | None = None

    @property
    def is_prompt(self) -> bool:
        return self.kind is ResponseKind.PROMPT

    @property
    def is_terminal(self) -> bool:
        return self.kind is ResponseKind.TERMINAL

    @classmethod
    def prompt(
        cls,
        message: str,
        choices: Mapping[Any, str] | None = None,
        media: Media | None = None,
    ) -> FlowResponse:
        return cls(ResponseKind.PROMPT, message, choices, media)

    @classmethod
    def terminal(cls, message: str, media: Media | None = None) -> FlowResponse:
        return cls(ResponseKind.TERMINAL, message, None, media)


__all__ = (
    "AwaitingInput",
    "Completed",
    "FlowResponse",
    "Interrupt",
    "ResponseKind",
    "Restart",
    "Step",
)
