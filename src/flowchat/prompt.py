"""Prompt builder handed to ``screen`` blocks.

Every method returns a ``Result`` instead of raising: ``Ok(answer)`` when the
pending raw input satisfies the question, ``Error(AwaitingInput(...))`` when
the user must (re)answer, ``Error(Completed(...))`` for ``say``.

    app.screen("age", lambda p: p.ask(
        "How old are you?",
        convert=int,
        validate=lambda age: None if age >= 18 else "You must be 18 or older.",
    ))
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from kungfu import Error, Ok, Result

from flowchat.config import DEFAULT_CONFIG, FlowChatConfig
from flowchat.interrupt import AwaitingInput, Completed

if TYPE_CHECKING:
    from flowchat.media import Media

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def is_present(value: object) -> bool:
    """Blank-aware truthiness: ``None``, blank strings and empty containers are absent.

    ``False`` and ``0`` are real answers.
    """
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (Mapping, Sequence, set, frozenset)):
        return len(value) > 0
    return True


def to_int(raw: str) -> int:
    """Leading integer of ``raw``, ``0`` when there is none."""
    match = _LEADING_INT.match(raw)
    return int(match.group(1)) if match else 0


class Prompt:
    def __init__(
        self,
        user_input: str | None,
        *,
        config: FlowChatConfig = DEFAULT_CONFIG,
        max_media_choices: int | None = None,
    ) -> None:
        self._input = user_input
        self._config = config
        self._max_media_choices = max_media_choices

    @property
    def user_input(self) -> str | None:
        return self._input

    def ask(
        self,
        message: str,
        *,
        choices: Mapping[Any, str] | Sequence[str] | None = None,
        convert: Callable[[str], Any] | None = None,
        validate: Callable[[Any], str | None] | None = None,
        transform: Callable[[Any], Any] | None = None,
        media: Media | None = None,
    ) -> Result[Any, AwaitingInput]:
        """Ask a question and answer it with the pending input, if any.

        Input goes through ``convert``, ``validate`` (an error message or
        ``None``) and ``transform``, in that order. A validation error
        re-asks with the error shown and the original choices and media.

        :raises ValueError: media with more choices than the channel can attach
        """
        normalized = _normalize_choices(choices) if choices is not None else None
        self._check_media_choices(normalized, media)

        if not is_present(self._input):
            return Error(AwaitingInput(message, normalized, media))

        value: Any = self._input
        if convert is not None:
            value = convert(value)
        error = validate(value) if validate is not None else None
        if is_present(error):
            if self._config.combine_validation_error_with_message:
                text = f"{error}\n\n{message}"
            else:
                text = str(error)
            return Error(AwaitingInput(text, normalized, media))

        if transform is not None:
            value = transform(value)
        return Ok(value)

    def select(
        self,
        message: str,
        choices: Mapping[Any, str] | Sequence[Any],
        *,
        media: Media | None = None,
    ) -> Result[Any, AwaitingInput]:
        """Pick one of ``choices``, presented as ``1..N``.

        A list answers with the chosen item, a mapping with the chosen key.
        """
        if isinstance(choices, Mapping):
            keys = list(choices.keys())
            labels = [str(label) for label in choices.values()]
        elif isinstance(choices, Sequence) and not isinstance(choices, str):
            keys = list(choices)
            labels = [str(item) for item in choices]
        else:
            raise TypeError(f"choices must be a list or a mapping, got {type(choices).__name__}")
        if not keys:
            raise ValueError("choices must not be empty")

        invalid = self._config.theme.errors.invalid_selection
        return self.ask(
            message,
            choices={str(number): label for number, label in enumerate(labels, start=1)},
            convert=to_int,
            validate=lambda choice: None if 1 <= choice <= len(keys) else invalid,
            transform=lambda choice: keys[choice - 1],
            media=media,
        )

    def yes(self, message: str) -> Result[bool, AwaitingInput]:
        action = self._config.theme.action
        return self.select(message, [action.yes, action.no]).map(lambda choice: choice == action.yes)

    def say(self, message: str, *, media: Media | None = None) -> Error[Completed]:
        return Error(Completed(message, media))

    def _check_media_choices(self, choices: Mapping[Any, str] | None, media: Media | None) -> None:
        limit = self._max_media_choices
        if media is None or choices is None or limit is None:
            return
        if len(choices) > limit:
            raise ValueError(
                f"media cannot be combined with more than {limit} choices "
                f"(got {len(choices)}): use a text prompt or fewer choices"
            )


def _normalize_choices(choices: Mapping[Any, str] | Sequence[str]) -> dict[Any, str]:
    if isinstance(choices, Mapping):
        return dict(choices)
    if isinstance(choices, Sequence) and not isinstance(choices, str):
        return {str(item): str(item) for item in choices}
    raise TypeError(f"choices must be a list or a mapping, got {type(choices).__name__}")


__all__ = (
    "Prompt",
    "is_present",
    "to_int",
)
