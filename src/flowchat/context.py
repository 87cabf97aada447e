"""Per-request context passed down the middleware pipeline.

A mutable bag of dotted string keys. Gateways fill the ``request.*``
entries, the session middleware adds ``session.id`` and ``session``,
the processor sets ``flow.*`` before the pipeline runs. Nothing here is
persisted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from flowchat.errors import ConfigurationError

if TYPE_CHECKING:
    from flowchat.session import SessionStore

_log = logging.getLogger(__name__)

# Large or opaque objects, not worth a repr in debug output.
_QUIET_KEYS = frozenset({"session", "request.http"})


class Context:
    """Dotted-key request state.

        context = Context({"request.msisdn": "233200000000"})
        context.input = "1"
        context["flow.action"]  # -> None when unset
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})

    def __getitem__(self, key: str) -> Any:
        value = self._data.get(key)
        if key not in _QUIET_KEYS:
            _log.debug("context: get %r = %r", key, value)
        return value

    def __setitem__(self, key: str, value: Any) -> None:
        if key not in _QUIET_KEYS:
            _log.debug("context: set %r = %r", key, value)
        self._data[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def get(self, key: str, default: Any = None) -> Any:
        value = self[key]
        return default if value is None else value

    def update(self, values: dict[str, Any]) -> None:
        for key, value in values.items():
            self[key] = value

    @property
    def input(self) -> str | None:
        return self._data.get("request.input")

    @input.setter
    def input(self, value: str | None) -> None:
        _log.debug("context: set input = %r", value)
        self._data["request.input"] = value

    @property
    def session(self) -> SessionStore | None:
        return self._data.get("session")

    @session.setter
    def session(self, value: SessionStore) -> None:
        _log.debug("context: set session = %s", type(value).__name__)
        self._data["session"] = value

    @property
    def flow(self) -> type | None:
        return self._data.get("flow.class")

    def require_session(self) -> SessionStore:
        session = self.session
        if session is None:
            raise ConfigurationError("no session attached to the context, is the session middleware installed?")
        return session


__all__ = ("Context",)
