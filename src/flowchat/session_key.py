"""Session key derivation.

A key is the configured prefix, then one value per boundary (in the
configured order), then the identifier:

    flowchat:session:<flow>:<gateway>:<platform>:<identifier>

Two requests share a session iff they agree on every configured boundary
and resolve to the same identifier.
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from flowchat.errors import SessionKeyError

if TYPE_CHECKING:
    from flowchat.config import SessionConfig
    from flowchat.context import Context


class Boundary(Enum):
    """A context dimension that scopes a session. Values are context keys."""

    FLOW = "flow.name"
    GATEWAY = "request.gateway"
    PLATFORM = "request.platform"


class IdentifierStrategy(Enum):
    DURABLE = "request.msisdn"
    """The user's phone number. Survives dropped USSD dials."""

    EPHEMERAL = "request.id"
    """The provider's per-conversation id."""


def short_hash(value: str) -> str:
    """8-hex-char digest used in place of raw identifiers."""
    return hashlib.sha256(value.encode()).hexdigest()[:8]


@dataclass(frozen=True, slots=True)
class SessionKeyStrategy:
    boundaries: Sequence[Boundary]
    identifier: IdentifierStrategy
    hash_identifiers: bool = True
    prefix: str = "flowchat:session"

    @classmethod
    def from_config(
        cls,
        config: SessionConfig,
        default_identifier: IdentifierStrategy,
    ) -> SessionKeyStrategy:
        return cls(
            boundaries=tuple(config.boundaries),
            identifier=config.identifier or default_identifier,
            hash_identifiers=config.hash_identifiers,
            prefix=config.prefix,
        )

    def key_for(self, context: Context) -> str:
        """Build the session key for ``context``.

        :raises SessionKeyError: when a boundary or the identifier is unset
        """
        parts = [self.prefix]
        for boundary in self.boundaries:
            parts.append(self._require(context, boundary.value, boundary.name.lower()))

        identifier = self._require(context, self.identifier.value, self.identifier.name.lower())
        parts.append(short_hash(identifier) if self.hash_identifiers else identifier)
        return ":".join(parts)

    @staticmethod
    def _require(context: Context, key: str, label: str) -> str:
        value = context[key]
        if value is None or value == "":
            raise SessionKeyError(f"cannot derive session key: {label} ({key!r}) is not set")
        if isinstance(value, Enum):
            value = value.value
        return str(value)


__all__ = (
    "Boundary",
    "IdentifierStrategy",
    "SessionKeyStrategy",
    "short_hash",
)
