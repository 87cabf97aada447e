"""Exception hierarchy for flow programming and configuration errors.

User input errors never surface here: they re-prompt through
``AwaitingInput``. Infrastructure errors (cache down, bugs in flow code)
are not wrapped either: they propagate unchanged to the transport.
"""

from __future__ import annotations


class FlowChatError(Exception):
    """Base class for every error raised by flowchat itself."""


class ConfigurationError(FlowChatError):
    """A required setting, secret or collaborator is missing or invalid.

    Raised eagerly when a processor or gateway is built, not on first use.
    """


class FlowError(FlowChatError):
    """A flow broke the execution contract (programming error)."""


class DuplicateScreenError(FlowError, ValueError):
    """The same screen key was presented twice in one flow invocation."""


class UsageError(FlowError, TypeError):
    """An API was called the wrong way, e.g. ``screen()`` without a block."""


class FlowDefinitionError(FlowError):
    """A flow class is malformed (no actions, bad action name...)."""


class FlowCollision(FlowDefinitionError, ValueError):
    """Two flow classes claim the same flow name in one registry."""


class ActionNotFound(FlowError, LookupError):
    """The requested action is not registered for the flow."""


class SessionKeyError(FlowChatError, ValueError):
    """The context lacks a value needed to derive the session key."""


__all__ = (
    "ActionNotFound",
    "ConfigurationError",
    "DuplicateScreenError",
    "FlowChatError",
    "FlowCollision",
    "FlowDefinitionError",
    "FlowError",
    "SessionKeyError",
    "UsageError",
)
