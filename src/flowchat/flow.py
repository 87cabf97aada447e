"""Flow base class and the ``@action`` marker.

A flow is a class constructed with the app facade; its actions are
zero-argument methods marked with ``@action``. Only marked methods can be
dispatched, and the set is collected once when the flow is registered.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, overload

if TYPE_CHECKING:
    from flowchat.app import FlowApp

ACTION_ATTR = "__flowchat_action__"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")

type ActionMethod = Callable[..., Any]


class Flow:
    """Base class for flows.

        class Greeting(Flow):
            @action
            def main(self) -> Step[None]:
                name = self.app.screen("name", lambda p: p.ask("Name?")).unwrap()
                return self.app.say(f"Hello {name}")
    """

    def __init__(self, app: FlowApp) -> None:
        self.app = app


@overload
def action(func: ActionMethod, /) -> ActionMethod: ...


@overload
def action(*, name: str) -> Callable[[ActionMethod], ActionMethod]: ...


def action(
    func: ActionMethod | None = None,
    /,
    *,
    name: str | None = None,
) -> ActionMethod | Callable[[ActionMethod], ActionMethod]:
    """Mark a flow method as a dispatchable action, optionally under another name."""

    def mark(method: ActionMethod) -> ActionMethod:
        setattr(method, ACTION_ATTR, name or method.__name__)
        return method

    if func is not None:
        return mark(func)
    return mark


def flow_name(flow_cls: type) -> str:
    """``SignupFlow`` -> ``signup_flow``."""
    return _CAMEL_BOUNDARY.sub("_", flow_cls.__name__).lower()


def collect_actions(flow_cls: type) -> dict[str, str]:
    """Map of action name to method name, inherited actions included."""
    actions: dict[str, str] = {}
    for klass in reversed(flow_cls.__mro__):
        for attr, member in vars(klass).items():
            action_name = getattr(member, ACTION_ATTR, None)
            if action_name is not None:
                actions[action_name] = attr
    return actions


__all__ = (
    "ACTION_ATTR",
    "Flow",
    "action",
    "collect_actions",
    "flow_name",
)
