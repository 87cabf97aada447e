"""Flow registry: validated lookup of flows and their actions.

Ensures no two flows claim the same name and every flow exposes at least
one action. Validation happens at registration time, so a malformed flow
fails at startup rather than on the first request that reaches it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from flowchat.errors import ActionNotFound, FlowCollision, FlowDefinitionError
from flowchat.flow import Flow, collect_actions, flow_name

_log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FlowEntry:
    """Registered flow with its action table."""

    name: str
    flow_cls: type[Flow]
    actions: Mapping[str, str]

    def method_for(self, action: str) -> str:
        """Method name implementing ``action``. Raises ActionNotFound."""
        try:
            return self.actions[action]
        except KeyError:
            known = ", ".join(sorted(self.actions))
            raise ActionNotFound(
                f"flow {self.name!r} has no action {action!r} (known: {known})"
            ) from None


@dataclass
class FlowRegistry:
    """Startup-time registry of flow classes.

    Mutable: processors register flows as they are configured, or on first
    dispatch of an unregistered class.
    """

    _by_name: dict[str, FlowEntry] = field(default_factory=lambda: dict[str, FlowEntry]())
    _by_class: dict[type, FlowEntry] = field(default_factory=lambda: dict[type, FlowEntry]())

    def register[F: type[Flow]](self, flow_cls: F, name: str | None = None) -> F:
        """Register a flow class. Usable as a decorator.

        Raises FlowCollision on a duplicate name and FlowDefinitionError on
        a class without actions.
        """
        if not (isinstance(flow_cls, type) and issubclass(flow_cls, Flow)):
            raise FlowDefinitionError(f"{flow_cls!r} is not a Flow subclass")
        if flow_cls in self._by_class:
            return flow_cls

        resolved = name or flow_name(flow_cls)
        if resolved in self._by_name:
            existing = self._by_name[resolved]
            raise FlowCollision(
                f"flow name {resolved!r} collision: "
                f"{existing.flow_cls.__qualname__} vs {flow_cls.__qualname__}"
            )

        actions = collect_actions(flow_cls)
        if not actions:
            raise FlowDefinitionError(
                f"flow {flow_cls.__qualname__} defines no @action methods"
            )

        entry = FlowEntry(name=resolved, flow_cls=flow_cls, actions=actions)
        self._by_name[resolved] = entry
        self._by_class[flow_cls] = entry
        _log.debug("registry: flow %r registered with actions %s", resolved, sorted(actions))
        return flow_cls

    def entry_for(self, flow: type[Flow] | str) -> FlowEntry:
        if isinstance(flow, str):
            try:
                return self._by_name[flow]
            except KeyError:
                raise ActionNotFound(f"no flow registered as {flow!r}") from None
        entry = self._by_class.get(flow)
        if entry is None:
            self.register(flow)
            entry = self._by_class[flow]
        return entry

    def resolve(self, flow: type[Flow] | str, action: str) -> tuple[FlowEntry, str]:
        entry = self.entry_for(flow)
        return entry, entry.method_for(action)

    @property
    def flows(self) -> Sequence[FlowEntry]:
        """All registered flows, sorted by name."""
        return sorted(self._by_name.values(), key=lambda e: e.name)

    def __contains__(self, flow: object) -> bool:
        if isinstance(flow, str):
            return flow in self._by_name
        return flow in self._by_class


__all__ = (
    "FlowEntry",
    "FlowRegistry",
)
