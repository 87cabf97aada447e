"""Middleware pipeline and the processor base shared by both channels.

Order of a built processor:

    gateway → session → [channel middleware] → user middleware → executor

Each middleware is a callable ``(context, call_next) -> FlowResponse``;
``Pipeline.build`` wraps them around the terminal handler in the order
they were added. The gateway sits outside the pipeline because it speaks
HTTP (``InboundRequest`` in, ``GatewayResponse`` out).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Protocol, Self

from flowchat.app import FlowApp
from flowchat.config import DEFAULT_CONFIG, FlowChatConfig
from flowchat.context import Context
from flowchat.errors import ConfigurationError
from flowchat.executor import Executor
from flowchat.flow import Flow
from flowchat.interrupt import FlowResponse
from flowchat.registry import FlowRegistry
from flowchat.session import CacheBackend, SessionMiddleware
from flowchat.session_key import IdentifierStrategy, SessionKeyStrategy

_log = logging.getLogger(__name__)

type Handler = Callable[[Context], FlowResponse]


# ═══════════════════════════════════════════════════════════════════════════════
# Contracts
# ═══════════════════════════════════════════════════════════════════════════════


class Middleware(Protocol):
    def __call__(self, context: Context, call_next: Handler) -> FlowResponse: ...


@dataclass(frozen=True, slots=True)
class InboundRequest:
    """Framework-neutral view of the HTTP request a gateway parses.

    ``params`` holds query/form parameters, ``body`` the raw body.
    """

    method: str = "POST"
    params: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


@dataclass(frozen=True, slots=True)
class GatewayResponse:
    status: int = 200
    body: Any = None
    content_type: str = "application/json"


class Gateway(Protocol):
    """Parses the inbound request into the context and renders the reply."""

    def __call__(self, context: Context, call_next: Handler) -> GatewayResponse: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Pipeline
# ═══════════════════════════════════════════════════════════════════════════════


class Pipeline:
    """Ordered, named middleware stages.

        pipeline = Pipeline("ussd").use(session, name="session").use(audit)
        handler = pipeline.build(executor)
        response = handler(context)
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._stages: list[tuple[str, Middleware]] = []

    def use(self, middleware: Middleware, name: str | None = None) -> Self:
        self._stages.append((name or _stage_name(middleware), middleware))
        return self

    def insert_before(self, anchor: str, middleware: Middleware, name: str | None = None) -> Self:
        for index, (stage_name, _) in enumerate(self._stages):
            if stage_name == anchor:
                self._stages.insert(index, (name or _stage_name(middleware), middleware))
                return self
        raise ConfigurationError(f"pipeline {self.name!r} has no stage named {anchor!r}")

    @property
    def names(self) -> Sequence[str]:
        return [stage_name for stage_name, _ in self._stages]

    @property
    def stages(self) -> Sequence[tuple[str, Middleware]]:
        return list(self._stages)

    def __len__(self) -> int:
        return len(self._stages)

    def build(self, terminal: Handler) -> Handler:
        handler = terminal
        for _, middleware in reversed(self._stages):
            handler = _bind(middleware, handler)
        _log.debug("pipeline: %s built with stages %s", self.name, self.names)
        return handler


def _bind(middleware: Middleware, call_next: Handler) -> Handler:
    def handler(context: Context) -> FlowResponse:
        return middleware(context, call_next)

    return handler


def _stage_name(middleware: object) -> str:
    return getattr(middleware, "__name__", type(middleware).__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Processor
# ═══════════════════════════════════════════════════════════════════════════════


class Processor:
    """Builds and runs the pipeline for one channel.

    Subclasses set the app facade and the default session identifier, and
    may add channel middleware through :meth:`_channel_middleware`.

        processor = (
            UssdProcessor(config)
            .use_gateway(NaloGateway())
            .use_cache(MemoryCache())
            .build()
        )
        response = processor.run(SignupFlow, "main", request)
    """

    channel: str = "generic"
    app_cls: type[FlowApp] = FlowApp
    default_identifier: IdentifierStrategy = IdentifierStrategy.EPHEMERAL

    def __init__(
        self,
        config: FlowChatConfig = DEFAULT_CONFIG,
        registry: FlowRegistry | None = None,
    ) -> None:
        self._config = config
        self._registry = registry if registry is not None else FlowRegistry()
        self._gateway: Gateway | None = None
        self._cache: CacheBackend | None = None
        self._middleware = Pipeline("user")
        self._handler: Handler | None = None

    @property
    def config(self) -> FlowChatConfig:
        return self._config

    @property
    def registry(self) -> FlowRegistry:
        return self._registry

    def use_gateway(self, gateway: Gateway) -> Self:
        self._gateway = gateway
        self._handler = None
        return self

    def use_cache(self, cache: CacheBackend) -> Self:
        self._cache = cache
        self._handler = None
        return self

    def use_middleware(self, middleware: Middleware, name: str | None = None) -> Self:
        self._middleware.use(middleware, name)
        self._handler = None
        return self

    def register[F: type[Flow]](self, flow_cls: F, name: str | None = None) -> F:
        return self._registry.register(flow_cls, name)

    def build(self) -> Self:
        """Compose the pipeline.

        :raises ConfigurationError: no gateway or no cache configured
        """
        if self._gateway is None:
            raise ConfigurationError(f"{self.channel} processor has no gateway, call use_gateway()")
        if self._cache is None:
            raise ConfigurationError(f"{self.channel} processor has no session cache, call use_cache()")

        pipeline = Pipeline(self.channel)
        pipeline.use(
            SessionMiddleware(self._cache, self.session_key_strategy(), self.session_ttl()),
            name="session",
        )
        for name, middleware in self._channel_middleware():
            pipeline.use(middleware, name=name)
        for name, middleware in self._middleware.stages:
            pipeline.use(middleware, name=name)

        self._handler = pipeline.build(Executor(self.app_cls, self._registry, self._config))
        return self

    def run(self, flow_cls: type[Flow], action: str, request: InboundRequest) -> GatewayResponse:
        """Handle one inbound request for ``flow_cls.action``."""
        if self._handler is None:
            self.build()
        handler, gateway = self._handler, self._gateway

        entry = self._registry.entry_for(flow_cls)
        context = Context({
            "request.http": request,
            "flow.class": flow_cls,
            "flow.name": entry.name,
            "flow.action": action,
        })
        try:
            return gateway(context, handler)  # type: ignore[misc]
        except Exception as exc:
            _log.error(
                "processor: %s request failed for %s#%s (session %s): %s: %s",
                self.channel, entry.name, action, context["session.id"], type(exc).__name__, exc,
            )
            raise

    # ── hooks ────────────────────────────────────────────────────────────────

    def session_key_strategy(self) -> SessionKeyStrategy:
        return SessionKeyStrategy.from_config(self._config.session, self.default_identifier)

    def session_ttl(self) -> timedelta | None:
        return timedelta(days=1)

    def _channel_middleware(self) -> Sequence[tuple[str, Middleware]]:
        return ()


__all__ = (
    "Gateway",
    "GatewayResponse",
    "Handler",
    "InboundRequest",
    "Middleware",
    "Pipeline",
    "Processor",
)
