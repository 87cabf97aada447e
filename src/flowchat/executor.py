"""Flow executor: the last stage of every pipeline.

Runs the requested action and turns the interrupt it ends with into a
``FlowResponse``. The action runs under ``kungfu.unwrapping``, so a
``.unwrap()`` on an interrupt anywhere in flow code short-circuits the
action into ``Error(interrupt)``.

    Running ──AwaitingInput──▶ PROMPT response (session kept)
            ──Completed─────▶ TERMINAL response (session destroyed)
            ──Restart───────▶ Running (same action, fresh facade)
            ──returns───────▶ TERMINAL "Unexpected end of flow." (warning)
            ──raises────────▶ exception propagates (logged)
"""

from __future__ import annotations

import logging

from kungfu import Error, unwrapping

from flowchat.app import FlowApp
from flowchat.config import DEFAULT_CONFIG, FlowChatConfig
from flowchat.context import Context
from flowchat.errors import FlowError
from flowchat.interrupt import AwaitingInput, Completed, FlowResponse, Restart
from flowchat.registry import FlowRegistry

_log = logging.getLogger(__name__)


def _truncate(text: str, limit: int = 100) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


class Executor:
    def __init__(
        self,
        app_cls: type[FlowApp],
        registry: FlowRegistry,
        config: FlowChatConfig = DEFAULT_CONFIG,
    ) -> None:
        self._app_cls = app_cls
        self._registry = registry
        self._config = config

    def __call__(self, context: Context) -> FlowResponse:
        action_name = context["flow.action"]
        session_id = context["session.id"]
        entry, method = self._registry.resolve(context.flow, action_name)
        label = f"{entry.name}#{action_name}"
        _log.info("executor: executing %s for session %s", label, session_id)

        restarts = 0
        while True:
            app = self._app_cls(context, self._config)
            flow = entry.flow_cls(app)
            try:
                outcome = unwrapping(getattr(flow, method))()
            except Exception as exc:
                _log.error(
                    "executor: %s failed for session %s: %s: %s",
                    label, session_id, type(exc).__name__, exc,
                )
                raise

            match outcome:
                case Error(AwaitingInput() as signal):
                    _log.info(
                        "executor: %s prompted session %s: %r",
                        label, session_id, _truncate(signal.message),
                    )
                    return FlowResponse.prompt(signal.message, signal.choices, signal.media)
                case Error(Completed() as signal):
                    _log.info(
                        "executor: %s terminated session %s: %r",
                        label, session_id, _truncate(signal.message),
                    )
                    return self._terminate(context, signal)
                case Error(Restart()):
                    restarts += 1
                    if restarts > self._config.max_restarts:
                        raise FlowError(
                            f"{label} restarted more than {self._config.max_restarts} times in one request"
                        )
                    _log.info("executor: restart requested by %s for session %s", label, session_id)
                case Error(BaseException() as exc):
                    raise exc
                case Error(other):
                    raise FlowError(f"{label} ended with an unknown interrupt: {other!r}")
                case _:
                    _log.warning(
                        "executor: %s returned without prompting or terminating (got %r)",
                        label, outcome,
                    )
                    return self._terminate(context, Completed(self._config.theme.errors.unexpected_end))

    def _terminate(self, context: Context, signal: Completed) -> FlowResponse:
        _log.debug("executor: destroying session %s", context["session.id"])
        context.require_session().destroy()
        return FlowResponse.terminal(signal.message, signal.media)


__all__ = ("Executor",)
