"""Tests for the executor: running actions and mapping interrupts to responses."""

from __future__ import annotations

import logging

import pytest

from kungfu import Error

from flowchat.app import FlowApp, UssdApp, WhatsappApp
from flowchat.config import FlowChatConfig
from flowchat.context import Context
from flowchat.errors import ActionNotFound, FlowError
from flowchat.executor import Executor
from flowchat.flow import Flow, action
from flowchat.interrupt import FlowResponse, ResponseKind, Step
from flowchat.registry import FlowRegistry
from flowchat.session import CacheSessionStore, MemoryCache


# ═══════════════════════════════════════════════════════════════════════════════
# Flows under test
# ═══════════════════════════════════════════════════════════════════════════════


class Signup(Flow):
    @action
    def main(self) -> Step[None]:
        name = self.app.screen("name", lambda p: p.ask("Your name?")).unwrap()
        agreed = self.app.screen("confirm", lambda p: p.yes(f"Register {name}?")).unwrap()
        return self.app.say(f"Welcome {name}!" if agreed else "Cancelled.")


class Survey(Flow):
    @action
    def main(self) -> Step[None]:
        first = self.app.screen("first", lambda p: p.ask("First?")).unwrap()
        second = self.app.screen("second", lambda p: p.ask("Second?")).unwrap()
        if second == "back":
            self.app.go_back().unwrap()
        return self.app.say(f"{first}/{second}")


class Endless(Flow):
    @action
    def main(self) -> Step[None]:
        self.app.screen("x", lambda p: "value").unwrap()
        return self.app.go_back()


class Silent(Flow):
    @action
    def main(self) -> None:
        self.app.screen("constant", lambda p: 42).unwrap()


class Broken(Flow):
    @action
    def main(self) -> None:
        raise RuntimeError("boom")

    @action
    def failed_result(self) -> Step[None]:
        return Error(LookupError("missing row"))

    @action
    def odd_result(self) -> Step[None]:
        return Error("weird")  # type: ignore[arg-type]


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════


def _context(
    cache: MemoryCache,
    flow: type[Flow],
    user_input: str | None = None,
    action_name: str = "main",
) -> Context:
    context = Context({
        "session.id": "executor-session",
        "flow.class": flow,
        "flow.action": action_name,
    })
    context.session = CacheSessionStore(cache, "executor-session")
    context.input = user_input
    return context


def _executor(app_cls: type[FlowApp] = UssdApp, config: FlowChatConfig | None = None) -> Executor:
    return Executor(app_cls, FlowRegistry(), config or FlowChatConfig())


# ═══════════════════════════════════════════════════════════════════════════════
# Transitions
# ═══════════════════════════════════════════════════════════════════════════════


class TestExecutorPrompting:
    def test_first_request_prompts(self) -> None:
        response = _executor()(_context(MemoryCache(), Signup))
        assert response == FlowResponse(ResponseKind.PROMPT, "Your name?")

    def test_answer_advances_to_next_screen(self) -> None:
        cache = MemoryCache()
        executor = _executor()
        executor(_context(cache, Signup))
        response = executor(_context(cache, Signup, "Ada"))
        assert response == FlowResponse.prompt("Register Ada?", {"1": "Yes", "2": "No"})

    def test_prompt_keeps_session(self) -> None:
        cache = MemoryCache()
        executor = _executor()
        executor(_context(cache, Signup, "Ada"))
        assert CacheSessionStore(cache, "executor-session").get("name") == "Ada"

    def test_invalid_answer_reprompts(self) -> None:
        cache = MemoryCache()
        executor = _executor()
        executor(_context(cache, Signup, "Ada"))
        response = executor(_context(cache, Signup, "7"))
        assert response.kind is ResponseKind.PROMPT
        assert response.message == "Invalid selection:\n\nRegister Ada?"


class TestExecutorTermination:
    def test_completion_destroys_session(self) -> None:
        cache = MemoryCache()
        executor = _executor()
        executor(_context(cache, Signup, "Ada"))
        response = executor(_context(cache, Signup, "1"))

        assert response == FlowResponse.terminal("Welcome Ada!")
        assert not CacheSessionStore(cache, "executor-session").exists()

    def test_false_answer_flows_through(self) -> None:
        cache = MemoryCache()
        executor = _executor()
        executor(_context(cache, Signup, "Ada"))
        assert executor(_context(cache, Signup, "2")).message == "Cancelled."

    def test_unexpected_end(self, caplog: pytest.LogCaptureFixture) -> None:
        cache = MemoryCache()
        with caplog.at_level(logging.WARNING, logger="flowchat.executor"):
            response = _executor()(_context(cache, Silent))

        assert response == FlowResponse.terminal("Unexpected end of flow.")
        assert not CacheSessionStore(cache, "executor-session").exists()
        assert "without prompting or terminating" in caplog.text


class TestExecutorRestart:
    def test_go_back_reprompts_previous_screen(self) -> None:
        cache = MemoryCache()
        executor = _executor()
        executor(_context(cache, Survey, "a"))
        response = executor(_context(cache, Survey, "back"))

        assert response == FlowResponse.prompt("Second?")
        session = CacheSessionStore(cache, "executor-session")
        assert session.get("first") == "a"
        assert session.get("second") is None

    def test_restart_then_answer(self) -> None:
        cache = MemoryCache()
        executor = _executor()
        executor(_context(cache, Survey, "a"))
        executor(_context(cache, Survey, "back"))
        assert executor(_context(cache, Survey, "b")) == FlowResponse.terminal("a/b")

    def test_restart_bound(self) -> None:
        with pytest.raises(FlowError, match="restarted more than 10 times"):
            _executor()(_context(MemoryCache(), Endless))

    def test_restart_bound_configurable(self) -> None:
        with pytest.raises(FlowError, match="more than 2 times"):
            _executor(config=FlowChatConfig(max_restarts=2))(_context(MemoryCache(), Endless))


class TestExecutorErrors:
    def test_exception_propagates(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="flowchat.executor"):
            with pytest.raises(RuntimeError, match="boom"):
                _executor()(_context(MemoryCache(), Broken))
        assert "broken#main failed" in caplog.text

    def test_exception_result_is_raised(self) -> None:
        with pytest.raises(LookupError, match="missing row"):
            _executor()(_context(MemoryCache(), Broken, action_name="failed_result"))

    def test_unknown_error_value(self) -> None:
        with pytest.raises(FlowError, match="unknown interrupt"):
            _executor()(_context(MemoryCache(), Broken, action_name="odd_result"))

    def test_unknown_action(self) -> None:
        with pytest.raises(ActionNotFound, match="no action 'nope'"):
            _executor()(_context(MemoryCache(), Signup, action_name="nope"))


class TestExecutorWhatsapp:
    def test_greeting_is_not_an_answer(self) -> None:
        cache = MemoryCache()
        executor = _executor(WhatsappApp)
        assert executor(_context(cache, Signup, "hi")) == FlowResponse.prompt("Your name?")
        assert executor(_context(cache, Signup, "Ada")).message == "Register Ada?"
