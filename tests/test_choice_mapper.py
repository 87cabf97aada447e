"""Tests for the USSD choice mapper."""

from __future__ import annotations

from flowchat.context import Context
from flowchat.interrupt import FlowResponse
from flowchat.session import CacheSessionStore, MemoryCache
from flowchat.ussd.choice_mapper import CHOICE_MAPPING_KEY, ChoiceMapper, number_choices


class Recorder:
    def __init__(self, response: FlowResponse) -> None:
        self.response = response
        self.inputs: list[str | None] = []

    def __call__(self, context: Context) -> FlowResponse:
        self.inputs.append(context.input)
        return self.response


def _context(cache: MemoryCache, user_input: str | None = None) -> Context:
    context = Context({"session.id": "mapper-session"})
    context.session = CacheSessionStore(cache, "mapper-session")
    context.input = user_input
    return context


def _mapping(cache: MemoryCache) -> dict | None:
    return CacheSessionStore(cache, "mapper-session").get(CHOICE_MAPPING_KEY)


class TestNumberChoices:
    def test_presentation_order(self) -> None:
        numbered, mapping = number_choices({"basic": "Basic plan", "premium": "Premium plan"})
        assert numbered == {"1": "Basic plan", "2": "Premium plan"}
        assert mapping == {"1": "basic", "2": "premium"}

    def test_keys_stringified(self) -> None:
        _, mapping = number_choices({10: "Ten", 20: "Twenty"})
        assert mapping == {"1": "10", "2": "20"}


class TestChoiceMapper:
    def test_numbers_outgoing_choices(self) -> None:
        cache = MemoryCache()
        downstream = Recorder(FlowResponse.prompt("Plan?", {"basic": "Basic", "premium": "Premium"}))
        response = ChoiceMapper()(_context(cache), downstream)

        assert response == FlowResponse.prompt("Plan?", {"1": "Basic", "2": "Premium"})
        assert _mapping(cache) == {"1": "basic", "2": "premium"}

    def test_resolves_token_to_key(self) -> None:
        cache = MemoryCache()
        mapper = ChoiceMapper()
        mapper(_context(cache), Recorder(FlowResponse.prompt("Plan?", {"basic": "Basic", "premium": "Premium"})))

        downstream = Recorder(FlowResponse.terminal("ok"))
        mapper(_context(cache, "2"), downstream)

        assert downstream.inputs == ["premium"]
        assert _mapping(cache) is None

    def test_list_choices_resolve_to_item(self) -> None:
        cache = MemoryCache()
        mapper = ChoiceMapper()
        mapper(_context(cache), Recorder(FlowResponse.prompt("Colour?", {"Red": "Red", "Blue": "Blue"})))

        downstream = Recorder(FlowResponse.terminal("ok"))
        mapper(_context(cache, "1"), downstream)
        assert downstream.inputs == ["Red"]

    def test_unknown_token_passes_through_and_clears(self) -> None:
        cache = MemoryCache()
        mapper = ChoiceMapper()
        mapper(_context(cache), Recorder(FlowResponse.prompt("Plan?", {"basic": "Basic"})))

        downstream = Recorder(FlowResponse.terminal("ok"))
        mapper(_context(cache, "7"), downstream)

        assert downstream.inputs == ["7"]
        assert _mapping(cache) is None

    def test_empty_input_clears(self) -> None:
        cache = MemoryCache()
        mapper = ChoiceMapper()
        mapper(_context(cache), Recorder(FlowResponse.prompt("Plan?", {"basic": "Basic"})))

        downstream = Recorder(FlowResponse.prompt("Name?"))
        mapper(_context(cache, ""), downstream)
        assert _mapping(cache) is None

    def test_new_choices_replace_mapping(self) -> None:
        cache = MemoryCache()
        mapper = ChoiceMapper()
        mapper(_context(cache), Recorder(FlowResponse.prompt("Plan?", {"basic": "Basic"})))
        mapper(_context(cache, "1"), Recorder(FlowResponse.prompt("Size?", {"s": "Small", "l": "Large"})))

        assert _mapping(cache) == {"1": "s", "2": "l"}

    def test_digit_keys_do_not_leak_into_next_screen(self) -> None:
        cache = MemoryCache()
        mapper = ChoiceMapper()
        mapper(_context(cache), Recorder(FlowResponse.prompt("Size?", {"3": "Large", "2": "Medium", "1": "Small"})))
        assert _mapping(cache) == {"1": "3", "2": "2", "3": "1"}

        size = Recorder(FlowResponse.prompt("Quantity?"))
        mapper(_context(cache, "1"), size)
        assert size.inputs == ["3"]
        assert _mapping(cache) is None

        quantity = Recorder(FlowResponse.prompt("Confirm?"))
        mapper(_context(cache, "1"), quantity)
        assert quantity.inputs == ["1"]

    def test_reprompt_keeps_mapping(self) -> None:
        cache = MemoryCache()
        mapper = ChoiceMapper()
        choices = {"basic": "Basic", "premium": "Premium"}
        mapper(_context(cache), Recorder(FlowResponse.prompt("Plan?", choices)))
        mapper(_context(cache, "9"), Recorder(FlowResponse.prompt("Invalid selection:\n\nPlan?", choices)))

        downstream = Recorder(FlowResponse.terminal("ok"))
        mapper(_context(cache, "1"), downstream)
        assert downstream.inputs == ["basic"]

    def test_response_without_choices_untouched(self) -> None:
        response = FlowResponse.prompt("Name?")
        assert ChoiceMapper()(_context(MemoryCache()), Recorder(response)) is response
