"""Pagination: reflow long USSD screens into pages with More/Back options.

A rendered screen longer than ``page_size`` is split on word boundaries.
The full text and the inclusive ``{start, finish}`` offsets of every page
served so far are kept in the session under ``ussd.pagination``:

    {"page": 2,
     "offsets": {"1": {"start": 0, "finish": 118}, "2": {"start": 119, "finish": 229}},
     "prompt": "<full rendered text>",
     "type": "prompt"}

While that state exists, a reply equal to the next or back option (or any
reply, once the flow has terminated) is answered from the stored text
without running the flow again. Revisited pages reuse their cached
offsets; only a newly visited page searches for a word boundary.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from flowchat.config import PaginationConfig
from flowchat.context import Context
from flowchat.interrupt import FlowResponse, ResponseKind
from flowchat.pipeline import Handler
from flowchat.session import SessionStore
from flowchat.theme import DEFAULT_THEME, MediaUI
from flowchat.ussd.renderer import render

_log = logging.getLogger(__name__)

PAGINATION_KEY = "ussd.pagination"


@dataclass(frozen=True, slots=True)
class Page:
    number: int
    start: int
    finish: int
    has_more: bool


class Pagination:
    def __init__(
        self,
        config: PaginationConfig | None = None,
        media_ui: MediaUI = DEFAULT_THEME.media,
    ) -> None:
        self._config = config or PaginationConfig()
        self._media_ui = media_ui
        self._next = self._config.next_label
        self._back = self._config.back_label
        # Room for one navigation line, then for both.
        self.single_slice = self._config.page_size - 2 - max(len(self._next), len(self._back)) - 1
        self.dual_slice = self._config.page_size - 3 - (len(self._next) + len(self._back)) - 1

    def __call__(self, context: Context, call_next: Handler) -> FlowResponse:
        session = context.require_session()
        state: dict[str, Any] | None = session.get(PAGINATION_KEY)

        if state and self._intercepts(state, context.input):
            _log.info("pagination: serving stored page for session %s", context["session.id"])
            return self._serve(session, state, context.input)

        if state:
            _log.debug("pagination: clearing state for session %s", context["session.id"])
        session.delete(PAGINATION_KEY)

        response = call_next(context)
        text = render(response.message, response.choices, response.media, media_ui=self._media_ui)
        if len(text) <= self._config.page_size:
            return FlowResponse(response.kind, text)

        _log.info(
            "pagination: %d chars exceed page size %d, paginating session %s",
            len(text), self._config.page_size, context["session.id"],
        )
        return self._first_page(session, text, response.kind)

    # ── navigation ───────────────────────────────────────────────────────────

    def _intercepts(self, state: dict[str, Any], user_input: str | None) -> bool:
        if state["type"] == ResponseKind.TERMINAL.value:
            return True
        return user_input in (self._config.next_option, self._config.back_option)

    def _target_page(self, state: dict[str, Any], user_input: str | None) -> int:
        page = state["page"]
        if user_input == self._config.back_option:
            page -= 1
        elif user_input == self._config.next_option:
            page += 1
        return max(page, 1)

    def _first_page(self, session: SessionStore, text: str, kind: ResponseKind) -> FlowResponse:
        cut = self.single_slice
        if not _is_blank_at(text, cut + 1):
            head = text[: cut + 1]
            boundary = head.rfind("\n")
            if boundary == -1:
                boundary = head.rfind(" ")
            if boundary != -1:
                cut = boundary

        session.set(PAGINATION_KEY, {
            "page": 1,
            "offsets": {"1": {"start": 0, "finish": cut}},
            "prompt": text,
            "type": kind.value,
        })
        _log.debug("pagination: first page break at %d", cut)
        return FlowResponse.prompt(text[: cut + 1] + "\n\n" + self._next)

    def _serve(self, session: SessionStore, state: dict[str, Any], user_input: str | None) -> FlowResponse:
        text: str = state["prompt"]
        page = self.locate(state, self._target_page(state, user_input))

        terminal = state["type"] == ResponseKind.TERMINAL.value and not page.has_more
        body = text[page.start : page.finish + 1]

        offsets = dict(state["offsets"])
        offsets[str(page.number)] = {"start": page.start, "finish": page.finish}
        _log.debug(
            "pagination: page %d [%d..%d] has_more=%s terminal=%s",
            page.number, page.start, page.finish, page.has_more, terminal,
        )

        if terminal:
            # The flow already ended; nothing is left to navigate.
            session.destroy()
            return FlowResponse.terminal(body)

        session.set(PAGINATION_KEY, {**state, "page": page.number, "offsets": offsets})
        options = [self._next] if page.has_more else []
        if page.number > 1:
            options.append(self._back)
        return FlowResponse.prompt(body + "\n\n" + "\n".join(options))

    def locate(self, state: dict[str, Any], number: int) -> Page:
        """Offsets of page ``number``, computed and word-aligned on first visit."""
        text: str = state["prompt"]
        offsets: dict[str, dict[str, int]] = state["offsets"]

        cached = offsets.get(str(number))
        if cached is not None:
            start, finish = cached["start"], cached["finish"]
            return Page(number, start, finish, has_more=finish + 1 < len(text))

        previous = offsets[str(number - 1)]
        start = previous["finish"] + 1
        if start >= len(text):
            _log.warning("pagination: no content for page %d, staying on page %d", number, number - 1)
            return Page(number - 1, previous["start"], previous["finish"], has_more=False)

        has_more = len(text) > start + self.single_slice
        finish = start + (self.dual_slice if has_more else self.single_slice)
        if finish + 1 < len(text) and not _is_blank_at(text, finish + 1):
            window = text[start : finish + 1]
            boundary = window.rfind("\n")
            if boundary == -1:
                boundary = window.rfind(" ")
            if boundary != -1:
                finish = start + boundary
        return Page(number, start, min(finish, len(text) - 1), has_more)


def _is_blank_at(text: str, index: int) -> bool:
    return index >= len(text) or text[index].isspace()


__all__ = (
    "PAGINATION_KEY",
    "Page",
    "Pagination",
)
