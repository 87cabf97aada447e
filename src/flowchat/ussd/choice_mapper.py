"""Choice mapper: numeric tokens for arbitrary choice keys.

USSD users can only type short strings, so every choice set is presented
as ``1..N`` and the mapping back to the original keys is kept in the
session under ``ussd.choice_mapping``. A reply naming a stored token is
rewritten to the original key before the flow runs. The mapping is
dropped after every reply and stored again only if the next response
also offers choices.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from flowchat.context import Context
from flowchat.interrupt import FlowResponse
from flowchat.pipeline import Handler
from flowchat.prompt import is_present

_log = logging.getLogger(__name__)

CHOICE_MAPPING_KEY = "ussd.choice_mapping"


class ChoiceMapper:
    def __call__(self, context: Context, call_next: Handler) -> FlowResponse:
        session = context.require_session()
        mapping: dict[str, str] = session.get(CHOICE_MAPPING_KEY) or {}
        raw = context.input

        if mapping:
            if is_present(raw) and raw in mapping:
                _log.info("choice_mapper: resolved %r to %r for session %s", raw, mapping[raw], context["session.id"])
                context.input = mapping[raw]
            # A mapping answers one screen only; a re-prompt stores it again.
            session.delete(CHOICE_MAPPING_KEY)
            _log.debug("choice_mapper: cleared mapping for session %s", context["session.id"])

        response = call_next(context)
        if not response.choices:
            return response

        numbered, mapping = number_choices(response.choices)
        session.set(CHOICE_MAPPING_KEY, mapping)
        _log.debug("choice_mapper: stored mapping %s", mapping)
        return response._replace(choices=numbered)


def number_choices(choices: Mapping[Any, str]) -> tuple[dict[str, str], dict[str, str]]:
    """``({"1": label, ...}, {"1": str(key), ...})`` in presentation order."""
    numbered: dict[str, str] = {}
    mapping: dict[str, str] = {}
    for number, (key, label) in enumerate(choices.items(), start=1):
        numbered[str(number)] = label
        mapping[str(number)] = str(key)
    return numbered, mapping


__all__ = (
    "CHOICE_MAPPING_KEY",
    "ChoiceMapper",
    "number_choices",
)
