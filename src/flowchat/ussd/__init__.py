"""ussd: USSD channel with gateways, pagination and choice mapping."""

from .choice_mapper import ChoiceMapper
from .gateway import NaloGateway, NsanoGateway
from .pagination import Pagination
from .processor import UssdProcessor
from .renderer import render

__all__ = (
    "ChoiceMapper",
    "NaloGateway",
    "NsanoGateway",
    "Pagination",
    "UssdProcessor",
    "render",
)
