"""whatsapp: WhatsApp Cloud API channel."""

from .gateway import CloudApiGateway, MessageSender
from .processor import WhatsappProcessor
from .renderer import MessageKind, WhatsappMessage, cloud_api_payload, render

__all__ = (
    "CloudApiGateway",
    "MessageKind",
    "MessageSender",
    "WhatsappMessage",
    "WhatsappProcessor",
    "cloud_api_payload",
    "render",
)
