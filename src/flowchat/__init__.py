"""flowchat: screen-based conversational flows for USSD and WhatsApp."""

from .app import FlowApp, UssdApp, WhatsappApp
from .config import (
    DEFAULT_CONFIG,
    FlowChatConfig,
    PaginationConfig,
    SessionConfig,
    UssdConfig,
    WhatsappConfig,
)
from .context import Context
from .errors import (
    ActionNotFound,
    ConfigurationError,
    DuplicateScreenError,
    FlowChatError,
    FlowCollision,
    FlowDefinitionError,
    FlowError,
    SessionKeyError,
    UsageError,
)
from .flow import Flow, action
from .interrupt import (
    AwaitingInput,
    Completed,
    FlowResponse,
    ResponseKind,
    Restart,
    Step,
)
from .log import configure_logging
from .media import Media, MediaType
from .phone import normalize_msisdn
from .pipeline import GatewayResponse, InboundRequest, Pipeline, Processor
from .prompt import Prompt
from .registry import FlowRegistry
from .session import CacheBackend, CacheSessionStore, MemoryCache, SessionStore
from .session_key import Boundary, IdentifierStrategy, SessionKeyStrategy

__all__ = (
    "DEFAULT_CONFIG",
    "ActionNotFound",
    "AwaitingInput",
    "Boundary",
    "CacheBackend",
    "CacheSessionStore",
    "Completed",
    "ConfigurationError",
    "Context",
    "DuplicateScreenError",
    "Flow",
    "FlowApp",
    "FlowChatConfig",
    "FlowChatError",
    "FlowCollision",
    "FlowDefinitionError",
    "FlowError",
    "FlowRegistry",
    "FlowResponse",
    "GatewayResponse",
    "IdentifierStrategy",
    "InboundRequest",
    "Media",
    "MediaType",
    "MemoryCache",
    "PaginationConfig",
    "Pipeline",
    "Processor",
    "Prompt",
    "ResponseKind",
    "Restart",
    "SessionConfig",
    "SessionKeyError",
    "SessionKeyStrategy",
    "SessionStore",
    "Step",
    "UsageError",
    "UssdApp",
    "UssdConfig",
    "WhatsappApp",
    "WhatsappConfig",
    "action",
    "configure_logging",
    "normalize_msisdn",
)
