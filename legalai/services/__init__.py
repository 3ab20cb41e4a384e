"""Services module - Relay logic, configuration and errors"""

from .config_manager import ConfigManager
from .errors import (
    ChatClientError,
    ConfigurationError,
    RelayError,
    RelayStatusError,
    StreamUnavailableError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamStatusError,
)
from .llm_service import SYSTEM_PROMPT, LLMService, UpstreamStream

__all__ = [
    "ConfigManager",
    "LLMService",
    "SYSTEM_PROMPT",
    "UpstreamStream",
    "RelayError",
    "ConfigurationError",
    "UpstreamError",
    "UpstreamStatusError",
    "UpstreamConnectionError",
    "ChatClientError",
    "RelayStatusError",
    "StreamUnavailableError",
]
