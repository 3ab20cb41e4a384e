"""Error types for the relay and the stream consumer"""


class RelayError(Exception):
    """Base class for failures surfaced by the relay as a 500 {error} body."""
    pass


class ConfigurationError(RelayError):
    """Raised when a required setting (the upstream API key) is missing."""
    pass


class UpstreamError(RelayError):
    """Base class for failures talking to the upstream chat API."""
    pass


class UpstreamStatusError(UpstreamError):
    """Raised when the upstream answers with a non-success status."""
    def __init__(self, status: int):
        super().__init__(f"Groq API error: {status}")
        self.status = status


class UpstreamConnectionError(UpstreamError):
    """Raised when the upstream cannot be reached."""
    def __init__(self, message: str = "Failed to reach Groq API"):
        super().__init__(message)


class ChatClientError(Exception):
    """Base class for consumer-side transport failures."""
    pass


class RelayStatusError(ChatClientError):
    """Raised when the relay answers with a non-success status."""
    def __init__(self, status: int):
        super().__init__(f"Relay returned HTTP {status}")
        self.status = status


class StreamUnavailableError(ChatClientError):
    """Raised when the relay response carries no readable body stream."""
    pass
