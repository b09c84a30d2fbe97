"""Custom exception classes for the edit agent."""


class ImageEditAgentError(Exception):
    """Base exception for all agent errors."""
    pass


class ConfigurationError(ImageEditAgentError):
    """Configuration or initialization errors."""
    pass


class APIError(ImageEditAgentError):
    """Base class for API-related errors."""
    pass


class ProviderError(APIError):
    """Generic provider API error with status code."""

    def __init__(self, provider: str, message: str, status_code: int = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider} error: {message}")


class AuthenticationError(ProviderError):
    """API authentication failed."""

    def __init__(self, provider: str):
        super().__init__(provider, "Authentication failed", 401)


class RateLimitError(ProviderError):
    """API rate limit exceeded."""

    def __init__(self, provider: str, retry_after: int = None):
        self.retry_after = retry_after
        message = "Rate limit exceeded"
        if retry_after:
            message += f", retry after {retry_after}s"
        super().__init__(provider, message, 429)


class DecodeError(ImageEditAgentError):
    """Input bytes are not a decodable image."""
    pass


class GenerationError(ImageEditAgentError):
    """The image model produced no usable image."""
    pass


class TransientError(ImageEditAgentError):
    """A model call failed at the transport or provider level."""
    pass


class EvaluationError(ImageEditAgentError):
    """The judge call itself failed."""
    pass


class EncodingError(ImageEditAgentError):
    """A progress event could not be serialized."""
    pass


class IncompleteSessionError(ImageEditAgentError):
    """Event stream ended without a Complete or Error event."""
    pass


class TimeoutError(ImageEditAgentError):
    """Operation exceeded timeout."""
    pass
