"""Assistant exception hierarchy.

All assistant-specific exceptions inherit from AssistantError,
enabling structured error handling and cleaner catch clauses.
"""


class AssistantError(Exception):
    """Base exception for all assistant errors."""

    def __init__(self, message: str = "", *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class ProviderError(AssistantError):
    """Error communicating with an LLM provider."""

    def __init__(self, message: str = "", *, retryable: bool = True) -> None:
        super().__init__(message, retryable=retryable)


class ToolError(AssistantError):
    """Error executing a tool."""


class StorageError(AssistantError):
    """Error reading from or writing to the storage collaborator."""


class DeliveryError(AssistantError):
    """Error handing a message to the delivery collaborator."""

    def __init__(self, message: str = "", *, retryable: bool = True) -> None:
        super().__init__(message, retryable=retryable)


class InviteEmailError(DeliveryError):
    """Invite email could not be sent; ``code`` identifies the failure class."""

    def __init__(self, code: str, message: str = "", *, retryable: bool = True) -> None:
        super().__init__(message or code, retryable=retryable)
        self.code = code


class ConfigError(AssistantError, ValueError):
    """Invalid or missing configuration."""
