"""
Domain exceptions.

Provider and store failures are translated into these types at the
component that made the call. Routes map the client-facing ones onto
HTTP status codes; everything else reaches the global handler in main.py.
"""


class ReelsenseError(Exception):
    """Base class for all application errors."""


# ================================
# Provider errors
# ================================

class ProviderNotConfiguredError(ReelsenseError):
    """An external provider has no API key configured."""

    def __init__(self, provider: str):
        super().__init__(f"{provider} provider is not configured")
        self.provider = provider


class ProviderError(ReelsenseError):
    """An external provider call failed, timed out, or returned garbage."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


# ================================
# Not found
# ================================

class NotFoundError(ReelsenseError):
    """A referenced identifier does not exist (or is not visible to the caller)."""

    resource = "Resource"

    def __init__(self, identifier):
        super().__init__(f"{self.resource} {identifier} not found")
        self.identifier = identifier


class ConversationNotFoundError(NotFoundError):
    resource = "Conversation"


class ContentItemNotFoundError(NotFoundError):
    resource = "Content item"


# ================================
# Validation
# ================================

class InvalidInputError(ReelsenseError, ValueError):
    """Input rejected before any provider call is made."""


class InvalidQueryError(InvalidInputError):
    pass


class InvalidMessageError(InvalidInputError):
    pass
