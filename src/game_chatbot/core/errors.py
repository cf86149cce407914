from __future__ import annotations


class ChatBotError(Exception):
    """Base class for recoverable chatbot failures."""


class ValidationError(ChatBotError):
    """Input rejected before any state mutation (bad email, unknown model)."""


class ConcurrencyConflict(ChatBotError):
    """A dispatch is already in flight for this session."""


class SessionInactiveError(ChatBotError):
    """The player has no active conversation."""


class CredentialMissing(ChatBotError):
    """Per-player mode and no stored token for the player/platform."""


class ServiceError(ChatBotError):
    """Completion service failed or returned an unusable response."""


class RuleLoadError(ChatBotError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class SchemaError(ChatBotError):
    """Persistence schema could not be created."""
