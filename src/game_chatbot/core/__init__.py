from .dispatch import DispatchPipeline, augment_message, normalize_credential_mode
from .entities import EntityType
from .errors import (
    ChatBotError,
    ConcurrencyConflict,
    CredentialMissing,
    RuleLoadError,
    SchemaError,
    ServiceError,
    SessionInactiveError,
    ValidationError,
)
from .owner_thread import OwnerThreadExecutor
from .placeholders import PlaceholderCatalog
from .ports import (
    CompletionPort,
    CredentialPort,
    EmailStorePort,
    MessengerPort,
    PlayerDirectoryPort,
    PlayerView,
    TranscriptExportPort,
    WorldView,
)
from .rules import RuleEngine, ensure_default_rules, load_rules
from .sessions import SessionRegistry
from .types import (
    CompletionRequest,
    CompletionResponse,
    DispatchResult,
    EntitySighting,
    ItemStackInfo,
    PlaceholderContext,
    Rule,
    SessionSnapshot,
)

__all__ = [
    "DispatchPipeline",
    "augment_message",
    "normalize_credential_mode",
    "EntityType",
    "ChatBotError",
    "ConcurrencyConflict",
    "CredentialMissing",
    "RuleLoadError",
    "SchemaError",
    "ServiceError",
    "SessionInactiveError",
    "ValidationError",
    "OwnerThreadExecutor",
    "PlaceholderCatalog",
    "CompletionPort",
    "CredentialPort",
    "EmailStorePort",
    "MessengerPort",
    "PlayerDirectoryPort",
    "PlayerView",
    "TranscriptExportPort",
    "WorldView",
    "RuleEngine",
    "ensure_default_rules",
    "load_rules",
    "SessionRegistry",
    "CompletionRequest",
    "CompletionResponse",
    "DispatchResult",
    "EntitySighting",
    "ItemStackInfo",
    "PlaceholderContext",
    "Rule",
    "SessionSnapshot",
]
