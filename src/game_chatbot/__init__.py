from .commands import ChatBotCommand
from .config import ChatBotConfig, load_config, write_default_config
from .core.dispatch import DispatchPipeline
from .core.owner_thread import OwnerThreadExecutor
from .core.placeholders import PlaceholderCatalog
from .core.rules import RuleEngine
from .core.sessions import SessionRegistry
from .core.types import CompletionRequest, CompletionResponse, DispatchResult
from .export import SmtpTranscriptExporter
from .persistence.email_store import EmailStore
from .service import ChatBotService

__all__ = [
    "ChatBotService",
    "ChatBotCommand",
    "ChatBotConfig",
    "load_config",
    "write_default_config",
    "DispatchPipeline",
    "OwnerThreadExecutor",
    "PlaceholderCatalog",
    "RuleEngine",
    "SessionRegistry",
    "CompletionRequest",
    "CompletionResponse",
    "DispatchResult",
    "SmtpTranscriptExporter",
    "EmailStore",
]
