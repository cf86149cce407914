from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Mapping, Optional, Sequence

from .commands import ChatBotCommand
from .config import ChatBotConfig
from .core.dispatch import DispatchPipeline
from .core.owner_thread import OwnerThreadExecutor
from .core.placeholders import PlaceholderCatalog
from .core.ports import CompletionPort, CredentialPort, MessengerPort, PlayerDirectoryPort, TranscriptExportPort
from .core.rules import RuleEngine
from .core.sessions import SessionRegistry
from .core.types import DispatchResult
from .export import SmtpTranscriptExporter
from .persistence.email_store import EmailStore
from .persistence.sqlalchemy.db import database_url, normalize_dialect


def engine_url(config: ChatBotConfig, logger: logging.Logger) -> str:
    db = config.database
    if db.url:
        return db.url
    if normalize_dialect(db.type) is None:
        logger.warning("Unknown database.type='%s', defaulting to SQLite for ChatBot.", db.type)
    return database_url(
        db.type,
        path=db.path,
        host=db.host,
        port=db.port,
        name=db.name,
        user=db.user,
        password=db.password,
    )


class ChatBotService:
    """Owns every chatbot component for one host lifetime.

    Built once at host start-up; :meth:`shutdown` force-clears all sessions so
    nothing survives a reload.
    """

    def __init__(
        self,
        config: ChatBotConfig,
        *,
        registry: SessionRegistry,
        pipeline: Optional[DispatchPipeline],
        command: Optional[ChatBotCommand],
        email_store: Optional[EmailStore],
        owner: OwnerThreadExecutor,
        owns_owner_thread: bool = False,
        logger: logging.Logger | None = None,
    ):
        self.config = config
        self.registry = registry
        self.pipeline = pipeline
        self.command = command
        self.email_store = email_store
        self.owner = owner
        self._owns_owner_thread = owns_owner_thread
        self._logger = logger or logging.getLogger(__name__)

    @property
    def enabled(self) -> bool:
        return self.pipeline is not None

    @classmethod
    def from_config(
        cls,
        config: ChatBotConfig,
        *,
        completion: CompletionPort,
        messenger: MessengerPort,
        players: PlayerDirectoryPort,
        models: Mapping[str, Iterable[str]] | None = None,
        credentials: CredentialPort | None = None,
        exporter: TranscriptExportPort | None = None,
        owner: OwnerThreadExecutor | None = None,
        clock: Callable[[], datetime] | None = None,
        logger: logging.Logger | None = None,
    ) -> "ChatBotService":
        log = logger or logging.getLogger(__name__)
        registry = SessionRegistry(notify=messenger.send_message)
        owns_owner_thread = owner is None
        owner = owner or OwnerThreadExecutor(default_timeout=config.read_timeout_seconds)

        if not config.licensed:
            log.warning("License is not 'free'. Disabling ChatBot AddOn.")
            return cls(config, registry=registry, pipeline=None, command=None, email_store=None, owner=owner, logger=log)

        email_store = EmailStore.from_url(engine_url(config, log), logger=log)
        email_store.ensure_schema()

        catalog = PlaceholderCatalog(owner=owner, clock=clock, nearby_radius=config.nearby_radius)
        rules = RuleEngine(config.rules_directory, catalog, logger=log)

        if exporter is None and config.mail.enable:
            exporter = SmtpTranscriptExporter(config.mail)

        pipeline = DispatchPipeline(
            registry,
            rules,
            completion,
            messenger,
            players,
            credential_mode=config.token_type,
            credentials=credentials,
            email_store=email_store,
            exporter=exporter,
            export_enabled=config.mail.enable,
            system_prompt=config.system_prompt,
        )
        command = ChatBotCommand(registry, email_store, models or {})
        if owns_owner_thread:
            owner.start()
        log.info("ChatBot dispatcher subcommand registered successfully.")
        return cls(
            config,
            registry=registry,
            pipeline=pipeline,
            command=command,
            email_store=email_store,
            owner=owner,
            owns_owner_thread=owns_owner_thread,
            logger=log,
        )

    async def on_chat(self, player_id: str, text: str) -> DispatchResult:
        if self.pipeline is None:
            return DispatchResult(status="inactive")
        return await self.pipeline.handle_chat(player_id, text)

    def on_command(self, player_id: str, args: Sequence[str]) -> list[str]:
        if self.command is None:
            return []
        return self.command.handle(player_id, args)

    def on_tab_complete(self, args: Sequence[str]) -> list[str]:
        if self.command is None:
            return []
        return self.command.complete(args)

    async def shutdown(self, timeout: float | None = 5.0) -> int:
        terminated = self.registry.terminate_all()
        if self.pipeline is not None:
            await self.pipeline.wait_idle(timeout=timeout)
        if self._owns_owner_thread:
            self.owner.stop()
        if self.email_store is not None:
            self.email_store.dispose()
        return terminated
