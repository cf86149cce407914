from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from game_chatbot.config import ChatBotConfig, DatabaseConfig, MailConfig
from game_chatbot.core.owner_thread import OwnerThreadExecutor
from game_chatbot.core.sessions import TERMINATED_NOTICE
from game_chatbot.core.types import CompletionResponse
from game_chatbot.export import SmtpTranscriptExporter
from game_chatbot.service import ChatBotService, engine_url

MODELS = {"openai": ["gpt-4o"]}


class EchoCompletion:
    def __init__(self):
        self.gate: asyncio.Event | None = None

    async def complete(self, request):
        if self.gate is not None:
            await self.gate.wait()
        return CompletionResponse(reply_text=f"echo: {request.message.splitlines()[0]}", token_usage=5)


def _config(tmp_path, **overrides) -> ChatBotConfig:
    base = ChatBotConfig(
        rules_directory=tmp_path / "data",
        database=DatabaseConfig(type="sqlite", path=":memory:"),
    )
    return replace(base, **overrides)


def test_end_to_end_conversation(tmp_path, messenger, players):
    async def run_test():
        owner = OwnerThreadExecutor(default_timeout=5.0)
        owner.start(tick_seconds=0.01)
        service = ChatBotService.from_config(
            _config(tmp_path),
            completion=EchoCompletion(),
            messenger=messenger,
            players=players,
            models=MODELS,
            owner=owner,
        )
        try:
            assert service.enabled
            assert (tmp_path / "data" / "data.json").is_file()

            assert service.on_command("p1", ["set", "email", "steve@example.com"]) == [
                "Your email has been saved successfully."
            ]
            service.on_command("p1", ["openai", "gpt-4o"])
            result = await service.on_chat("p1", "How many zombies nearby?")
            turn = await result.task

            assert turn.status == "ok"
            assert turn.reply == "echo: How many zombies nearby?"
            assert service.registry.transcript("p1") == [
                "[Player]: How many zombies nearby?",
                "[AI]: echo: How many zombies nearby?",
            ]
            assert service.on_tab_complete(["o"]) == ["openai"]
        finally:
            await service.shutdown()
            owner.stop()

    asyncio.run(run_test())


def test_shutdown_terminates_every_session(tmp_path, messenger, players):
    async def run_test():
        completion = EchoCompletion()
        completion.gate = asyncio.Event()
        service = ChatBotService.from_config(
            _config(tmp_path),
            completion=completion,
            messenger=messenger,
            players=players,
            models=MODELS,
        )
        assert service.owner.running

        service.on_command("p1", ["openai", "gpt-4o"])
        service.on_command("p2", ["openai", "gpt-4o"])
        pending = await service.on_chat("p1", "hello")

        completion.gate.set()
        terminated = await service.shutdown(timeout=2.0)

        assert terminated == 2
        assert pending.task.done()
        assert service.registry.active_players() == []
        assert TERMINATED_NOTICE in messenger.texts("p1")
        assert TERMINATED_NOTICE in messenger.texts("p2")
        assert service.owner.running is False

    asyncio.run(run_test())


def test_unlicensed_config_disables_the_service(tmp_path, messenger, players, caplog):
    async def run_test():
        with caplog.at_level(logging.WARNING):
            service = ChatBotService.from_config(
                _config(tmp_path, license="premium"),
                completion=EchoCompletion(),
                messenger=messenger,
                players=players,
                models=MODELS,
            )

        assert service.enabled is False
        assert service.on_command("p1", ["openai", "gpt-4o"]) == []
        assert (await service.on_chat("p1", "hello")).status == "inactive"
        assert not (tmp_path / "data").exists()
        assert "Disabling ChatBot" in caplog.text
        assert await service.shutdown() == 0

    asyncio.run(run_test())


def test_mail_enabled_builds_smtp_exporter(tmp_path, messenger, players):
    async def run_test():
        service = ChatBotService.from_config(
            _config(tmp_path, mail=MailConfig(enable=True, type="outlook", email="bot@example.com", password="x")),
            completion=EchoCompletion(),
            messenger=messenger,
            players=players,
            models=MODELS,
        )
        try:
            exporter = service.pipeline._exporter
            assert isinstance(exporter, SmtpTranscriptExporter)
            assert exporter.host == "smtp.office365.com"
        finally:
            await service.shutdown()

    asyncio.run(run_test())


def test_engine_url_falls_back_to_sqlite_for_unknown_type(tmp_path, caplog):
    config = _config(tmp_path, database=DatabaseConfig(type="oracle", path=str(tmp_path / "c.db")))
    with caplog.at_level(logging.WARNING):
        url = engine_url(config, logging.getLogger("test"))
    assert url == f"sqlite+pysqlite:///{tmp_path / 'c.db'}"
    assert "defaulting to SQLite" in caplog.text

    explicit = _config(tmp_path, database=DatabaseConfig(url="sqlite+pysqlite:///:memory:"))
    assert engine_url(explicit, logging.getLogger("test")) == "sqlite+pysqlite:///:memory:"


def test_bad_database_url_keeps_chat_working(tmp_path, messenger, players):
    async def run_test():
        service = ChatBotService.from_config(
            _config(tmp_path, database=DatabaseConfig(url="this is not a url")),
            completion=EchoCompletion(),
            messenger=messenger,
            players=players,
            models=MODELS,
        )
        try:
            assert service.enabled
            assert service.email_store.schema_error is not None
            assert service.on_command("p1", ["set", "email", "steve@example.com"]) == [
                "Invalid email format or database error."
            ]
            service.on_command("p1", ["openai", "gpt-4o"])
            turn = await (await service.on_chat("p1", "hello")).task
            assert turn.status == "ok"
        finally:
            await service.shutdown()

    asyncio.run(run_test())
