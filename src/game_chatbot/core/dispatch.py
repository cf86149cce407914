from __future__ import annotations

import asyncio
import logging

from .errors import ConcurrencyConflict, CredentialMissing, ServiceError, SessionInactiveError, ValidationError
from .ports import (
    CompletionPort,
    CredentialPort,
    EmailStorePort,
    MessengerPort,
    PlayerDirectoryPort,
    TranscriptExportPort,
)
from .rules import RuleEngine
from .sessions import SessionRegistry
from .types import CompletionRequest, DispatchResult, PlaceholderContext, SessionSnapshot

QUIT_TOKEN = "quit"
SHARED = "shared"
PER_PLAYER = "per-player"

_CREDENTIAL_MODES = {
    "shared": SHARED,
    "server": SHARED,
    "per-player": PER_PLAYER,
    "per_player": PER_PLAYER,
    "player": PER_PLAYER,
}

MSG_WAIT = "⏳ Please wait for the AI to respond before sending another message."
MSG_FAILED = "❌ Failed to process your AI message."
MSG_ENDED = "❌ AI conversation ended."
MSG_EXPORTED = "Your chat history has been sent to your email!"


def normalize_credential_mode(value: str | None) -> str:
    mode = _CREDENTIAL_MODES.get(str(value or SHARED).strip().lower())
    if mode is None:
        raise ValidationError(f"unknown credential mode: {value!r}")
    return mode


def augment_message(message: str, matches: list[str]) -> str:
    if not matches:
        return message
    return message + "\n\n[Function Info]\n- " + "\n- ".join(matches)


class DispatchPipeline:
    """Routes intercepted chat lines into AI sessions.

    ``begin_dispatch`` on the registry is the only gate: it flips ``waiting``
    atomically, so at most one dispatch per session is ever in flight. The
    flag is cleared in ``finally`` for the same session generation whatever
    the outcome.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        rules: RuleEngine,
        completion: CompletionPort,
        messenger: MessengerPort,
        players: PlayerDirectoryPort,
        *,
        credential_mode: str = SHARED,
        credentials: CredentialPort | None = None,
        email_store: EmailStorePort | None = None,
        exporter: TranscriptExportPort | None = None,
        export_enabled: bool = False,
        system_prompt: str = "",
        logger: logging.Logger | None = None,
    ):
        self._registry = registry
        self._rules = rules
        self._completion = completion
        self._messenger = messenger
        self._players = players
        self._credential_mode = normalize_credential_mode(credential_mode)
        self._credentials = credentials
        self._email_store = email_store
        self._exporter = exporter
        self._export_enabled = export_enabled
        self._system_prompt = system_prompt or ""
        self._logger = logger or logging.getLogger(__name__)
        self._tasks: set[asyncio.Task] = set()

    @property
    def credential_mode(self) -> str:
        return self._credential_mode

    # ------------------------------------------------------------------
    # Inbound chat
    # ------------------------------------------------------------------

    async def handle_chat(self, player_id: str, text: str) -> DispatchResult:
        if not self._registry.is_active(player_id):
            return DispatchResult(status="inactive")

        message = (text or "").strip()
        if not message:
            return DispatchResult(status="ignored", reason="empty_message")
        if self._registry.is_waiting(player_id):
            self._send(player_id, MSG_WAIT)
            return DispatchResult(status="busy", reason="waiting_for_response")

        if message.lower() == QUIT_TOKEN:
            return await self.quit(player_id)
        return await self.submit(player_id, message)

    async def submit(self, player_id: str, message: str) -> DispatchResult:
        try:
            snapshot = self._registry.begin_dispatch(player_id)
        except ConcurrencyConflict:
            self._send(player_id, MSG_WAIT)
            return DispatchResult(status="busy", reason="waiting_for_response")
        except SessionInactiveError:
            return DispatchResult(status="inactive")

        self._send(player_id, f"[You → AI]: {message}")
        task = asyncio.create_task(self._dispatch(snapshot, message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return DispatchResult(status="accepted", task=task)

    async def quit(self, player_id: str) -> DispatchResult:
        snapshot = self._registry.get(player_id)
        if snapshot is None:
            return DispatchResult(status="inactive")
        if snapshot.waiting:
            # Only the forced-termination path may clear an in-flight session.
            self._send(player_id, MSG_WAIT)
            return DispatchResult(status="busy", reason="waiting_for_response")

        if self._export_enabled:
            await self._export_transcript(player_id, snapshot)

        self._registry.terminate(player_id, session_id=snapshot.session_id)
        self._send(player_id, MSG_ENDED)
        return DispatchResult(status="quit")

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def _dispatch(self, snapshot: SessionSnapshot, message: str) -> DispatchResult:
        player_id = snapshot.player_id
        try:
            context = PlaceholderContext(player_id=player_id, player=self._players.get_player(player_id))
            matches = await asyncio.to_thread(self._rules.match, context, message)
            request = CompletionRequest(
                platform=snapshot.platform,
                model=snapshot.model,
                prior_context=self._registry.history(player_id),
                message=augment_message(message, matches),
                credential=self._resolve_credential(player_id, snapshot.platform),
                system_prompt=self._system_prompt,
            )
            response = await self._completion.complete(request)
            reply = (getattr(response, "reply_text", None) or "").strip()
            if not reply:
                raise ServiceError("empty completion response")
            token_usage = int(getattr(response, "token_usage", -1))

            self._registry.append_exchange(
                player_id,
                f"[Player]: {message}",
                f"[AI]: {reply}",
                session_id=snapshot.session_id,
            )
            self._send(player_id, f"[AI → You]: {reply}")
            if token_usage >= 0:
                self._send(player_id, f"[Tokens Used] {token_usage}")
            return DispatchResult(status="ok", reply=reply, token_usage=token_usage)
        except (CredentialMissing, ServiceError) as exc:
            self._logger.warning("AI chat failed for %s: %s", player_id, exc)
            self._send(player_id, MSG_FAILED)
            return DispatchResult(status="error", reason=type(exc).__name__)
        except Exception as exc:
            self._logger.exception("AI chat failed for %s", player_id)
            self._send(player_id, MSG_FAILED)
            return DispatchResult(status="error", reason=str(exc) or type(exc).__name__)
        finally:
            self._registry.set_waiting(player_id, False, session_id=snapshot.session_id)

    def _resolve_credential(self, player_id: str, platform: str) -> str | None:
        if self._credential_mode == SHARED:
            return None
        token = self._credentials.get_player_token(player_id, platform) if self._credentials else None
        if not token:
            raise CredentialMissing(f"no {platform} token for player {player_id}")
        return token

    async def _export_transcript(self, player_id: str, snapshot: SessionSnapshot) -> None:
        if self._email_store is None or self._exporter is None:
            self._logger.warning("mail.enable is true, but no exporter is configured")
            return
        email = await asyncio.to_thread(self._email_store.get_email, player_id)
        if not email:
            self._logger.warning("mail.enable is true, but no email is registered for player: %s", player_id)
            return
        history = "".join(f"{turn}\n" for turn in snapshot.transcript)
        task = asyncio.create_task(self._send_export(history, email, player_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._send(player_id, MSG_EXPORTED)

    async def _send_export(self, history: str, email: str, player_id: str) -> None:
        try:
            await asyncio.to_thread(self._exporter.send, history, email)
        except Exception as exc:
            self._logger.warning("Transcript export failed for %s: %s", player_id, exc)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _send(self, player_id: str, text: str) -> None:
        try:
            self._messenger.send_message(player_id, text)
        except Exception as exc:
            self._logger.warning("Failed to deliver message to %s: %s", player_id, exc)

    def pending(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    async def wait_idle(self, timeout: float | None = None) -> None:
        tasks = [task for task in self._tasks if not task.done()]
        if tasks:
            await asyncio.wait(tasks, timeout=timeout)
