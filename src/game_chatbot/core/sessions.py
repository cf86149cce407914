from __future__ import annotations

import logging
import threading
import uuid
from typing import Callable, Optional

from .errors import ConcurrencyConflict, SessionInactiveError
from .types import SessionSnapshot

logger = logging.getLogger(__name__)

TERMINATED_NOTICE = "Your AI session has ended due to the plugin being reloaded or disabled."


class _Session:
    __slots__ = ("player_id", "session_id", "platform", "model", "transcript", "active", "waiting", "lock")

    def __init__(self, player_id: str, platform: str, model: str):
        self.player_id = player_id
        self.session_id = uuid.uuid4().hex
        self.platform = platform
        self.model = model
        self.transcript: list[str] = []
        self.active = True
        self.waiting = False
        self.lock = threading.Lock()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            player_id=self.player_id,
            session_id=self.session_id,
            platform=self.platform,
            model=self.model,
            transcript=tuple(self.transcript),
            active=self.active,
            waiting=self.waiting,
        )


class SessionRegistry:
    """Per-player conversation state and transcripts.

    The registry lock only guards the mapping itself. Field mutation happens
    under the owning session's lock, so two players never contend with each
    other. Every mutator accepts an optional ``session_id``; when given, the
    call only applies to that session generation, which keeps a late dispatch
    from writing into a session that was terminated and restarted meanwhile.
    """

    def __init__(self, notify: Callable[[str, str], None] | None = None):
        self._sessions: dict[str, _Session] = {}
        self._lock = threading.Lock()
        self._notify = notify

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _lookup(self, player_id: str, session_id: str | None = None) -> Optional[_Session]:
        with self._lock:
            session = self._sessions.get(player_id)
        if session is None:
            return None
        if session_id is not None and session.session_id != session_id:
            return None
        return session

    def start_conversation(self, player_id: str, platform: str, model: str) -> SessionSnapshot:
        session = _Session(player_id, platform, model)
        with self._lock:
            previous = self._sessions.get(player_id)
            self._sessions[player_id] = session
        if previous is not None:
            with previous.lock:
                previous.active = False
                previous.waiting = False
            logger.debug("Reset existing session for %s", player_id)
        return session.snapshot()

    def get(self, player_id: str) -> SessionSnapshot | None:
        session = self._lookup(player_id)
        if session is None:
            return None
        with session.lock:
            return session.snapshot()

    def is_active(self, player_id: str) -> bool:
        session = self._lookup(player_id)
        if session is None:
            return False
        with session.lock:
            return session.active

    def is_waiting(self, player_id: str) -> bool:
        session = self._lookup(player_id)
        if session is None:
            return False
        with session.lock:
            return session.waiting

    def set_waiting(self, player_id: str, waiting: bool, session_id: str | None = None) -> bool:
        session = self._lookup(player_id, session_id)
        if session is None:
            return False
        with session.lock:
            if not session.active:
                return False
            session.waiting = bool(waiting)
            return True

    def begin_dispatch(self, player_id: str) -> SessionSnapshot:
        session = self._lookup(player_id)
        if session is None:
            raise SessionInactiveError(player_id)
        with session.lock:
            if not session.active:
                raise SessionInactiveError(player_id)
            if session.waiting:
                raise ConcurrencyConflict(player_id)
            session.waiting = True
            return session.snapshot()

    def append(self, player_id: str, turn: str, session_id: str | None = None) -> bool:
        session = self._lookup(player_id, session_id)
        if session is None:
            return False
        with session.lock:
            if not session.active:
                return False
            session.transcript.append(turn)
            return True

    def append_exchange(
        self,
        player_id: str,
        player_turn: str,
        ai_turn: str,
        session_id: str | None = None,
    ) -> bool:
        session = self._lookup(player_id, session_id)
        if session is None:
            return False
        with session.lock:
            if not session.active:
                return False
            session.transcript.append(player_turn)
            session.transcript.append(ai_turn)
            return True

    def transcript(self, player_id: str) -> list[str]:
        session = self._lookup(player_id)
        if session is None:
            return []
        with session.lock:
            return list(session.transcript)

    def history(self, player_id: str) -> str:
        return "".join(f"{turn}\n" for turn in self.transcript(player_id))

    def active_players(self) -> list[str]:
        with self._lock:
            return [pid for pid, session in self._sessions.items() if session.active]

    def terminate(self, player_id: str, session_id: str | None = None) -> bool:
        with self._lock:
            session = self._sessions.get(player_id)
            if session is None:
                return False
            if session_id is not None and session.session_id != session_id:
                return False
            del self._sessions[player_id]
        with session.lock:
            session.active = False
            session.waiting = False
        return True

    def terminate_all(self, notify: Callable[[str, str], None] | None = None) -> int:
        notify = notify or self._notify
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            with session.lock:
                was_active = session.active
                session.active = False
                session.waiting = False
            if was_active and notify is not None:
                try:
                    notify(session.player_id, TERMINATED_NOTICE)
                except Exception as exc:
                    logger.warning("Failed to notify %s of session shutdown: %s", session.player_id, exc)
        if sessions:
            logger.info("Terminated %d chatbot session(s)", len(sessions))
        return len(sessions)
