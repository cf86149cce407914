from __future__ import annotations

import logging
import re
from typing import Callable

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..core.errors import SchemaError
from .interfaces import UnitOfWork
from .sqlalchemy.db import build_engine, build_session_factory, create_schema
from .sqlalchemy.uow import SQLAlchemyUnitOfWork

EMAIL_RE = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+$")


def is_valid_email(value: str | None) -> bool:
    return bool(value) and EMAIL_RE.match(value) is not None


class EmailStore:
    """player id -> email association, one row per player, last write wins.

    Failures are logged and contained to the call that hit them: reads return
    ``None`` and writes return ``False``. A store whose engine could not be
    built stays usable in that degraded mode.
    """

    def __init__(
        self,
        engine: Engine | None,
        session_factory: sessionmaker[Session] | None,
        *,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        logger: logging.Logger | None = None,
    ):
        self._engine = engine
        if uow_factory is None and session_factory is not None:

            def uow_factory() -> SQLAlchemyUnitOfWork:
                return SQLAlchemyUnitOfWork(session_factory)

        self._uow_factory = uow_factory
        self._logger = logger or logging.getLogger(__name__)
        self.schema_error: SchemaError | None = None
        self.schema_ready = False

    @classmethod
    def from_url(cls, url: str, *, logger: logging.Logger | None = None) -> "EmailStore":
        log = logger or logging.getLogger(__name__)
        try:
            engine = build_engine(url)
        except (SQLAlchemyError, ImportError) as exc:
            store = cls(None, None, logger=log)
            store.schema_error = SchemaError(str(exc))
            log.warning("[ChatBotDB] engine setup failed, email features disabled: %s", exc)
            return store
        return cls(engine, build_session_factory(engine), logger=log)

    @property
    def available(self) -> bool:
        return self._engine is not None and self._uow_factory is not None

    @property
    def dialect(self) -> str:
        return self._engine.dialect.name if self._engine is not None else "unavailable"

    def ensure_schema(self) -> bool:
        if self._engine is None:
            if self.schema_error is None:
                self.schema_error = SchemaError("no database engine")
            return False
        try:
            create_schema(self._engine)
        except (SQLAlchemyError, ImportError) as exc:
            self.schema_error = SchemaError(str(exc))
            self._logger.warning("[ChatBotDB] %s schema creation failed: %s", self.dialect, exc)
            return False
        self._logger.info("[ChatBotDB] %s schema ensured.", self.dialect)
        self.schema_error = None
        self.schema_ready = True
        return True

    def get_email(self, player_id: str) -> str | None:
        if not self.available:
            return None
        try:
            with self._uow_factory() as uow:
                return uow.emails.get(str(player_id))
        except SQLAlchemyError as exc:
            self._logger.warning("[ChatBotDB] %s get email failed: %s", self.dialect, exc)
            return None

    def set_email(self, player_id: str, email: str) -> bool:
        if not is_valid_email(email):
            self._logger.warning("Rejected invalid email for %s: %s", player_id, email)
            return False
        if not self.available:
            self._logger.warning("[ChatBotDB] store unavailable, email for %s not saved", player_id)
            return False
        try:
            with self._uow_factory() as uow:
                uow.emails.upsert(str(player_id), email)
                uow.commit()
        except SQLAlchemyError as exc:
            self._logger.warning("[ChatBotDB] %s set email failed: %s", self.dialect, exc)
            return False
        return True

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
