from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, insert, select
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.orm import Session

from .models import PlayerEmail

_ON_CONFLICT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class EmailRepo:
    def __init__(self, session: Session):
        self.session = session

    def get(self, player_id: str) -> str | None:
        stmt = select(PlayerEmail.email).where(PlayerEmail.player_uuid == player_id).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def upsert(self, player_id: str, email: str) -> None:
        now = datetime.utcnow()
        values = {"player_uuid": player_id, "email": email, "created_at": now, "updated_at": now}
        dialect = self.session.get_bind().dialect.name

        if dialect in _ON_CONFLICT_INSERTS:
            stmt = _ON_CONFLICT_INSERTS[dialect](PlayerEmail).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[PlayerEmail.player_uuid],
                set_={"email": stmt.excluded.email, "updated_at": now},
            )
        elif dialect in ("mysql", "mariadb"):
            stmt = mysql.insert(PlayerEmail).values(**values)
            stmt = stmt.on_duplicate_key_update(email=stmt.inserted.email, updated_at=now)
        else:
            # No native upsert: delete-then-insert inside the caller's transaction.
            self.delete(player_id)
            stmt = insert(PlayerEmail).values(**values)
        self.session.execute(stmt)

    def delete(self, player_id: str) -> int:
        stmt = delete(PlayerEmail).where(PlayerEmail.player_uuid == player_id)
        return self.session.execute(stmt).rowcount or 0
