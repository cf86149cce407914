from __future__ import annotations

from typing import Protocol


class EmailRepo(Protocol):
    def get(self, player_id: str) -> str | None: ...
    def upsert(self, player_id: str, email: str) -> None: ...
    def delete(self, player_id: str) -> int: ...


class UnitOfWork(Protocol):
    emails: EmailRepo

    def commit(self) -> None: ...
    def rollback(self) -> None: ...

    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...

