from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence

if TYPE_CHECKING:
    from .types import CompletionRequest, CompletionResponse, EntitySighting, ItemStackInfo


class WorldView(Protocol):
    name: str
    seed: int
    time: int
    difficulty: str
    has_storm: bool
    loaded_chunks: int

    def entity_count(self) -> int:
        """Thread-restricted: call only on the owner thread."""
        ...


class PlayerView(Protocol):
    uuid: str
    name: str
    display_name: str
    address: str | None
    game_mode: str
    health: float
    max_health: float
    food_level: int
    exp_level: int
    location: tuple[float, float, float]
    world: WorldView

    def item_in_hand(self) -> ItemStackInfo | None:
        ...

    def inventory(self) -> Sequence[ItemStackInfo | None]:
        ...

    def nearby_entities(self, radius: int) -> Sequence[EntitySighting]:
        """Thread-restricted: call only on the owner thread."""
        ...


class PlayerDirectoryPort(Protocol):
    def get_player(self, player_id: str) -> PlayerView | None:
        ...


class MessengerPort(Protocol):
    def send_message(self, player_id: str, text: str) -> None:
        ...


class CompletionPort(Protocol):
    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        ...


class CredentialPort(Protocol):
    def get_player_token(self, player_id: str, platform: str) -> str | None:
        ...


class TranscriptExportPort(Protocol):
    def send(self, text: str, address: str) -> None:
        ...


class EmailStorePort(Protocol):
    def get_email(self, player_id: str) -> str | None:
        ...

    def set_email(self, player_id: str, email: str) -> bool:
        ...
