from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from game_chatbot.core.placeholders import PlaceholderCatalog
from game_chatbot.core.sessions import SessionRegistry
from game_chatbot.core.types import EntitySighting, ItemStackInfo
from game_chatbot.persistence.email_store import EmailStore
from game_chatbot.persistence.sqlalchemy.db import build_engine, build_session_factory


@dataclass
class StubWorld:
    name: str = "world"
    seed: int = 12345
    time: int = 6000
    difficulty: str = "NORMAL"
    has_storm: bool = False
    loaded_chunks: int = 441
    entities: int = 57

    def entity_count(self) -> int:
        return self.entities


@dataclass
class StubPlayer:
    uuid: str = "0f8fad5b-d9cb-469f-a165-70867728950e"
    name: str = "Steve"
    display_name: str = "SteveTheBuilder"
    address: str | None = "127.0.0.1"
    game_mode: str = "SURVIVAL"
    health: float = 18.0
    max_health: float = 20.0
    food_level: int = 17
    exp_level: int = 5
    location: tuple[float, float, float] = (10.0, 64.0, -3.5)
    world: StubWorld = field(default_factory=StubWorld)
    held: ItemStackInfo | None = None
    items: list[ItemStackInfo | None] = field(default_factory=list)
    sightings: list[EntitySighting] = field(default_factory=list)

    def item_in_hand(self):
        return self.held

    def inventory(self):
        return list(self.items)

    def nearby_entities(self, radius: int):
        return [s for s in self.sightings if s.distance <= radius]


class StubPlayers:
    def __init__(self, players: dict[str, StubPlayer] | None = None):
        self.players = players or {}

    def get_player(self, player_id: str):
        return self.players.get(player_id)


class StubMessenger:
    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    def send_message(self, player_id: str, text: str) -> None:
        self.sent.append((player_id, text))

    def texts(self, player_id: str) -> list[str]:
        return [text for pid, text in self.sent if pid == player_id]


@pytest.fixture()
def engine():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture()
def email_store(engine, session_factory):
    store = EmailStore(engine, session_factory)
    assert store.ensure_schema()
    return store


@pytest.fixture()
def registry():
    return SessionRegistry()


@pytest.fixture()
def messenger():
    return StubMessenger()


@pytest.fixture()
def player():
    return StubPlayer()


@pytest.fixture()
def players(player):
    return StubPlayers({"p1": player})


@pytest.fixture()
def catalog():
    return PlaceholderCatalog()
