from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .ports import PlayerView


@dataclass(frozen=True)
class SessionSnapshot:
    player_id: str
    session_id: str
    platform: str
    model: str
    transcript: tuple[str, ...]
    active: bool
    waiting: bool


@dataclass(frozen=True)
class Rule:
    match: tuple[str, ...]
    response: str


@dataclass
class PlaceholderContext:
    player_id: str
    player: Optional[PlayerView] = None


@dataclass(frozen=True)
class EntitySighting:
    entity_type: str
    distance: float


@dataclass(frozen=True)
class ItemStackInfo:
    type: str
    amount: int = 1
    display_name: Optional[str] = None
    lore: tuple[str, ...] = ()
    custom_model_data: Optional[int] = None


@dataclass
class CompletionRequest:
    platform: str
    model: str
    prior_context: str
    message: str
    credential: Optional[str] = None
    system_prompt: str = ""


@dataclass
class CompletionResponse:
    reply_text: Optional[str]
    token_usage: int = -1
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class DispatchResult:
    status: str
    reply: Optional[str] = None
    token_usage: Optional[int] = None
    reason: Optional[str] = None
    task: Optional[asyncio.Task] = None
