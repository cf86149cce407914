from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, Iterable, Optional
from zoneinfo import ZoneInfo

from .entities import EntityType
from .owner_thread import OwnerThreadExecutor
from .types import EntitySighting, ItemStackInfo, PlaceholderContext

PlaceholderProvider = Callable[[PlaceholderContext], str]

UNKNOWN = "unknown"
TIME_FORMAT = "%H:%M:%S"

TOKEN_RE = re.compile(r"\{([A-Za-z0-9_]+)\}")
NEARBY_RE = re.compile(r"^nearby_([a-z_]+)_(count|detail)$")
OFFSET_RE = re.compile(r"^time_(utc|gmt)_(plus|minus)_(\d{2})_(\d{2})$")

OFFSET_HOURS = range(-12, 15)
OFFSET_MINUTES = (0, 30, 45)

NAMED_ZONES: dict[str, str] = {
    "bangkok": "Asia/Bangkok",
    "berlin": "Europe/Berlin",
    "london": "Europe/London",
    "los_angeles": "America/Los_Angeles",
    "new_york": "America/New_York",
    "paris": "Europe/Paris",
    "singapore": "Asia/Singapore",
    "sydney": "Australia/Sydney",
    "tokyo": "Asia/Tokyo",
    "toronto": "America/Toronto",
}


def offset_label(prefix: str, hour: int, minute: int) -> str:
    """``offset_label("utc", -7, 30) == "time_utc_minus_07_30"``."""
    sign = "plus" if hour >= 0 else "minus"
    return f"time_{prefix}_{sign}_{abs(hour):02d}_{minute:02d}"


def offset_zone(hour: int, minute: int) -> timezone:
    delta = timedelta(hours=abs(hour), minutes=minute)
    return timezone(-delta if hour < 0 else delta)


def format_item(item: ItemStackInfo) -> str:
    parts = [f"Type: {item.type}", f"Amount: {item.amount}"]
    if item.display_name:
        parts.append(f"Name: {item.display_name}")
    if item.lore:
        parts.append("Lore: " + " | ".join(item.lore))
    if item.custom_model_data is not None:
        parts.append(f"ModelData: {item.custom_model_data}")
    return ", ".join(parts)


def format_sightings(title: str, sightings: Iterable[EntitySighting]) -> str:
    lines = [title]
    for sighting in sightings:
        lines.append(f"- {sighting.entity_type.upper()} ({sighting.distance:.1f} blocks away)")
    return "\n".join(lines)


@dataclass(frozen=True)
class _Registered:
    provider: PlaceholderProvider
    owner_thread: bool = False


class PlaceholderCatalog:
    """Lookup table of ``{token}`` providers evaluated on demand.

    Three shapes are served: fixed names registered in ``_fixed``, the
    ``nearby_<type>_<count|detail>`` family keyed by :class:`EntityType`, and
    the ``time_<utc|gmt>_<plus|minus>_HH_MM`` offset family. The last two are
    parsed from the token name rather than registered one by one; ``names()``
    still lists every member so the visible set matches the fixed table.
    """

    def __init__(
        self,
        *,
        owner: OwnerThreadExecutor | None = None,
        clock: Callable[[], datetime] | None = None,
        server_zone: tzinfo | None = None,
        nearby_radius: int = 20,
        logger: logging.Logger | None = None,
    ):
        self._owner = owner
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._server_zone = server_zone
        self._nearby_radius = nearby_radius
        self._logger = logger or logging.getLogger(__name__)
        self._fixed: dict[str, _Registered] = {}
        self._register_defaults()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, name: str, provider: PlaceholderProvider, *, owner_thread: bool = False) -> None:
        self._fixed[name] = _Registered(provider=provider, owner_thread=owner_thread)

    def names(self) -> set[str]:
        out = set(self._fixed)
        for entity_type in EntityType:
            out.add(f"nearby_{entity_type.value}_count")
            out.add(f"nearby_{entity_type.value}_detail")
        for hour in OFFSET_HOURS:
            for minute in OFFSET_MINUTES:
                out.add(offset_label("utc", hour, minute))
                out.add(offset_label("gmt", hour, minute))
        return out

    def _lookup(self, name: str) -> Optional[_Registered]:
        registered = self._fixed.get(name)
        if registered is not None:
            return registered

        m = NEARBY_RE.match(name)
        if m is not None:
            entity_type = EntityType.parse(m.group(1))
            if entity_type is None:
                return None
            detail = m.group(2) == "detail"
            return _Registered(
                provider=lambda ctx: self._nearby_of_type(ctx, entity_type, detail),
                owner_thread=True,
            )

        m = OFFSET_RE.match(name)
        if m is not None:
            sign, hours, minutes = m.group(2), int(m.group(3)), int(m.group(4))
            hour = -hours if sign == "minus" else hours
            if minutes not in OFFSET_MINUTES or hour not in OFFSET_HOURS:
                return None
            if sign == "minus" and hours == 0:
                return None
            zone = offset_zone(hour, minutes)
            return _Registered(provider=lambda _ctx: self._format_now(zone))
        return None

    def knows(self, name: str) -> bool:
        return self._lookup(name) is not None

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_token(self, name: str, context: PlaceholderContext) -> Optional[str]:
        registered = self._lookup(name)
        if registered is None:
            return None
        try:
            if registered.owner_thread and self._owner is not None:
                return self._owner.call(lambda: registered.provider(context), default=UNKNOWN)
            return registered.provider(context)
        except Exception as exc:
            self._logger.warning("Placeholder %s failed for %s: %s", name, context.player_id, exc)
            return UNKNOWN

    def resolve(self, template: str, context: PlaceholderContext) -> str:
        if "{" not in template:
            return template
        cache: dict[str, Optional[str]] = {}

        def _sub(m: re.Match) -> str:
            name = m.group(1)
            if name not in cache:
                cache[name] = self.resolve_token(name, context)
            value = cache[name]
            return m.group(0) if value is None else value

        return TOKEN_RE.sub(_sub, template)

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    def _format_now(self, zone: tzinfo | None) -> str:
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        local = now.astimezone(zone) if zone is not None else now.astimezone()
        return local.strftime(TIME_FORMAT)

    def _register_defaults(self) -> None:
        def player(fn: Callable[..., object]) -> PlaceholderProvider:
            def _provider(ctx: PlaceholderContext) -> str:
                if ctx.player is None:
                    return UNKNOWN
                return str(fn(ctx.player))

            return _provider

        self.register("player_name", player(lambda p: p.name))
        self.register("player_displayname", player(lambda p: p.display_name))
        self.register("player_uuid", player(lambda p: p.uuid))
        self.register("player_uuid_short", player(lambda p: str(p.uuid).split("-")[0]))
        self.register("player_ip", player(lambda p: p.address or UNKNOWN))
        self.register("player_gamemode", player(lambda p: p.game_mode))
        self.register("player_health", player(lambda p: float(p.health)))
        self.register("player_max_health", player(lambda p: float(p.max_health)))
        self.register("player_food_level", player(lambda p: p.food_level))
        self.register("player_exp_level", player(lambda p: p.exp_level))
        self.register(
            "player_location",
            player(lambda p: "X: {:.1f}, Y: {:.1f}, Z: {:.1f}".format(*p.location)),
        )
        self.register("player_world", player(lambda p: p.world.name))
        self.register("player_inventory", player(self._inventory))
        self.register("item_in_hand", player(self._item_in_hand))

        self.register("world_difficulty", player(lambda p: p.world.difficulty))
        self.register("world_entity_count", player(lambda p: p.world.entity_count()), owner_thread=True)
        self.register("world_loaded_chunks", player(lambda p: p.world.loaded_chunks))
        self.register("world_seed", player(lambda p: p.world.seed))
        self.register("world_time", player(lambda p: p.world.time))
        self.register("world_weather", player(lambda p: "Raining" if p.world.has_storm else "Clear"))

        self.register("nearby_entities_count", lambda ctx: self._nearby_all(ctx, detail=False), owner_thread=True)
        self.register("nearby_entities_detail", lambda ctx: self._nearby_all(ctx, detail=True), owner_thread=True)

        self.register("time_server", lambda _ctx: self._format_now(self._server_zone))
        self.register("time_utc", lambda _ctx: self._format_now(timezone.utc))
        self.register("time_gmt", lambda _ctx: self._format_now(timezone.utc))
        for city, zone_name in NAMED_ZONES.items():
            zone = ZoneInfo(zone_name)
            self.register(f"time_{city}", lambda _ctx, zone=zone: self._format_now(zone))

    @staticmethod
    def _item_in_hand(p) -> str:
        item = p.item_in_hand()
        return format_item(item) if item is not None else "No item in hand."

    @staticmethod
    def _inventory(p) -> str:
        lines = [format_item(item) for item in p.inventory() if item is not None]
        return "\n".join(lines) if lines else "Inventory is empty."

    def _nearby_all(self, ctx: PlaceholderContext, *, detail: bool) -> str:
        if ctx.player is None:
            return UNKNOWN
        sightings = list(ctx.player.nearby_entities(self._nearby_radius))
        if not detail:
            return str(len(sightings))
        if not sightings:
            return "No nearby entities found."
        return format_sightings("Nearby entities:", sightings)

    def _nearby_of_type(self, ctx: PlaceholderContext, entity_type: EntityType, detail: bool) -> str:
        if ctx.player is None:
            return UNKNOWN
        matching = [
            s
            for s in ctx.player.nearby_entities(self._nearby_radius)
            if EntityType.parse(s.entity_type) is entity_type
        ]
        if not detail:
            return str(len(matching))
        if not matching:
            return f"No nearby {entity_type.label}s found."
        return format_sightings(f"Nearby {entity_type.label}s:", matching)
