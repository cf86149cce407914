from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .entities import EntityType, plural
from .errors import RuleLoadError
from .placeholders import PlaceholderCatalog
from .types import PlaceholderContext, Rule

logger = logging.getLogger(__name__)

DEFAULT_RULES_FILENAME = "data.json"
_WORD_RE = re.compile(r"\w+")


def phrase_pattern(phrase: str) -> re.Pattern | None:
    """Compile a match phrase into an ordered-words pattern.

    ``"how many zombies"`` becomes ``how.*many.*zombies``: every word must be
    present in the input, in that order, with anything in between.
    Punctuation in the phrase is ignored.
    """
    words = _WORD_RE.findall(phrase.lower())
    if not words:
        return None
    return re.compile(".*".join(re.escape(w) for w in words), re.IGNORECASE | re.DOTALL)


@dataclass(frozen=True)
class CompiledRule:
    rule: Rule
    patterns: tuple[re.Pattern, ...]

    def matches(self, text: str) -> bool:
        return any(p.search(text) for p in self.patterns)


def default_rules() -> list[dict[str, Any]]:
    rules: list[dict[str, Any]] = [
        {
            "match": ["What game am I playing right now?", "Which game am I currently playing?"],
            "response": "You are playing Minecraft right now.",
        },
        {
            "match": ["What mobs are near me?", "List nearby entities"],
            "response": "{nearby_entities_detail}",
        },
    ]
    for entity_type in EntityType:
        many = plural(entity_type)
        rules.append(
            {
                "match": [f"How many {many} nearby?", f"Nearby {entity_type.label} count"],
                "response": f"There are {{nearby_{entity_type.value}_count}} {many} near you.",
            }
        )
    rules.extend(
        [
            {"match": ["What is in my hand?", "Show my held item"], "response": "You are holding: {item_in_hand}"},
            {"match": ["What is my display name?", "Show display name"], "response": "Your display name is {player_displayname}."},
            {"match": ["How much XP do I have?", "What is my level?"], "response": "Your experience level is {player_exp_level}."},
            {"match": ["How hungry am I?", "What is my food level?"], "response": "Your food level is {player_food_level}."},
            {"match": ["What mode am I in?", "Tell me my game mode"], "response": "You are in {player_gamemode} mode."},
            {"match": ["How much health do I have?", "Tell me my health"], "response": "You have {player_health} health."},
            {"match": ["What is in my inventory?", "List my items"], "response": "Inventory contents:\n{player_inventory}"},
            {"match": ["Where am I?", "Tell me my location"], "response": "You are at {player_location} in world {player_world}."},
            {"match": ["What is my max health?", "Max HP"], "response": "Your max health is {player_max_health}."},
            {"match": ["What is my name?", "Who am I?"], "response": "Your name is {player_name}."},
            {"match": ["What is my UUID?", "Tell me my player ID"], "response": "Your UUID is {player_uuid}."},
            {"match": ["What world am I in?", "Tell me my world"], "response": "You are in world: {player_world}."},
            {"match": ["How hard is this world?", "Tell me world difficulty"], "response": "World difficulty: {world_difficulty}"},
            {"match": ["How many entities are in the world?"], "response": "Entities in world: {world_entity_count}"},
            {"match": ["How many chunks are loaded?"], "response": "Loaded chunks: {world_loaded_chunks}"},
            {"match": ["What is the seed?", "World seed?"], "response": "World seed: {world_seed}"},
            {"match": ["What time is it in-game?", "Tell me Minecraft time"], "response": "World time: {world_time}"},
            {"match": ["What is the weather like?", "Current weather?"], "response": "World weather: {world_weather}"},
            {"match": ["What is the server time?", "Current server time"], "response": "Server time is {time_server}."},
            {"match": ["What is the UTC time?", "Tell me UTC time"], "response": "UTC time is {time_utc}."},
            {"match": ["What is GMT time?", "Time in GMT?"], "response": "GMT time is {time_gmt}."},
            {"match": ["Bangkok time?", "What time is it in Bangkok?"], "response": "Bangkok time is {time_bangkok}."},
            {"match": ["London time?", "What time is it in London?"], "response": "London time is {time_london}."},
            {"match": ["New York time?", "What time is it in New York?"], "response": "New York time is {time_new_york}."},
            {"match": ["Tokyo time?", "What time is it in Tokyo?"], "response": "Tokyo time is {time_tokyo}."},
            {"match": ["What is time in GMT+7?", "Time in UTC+7?"], "response": "Time in GMT+7 is {time_gmt_plus_07_00}."},
            {
                "match": ["Tell me all placeholders", "Show me the AI variables"],
                "response": (
                    "Placeholders: {player_name}, {player_uuid}, {player_displayname}, {player_gamemode}, "
                    "{player_health}, {player_max_health}, {player_food_level}, {player_exp_level}, "
                    "{player_location}, {player_world}, {item_in_hand}, {time_server}, {time_utc}, {time_gmt}"
                ),
            },
        ]
    )
    return rules


def ensure_default_rules(root: Path, log: logging.Logger | None = None) -> bool:
    """Seed ``root`` with the default rule set when it is missing or empty.

    Returns True when a file was written. Existing content is never touched.
    """
    log = log or logger
    root = Path(root)
    if root.exists() and any(root.iterdir()):
        return False
    try:
        root.mkdir(parents=True, exist_ok=True)
        target = root / DEFAULT_RULES_FILENAME
        target.write_text(json.dumps(default_rules(), indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        log.warning("Failed to seed default rules in %s: %s", root, exc)
        return False
    log.info("Created default chatbot rules at %s", target)
    return True


def parse_rules(raw: Any, source: str) -> list[Rule]:
    if not isinstance(raw, list):
        raise RuleLoadError(source, "top level must be a list of rules")
    rules: list[Rule] = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise RuleLoadError(source, f"rule #{index} is not an object")
        match = entry.get("match")
        response = entry.get("response")
        if isinstance(match, str):
            match = [match]
        if not isinstance(match, list) or not all(isinstance(m, str) for m in match):
            raise RuleLoadError(source, f"rule #{index} has no match list")
        if not isinstance(response, str):
            raise RuleLoadError(source, f"rule #{index} has no response")
        rules.append(Rule(match=tuple(match), response=response))
    return rules


def load_rule_file(path: Path) -> list[Rule]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RuleLoadError(str(path), str(exc)) from exc
    return parse_rules(raw, str(path))


def load_rules(root: Path, log: logging.Logger | None = None) -> list[Rule]:
    log = log or logger
    root = Path(root)
    if not root.is_dir():
        return []
    rules: list[Rule] = []
    for path in sorted(p for p in root.rglob("*") if p.is_file() and p.suffix.lower() == ".json"):
        try:
            rules.extend(load_rule_file(path))
        except RuleLoadError as exc:
            log.warning("Skipping rule file %s: %s", exc.path, exc.reason)
    return rules


class RuleEngine:
    def __init__(
        self,
        root: Path | str,
        catalog: PlaceholderCatalog,
        *,
        seed_defaults: bool = True,
        logger: logging.Logger | None = None,
    ):
        self._root = Path(root)
        self._catalog = catalog
        self._logger = logger or logging.getLogger(__name__)
        if seed_defaults:
            ensure_default_rules(self._root, self._logger)
        compiled: list[CompiledRule] = []
        for rule in load_rules(self._root, self._logger):
            patterns = tuple(p for p in (phrase_pattern(m) for m in rule.match) if p is not None)
            if patterns:
                compiled.append(CompiledRule(rule=rule, patterns=patterns))
        self._rules: tuple[CompiledRule, ...] = tuple(compiled)
        self._logger.info("Loaded %d function rules from %s", len(self._rules), self._root)

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def rules(self) -> tuple[Rule, ...]:
        return tuple(c.rule for c in self._rules)

    @property
    def catalog(self) -> PlaceholderCatalog:
        return self._catalog

    def resolve(self, template: str, context: PlaceholderContext) -> str:
        return self._catalog.resolve(template, context)

    def match(self, context: PlaceholderContext, text: str) -> list[str]:
        trimmed = (text or "").strip()
        if not trimmed:
            return []
        return [self.resolve(c.rule.response, context) for c in self._rules if c.matches(trimmed)]
