from __future__ import annotations

from enum import Enum


class EntityType(str, Enum):
    """Creature types addressable by ``{nearby_<type>_count|detail}``."""

    ALLAY = "allay"
    ARMADILLO = "armadillo"
    AXOLOTL = "axolotl"
    BAT = "bat"
    BEE = "bee"
    BLAZE = "blaze"
    BOGGED = "bogged"
    BREEZE = "breeze"
    CAMEL = "camel"
    CAT = "cat"
    CAVE_SPIDER = "cave_spider"
    CHICKEN = "chicken"
    COD = "cod"
    COW = "cow"
    CREEPER = "creeper"
    DOLPHIN = "dolphin"
    DONKEY = "donkey"
    DROWNED = "drowned"
    ELDER_GUARDIAN = "elder_guardian"
    ENDER_DRAGON = "ender_dragon"
    ENDERMITE = "endermite"
    EVOKER = "evoker"
    FOX = "fox"
    FROG = "frog"
    GHAST = "ghast"
    GLOW_SQUID = "glow_squid"
    GOAT = "goat"
    GUARDIAN = "guardian"
    HOGLIN = "hoglin"
    HORSE = "horse"
    HUSK = "husk"
    ILLUSIONER = "illusioner"
    IRON_GOLEM = "iron_golem"
    LLAMA = "llama"
    MAGMA_CUBE = "magma_cube"
    MOOSHROOM = "mooshroom"
    MULE = "mule"
    OCELOT = "ocelot"
    PANDA = "panda"
    PARROT = "parrot"
    PHANTOM = "phantom"
    PIG = "pig"
    PIGLIN = "piglin"
    PIGLIN_BRUTE = "piglin_brute"
    PILLAGER = "pillager"
    POLAR_BEAR = "polar_bear"
    PUFFERFISH = "pufferfish"
    RABBIT = "rabbit"
    RAVAGER = "ravager"
    SALMON = "salmon"
    SHEEP = "sheep"
    SHULKER = "shulker"
    SILVERFISH = "silverfish"
    SKELETON = "skeleton"
    SKELETON_HORSE = "skeleton_horse"
    SLIME = "slime"
    SNIFFER = "sniffer"
    SNOW_GOLEM = "snow_golem"
    SPIDER = "spider"
    SQUID = "squid"
    STRAY = "stray"
    STRIDER = "strider"
    TRADER_LLAMA = "trader_llama"
    TROPICAL_FISH = "tropical_fish"
    TURTLE = "turtle"
    VEX = "vex"
    VINDICATOR = "vindicator"
    WARDEN = "warden"
    WITCH = "witch"
    WITHER = "wither"
    WITHER_SKELETON = "wither_skeleton"
    WOLF = "wolf"
    ZOGLIN = "zoglin"
    ZOMBIE = "zombie"
    ZOMBIE_HORSE = "zombie_horse"
    ZOMBIE_VILLAGER = "zombie_villager"
    ZOMBIFIED_PIGLIN = "zombified_piglin"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")

    @classmethod
    def parse(cls, raw: str) -> "EntityType | None":
        try:
            return cls(str(raw or "").strip().lower())
        except ValueError:
            return None


# Irregular plurals used by the seeded rule text.
PLURALS: dict[EntityType, str] = {
    EntityType.COD: "cod",
    EntityType.DROWNED: "drowned",
    EntityType.FOX: "foxes",
    EntityType.MAGMA_CUBE: "magma cubes",
    EntityType.PUFFERFISH: "pufferfish",
    EntityType.SALMON: "salmon",
    EntityType.SHEEP: "sheep",
    EntityType.SILVERFISH: "silverfish",
    EntityType.TROPICAL_FISH: "tropical fish",
    EntityType.VEX: "vexes",
    EntityType.WITCH: "witches",
    EntityType.WOLF: "wolves",
}


def plural(entity_type: EntityType) -> str:
    return PLURALS.get(entity_type, f"{entity_type.label}s")
