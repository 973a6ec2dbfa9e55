"""Rule constants and board-composition parameters for the board generator."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

# Habitat tags, in display order.
TUNDRA_STEPPE = "Tundra & Steppe"
MONTANE_FOREST = "Montane Forest"
RAINFOREST = "Rainforest"
SAVANNAH = "Savannah"
DRY_FOREST = "Dry Forest"
WATER = "Water"

BIOMES: tuple[str, ...] = (
    TUNDRA_STEPPE,
    MONTANE_FOREST,
    RAINFOREST,
    SAVANNAH,
    DRY_FOREST,
    WATER,
)

CARNIVORE = "Carnivore"
UNGULATE = "Ungulate"
BIRD = "Bird"
XENARTHRAN = "Xenarthran"
MARSUPIAL = "Marsupial"
PRIMATE = "Primate"
REPTILE = "Reptile"
INVERTEBRATE = "Invertebrate"
AMPHIBIAN = "Amphibian"
AQUATIC = "Aquatic"
FISH = "Fish"

CATEGORIES: tuple[str, ...] = (
    CARNIVORE,
    UNGULATE,
    BIRD,
    XENARTHRAN,
    MARSUPIAL,
    PRIMATE,
    REPTILE,
    INVERTEBRATE,
    AMPHIBIAN,
    AQUATIC,
    FISH,
)

LEVELS: tuple[int, ...] = (1, 2, 3)

# Co-species sizes.
SMALL = 1
LARGE = 2
CO_SPECIES_SIZES: tuple[int, ...] = (SMALL, LARGE)

# Generator attempt budgets.
DEFAULT_ATTEMPTS = 2000
RESTRICTED_ATTEMPTS = 20000
LOOSE_ATTEMPTS = 300
RELAX_AFTER_ATTEMPTS = 1000
MAX_RELAXED_CRITICAL = 2

# Park selector.
PARK_SIZES: tuple[int, ...] = (4, 5)
DEFAULT_PARK_SIZE = 5
DEFAULT_PARK_COUNT = 3
PARK_ATTEMPTS_PER_BIOME = 8
PARK_EXTRA_ROUNDS = 3
PARK_MIN_CATEGORIES = 3
PARK_LOCKED_SIZE = 4
PARK_COHESION_WEIGHT = 0.5
PARK_DIVERSITY_WEIGHT = 0.3
PARK_LEVEL_WEIGHT = 0.2
PARK_DIVERSITY_TARGET = 4

# Injector.
INJECT_COUNTS: tuple[int, ...] = (1, 2)

# Seeded generator recurrence: value = (value * 9301 + 49297) % 233280.
LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280

REFERENCE_BOARD_NAME = "Base Game"


@dataclass(frozen=True)
class RuleSet:
    """Board-composition limits checked by the validator and honoured by the generator."""

    level_targets: Tuple[int, int, int] = (9, 10, 5)
    max_small_co_species: int = 5
    max_co_species_per_biome: int = 2
    min_viable_species: int = 3
    category_soft_range: Tuple[int, int] = (2, 8)
    check_category_minimum: bool = False
    check_level1_spread: bool = False
    level1_spread_range: Tuple[int, int] = (1, 2)
    check_category_anchor: bool = False
    strict_category_cap: int = 4
    popularity_lock_points: int = 15

    def __post_init__(self) -> None:
        if len(self.level_targets) != len(LEVELS):
            raise ValueError("level_targets must hold one target per level")
        if any(target < 0 for target in self.level_targets):
            raise ValueError("Level targets must be non-negative")
        low, high = self.category_soft_range
        if low > high:
            raise ValueError("category_soft_range must be (low, high) with low <= high")

    def target(self, level: int) -> int:
        if level not in LEVELS:
            raise ValueError(f"Unknown level: {level}")
        return self.level_targets[level - 1]

    def with_level2_target(self, target: int) -> "RuleSet":
        return replace(self, level_targets=(self.level_targets[0], target, self.level_targets[2]))


DEFAULT_RULES = RuleSet()

# Earlier revision: nine level-2 slots, tighter category range and the two
# advisories that were later dropped.
LEGACY_RULES = RuleSet(
    level_targets=(9, 9, 5),
    category_soft_range=(2, 3),
    check_category_minimum=True,
    check_level1_spread=True,
    check_category_anchor=True,
)


def is_biome_restricted(focus_biomes: Optional[Tuple[str, ...]]) -> bool:
    """True when a focus list narrows the board to fewer than all biomes."""

    return bool(focus_biomes) and len(focus_biomes) < len(BIOMES)


__all__ = [
    "AMPHIBIAN",
    "AQUATIC",
    "BIOMES",
    "BIRD",
    "CARNIVORE",
    "CATEGORIES",
    "CO_SPECIES_SIZES",
    "DEFAULT_ATTEMPTS",
    "DEFAULT_PARK_COUNT",
    "DEFAULT_PARK_SIZE",
    "DEFAULT_RULES",
    "DRY_FOREST",
    "FISH",
    "INJECT_COUNTS",
    "INVERTEBRATE",
    "LARGE",
    "LCG_INCREMENT",
    "LCG_MODULUS",
    "LCG_MULTIPLIER",
    "LEGACY_RULES",
    "LEVELS",
    "LOOSE_ATTEMPTS",
    "MARSUPIAL",
    "MAX_RELAXED_CRITICAL",
    "MONTANE_FOREST",
    "PARK_ATTEMPTS_PER_BIOME",
    "PARK_COHESION_WEIGHT",
    "PARK_DIVERSITY_TARGET",
    "PARK_DIVERSITY_WEIGHT",
    "PARK_EXTRA_ROUNDS",
    "PARK_LEVEL_WEIGHT",
    "PARK_LOCKED_SIZE",
    "PARK_MIN_CATEGORIES",
    "PARK_SIZES",
    "PRIMATE",
    "RAINFOREST",
    "REFERENCE_BOARD_NAME",
    "RELAX_AFTER_ATTEMPTS",
    "REPTILE",
    "RESTRICTED_ATTEMPTS",
    "RuleSet",
    "SAVANNAH",
    "SMALL",
    "TUNDRA_STEPPE",
    "UNGULATE",
    "WATER",
    "XENARTHRAN",
    "is_biome_restricted",
]
