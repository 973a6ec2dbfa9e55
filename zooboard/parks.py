"""Scored, biome-cohesive park subsets drawn from a board's animals."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from . import rules
from .catalogue import Animal, CoSpecies, default_catalogue
from .exceptions import InvalidOptionsError, UnknownBiomeError
from .random_source import RandomSource, make_random, shuffle
from .samples import is_size_compatible, reference_group_sizes

logger = logging.getLogger(__name__)


@dataclass
class ParkOptions:
    seed: Optional[int] = None
    count: int = rules.DEFAULT_PARK_COUNT
    size: int = rules.DEFAULT_PARK_SIZE
    focus_biomes: Sequence[str] = ()
    compatible_with_reference: bool = False
    reference_ids: Optional[Sequence[str]] = None
    available_co_species: Sequence[CoSpecies] = ()
    random_source: Optional[RandomSource] = None

    def __post_init__(self) -> None:
        if self.count < 1:
            raise InvalidOptionsError(f"Park count must be at least 1, got {self.count}")
        if self.size not in rules.PARK_SIZES:
            raise InvalidOptionsError(f"Park size must be 4 or 5, got {self.size}")
        self.focus_biomes = tuple(dict.fromkeys(self.focus_biomes))
        for biome in self.focus_biomes:
            if biome not in rules.BIOMES:
                raise UnknownBiomeError(biome)
        self.available_co_species = tuple(self.available_co_species)

    def make_random(self) -> RandomSource:
        if self.random_source is not None:
            return self.random_source
        return make_random(self.seed)


@dataclass(frozen=True)
class GeneratedPark:
    id: str
    name: str
    biome: str
    animal_ids: Tuple[str, ...]
    co_species_ids: Tuple[str, ...]
    score: float


def score_park(park_animals: Sequence[Animal], biome: str) -> float:
    """0.5 x biome cohesion + 0.3 x category diversity + 0.2 x has a level 2+ member."""

    if not park_animals:
        return 0.0
    cohesion = sum(1 for animal in park_animals if animal.has_biome(biome)) / len(park_animals)
    categories = {category for animal in park_animals for category in animal.categories}
    diversity = min(len(categories) / rules.PARK_DIVERSITY_TARGET, 1.0)
    higher_level = 1.0 if any(animal.level >= 2 for animal in park_animals) else 0.0
    return (
        cohesion * rules.PARK_COHESION_WEIGHT
        + diversity * rules.PARK_DIVERSITY_WEIGHT
        + higher_level * rules.PARK_LEVEL_WEIGHT
    )


def _pick_members(shuffled: Sequence[Animal], size: int) -> List[Animal]:
    pick: List[Animal] = []
    seen_categories: set[str] = set()
    locked = 0
    # Favour animals that add a new category; only the last slot insists on it.
    for animal in shuffled:
        adds_new = any(category not in seen_categories for category in animal.categories)
        if (adds_new or len(pick) < size - 1) and (locked == 0 or not animal.popularity_locked):
            pick.append(animal)
            seen_categories.update(animal.categories)
            if animal.popularity_locked:
                locked += 1
            if len(pick) == size:
                break

    if len(pick) < size:
        picked_ids = {animal.id for animal in pick}
        leftovers = [animal for animal in shuffled if animal.id not in picked_ids][: size - len(pick)]
        for animal in leftovers:
            if locked and animal.popularity_locked:
                continue
            pick.append(animal)
            if animal.popularity_locked:
                locked += 1
            if len(pick) == size:
                break
    return pick


def _try_make_park(
    candidates: Sequence[Animal],
    biome: str,
    options: ParkOptions,
    rng: RandomSource,
) -> Optional[GeneratedPark]:
    pool = [animal for animal in candidates if animal.has_biome(biome)]
    if len(pool) < options.size:
        return None

    pick = _pick_members(shuffle(pool, rng), options.size)
    categories = {category for animal in pick for category in animal.categories}
    if len(categories) < rules.PARK_MIN_CATEGORIES:
        return None

    locked = next((animal for animal in pick if animal.popularity_locked), None)
    if locked is not None and len(pick) > rules.PARK_LOCKED_SIZE:
        others = [animal for animal in pick if animal is not locked]
        pick = [locked, *others[: rules.PARK_LOCKED_SIZE - 1]]

    score = score_park(pick, biome)

    co_species_ids: Tuple[str, ...] = ()
    if locked is None:
        companion = next((c for c in options.available_co_species if c.has_biome(biome)), None)
        if companion is not None:
            co_species_ids = (companion.id,)

    return GeneratedPark(
        id=f"generated-park-{biome}-{int(rng.next() * 1e6)}",
        name=f"Custom Park ({biome})",
        biome=biome,
        animal_ids=tuple(animal.id for animal in pick),
        co_species_ids=co_species_ids,
        score=score,
    )


def generate_balanced_parks(
    board_animals: Sequence[Animal],
    options: Optional[ParkOptions] = None,
) -> List[GeneratedPark]:
    """Assemble up to ``options.count`` parks from the given animals.

    Each target biome gets several tries and keeps its best-scoring park.
    When first-pass biomes fall short of the count, extra rounds allow a
    biome to be used again. Returns fewer parks (possibly none) when the
    pool cannot support them.
    """
    options = options if options is not None else ParkOptions()
    rng = options.make_random()

    candidates = list(board_animals)
    if options.focus_biomes:
        candidates = [animal for animal in candidates if animal.has_any_biome(options.focus_biomes)]
    if options.compatible_with_reference:
        sizes = reference_group_sizes(default_catalogue().animals, options.reference_ids)
        candidates = [animal for animal in candidates if is_size_compatible(animal, sizes)]

    if options.focus_biomes:
        biome_pool: Tuple[str, ...] = tuple(options.focus_biomes)
    else:
        biome_pool = tuple(dict.fromkeys(biome for animal in candidates for biome in animal.biomes))

    parks: List[GeneratedPark] = []
    for biome in shuffle(biome_pool, rng):
        tries = [_try_make_park(candidates, biome, options, rng) for _ in range(rules.PARK_ATTEMPTS_PER_BIOME)]
        made = [park for park in tries if park is not None]
        if made:
            parks.append(max(made, key=lambda park: park.score))
            if len(parks) >= options.count:
                break

    if len(parks) < options.count and biome_pool:
        for _ in range(rules.PARK_EXTRA_ROUNDS):
            if len(parks) >= options.count:
                break
            for biome in shuffle(biome_pool, rng):
                park = _try_make_park(candidates, biome, options, rng)
                if park is not None:
                    parks.append(park)
                    if len(parks) >= options.count:
                        break

    logger.debug("Generated %d of %d requested parks", len(parks), options.count)
    return parks


__all__ = [
    "GeneratedPark",
    "ParkOptions",
    "generate_balanced_parks",
    "score_park",
]
