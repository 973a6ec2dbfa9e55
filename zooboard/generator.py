"""Randomised generate-and-test search for valid boards.

Each attempt builds a candidate from shuffled catalogue pools, assigns every
multi-biome item to one biome, and hands the result to the validator. The
search stops at the first candidate the acceptance policy takes, or returns
no board once the attempt budget is spent. Exhaustion is an expected outcome
for over-constrained options, not an error.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from . import rules
from .board import Board
from .catalogue import Animal, CatalogueItem, CoSpecies
from .exceptions import InvalidOptionsError, UnknownBiomeError
from .national_parks import find_park, representative_ids
from .random_source import RandomSource, make_random, shuffle
from .rules import DEFAULT_RULES, RuleSet
from .samples import is_size_compatible, reference_group_sizes
from .validation import (
    WARN_BIOME_VIABILITY,
    WARN_POPULARITY_LOCK,
    ValidationResult,
    count_by_category,
    is_requirement_satisfied,
    validate_board,
)

logger = logging.getLogger(__name__)

# Abandonment reasons.
REQUIRED_OVERFLOW = "required_overflow"
FOCUS_BIOME_UNREPRESENTED = "focus_biome_unrepresented"
TIER_UNDERFILLED = "tier_underfilled"
FOCUS_BIOME_LOST = "focus_biome_lost"
LEADERLESS_BIOME = "leaderless_biome"
INVALID = "invalid"
CRITICAL_WARNINGS = "critical_warnings"


@dataclass(frozen=True)
class AcceptancePolicy:
    """Decides whether a valid candidate is good enough to stop the search.

    A candidate with no critical warnings is always taken. Past
    ``relax_after`` attempts, one with at most ``max_relaxed_critical``
    critical warnings is taken too. Viability warnings never count as
    critical on a biome-restricted search.
    """

    relax_after: int = rules.RELAX_AFTER_ATTEMPTS
    max_relaxed_critical: int = rules.MAX_RELAXED_CRITICAL
    critical_codes: Tuple[str, ...] = (WARN_POPULARITY_LOCK,)

    def critical_count(self, result: ValidationResult, restricted: bool = False) -> int:
        codes = set(self.critical_codes)
        if restricted:
            codes.discard(WARN_BIOME_VIABILITY)
        return sum(1 for code in result.warning_codes if code in codes)

    def accepts(self, result: ValidationResult, attempt: int, restricted: bool = False) -> bool:
        if not result.valid:
            return False
        critical = self.critical_count(result, restricted)
        if critical == 0:
            return True
        return attempt > self.relax_after and critical <= self.max_relaxed_critical


@dataclass
class GenerationOptions:
    """Configuration for one board search.

    ``required_ids`` and the representative ids of every template named in
    ``preserve_national_parks`` are placed on the board before random
    filling. Ids the catalogue does not know are logged and ignored.
    ``random_source`` overrides the seed; it is consumed, so reusing one
    instance across searches continues its sequence.
    """

    seed: Optional[int] = None
    strict: bool = False
    required_ids: Sequence[str] = ()
    focus_biomes: Sequence[str] = ()
    compatible_with_reference: bool = False
    reference_ids: Optional[Sequence[str]] = None
    preserve_national_parks: Sequence[str] = ()
    rules: RuleSet = DEFAULT_RULES
    max_attempts: Optional[int] = None
    random_source: Optional[RandomSource] = None
    acceptance: AcceptancePolicy = field(default_factory=AcceptancePolicy)

    def __post_init__(self) -> None:
        self.required_ids = tuple(self.required_ids)
        self.focus_biomes = tuple(dict.fromkeys(self.focus_biomes))
        self.preserve_national_parks = tuple(self.preserve_national_parks)
        if self.reference_ids is not None:
            self.reference_ids = tuple(self.reference_ids)
        for biome in self.focus_biomes:
            if biome not in rules.BIOMES:
                raise UnknownBiomeError(biome)
        if self.max_attempts is not None and self.max_attempts < 0:
            raise InvalidOptionsError(f"max_attempts must be non-negative, got {self.max_attempts}")

    @property
    def biome_restricted(self) -> bool:
        return rules.is_biome_restricted(self.focus_biomes)

    def attempt_budget(self) -> int:
        if self.max_attempts is not None:
            return self.max_attempts
        if not self.strict:
            return rules.LOOSE_ATTEMPTS
        return rules.RESTRICTED_ATTEMPTS if self.biome_restricted else rules.DEFAULT_ATTEMPTS


@dataclass
class SearchOutcome:
    """Result of a search: the board (or None), attempts used, and why attempts were dropped."""

    board: Optional[Board]
    attempts: int
    abandoned: Counter = field(default_factory=Counter)
    validation: Optional[ValidationResult] = None

    @property
    def succeeded(self) -> bool:
        return self.board is not None


@dataclass(frozen=True)
class _SearchContext:
    rules: RuleSet
    strict: bool
    focus: Tuple[str, ...]
    required: Dict[int, Tuple[Animal, ...]]
    required_co_species: Tuple[CoSpecies, ...]
    pools: Dict[int, Tuple[Animal, ...]]
    co_species_pool: Tuple[CoSpecies, ...]
    overflow: bool


def _required_item_ids(options: GenerationOptions) -> List[str]:
    ids = list(options.required_ids)
    for park_id in options.preserve_national_parks:
        park = find_park(park_id)
        if park is None:
            logger.warning("Unknown national park %r ignored", park_id)
            continue
        ids.extend(representative_ids(park))
    return list(dict.fromkeys(ids))


def _prepare(
    animals: Sequence[Animal],
    co_species: Sequence[CoSpecies],
    options: GenerationOptions,
) -> _SearchContext:
    ruleset = options.rules
    focus = tuple(options.focus_biomes)
    animals_by_id = {animal.id: animal for animal in animals}
    co_species_by_id = {species.id: species for species in co_species}

    required: Dict[int, List[Animal]] = {level: [] for level in rules.LEVELS}
    required_co_species: List[CoSpecies] = []
    for item_id in _required_item_ids(options):
        if item_id in animals_by_id:
            animal = animals_by_id[item_id]
            required[animal.level].append(animal)
        elif item_id in co_species_by_id:
            required_co_species.append(co_species_by_id[item_id])
        else:
            logger.warning("Unknown required id %r ignored", item_id)

    required_animals = [a for level in rules.LEVELS for a in required[level]]
    placed_ids = {a.id for a in required_animals}
    if focus:
        for item in (*required_animals, *required_co_species):
            if not item.has_any_biome(focus):
                logger.warning("Required %s has no focus biome; it will not be assigned one", item.id)

    overflow = any(len(required[level]) > ruleset.target(level) for level in rules.LEVELS)
    small = sum(1 for species in required_co_species if species.is_small)
    overflow = overflow or small > ruleset.max_small_co_species

    candidates = [a for a in animals if not focus or a.has_any_biome(focus)]
    if options.compatible_with_reference:
        sizes = reference_group_sizes(animals, options.reference_ids)
        candidates = [a for a in candidates if is_size_compatible(a, sizes)]
    candidates = [a for a in candidates if a.id not in placed_ids]

    return _SearchContext(
        rules=ruleset,
        strict=options.strict,
        focus=focus,
        required={level: tuple(found) for level, found in required.items()},
        required_co_species=tuple(required_co_species),
        pools={level: tuple(a for a in candidates if a.level == level) for level in rules.LEVELS},
        co_species_pool=tuple(c for c in co_species if not focus or c.has_any_biome(focus)),
        overflow=overflow,
    )


def _focus_coverage(level1: Sequence[Animal], focus: Tuple[str, ...]) -> set[str]:
    return {biome for animal in level1 for biome in animal.biomes if biome in focus}


def _balanced_biome(
    item: CatalogueItem,
    focus: Tuple[str, ...],
    counts: Counter,
) -> Optional[str]:
    """Tagged biome with the fewest assigned items so far; first tag on ties."""

    eligible = [biome for biome in item.biomes if not focus or biome in focus]
    if not eligible:
        return None
    chosen = eligible[0]
    for biome in eligible[1:]:
        if counts[biome] < counts[chosen]:
            chosen = biome
    return chosen


def _fill_tiers(
    ctx: _SearchContext,
    rng: RandomSource,
) -> Tuple[Optional[Dict[int, List[Animal]]], Optional[str]]:
    tiers = {level: list(ctx.required[level]) for level in rules.LEVELS}
    shuffled = {level: shuffle(ctx.pools[level], rng) for level in rules.LEVELS}
    level1_target = ctx.rules.target(1)

    if ctx.focus:
        represented = _focus_coverage(tiers[1], ctx.focus)
        level1_ids = {animal.id for animal in tiers[1]}
        for biome in ctx.focus:
            if biome in represented or len(tiers[1]) >= level1_target:
                continue
            for animal in shuffled[1]:
                if animal.id in level1_ids or not animal.has_biome(biome):
                    continue
                if not is_requirement_satisfied(animal.requirement, tiers[1]):
                    continue
                tiers[1].append(animal)
                level1_ids.add(animal.id)
                represented.update(b for b in animal.biomes if b in ctx.focus)
                break
        if len(represented) < len(ctx.focus):
            return None, FOCUS_BIOME_UNREPRESENTED

    chosen: List[Animal] = []
    for level in rules.LEVELS:
        placed = tiers[level]
        chosen.extend(placed)
        target = ctx.rules.target(level)
        placed_ids = {animal.id for animal in placed}
        for animal in shuffled[level]:
            if len(placed) >= target:
                break
            if animal.id in placed_ids:
                continue
            if not is_requirement_satisfied(animal.requirement, chosen):
                continue
            placed.append(animal)
            placed_ids.add(animal.id)
            chosen.append(animal)
        if len(placed) < target:
            return None, TIER_UNDERFILLED

    if ctx.focus and len(_focus_coverage(tiers[1], ctx.focus)) < len(ctx.focus):
        return None, FOCUS_BIOME_LOST
    return tiers, None


def _pick_co_species(
    ctx: _SearchContext,
    board_animals: Sequence[Animal],
    rng: RandomSource,
) -> List[CoSpecies]:
    ruleset = ctx.rules
    # Every tag of a multi-biome animal counts here, unlike the final assignment.
    biome_counts: Dict[str, int] = {}
    for animal in board_animals:
        for biome in animal.biomes:
            biome_counts[biome] = biome_counts.get(biome, 0) + 1

    picked = list(ctx.required_co_species)
    picked_ids = {species.id for species in picked}
    per_biome: Dict[str, int] = {}
    for species in picked:
        for biome in species.biomes:
            per_biome[biome] = per_biome.get(biome, 0) + 1

    def small_cap_reached(species: CoSpecies) -> bool:
        small = sum(1 for s in picked if s.is_small)
        return species.is_small and small >= ruleset.max_small_co_species

    def add(species: CoSpecies, biome: str) -> None:
        picked.append(species)
        picked_ids.add(species.id)
        per_biome[biome] = per_biome.get(biome, 0) + 1
        biome_counts[biome] = biome_counts.get(biome, 0) + 1

    shuffled = shuffle(ctx.co_species_pool, rng)

    for biome in list(biome_counts):
        if per_biome.get(biome, 0):
            continue
        for species in shuffled:
            if species.id in picked_ids or small_cap_reached(species):
                continue
            if species.has_biome(biome):
                add(species, biome)
                break

    if ctx.strict:
        for species in shuffled:
            if small_cap_reached(species) or species.id in picked_ids:
                continue
            counted = [*board_animals, *picked]
            if any(
                count_by_category(counted, category) >= ruleset.strict_category_cap
                for category in species.categories
            ):
                continue
            for biome in species.biomes:
                if per_biome.get(biome, 0) >= ruleset.max_co_species_per_biome:
                    continue
                if biome_counts.get(biome, 0) < ruleset.min_viable_species:
                    add(species, biome)
                    break

    return picked


def _build_candidate(ctx: _SearchContext, rng: RandomSource) -> Tuple[Optional[Board], Optional[str]]:
    tiers, reason = _fill_tiers(ctx, rng)
    if tiers is None:
        return None, reason

    board_animals = tiers[1] + tiers[2] + tiers[3]
    picked = _pick_co_species(ctx, board_animals, rng)

    assignments: Dict[str, str] = {}
    assigned: Counter = Counter()
    leaders: Counter = Counter()
    for animal in board_animals:
        biome = _balanced_biome(animal, ctx.focus, assigned)
        if biome is None:
            logger.debug("Animal %s has no valid biome; left unassigned", animal.id)
            continue
        assignments[animal.id] = biome
        assigned[biome] += 1
        if animal.level == 1:
            leaders[biome] += 1

    if any(count >= ctx.rules.min_viable_species and not leaders[biome] for biome, count in assigned.items()):
        return None, LEADERLESS_BIOME

    for species in picked:
        biome = _balanced_biome(species, ctx.focus, assigned)
        if biome is None:
            logger.debug("Co-species %s has no valid biome; left unassigned", species.id)
            continue
        assignments[species.id] = biome
        assigned[biome] += 1

    board = Board(
        level1=tuple(tiers[1]),
        level2=tuple(tiers[2]),
        level3=tuple(tiers[3]),
        co_species=tuple(picked),
        biome_assignments=assignments,
    )
    return board, None


def search_board(
    animals: Sequence[Animal],
    co_species: Sequence[CoSpecies],
    options: Optional[GenerationOptions] = None,
) -> SearchOutcome:
    """Run the bounded search and report how it went.

    Args:
        animals: Catalogue animals to draw from.
        co_species: Catalogue co-species to draw from.
        options: Search configuration; defaults to a loose unseeded search.

    Returns:
        SearchOutcome with the accepted board, or ``board=None`` when the
        required items overflow a tier or the attempt budget ran out.
    """
    options = options if options is not None else GenerationOptions()
    ctx = _prepare(animals, co_species, options)
    abandoned: Counter = Counter()

    if ctx.overflow:
        logger.warning("Required items exceed tier capacity; no board possible")
        abandoned[REQUIRED_OVERFLOW] += 1
        return SearchOutcome(board=None, attempts=0, abandoned=abandoned)

    budget = options.attempt_budget()
    restricted = options.biome_restricted
    rng = options.random_source if options.random_source is not None else make_random(options.seed)
    validation_pool = ctx.co_species_pool if restricted else None

    for attempt in range(budget):
        board, reason = _build_candidate(ctx, rng)
        if board is None:
            abandoned[reason] += 1
            logger.debug("Attempt %d abandoned: %s", attempt, reason)
            continue

        result = validate_board(board, validation_pool, rules=options.rules)
        if not result.valid:
            abandoned[INVALID] += 1
            logger.debug("Attempt %d invalid: %s", attempt, "; ".join(result.errors))
            continue
        if not options.acceptance.accepts(result, attempt, restricted):
            abandoned[CRITICAL_WARNINGS] += 1
            continue

        logger.info(
            "Attempt %d: generated board with %d warnings (%d critical)",
            attempt,
            len(result.warnings),
            options.acceptance.critical_count(result, restricted),
        )
        return SearchOutcome(board=board, attempts=attempt + 1, abandoned=abandoned, validation=result)

    logger.warning("Failed to generate valid board after %d attempts", budget)
    return SearchOutcome(board=None, attempts=budget, abandoned=abandoned)


def generate_board(
    animals: Sequence[Animal],
    co_species: Sequence[CoSpecies],
    options: Optional[GenerationOptions] = None,
) -> Optional[Board]:
    """Search for a valid board; None when the options cannot be satisfied."""

    return search_board(animals, co_species, options).board


__all__ = [
    "AcceptancePolicy",
    "CRITICAL_WARNINGS",
    "FOCUS_BIOME_LOST",
    "FOCUS_BIOME_UNREPRESENTED",
    "GenerationOptions",
    "INVALID",
    "LEADERLESS_BIOME",
    "REQUIRED_OVERFLOW",
    "SearchOutcome",
    "TIER_UNDERFILLED",
    "generate_board",
    "search_board",
]
