"""Board validation: hard constraints (errors) and advisories (warnings).

``validate_board`` is pure. It never mutates the board and never draws
randomness, so validating the same board twice yields equal results.
Warnings carry a stable code alongside their message so callers such as the
generator can classify them without inspecting the text.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from . import rules
from .board import Board, animals, assigned_biome, members
from .catalogue import CatalogueItem, CoSpecies, Requirement
from .rules import DEFAULT_RULES, RuleSet

logger = logging.getLogger(__name__)

WARN_BIOME_VIABILITY = "biome_viability"
WARN_POPULARITY_LOCK = "popularity_lock"
WARN_CATEGORY_RANGE = "category_range"
WARN_LEVEL1_SPREAD = "level1_spread"
WARN_CATEGORY_ANCHOR = "category_anchor"

WARNING_CODES: Tuple[str, ...] = (
    WARN_BIOME_VIABILITY,
    WARN_POPULARITY_LOCK,
    WARN_CATEGORY_RANGE,
    WARN_LEVEL1_SPREAD,
    WARN_CATEGORY_ANCHOR,
)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a board."""

    valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    warning_codes: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.valid != (len(self.errors) == 0):
            raise ValueError("valid must be True exactly when there are no errors")
        if len(self.warnings) != len(self.warning_codes):
            raise ValueError("Each warning needs exactly one code")

    def count(self, code: str) -> int:
        """Number of warnings carrying ``code``."""
        return sum(1 for existing in self.warning_codes if existing == code)


class _Report:
    def __init__(self) -> None:
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.codes: List[str] = []

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warn(self, code: str, message: str) -> None:
        self.warnings.append(message)
        self.codes.append(code)

    def result(self) -> ValidationResult:
        return ValidationResult(
            valid=not self.errors,
            errors=tuple(self.errors),
            warnings=tuple(self.warnings),
            warning_codes=tuple(self.codes),
        )


def count_by_category(items: Iterable[CatalogueItem], category: str) -> int:
    """Number of items tagged with ``category``."""

    return sum(1 for item in items if item.has_category(category))


def requirement_count(requirement: Requirement, items: Sequence[CatalogueItem]) -> int:
    """Matches summed over the requirement's alternative categories."""

    return sum(count_by_category(items, category) for category in requirement.categories)


def is_requirement_satisfied(requirement: Optional[Requirement], items: Sequence[CatalogueItem]) -> bool:
    if requirement is None:
        return True
    return requirement_count(requirement, items) >= requirement.count


def biome_species_counts(board: Board) -> Dict[str, int]:
    """Animals plus co-species per biome, each item counted once by its assigned biome."""

    counts: Counter[str] = Counter()
    for item in members(board):
        counts[assigned_biome(item, board.biome_assignments)] += 1
    return {biome: counts[biome] for biome in rules.BIOMES}


def _tagged_biomes(items: Iterable[CatalogueItem]) -> Dict[str, int]:
    # Insertion order follows first appearance on the board.
    counts: Dict[str, int] = {}
    for item in items:
        for biome in item.biomes:
            counts[biome] = counts.get(biome, 0) + 1
    return counts


def _check_tier_counts(board: Board, ruleset: RuleSet, report: _Report) -> None:
    for level, placed in zip(rules.LEVELS, (board.level1, board.level2, board.level3)):
        target = ruleset.target(level)
        if len(placed) != target:
            report.error(f"Level {level} must have exactly {target} animals (currently {len(placed)})")


def _check_co_species_caps(board: Board, ruleset: RuleSet, report: _Report) -> None:
    small = sum(1 for species in board.co_species if species.is_small)
    if small > ruleset.max_small_co_species:
        report.error(f"Small co-species limit exceeded: {small}/{ruleset.max_small_co_species}")

    for biome, count in _tagged_biomes(board.co_species).items():
        if count > ruleset.max_co_species_per_biome:
            report.error(
                f"Co-species limit exceeded for {biome}: {count}/{ruleset.max_co_species_per_biome}"
            )


def _check_viability(board: Board, ruleset: RuleSet, report: _Report) -> None:
    for biome, count in biome_species_counts(board).items():
        if 0 < count < ruleset.min_viable_species:
            report.warn(
                WARN_BIOME_VIABILITY,
                f"{biome} has {count} species (needs at least {ruleset.min_viable_species} to be viable)",
            )


def _check_coverage(
    board: Board,
    available_co_species: Optional[Sequence[CoSpecies]],
    report: _Report,
) -> None:
    covered = set(_tagged_biomes(board.co_species))
    coverable: Optional[set[str]] = None
    if available_co_species is not None:
        coverable = set(_tagged_biomes(available_co_species))

    for biome in _tagged_biomes(animals(board)):
        if biome in covered:
            continue
        if coverable is not None and biome not in coverable:
            logger.debug("Skipping coverage for %s: no co-species available", biome)
            continue
        report.error(f"{biome} has animals but no co-species (needs at least 1 co-species per biome)")


def _check_requirements(board: Board, report: _Report) -> None:
    everyone = members(board)
    for animal in animals(board):
        requirement = animal.requirement
        if requirement is not None and not is_requirement_satisfied(requirement, everyone):
            report.error(f"{animal.name} requires {requirement.count} {requirement.label}s")


def _check_popularity_lock(board: Board, ruleset: RuleSet, report: _Report) -> None:
    locked = sum(1 for animal in animals(board) if animal.popularity_locked)
    if locked:
        report.warn(
            WARN_POPULARITY_LOCK,
            f"{locked} animal(s) are locked behind popularity requirement "
            f"({ruleset.popularity_lock_points}+ points)",
        )


def _check_category_range(board: Board, ruleset: RuleSet, report: _Report) -> None:
    low, high = ruleset.category_soft_range
    everyone = members(board)
    for category in rules.CATEGORIES:
        count = count_by_category(everyone, category)
        too_many = count > high
        too_few = ruleset.check_category_minimum and 0 < count < low
        if too_many or too_few:
            report.warn(
                WARN_CATEGORY_RANGE,
                f"{category} has {count} species (recommended: {low}-{high})",
            )


def _check_level1_spread(board: Board, ruleset: RuleSet, report: _Report) -> None:
    low, high = ruleset.level1_spread_range
    leaders: Counter[str] = Counter(
        assigned_biome(animal, board.biome_assignments) for animal in board.level1
    )
    for biome, count in biome_species_counts(board).items():
        if count == 0:
            continue
        if not low <= leaders[biome] <= high:
            report.warn(
                WARN_LEVEL1_SPREAD,
                f"{biome} has {leaders[biome]} Level I species (recommended: {low}-{high})",
            )


def _check_category_anchor(board: Board, report: _Report) -> None:
    everyone = members(board)
    anchors = board.level1 + board.co_species
    for category in rules.CATEGORIES:
        if count_by_category(everyone, category) and not count_by_category(anchors, category):
            report.warn(
                WARN_CATEGORY_ANCHOR,
                f"{category} needs at least one co-species or Level I species",
            )


def validate_board(
    board: Board,
    available_co_species: Optional[Sequence[CoSpecies]] = None,
    rules: RuleSet = DEFAULT_RULES,
) -> ValidationResult:
    """Check a board against every rule and collect errors and warnings.

    Args:
        board: The selection to check.
        available_co_species: Co-species pool the board was drawn from. When
            given, the coverage rule only fires for biomes this pool can cover.
        rules: Rule variant to apply.

    Returns:
        A ValidationResult; ``valid`` is True exactly when no error was found.
    """
    ruleset = rules
    report = _Report()

    _check_tier_counts(board, ruleset, report)
    _check_co_species_caps(board, ruleset, report)
    _check_viability(board, ruleset, report)
    _check_coverage(board, available_co_species, report)
    _check_requirements(board, report)
    _check_popularity_lock(board, ruleset, report)
    _check_category_range(board, ruleset, report)
    if ruleset.check_level1_spread:
        _check_level1_spread(board, ruleset, report)
    if ruleset.check_category_anchor:
        _check_category_anchor(board, report)

    return report.result()


__all__ = [
    "ValidationResult",
    "WARNING_CODES",
    "WARN_BIOME_VIABILITY",
    "WARN_CATEGORY_ANCHOR",
    "WARN_CATEGORY_RANGE",
    "WARN_LEVEL1_SPREAD",
    "WARN_POPULARITY_LOCK",
    "biome_species_counts",
    "count_by_category",
    "is_requirement_satisfied",
    "requirement_count",
    "validate_board",
]
