"""Immutable board selections and helpers."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional, Sequence, Tuple

from . import rules
from .catalogue import Animal, CatalogueItem, CoSpecies
from .exceptions import InvalidLevelError

AnimalTuple = Tuple[Animal, ...]


@dataclass(frozen=True)
class Board:
    """A candidate or accepted selection: three animal tiers plus co-species.

    ``biome_assignments`` maps item ids to the single biome a multi-biome item
    counts toward. It is owned by the board; helpers that derive a new board
    copy it.
    """

    level1: AnimalTuple = ()
    level2: AnimalTuple = ()
    level3: AnimalTuple = ()
    co_species: Tuple[CoSpecies, ...] = ()
    biome_assignments: Optional[Dict[str, str]] = field(default=None, hash=False, compare=False)


def empty_board() -> Board:
    return Board()


def tier(board: Board, level: int) -> AnimalTuple:
    """Animals placed in the given level tier."""

    if level == 1:
        return board.level1
    if level == 2:
        return board.level2
    if level == 3:
        return board.level3
    raise InvalidLevelError(level)


def animals(board: Board) -> AnimalTuple:
    return board.level1 + board.level2 + board.level3


def members(board: Board) -> Tuple[CatalogueItem, ...]:
    """Every board member: animals tier by tier, then co-species."""

    return animals(board) + board.co_species


def animal_ids(board: Board) -> Tuple[str, ...]:
    return tuple(animal.id for animal in animals(board))


def co_species_ids(board: Board) -> Tuple[str, ...]:
    return tuple(species.id for species in board.co_species)


def _copied(assignments: Optional[Mapping[str, str]]) -> Optional[Dict[str, str]]:
    return dict(assignments) if assignments is not None else None


def replace_tier(board: Board, level: int, tier_animals: Sequence[Animal]) -> Board:
    """Return a new board with one tier swapped out."""

    if level not in rules.LEVELS:
        raise InvalidLevelError(level)
    return replace(
        board,
        **{f"level{level}": tuple(tier_animals)},
        biome_assignments=_copied(board.biome_assignments),
    )


def with_assignments(board: Board, assignments: Optional[Mapping[str, str]]) -> Board:
    return replace(board, biome_assignments=_copied(assignments))


def fallback_biome(item: CatalogueItem) -> str:
    """Stable pick for a multi-biome item: character-code sum of its id."""

    index = sum(ord(char) for char in item.id) % len(item.biomes)
    return item.biomes[index]


def assigned_biome(item: CatalogueItem, assignments: Optional[Mapping[str, str]] = None) -> str:
    """The single biome an item counts toward on a board."""

    if len(item.biomes) == 1:
        return item.biomes[0]
    if assignments and item.id in assignments:
        return assignments[item.id]
    return fallback_biome(item)


__all__ = [
    "AnimalTuple",
    "Board",
    "animal_ids",
    "animals",
    "assigned_biome",
    "co_species_ids",
    "empty_board",
    "fallback_biome",
    "members",
    "replace_tier",
    "tier",
    "with_assignments",
]
