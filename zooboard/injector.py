"""Swap popularity-locked catalogue animals into an existing board."""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from . import rules
from .board import Board, animal_ids, replace_tier, tier, with_assignments
from .catalogue import Animal
from .exceptions import InvalidOptionsError
from .rules import DEFAULT_RULES, RuleSet

logger = logging.getLogger(__name__)

_INJECT_COUNTS = rules.INJECT_COUNTS


def _slot_for(candidate: Animal, placed: Sequence[Animal]) -> Optional[int]:
    """Index of the first unlocked member sharing a biome, else of the first unlocked member."""

    unlocked = [index for index, animal in enumerate(placed) if not animal.popularity_locked]
    for index in unlocked:
        if placed[index].has_any_biome(candidate.biomes):
            return index
    return unlocked[0] if unlocked else None


def inject_popularity_locked(
    board: Board,
    animals: Sequence[Animal],
    count: int,
    focus_biomes: Optional[Sequence[str]] = None,
    rules: RuleSet = DEFAULT_RULES,
) -> Board:
    """Return a copy of ``board`` with up to ``count`` locked animals swapped in.

    Candidates are unused locked animals in catalogue order, narrowed to the
    focus biomes when any of them match. The input board is left untouched.
    """
    if count not in _INJECT_COUNTS:
        raise InvalidOptionsError(f"Injection count must be 1 or 2, got {count}")

    on_board = set(animal_ids(board))
    candidates = [a for a in animals if a.popularity_locked and a.id not in on_board]
    if focus_biomes:
        focused = [a for a in candidates if a.has_any_biome(focus_biomes)]
        if focused:
            candidates = focused

    result = with_assignments(board, board.biome_assignments)
    for candidate in candidates[:count]:
        placed: List[Animal] = list(tier(result, candidate.level))
        index = _slot_for(candidate, placed)
        if index is not None:
            logger.debug("Injecting %s in place of %s", candidate.id, placed[index].id)
            placed[index] = candidate
        elif len(placed) < rules.target(candidate.level):
            logger.debug("Injecting %s into spare level %d slot", candidate.id, candidate.level)
            placed.append(candidate)
        else:
            logger.debug("No slot for %s at level %d", candidate.id, candidate.level)
            continue
        result = replace_tier(result, candidate.level, placed)

    return result


__all__ = ["inject_popularity_locked"]
