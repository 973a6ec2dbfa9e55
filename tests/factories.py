"""Builders for small, hand-shaped catalogue items and boards used across tests."""

from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple

from zooboard import rules
from zooboard.board import Board
from zooboard.catalogue import Animal, CoSpecies, GroupSizes, Requirement

# Bird-free rotation so requirement tests control the Bird count exactly.
FILLER_CATEGORIES: Tuple[str, ...] = (
    rules.CARNIVORE,
    rules.UNGULATE,
    rules.XENARTHRAN,
    rules.MARSUPIAL,
    rules.PRIMATE,
    rules.REPTILE,
    rules.INVERTEBRATE,
    rules.AMPHIBIAN,
)


def make_animal(
    animal_id: str,
    level: int = 1,
    biomes: Sequence[str] = (rules.SAVANNAH,),
    categories: Sequence[str] = (rules.UNGULATE,),
    requirement: Optional[Requirement] = None,
    locked: bool = False,
    name: Optional[str] = None,
    group_size: GroupSizes = GroupSizes(),
) -> Animal:
    """Helper to create an animal with sensible defaults."""
    return Animal(
        id=animal_id,
        name=name or animal_id.replace("-", " ").title(),
        categories=tuple(categories),
        biomes=tuple(biomes),
        level=level,
        group_size=group_size,
        requirement=requirement,
        popularity_locked=locked,
    )


def make_co_species(
    species_id: str,
    biomes: Sequence[str] = (rules.SAVANNAH,),
    categories: Sequence[str] = (rules.FISH,),
    size: int = rules.LARGE,
) -> CoSpecies:
    """Helper to create a co-species with sensible defaults."""
    return CoSpecies(
        id=species_id,
        name=species_id.replace("-", " ").title(),
        biomes=tuple(biomes),
        categories=tuple(categories),
        size=size,
    )


def make_tier(level: int, count: int, biome: str = rules.SAVANNAH, offset: int = 0) -> Tuple[Animal, ...]:
    """``count`` single-biome animals whose categories rotate through FILLER_CATEGORIES."""
    return tuple(
        make_animal(
            f"l{level}-animal-{index}",
            level=level,
            biomes=(biome,),
            categories=(FILLER_CATEGORIES[(index + offset) % len(FILLER_CATEGORIES)],),
        )
        for index in range(count)
    )


def make_board(
    level1: Sequence[Animal] = (),
    level2: Sequence[Animal] = (),
    level3: Sequence[Animal] = (),
    co_species: Sequence[CoSpecies] = (),
    assignments: Optional[Dict[str, str]] = None,
) -> Board:
    return Board(
        level1=tuple(level1),
        level2=tuple(level2),
        level3=tuple(level3),
        co_species=tuple(co_species),
        biome_assignments=assignments,
    )


def balanced_board(level2_count: int = 10) -> Board:
    """A Savannah-only board that passes every default rule without warnings.

    Categories rotate so each one appears three times; one large Fish
    co-species covers Savannah.
    """
    return make_board(
        level1=make_tier(1, 9),
        level2=make_tier(2, level2_count, offset=1),
        level3=make_tier(3, 5, offset=2),
        co_species=(make_co_species("savannah-companion"),),
    )
