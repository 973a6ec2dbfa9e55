"""Official sample boards and the reference-board sizing heuristic.

The "Base Game" sample is the reference board: an animal is size-compatible
when at least one of its group sizes (exact counts and "N+" sentinels alike)
appears among the reference animals' group sizes.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from . import rules
from .board import Board, animals as board_animals
from .catalogue import DATA_DIR, Animal, Catalogue, GroupSizeValue, read_yaml_list
from .exceptions import InvalidCatalogueError

logger = logging.getLogger(__name__)

SAMPLE_BOARDS_FILE = DATA_DIR / "sample_boards.yaml"


@dataclass(frozen=True)
class SampleBoard:
    """A named preset board, stored as catalogue ids."""

    name: str
    description: str
    level1_ids: Tuple[str, ...]
    level2_ids: Tuple[str, ...]
    level3_ids: Tuple[str, ...]
    co_species_ids: Tuple[str, ...]

    @property
    def animal_ids(self) -> Tuple[str, ...]:
        return self.level1_ids + self.level2_ids + self.level3_ids


class SampleBoardRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    name: str = Field(min_length=1)
    description: str = ""
    level1: List[str] = Field(default_factory=list)
    level2: List[str] = Field(default_factory=list)
    level3: List[str] = Field(default_factory=list)
    co_species: List[str] = Field(default_factory=list, alias="coSpecies")

    def to_sample(self) -> SampleBoard:
        return SampleBoard(
            name=self.name,
            description=self.description,
            level1_ids=tuple(self.level1),
            level2_ids=tuple(self.level2),
            level3_ids=tuple(self.level3),
            co_species_ids=tuple(self.co_species),
        )


def load_sample_boards(path: Optional[Path] = None) -> Tuple[SampleBoard, ...]:
    source = Path(path) if path is not None else SAMPLE_BOARDS_FILE
    samples: List[SampleBoard] = []
    for index, record in enumerate(read_yaml_list(source, "sampleBoards")):
        try:
            samples.append(SampleBoardRecord.model_validate(record).to_sample())
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "record"
            raise InvalidCatalogueError(str(source), f"record {index} {location}: {first['msg']}") from exc
    return tuple(samples)


@functools.lru_cache(maxsize=1)
def default_sample_boards() -> Tuple[SampleBoard, ...]:
    return load_sample_boards()


def find_sample(name: str, samples: Optional[Sequence[SampleBoard]] = None) -> Optional[SampleBoard]:
    for sample in samples if samples is not None else default_sample_boards():
        if sample.name == name:
            return sample
    return None


def default_reference_ids() -> Tuple[str, ...]:
    """Animal ids of the reference sample board, or () when it is missing."""

    sample = find_sample(rules.REFERENCE_BOARD_NAME)
    if sample is None:
        logger.warning("Reference board %r not found", rules.REFERENCE_BOARD_NAME)
        return ()
    return sample.animal_ids


def sample_to_board(sample: SampleBoard, catalogue: Catalogue) -> Board:
    """Resolve a sample's ids against the catalogue.

    Unknown ids are logged and skipped. The board carries no biome
    assignments, so multi-biome items fall back to the id-hash rule.
    """

    def resolve_animals(ids: Sequence[str], level: int) -> Tuple[Animal, ...]:
        resolved = []
        for animal_id in ids:
            animal = catalogue.animal(animal_id)
            if animal is None:
                logger.warning("Sample %r: unknown animal id %r skipped", sample.name, animal_id)
            elif animal.level != level:
                logger.warning(
                    "Sample %r: %s is level %d, not %d; skipped", sample.name, animal_id, animal.level, level
                )
            else:
                resolved.append(animal)
        return tuple(resolved)

    co_species = []
    for species_id in sample.co_species_ids:
        species = catalogue.co_species_by_id(species_id)
        if species is None:
            logger.warning("Sample %r: unknown co-species id %r skipped", sample.name, species_id)
        else:
            co_species.append(species)

    return Board(
        level1=resolve_animals(sample.level1_ids, 1),
        level2=resolve_animals(sample.level2_ids, 2),
        level3=resolve_animals(sample.level3_ids, 3),
        co_species=tuple(co_species),
    )


def reference_group_sizes(
    catalogue_animals: Sequence[Animal],
    reference_ids: Optional[Sequence[str]] = None,
) -> Set[GroupSizeValue]:
    """Every group size used by the reference animals, at any level."""

    ids = set(reference_ids if reference_ids is not None else default_reference_ids())
    sizes: Set[GroupSizeValue] = set()
    for animal in catalogue_animals:
        if animal.id in ids:
            sizes.update(animal.group_size.values())
    return sizes


def is_size_compatible(animal: Animal, sizes: Set[GroupSizeValue]) -> bool:
    return any(value in sizes for value in animal.group_size.values())


def replacement_mappings(
    board: Board,
    catalogue_animals: Sequence[Animal],
    reference_ids: Optional[Sequence[str]] = None,
) -> Dict[str, Optional[str]]:
    """Suggest which reference animal each non-reference board animal stands in for.

    Each board animal missing from the reference board is paired with the
    first unused reference animal of the same level that shares a group
    size, or ``None`` when no such animal is left.
    """

    ref_ids = tuple(reference_ids if reference_ids is not None else default_reference_ids())
    by_id = {animal.id: animal for animal in catalogue_animals}
    on_board = {animal.id for animal in board_animals(board)}
    unused = [by_id[ref_id] for ref_id in ref_ids if ref_id in by_id and ref_id not in on_board]

    mappings: Dict[str, Optional[str]] = {}
    for animal in board_animals(board):
        if animal.id in ref_ids:
            continue
        own_sizes = set(animal.group_size.values())
        match = next(
            (
                ref
                for ref in unused
                if ref.level == animal.level and own_sizes.intersection(ref.group_size.values())
            ),
            None,
        )
        if match is not None:
            unused.remove(match)
        mappings[animal.id] = match.id if match is not None else None
    return mappings


__all__ = [
    "SAMPLE_BOARDS_FILE",
    "SampleBoard",
    "SampleBoardRecord",
    "default_reference_ids",
    "default_sample_boards",
    "find_sample",
    "is_size_compatible",
    "load_sample_boards",
    "reference_group_sizes",
    "replacement_mappings",
    "sample_to_board",
]
