"""National-park preservation templates and board completeness checks."""
from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from . import rules
from .board import Board, animal_ids, co_species_ids
from .catalogue import DATA_DIR, read_yaml_list
from .exceptions import InvalidCatalogueError

logger = logging.getLogger(__name__)

NATIONAL_PARKS_FILE = DATA_DIR / "national_parks.yaml"


@dataclass(frozen=True)
class NationalPark:
    """A named set of ids a board must hold to keep the park intact.

    ``optional_groups`` are alternatives: any one id of a group satisfies it.
    """

    id: str
    name: str
    game: str
    biome: str
    required_ids: Tuple[str, ...]
    optional_groups: Tuple[Tuple[str, ...], ...] = ()


@dataclass(frozen=True)
class ParkStatus:
    complete: bool
    missing: Tuple[str, ...]
    has_optional: Tuple[bool, ...]


class NationalParkRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    id: str = Field(min_length=1)
    name: str
    game: str = "base"
    biome: str
    required_animals: List[str] = Field(default_factory=list, alias="requiredAnimals")
    optional_animals: List[List[str]] = Field(default_factory=list, alias="optionalAnimals")

    @field_validator("biome")
    @classmethod
    def _known_biome(cls, value: str) -> str:
        if value not in rules.BIOMES:
            raise ValueError(f"unknown biome: {value}")
        return value

    @field_validator("optional_animals")
    @classmethod
    def _non_empty_groups(cls, value: List[List[str]]) -> List[List[str]]:
        if any(not group for group in value):
            raise ValueError("optional groups must list at least one id")
        return value

    def to_park(self) -> NationalPark:
        return NationalPark(
            id=self.id,
            name=self.name,
            game=self.game,
            biome=self.biome,
            required_ids=tuple(self.required_animals),
            optional_groups=tuple(tuple(group) for group in self.optional_animals),
        )


def load_national_parks(path: Optional[Path] = None) -> Tuple[NationalPark, ...]:
    """Load park templates from YAML (the packaged list by default)."""

    source = Path(path) if path is not None else NATIONAL_PARKS_FILE
    parks: List[NationalPark] = []
    for index, record in enumerate(read_yaml_list(source, "nationalParks")):
        try:
            parks.append(NationalParkRecord.model_validate(record).to_park())
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "record"
            raise InvalidCatalogueError(str(source), f"record {index} {location}: {first['msg']}") from exc
    return tuple(parks)


@functools.lru_cache(maxsize=1)
def default_national_parks() -> Tuple[NationalPark, ...]:
    return load_national_parks()


def find_park(park_id: str, parks: Optional[Sequence[NationalPark]] = None) -> Optional[NationalPark]:
    for park in parks if parks is not None else default_national_parks():
        if park.id == park_id:
            return park
    return None


def representative_ids(park: NationalPark) -> Tuple[str, ...]:
    """Required ids plus the first alternative of each optional group."""

    return park.required_ids + tuple(group[0] for group in park.optional_groups)


def park_status(
    park: NationalPark,
    board_animal_ids: Iterable[str],
    board_co_species_ids: Iterable[str] = (),
) -> ParkStatus:
    """Set-membership check of a park against the ids on a board."""

    present = set(board_animal_ids) | set(board_co_species_ids)
    missing = [park_id for park_id in park.required_ids if park_id not in present]

    has_optional: List[bool] = []
    for group in park.optional_groups:
        has_any = any(option in present for option in group)
        has_optional.append(has_any)
        if not has_any:
            missing.append(f"({' OR '.join(group)})")

    return ParkStatus(complete=not missing, missing=tuple(missing), has_optional=tuple(has_optional))


def broken_parks(
    board: Board,
    parks: Optional[Sequence[NationalPark]] = None,
    game: Optional[str] = None,
) -> List[Tuple[NationalPark, ParkStatus]]:
    """Parks (optionally limited to one game) the board leaves incomplete."""

    board_animals = animal_ids(board)
    board_co_species = co_species_ids(board)
    broken: List[Tuple[NationalPark, ParkStatus]] = []
    for park in parks if parks is not None else default_national_parks():
        if game is not None and park.game != game:
            continue
        status = park_status(park, board_animals, board_co_species)
        if not status.complete:
            broken.append((park, status))
    return broken


__all__ = [
    "NATIONAL_PARKS_FILE",
    "NationalPark",
    "NationalParkRecord",
    "ParkStatus",
    "broken_parks",
    "default_national_parks",
    "find_park",
    "load_national_parks",
    "park_status",
    "representative_ids",
]
