"""Catalogue entities and the YAML loaders that build them.

Data files allow ``category`` and ``biome`` to be a single value or a list.
The pydantic record models normalise both to non-empty lists at the loading
boundary, so the frozen dataclasses used by the generator always carry
ordered tuples. Declared biome order is significant: it drives the
deterministic fallback biome assignment in :mod:`zooboard.board`.
"""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, field_validator

from . import rules
from .exceptions import (
    InvalidCatalogueError,
    InvalidLevelError,
    UnknownBiomeError,
    UnknownCategoryError,
)

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"
ANIMALS_FILE = DATA_DIR / "animals.yaml"
CO_SPECIES_FILE = DATA_DIR / "co_species.yaml"

GroupSizeValue = Union[int, str]

_OPEN_GROUP_SIZE = re.compile(r"^\d+\+$")


@dataclass(frozen=True)
class LevelValues:
    """Per-level numeric table (experience, free space, shelters)."""

    level1: Optional[int] = None
    level2: Optional[int] = None
    level3: Optional[int] = None

    def values(self) -> Tuple[int, ...]:
        return tuple(v for v in (self.level1, self.level2, self.level3) if v is not None)


@dataclass(frozen=True)
class GroupSizes:
    """Group size per level: an exact count, an open-ended "N+" sentinel, or absent."""

    level1: Optional[GroupSizeValue] = None
    level2: Optional[GroupSizeValue] = None
    level3: Optional[GroupSizeValue] = None

    def values(self) -> Tuple[GroupSizeValue, ...]:
        return tuple(v for v in (self.level1, self.level2, self.level3) if v is not None)


@dataclass(frozen=True)
class Requirement:
    """Unlock prerequisite: ``count`` board members from any of ``categories``."""

    count: int
    categories: Tuple[str, ...]

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError("Requirement count must be non-negative")
        if not self.categories:
            raise ValueError("Requirement must name at least one category")
        for category in self.categories:
            if category not in rules.CATEGORIES:
                raise UnknownCategoryError(category)

    @property
    def label(self) -> str:
        return " or ".join(self.categories)


class _Tagged:
    """Biome and category membership helpers shared by catalogue entities."""

    biomes: Tuple[str, ...]
    categories: Tuple[str, ...]

    def has_biome(self, biome: str) -> bool:
        return biome in self.biomes

    def has_any_biome(self, biomes: Sequence[str]) -> bool:
        return any(biome in self.biomes for biome in biomes)

    def has_category(self, category: str) -> bool:
        return category in self.categories


def _check_tags(biomes: Tuple[str, ...], categories: Tuple[str, ...]) -> None:
    if not biomes:
        raise ValueError("At least one biome is required")
    if not categories:
        raise ValueError("At least one category is required")
    for biome in biomes:
        if biome not in rules.BIOMES:
            raise UnknownBiomeError(biome)
    for category in categories:
        if category not in rules.CATEGORIES:
            raise UnknownCategoryError(category)


@dataclass(frozen=True)
class Animal(_Tagged):
    """A tiered catalogue animal. Economic fields are carried, not validated."""

    id: str
    name: str
    categories: Tuple[str, ...]
    biomes: Tuple[str, ...]
    level: int
    base_popularity: int = 0
    education: int = 0
    conservation: Optional[int] = None
    cost_per_tile: Optional[int] = None
    max_per_tile: int = 0
    experience: LevelValues = LevelValues()
    free_space: LevelValues = LevelValues()
    shelters: LevelValues = LevelValues()
    group_size: GroupSizes = GroupSizes()
    requirement: Optional[Requirement] = None
    popularity_locked: bool = False

    def __post_init__(self) -> None:
        if self.level not in rules.LEVELS:
            raise InvalidLevelError(self.level)
        _check_tags(self.biomes, self.categories)


@dataclass(frozen=True)
class CoSpecies(_Tagged):
    """A companion species; ``size`` 1 is small and counts toward the small cap."""

    id: str
    name: str
    biomes: Tuple[str, ...]
    categories: Tuple[str, ...]
    size: int

    def __post_init__(self) -> None:
        if self.size not in rules.CO_SPECIES_SIZES:
            raise ValueError(f"Co-species size must be 1 or 2, got {self.size}")
        _check_tags(self.biomes, self.categories)

    @property
    def is_small(self) -> bool:
        return self.size == rules.SMALL


CatalogueItem = Union[Animal, CoSpecies]


# ---------------------------------------------------------------------------
# Record models (data-file boundary)
# ---------------------------------------------------------------------------


def _as_list(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return list(value)
    if value is None:
        return value
    return [value]


# Single value or list in the data file; always a non-empty list after parsing.
TagList = Annotated[List[str], BeforeValidator(_as_list), Field(min_length=1)]


def _known(values: List[str], vocabulary: Tuple[str, ...], kind: str) -> List[str]:
    unknown = [v for v in values if v not in vocabulary]
    if unknown:
        raise ValueError(f"unknown {kind}: {', '.join(unknown)}")
    return values


class LevelValuesRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")
    level1: Optional[int] = None
    level2: Optional[int] = None
    level3: Optional[int] = None

    def to_values(self) -> LevelValues:
        return LevelValues(self.level1, self.level2, self.level3)


class GroupSizeRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")
    level1: Optional[Union[int, str]] = None
    level2: Optional[Union[int, str]] = None
    level3: Optional[Union[int, str]] = None

    @field_validator("level1", "level2", "level3")
    @classmethod
    def _open_ended_sentinel(cls, value: Optional[Union[int, str]]) -> Optional[Union[int, str]]:
        if isinstance(value, str) and not _OPEN_GROUP_SIZE.match(value):
            raise ValueError(f"group size must be a number or 'N+', got {value!r}")
        return value

    def to_sizes(self) -> GroupSizes:
        return GroupSizes(self.level1, self.level2, self.level3)


class RequirementRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")
    count: int = Field(ge=0)
    category: TagList

    @field_validator("category")
    @classmethod
    def _known_categories(cls, value: List[str]) -> List[str]:
        return _known(value, rules.CATEGORIES, "category")

    def to_requirement(self) -> Requirement:
        return Requirement(count=self.count, categories=tuple(self.category))


class AnimalRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    id: str = Field(min_length=1)
    name: str
    category: TagList
    biome: TagList
    level: int = Field(ge=1, le=3)
    base_popularity: int = Field(default=0, alias="basePopularityValue")
    education: int = Field(default=0, alias="educationValue")
    conservation: Optional[int] = Field(default=None, alias="conservationValue")
    cost_per_tile: Optional[int] = Field(default=None, alias="costPerTile")
    max_per_tile: int = Field(default=0, alias="maxPerTile")
    experience: LevelValuesRecord = Field(default_factory=LevelValuesRecord)
    free_space: LevelValuesRecord = Field(default_factory=LevelValuesRecord, alias="freeSpace")
    shelters: LevelValuesRecord = Field(default_factory=LevelValuesRecord)
    group_size: GroupSizeRecord = Field(default_factory=GroupSizeRecord, alias="groupSize")
    requirement: Optional[RequirementRecord] = None
    popularity_locked: bool = Field(default=False, alias="isPopularityLocked")

    @field_validator("category")
    @classmethod
    def _known_categories(cls, value: List[str]) -> List[str]:
        return _known(value, rules.CATEGORIES, "category")

    @field_validator("biome")
    @classmethod
    def _known_biomes(cls, value: List[str]) -> List[str]:
        return _known(value, rules.BIOMES, "biome")

    def to_entity(self) -> Animal:
        return Animal(
            id=self.id,
            name=self.name,
            categories=tuple(self.category),
            biomes=tuple(self.biome),
            level=self.level,
            base_popularity=self.base_popularity,
            education=self.education,
            conservation=self.conservation,
            cost_per_tile=self.cost_per_tile,
            max_per_tile=self.max_per_tile,
            experience=self.experience.to_values(),
            free_space=self.free_space.to_values(),
            shelters=self.shelters.to_values(),
            group_size=self.group_size.to_sizes(),
            requirement=self.requirement.to_requirement() if self.requirement else None,
            popularity_locked=self.popularity_locked,
        )


class CoSpeciesRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    id: str = Field(min_length=1)
    name: str
    size: int = Field(ge=1, le=2)
    biome: TagList
    category: TagList

    @field_validator("category")
    @classmethod
    def _known_categories(cls, value: List[str]) -> List[str]:
        return _known(value, rules.CATEGORIES, "category")

    @field_validator("biome")
    @classmethod
    def _known_biomes(cls, value: List[str]) -> List[str]:
        return _known(value, rules.BIOMES, "biome")

    def to_entity(self) -> CoSpecies:
        return CoSpecies(
            id=self.id,
            name=self.name,
            biomes=tuple(self.biome),
            categories=tuple(self.category),
            size=self.size,
        )


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

_RecordT = TypeVar("_RecordT", AnimalRecord, CoSpeciesRecord)


def read_yaml_list(path: Path, key: str) -> List[Any]:
    """Read a YAML file holding a list of records, optionally nested under ``key``."""

    try:
        with open(path, encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        raise InvalidCatalogueError(str(path), f"cannot read file ({exc.strerror})") from exc
    except yaml.YAMLError as exc:
        raise InvalidCatalogueError(str(path), f"malformed YAML ({exc})") from exc

    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise InvalidCatalogueError(str(path), "expected a list of records")
    return data


def _parse_records(model: Type[_RecordT], records: List[Any], source: str) -> List[_RecordT]:
    parsed: List[_RecordT] = []
    for index, record in enumerate(records):
        try:
            parsed.append(model.model_validate(record))
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "record"
            label = record.get("id", "?") if isinstance(record, dict) else "?"
            raise InvalidCatalogueError(
                source, f"record {index} ({label}) {location}: {first['msg']}"
            ) from exc
    return parsed


def load_animals(path: Optional[Path] = None) -> Tuple[Animal, ...]:
    """Load animal records from YAML (the packaged catalogue by default)."""

    source = Path(path) if path is not None else ANIMALS_FILE
    records = _parse_records(AnimalRecord, read_yaml_list(source, "animals"), str(source))
    return tuple(record.to_entity() for record in records)


def load_co_species(path: Optional[Path] = None) -> Tuple[CoSpecies, ...]:
    """Load co-species records from YAML (the packaged catalogue by default)."""

    source = Path(path) if path is not None else CO_SPECIES_FILE
    records = _parse_records(CoSpeciesRecord, read_yaml_list(source, "coSpecies"), str(source))
    return tuple(record.to_entity() for record in records)


@dataclass(frozen=True)
class Catalogue:
    """Immutable animal and co-species reference data with id lookups."""

    animals: Tuple[Animal, ...]
    co_species: Tuple[CoSpecies, ...]

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for item in (*self.animals, *self.co_species):
            if item.id in seen:
                raise InvalidCatalogueError("catalogue", f"duplicate id {item.id!r}")
            seen.add(item.id)

    @functools.cached_property
    def _index(self) -> Dict[str, CatalogueItem]:
        index: Dict[str, CatalogueItem] = {a.id: a for a in self.animals}
        index.update((c.id, c) for c in self.co_species)
        return index

    def get(self, item_id: str) -> Optional[CatalogueItem]:
        return self._index.get(item_id)

    def animal(self, animal_id: str) -> Optional[Animal]:
        item = self._index.get(animal_id)
        return item if isinstance(item, Animal) else None

    def co_species_by_id(self, co_species_id: str) -> Optional[CoSpecies]:
        item = self._index.get(co_species_id)
        return item if isinstance(item, CoSpecies) else None

    def animals_at_level(self, level: int) -> Tuple[Animal, ...]:
        if level not in rules.LEVELS:
            raise InvalidLevelError(level)
        return tuple(a for a in self.animals if a.level == level)

    def popularity_locked(self) -> Tuple[Animal, ...]:
        return tuple(a for a in self.animals if a.popularity_locked)


def load_catalogue(
    animals_path: Optional[Path] = None,
    co_species_path: Optional[Path] = None,
) -> Catalogue:
    """Load both catalogue files and check ids are unique across them."""

    catalogue = Catalogue(
        animals=load_animals(animals_path),
        co_species=load_co_species(co_species_path),
    )
    logger.debug(
        "Loaded catalogue: %d animals, %d co-species",
        len(catalogue.animals),
        len(catalogue.co_species),
    )
    return catalogue


@functools.lru_cache(maxsize=1)
def default_catalogue() -> Catalogue:
    """The packaged catalogue, loaded once per process and shared read-only."""

    return load_catalogue()


__all__ = [
    "ANIMALS_FILE",
    "Animal",
    "AnimalRecord",
    "CO_SPECIES_FILE",
    "Catalogue",
    "CatalogueItem",
    "CoSpecies",
    "CoSpeciesRecord",
    "DATA_DIR",
    "GroupSizeRecord",
    "GroupSizeValue",
    "GroupSizes",
    "LevelValues",
    "LevelValuesRecord",
    "Requirement",
    "RequirementRecord",
    "default_catalogue",
    "load_animals",
    "load_catalogue",
    "load_co_species",
    "read_yaml_list",
]
