"""Custom exception classes for the board generator.

Constraint failures are reported through return values (validation results,
``None`` boards, empty park lists). These exceptions cover contract
violations only: malformed data files and invalid call arguments.
"""

from __future__ import annotations


class ZooBoardError(Exception):
    """Base exception for all board generator errors."""


class InvalidCatalogueError(ZooBoardError):
    """Raised when a catalogue data file cannot be parsed into records."""

    def __init__(self, source: str, detail: str) -> None:
        self.source = source
        self.detail = detail
        super().__init__(f"Invalid catalogue data in {source}: {detail}")


class InvalidOptionsError(ZooBoardError, ValueError):
    """Raised when generator, park or injector arguments break their contract."""


class UnknownBiomeError(InvalidOptionsError):
    """Raised when an unknown biome is referenced."""

    def __init__(self, biome: str) -> None:
        self.biome = biome
        super().__init__(f"Unknown biome: {biome}")


class UnknownCategoryError(InvalidOptionsError):
    """Raised when an unknown category is referenced."""

    def __init__(self, category: str) -> None:
        self.category = category
        super().__init__(f"Unknown category: {category}")


class InvalidLevelError(InvalidOptionsError):
    """Raised when an animal level falls outside the three tiers."""

    def __init__(self, level: int) -> None:
        self.level = level
        super().__init__(f"Invalid level {level}. Must be 1, 2 or 3.")


__all__ = [
    "InvalidCatalogueError",
    "InvalidLevelError",
    "InvalidOptionsError",
    "UnknownBiomeError",
    "UnknownCategoryError",
    "ZooBoardError",
]
