"""Board generator and validator for the zoo-building board game companion."""

from . import (
    board,
    catalogue,
    exceptions,
    formatting,
    generator,
    injector,
    logging_config,
    national_parks,
    parks,
    random_source,
    rules,
    samples,
    validation,
)

__all__ = [
    "board",
    "catalogue",
    "exceptions",
    "formatting",
    "generator",
    "injector",
    "logging_config",
    "national_parks",
    "parks",
    "random_source",
    "rules",
    "samples",
    "validation",
]
