"""Plain-text rendering of boards, validation results and parks."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .board import Board
    from .catalogue import Catalogue, CatalogueItem
    from .parks import GeneratedPark
    from .validation import ValidationResult


def name_list(items: Iterable[CatalogueItem]) -> str:
    """
    Format catalogue items as a comma-separated list of display names.

    Args:
        items: Animals or co-species to format

    Returns:
        A string like "Lion, Giraffe, Plains Zebra"
    """
    return ", ".join(item.name for item in items)


def board_to_text(board: Board) -> str:
    """
    Render a board in the export layout, one blank line between sections.

    Args:
        board: The board to render

    Returns:
        "Level 1: ...", "Level 2: ...", "Level 3: ..." and "Co-Species: ..."
        blocks, names in board order
    """
    sections = (
        f"Level 1: {name_list(board.level1)}",
        f"Level 2: {name_list(board.level2)}",
        f"Level 3: {name_list(board.level3)}",
        f"Co-Species: {name_list(board.co_species)}",
    )
    return "\n\n".join(sections).strip()


def validation_summary(result: ValidationResult) -> str:
    lines: List[str] = ["Valid board" if result.valid else "Invalid board"]
    lines.extend(f"  error: {message}" for message in result.errors)
    lines.extend(f"  warning: {message}" for message in result.warnings)
    return "\n".join(lines)


def park_summary(park: GeneratedPark, catalogue: Catalogue) -> str:
    """One line per park: name, score and member names (unknown ids shown as-is)."""

    def label(item_id: str) -> str:
        item = catalogue.get(item_id)
        return item.name if item is not None else item_id

    members = ", ".join(label(item_id) for item_id in park.animal_ids)
    line = f"{park.name} [{park.score:.2f}]: {members}"
    if park.co_species_ids:
        line += f" + {', '.join(label(item_id) for item_id in park.co_species_ids)}"
    return line


__all__ = ["board_to_text", "name_list", "park_summary", "validation_summary"]
