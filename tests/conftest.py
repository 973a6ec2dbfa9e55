"""
Pytest configuration and shared fixtures for the board generator tests.

Provides the packaged catalogue and a known-good board; item and board
builders live in ``factories``.
"""

import pytest

from factories import balanced_board
from zooboard.catalogue import default_catalogue


@pytest.fixture
def catalogue():
    """The packaged catalogue (loaded once per process)."""
    return default_catalogue()


@pytest.fixture
def valid_board():
    """A board with exact tier counts, one co-species and no warnings."""
    return balanced_board()
