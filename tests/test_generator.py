"""
Tests for the board search.

Small hand-built catalogues pin down individual steps of an attempt
(filling, co-species passes, abandonment reasons); the packaged catalogue
covers the end-to-end scenarios.
"""

import logging

import pytest

from factories import make_animal, make_co_species, make_tier
from zooboard import rules
from zooboard.board import animal_ids, animals, co_species_ids
from zooboard.catalogue import Requirement
from zooboard.exceptions import InvalidOptionsError, UnknownBiomeError
from zooboard.generator import (
    CRITICAL_WARNINGS,
    FOCUS_BIOME_UNREPRESENTED,
    LEADERLESS_BIOME,
    REQUIRED_OVERFLOW,
    TIER_UNDERFILLED,
    AcceptancePolicy,
    GenerationOptions,
    generate_board,
    search_board,
)
from zooboard.national_parks import find_park, park_status
from zooboard.random_source import FixedSequenceRandom
from zooboard.validation import (
    WARN_BIOME_VIABILITY,
    WARN_POPULARITY_LOCK,
    ValidationResult,
    is_requirement_satisfied,
    validate_board,
)

FOCUS_FOUR = (rules.RAINFOREST, rules.SAVANNAH, rules.DRY_FOREST, rules.MONTANE_FOREST)


def exact_catalogue():
    """Exactly enough Savannah animals for one board, so every shuffle gives the same selection."""
    animals = make_tier(1, 9) + make_tier(2, 10, offset=1) + make_tier(3, 5, offset=2)
    return list(animals), [make_co_species("savannah-companion")]


def assert_hard_constraints(game_board, co_species_pool=None):
    assert len(game_board.level1) == 9
    assert len(game_board.level2) == 10
    assert len(game_board.level3) == 5
    assert sum(1 for c in game_board.co_species if c.is_small) <= 5
    for biome in rules.BIOMES:
        assert sum(1 for c in game_board.co_species if c.has_biome(biome)) <= 2
    members = animals(game_board) + game_board.co_species
    for animal in animals(game_board):
        assert is_requirement_satisfied(animal.requirement, members)
    assert validate_board(game_board, co_species_pool).valid


class TestScenarios:
    """End-to-end searches over the packaged catalogue."""

    def test_seed_one_strict_full_catalogue(self, catalogue):
        options = GenerationOptions(seed=1, strict=True)

        game_board = generate_board(catalogue.animals, catalogue.co_species, options)

        assert game_board is not None
        assert_hard_constraints(game_board)
        covered = {biome for c in game_board.co_species for biome in c.biomes}
        for animal in animals(game_board):
            assert set(animal.biomes) <= covered

    def test_same_seed_reproduces_board(self, catalogue):
        first = search_board(catalogue.animals, catalogue.co_species, GenerationOptions(seed=7, strict=True))
        second = search_board(catalogue.animals, catalogue.co_species, GenerationOptions(seed=7, strict=True))

        assert first.board is not None
        assert first.attempts == second.attempts
        assert first.board == second.board
        assert first.board.biome_assignments == second.board.biome_assignments
        assert animal_ids(first.board) == animal_ids(second.board)

    def test_four_focus_biomes_never_break_coverage(self, catalogue):
        options = GenerationOptions(seed=3, strict=True, focus_biomes=FOCUS_FOUR, max_attempts=3000)

        outcome = search_board(catalogue.animals, catalogue.co_species, options)

        if outcome.board is None:
            assert outcome.attempts == options.attempt_budget()
            assert sum(outcome.abandoned.values()) == outcome.attempts
            return
        game_board = outcome.board
        pool = [c for c in catalogue.co_species if c.has_any_biome(FOCUS_FOUR)]
        assert_hard_constraints(game_board, pool)
        assert set(game_board.biome_assignments.values()) <= set(FOCUS_FOUR)
        level1_biomes = {biome for animal in game_board.level1 for biome in animal.biomes}
        assert set(FOCUS_FOUR) <= level1_biomes

    def test_required_overflow_returns_immediately(self, catalogue):
        options = GenerationOptions(
            seed=1,
            strict=True,
            required_ids=["lion", "giraffe"],
            rules=rules.RuleSet(level_targets=(1, 10, 5)),
        )

        outcome = search_board(catalogue.animals, catalogue.co_species, options)

        assert outcome.board is None
        assert outcome.attempts == 0
        assert outcome.abandoned[REQUIRED_OVERFLOW] == 1

    def test_ten_required_level1_overflow_default_rules(self, catalogue):
        level1 = [animal.id for animal in catalogue.animals_at_level(1)][:10]

        outcome = search_board(catalogue.animals, catalogue.co_species, GenerationOptions(required_ids=level1))

        assert outcome.board is None
        assert outcome.attempts == 0

    def test_required_animals_are_placed(self, catalogue):
        options = GenerationOptions(seed=1, strict=True, required_ids=["lion", "giraffe", "tiger"])

        game_board = generate_board(catalogue.animals, catalogue.co_species, options)

        assert game_board is not None
        assert {"lion", "giraffe"} <= {a.id for a in game_board.level1}
        assert "tiger" in {a.id for a in game_board.level2}

    def test_preserved_national_park_is_complete(self, catalogue):
        options = GenerationOptions(seed=1, strict=True, preserve_national_parks=["banff"])

        game_board = generate_board(catalogue.animals, catalogue.co_species, options)

        assert game_board is not None
        status = park_status(find_park("banff"), animal_ids(game_board), co_species_ids(game_board))
        assert status.complete


class TestUnknownReferences:
    def test_unknown_required_id_is_logged_and_ignored(self, caplog):
        animals_pool, co_species = exact_catalogue()

        with caplog.at_level(logging.WARNING, logger="zooboard.generator"):
            game_board = generate_board(
                animals_pool, co_species, GenerationOptions(seed=1, required_ids=["no-such-animal"])
            )

        assert game_board is not None
        assert "Unknown required id 'no-such-animal' ignored" in caplog.text

    def test_unknown_national_park_is_logged_and_ignored(self, caplog):
        animals_pool, co_species = exact_catalogue()

        with caplog.at_level(logging.WARNING, logger="zooboard.generator"):
            game_board = generate_board(
                animals_pool, co_species, GenerationOptions(seed=1, preserve_national_parks=["atlantis"])
            )

        assert game_board is not None
        assert "Unknown national park 'atlantis' ignored" in caplog.text


class TestAttemptSteps:
    """Single-step behaviour on hand-built catalogues."""

    def test_exact_catalogue_succeeds_first_attempt(self):
        animals_pool, co_species = exact_catalogue()

        outcome = search_board(animals_pool, co_species, GenerationOptions(seed=5))

        assert outcome.succeeded
        assert outcome.attempts == 1
        assert set(animal_ids(outcome.board)) == {a.id for a in animals_pool}
        assert co_species_ids(outcome.board) == ("savannah-companion",)
        assert outcome.validation is not None and outcome.validation.valid

    def test_injected_random_source_drives_search(self):
        animals_pool, co_species = exact_catalogue()

        first = generate_board(animals_pool, co_species, GenerationOptions(random_source=FixedSequenceRandom([0.3])))
        second = generate_board(animals_pool, co_species, GenerationOptions(random_source=FixedSequenceRandom([0.3])))

        assert first == second

    def test_unplaceable_requirement_underfills_tier(self):
        animals_pool, co_species = exact_catalogue()
        needy = make_animal(
            "needy",
            level=3,
            categories=(rules.BIRD,),
            requirement=Requirement(count=30, categories=(rules.BIRD,)),
        )
        animals_pool = [a for a in animals_pool if a.id != "l3-animal-0"] + [needy]

        outcome = search_board(animals_pool, co_species, GenerationOptions(max_attempts=5))

        assert outcome.board is None
        assert outcome.attempts == 5
        assert outcome.abandoned[TIER_UNDERFILLED] == 5

    def test_viable_biome_without_level1_is_rejected(self):
        animals_pool = list(
            make_tier(1, 9) + make_tier(2, 10, biome=rules.WATER, offset=1) + make_tier(3, 5, biome=rules.WATER)
        )
        co_species = [make_co_species("sav"), make_co_species("sea", biomes=(rules.WATER,))]

        outcome = search_board(animals_pool, co_species, GenerationOptions(max_attempts=5))

        assert outcome.board is None
        assert outcome.abandoned[LEADERLESS_BIOME] == 5

    def test_focus_biome_without_level1_candidate(self):
        animals_pool, co_species = exact_catalogue()
        options = GenerationOptions(focus_biomes=[rules.SAVANNAH, rules.WATER], strict=True, max_attempts=4)

        outcome = search_board(animals_pool, co_species, options)

        assert outcome.board is None
        assert outcome.abandoned[FOCUS_BIOME_UNREPRESENTED] == 4

    def test_locked_animal_needs_relaxed_acceptance(self):
        animals_pool, co_species = exact_catalogue()
        locked = make_animal("locked-panda", level=2, locked=True)
        animals_pool = [a for a in animals_pool if a.id != "l2-animal-0"] + [locked]

        strict_policy = search_board(animals_pool, co_species, GenerationOptions(max_attempts=5))
        relaxed = search_board(
            animals_pool,
            co_species,
            GenerationOptions(max_attempts=5, acceptance=AcceptancePolicy(relax_after=2)),
        )

        assert strict_policy.board is None
        assert strict_policy.abandoned[CRITICAL_WARNINGS] == 5
        assert relaxed.board is not None
        assert relaxed.attempts == 4

    @pytest.mark.parametrize("strict, expected", [(True, 3), (False, 2)])
    def test_strict_pass_tops_up_thin_biomes(self, strict, expected):
        water_leader = make_animal("water-leader", biomes=(rules.WATER,))
        animals_pool = list(make_tier(1, 8) + (water_leader,) + make_tier(2, 10, offset=1) + make_tier(3, 5, offset=2))
        co_species = [
            make_co_species("sav"),
            make_co_species("sea-a", biomes=(rules.WATER,)),
            make_co_species("sea-b", biomes=(rules.WATER,), categories=(rules.AMPHIBIAN,)),
        ]

        game_board = generate_board(animals_pool, co_species, GenerationOptions(seed=2, strict=strict))

        assert game_board is not None
        assert len(game_board.co_species) == expected

    def test_focus_restricts_assignments(self):
        wide = make_animal("wide-leader", biomes=(rules.WATER, rules.SAVANNAH))
        animals_pool = list(make_tier(1, 8) + (wide,) + make_tier(2, 10, offset=1) + make_tier(3, 5, offset=2))
        co_species = [make_co_species("sav")]
        options = GenerationOptions(seed=4, focus_biomes=[rules.SAVANNAH], max_attempts=20)

        game_board = generate_board(animals_pool, co_species, options)

        assert game_board is not None
        assert game_board.biome_assignments["wide-leader"] == rules.SAVANNAH


class TestOptions:
    def test_attempt_budgets(self):
        assert GenerationOptions().attempt_budget() == rules.LOOSE_ATTEMPTS
        assert GenerationOptions(strict=True).attempt_budget() == rules.DEFAULT_ATTEMPTS
        assert GenerationOptions(strict=True, focus_biomes=FOCUS_FOUR).attempt_budget() == rules.RESTRICTED_ATTEMPTS
        assert GenerationOptions(strict=True, focus_biomes=rules.BIOMES).attempt_budget() == rules.DEFAULT_ATTEMPTS
        assert GenerationOptions(max_attempts=12).attempt_budget() == 12

    def test_unknown_focus_biome(self):
        with pytest.raises(UnknownBiomeError, match="Moon"):
            GenerationOptions(focus_biomes=["Moon"])

    def test_negative_budget(self):
        with pytest.raises(InvalidOptionsError, match="non-negative"):
            GenerationOptions(max_attempts=-1)

    def test_sequences_normalised(self):
        options = GenerationOptions(required_ids=["a"], focus_biomes=[rules.WATER, rules.WATER])

        assert options.required_ids == ("a",)
        assert options.focus_biomes == (rules.WATER,)


class TestAcceptancePolicy:
    def _result(self, *codes):
        return ValidationResult(valid=True, warnings=tuple(f"w{i}" for i in range(len(codes))), warning_codes=codes)

    def test_clean_result_accepted_immediately(self):
        assert AcceptancePolicy().accepts(self._result(WARN_BIOME_VIABILITY), attempt=0)

    def test_critical_warning_waits_for_relaxation(self):
        policy = AcceptancePolicy()
        result = self._result(WARN_POPULARITY_LOCK)

        assert not policy.accepts(result, attempt=1000)
        assert policy.accepts(result, attempt=1001)

    def test_too_many_critical_never_accepted(self):
        result = self._result(WARN_POPULARITY_LOCK, WARN_POPULARITY_LOCK, WARN_POPULARITY_LOCK)

        assert not AcceptancePolicy().accepts(result, attempt=5000)

    def test_viability_never_critical_when_restricted(self):
        policy = AcceptancePolicy(critical_codes=(WARN_BIOME_VIABILITY,))
        result = self._result(WARN_BIOME_VIABILITY)

        assert policy.critical_count(result, restricted=False) == 1
        assert policy.critical_count(result, restricted=True) == 0

    def test_invalid_result_rejected(self):
        result = ValidationResult(valid=False, errors=("Level 1 must have exactly 9 animals (currently 0)",))

        assert not AcceptancePolicy().accepts(result, attempt=5000)
