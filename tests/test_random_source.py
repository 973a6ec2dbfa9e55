import pytest

from zooboard import random_source
from zooboard.random_source import (
    FixedSequenceRandom,
    HostRandom,
    LinearCongruentialRandom,
    make_random,
    shuffle,
)


def test_lcg_first_values_for_seed_one():
    rng = LinearCongruentialRandom(1)

    assert rng.next() == 58598 / 233280
    assert rng.next() == 127215 / 233280


def test_lcg_is_reproducible():
    first = LinearCongruentialRandom(42)
    second = LinearCongruentialRandom(42)

    assert [first.next() for _ in range(50)] == [second.next() for _ in range(50)]


def test_lcg_values_stay_in_unit_interval():
    rng = LinearCongruentialRandom(-7)
    for _ in range(1000):
        value = rng.next()
        assert 0.0 <= value < 1.0


def test_lcg_rejects_non_integer_seed():
    with pytest.raises(TypeError, match="integer"):
        LinearCongruentialRandom(1.5)


def test_make_random_picks_source_from_seed():
    assert isinstance(make_random(3), LinearCongruentialRandom)
    assert isinstance(make_random(None), HostRandom)


def test_host_random_with_seed_is_reproducible():
    assert HostRandom(5).next() == HostRandom(5).next()


class TestFixedSequence:
    def test_cycles_through_values(self):
        rng = FixedSequenceRandom([0.1, 0.2])

        assert [rng.next() for _ in range(5)] == [0.1, 0.2, 0.1, 0.2, 0.1]

    def test_rejects_empty(self):
        with pytest.raises(ValueError, match="at least one"):
            FixedSequenceRandom([])

    def test_rejects_out_of_range(self):
        with pytest.raises(ValueError, match=r"\[0, 1\)"):
            FixedSequenceRandom([1.0])


class TestShuffle:
    def test_zero_draws_rotate_front(self):
        items = ["a", "b", "c"]

        # j is always 0: swap(2, 0) then swap(1, 0).
        assert shuffle(items, FixedSequenceRandom([0.0])) == ["b", "c", "a"]
        assert items == ["a", "b", "c"]

    def test_high_draws_keep_order(self):
        assert shuffle([1, 2, 3, 4], FixedSequenceRandom([0.999])) == [1, 2, 3, 4]

    def test_short_inputs(self):
        rng = FixedSequenceRandom([0.5])

        assert shuffle([], rng) == []
        assert shuffle(["only"], rng) == ["only"]

    def test_is_a_permutation(self):
        items = list(range(20))

        result = random_source.shuffle(items, LinearCongruentialRandom(9))

        assert sorted(result) == items

    def test_seeded_shuffle_is_deterministic(self):
        items = list("abcdefgh")

        assert shuffle(items, make_random(11)) == shuffle(items, make_random(11))
