"""Tests for the weighted Markov chain."""

from __future__ import annotations

import random
import sys
from collections import Counter
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from digital_composer.markov import MarkovChain  # noqa: E402


class FixedDraw(random.Random):
    """Random source whose ``randint`` always returns ``value``."""

    def __init__(self, value: int) -> None:
        super().__init__(0)
        self.value = value
        self.calls = []

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        return self.value


def test_mark_counts_occurrences():
    chain = MarkovChain()
    chain.mark("ctx", 60)
    chain.mark("ctx", 60)
    chain.mark("ctx", 64)
    assert chain.successors("ctx") == {60: 2, 64: 1}
    assert chain.total("ctx") == 3
    assert "ctx" in chain
    assert len(chain) == 1


def test_unobserved_context_returns_none():
    """Never-marked contexts yield ``None`` rather than a default value."""

    chain = MarkovChain()
    chain.mark(1, 60)
    assert chain.random_successor(2) is None
    assert chain.successors(2) == {}


def test_single_symbol_always_returned():
    """A degenerate distribution always yields its only symbol."""

    chain = MarkovChain(random.Random(9))
    for _ in range(5):
        chain.mark("a", 67)
    assert {chain.random_successor("a") for _ in range(50)} == {67}


def test_draw_boundaries_follow_insertion_order():
    """``r`` selects the first symbol whose count reaches it."""

    chain = MarkovChain()
    chain.mark("a", 60)
    for _ in range(3):
        chain.mark("a", 64)
    chain.mark("a", 67)
    # Counts in insertion order: 60 -> 1, 64 -> 3, 67 -> 1 (total 5).
    expected = {1: 60, 2: 64, 3: 64, 4: 64, 5: 67}
    for draw, symbol in expected.items():
        rng = FixedDraw(draw)
        assert chain.random_successor("a", rng) == symbol
        assert rng.calls == [(1, 5)]


def test_draw_past_total_raises():
    """A draw larger than the total is reported instead of returning ``None``."""

    chain = MarkovChain()
    chain.mark("a", 60)
    with pytest.raises(RuntimeError):
        chain.random_successor("a", FixedDraw(2))


def test_frequencies_follow_counts():
    """Sampling frequencies are roughly proportional to the recorded counts."""

    chain = MarkovChain(random.Random(1234))
    chain.mark("a", 60)
    for _ in range(3):
        chain.mark("a", 64)
    counts = Counter(chain.random_successor("a") for _ in range(4000))
    assert set(counts) == {60, 64}
    assert 0.2 < counts[60] / 4000 < 0.3


def test_successors_returns_copy():
    chain = MarkovChain()
    chain.mark("a", 60)
    chain.successors("a")[60] = 99
    assert chain.successors("a") == {60: 1}


def test_contexts_in_first_seen_order():
    chain = MarkovChain()
    for context, symbol in [("b", 1), ("a", 2), ("b", 3), ("c", 4)]:
        chain.mark(context, symbol)
    assert list(chain.contexts()) == ["b", "a", "c"]
