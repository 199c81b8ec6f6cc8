"""Tests for context windows and their digests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from digital_composer.context import ContextWindow, context_digest  # noqa: E402


def test_window_drops_oldest_pitch():
    window = ContextWindow(3, [60, 62, 64])
    window.push(65)
    assert window.pitches() == (62, 64, 65)
    assert window.is_full()


def test_digest_depends_only_on_content():
    """Equal windows share a key regardless of how they were built."""

    built = ContextWindow(2, [50])
    built.push(60)
    built.push(64)
    assert built.digest() == ContextWindow(2, [60, 64]).digest()
    assert built.digest() == context_digest((60, 64))
    assert built == ContextWindow(2, [60, 64])


def test_digest_is_order_sensitive():
    assert context_digest([60, 64]) != context_digest([64, 60])


def test_digest_is_stable_64_bit_value():
    """The key fits in 64 bits and does not change between runs."""

    key = context_digest([60])
    assert 0 <= key < 2 ** 64
    assert key == context_digest(bytes([60]))


def test_copy_is_independent():
    window = ContextWindow(2, [1, 2])
    clone = window.copy()
    clone.push(3)
    assert window.pitches() == (1, 2)
    assert clone.pitches() == (2, 3)


def test_windows_are_unhashable():
    with pytest.raises(TypeError):
        hash(ContextWindow(1, [60]))


def test_degree_must_be_positive():
    with pytest.raises(ValueError):
        ContextWindow(0)
