"""Sliding pitch windows used as Markov chain contexts.

A :class:`ContextWindow` keeps the last ``degree`` pitches. The chain is not
indexed by the window itself but by a 64-bit digest of its contents, computed
with BLAKE2b so the key depends only on the pitches and is identical across
interpreter runs (unlike ``hash()`` with string hash randomisation).
"""

from __future__ import annotations

import hashlib
from collections import deque
from typing import Deque, Iterable, Tuple

__all__ = ["ContextWindow", "context_digest"]


def context_digest(pitches: Iterable[int]) -> int:
    """Return a deterministic 64-bit key for a pitch window.

    >>> context_digest([60, 64]) == context_digest((60, 64))
    True
    >>> context_digest([60, 64]) == context_digest([64, 60])
    False
    """

    digest = hashlib.blake2b(bytes(pitches), digest_size=8).digest()
    return int.from_bytes(digest, "big")


class ContextWindow:
    """Fixed-capacity window over the most recent pitches."""

    def __init__(self, degree: int, initial: Iterable[int] = ()) -> None:
        if degree < 1:
            raise ValueError("degree must be at least 1")
        self.degree = degree
        self._pitches: Deque[int] = deque(initial, maxlen=degree)

    def push(self, pitch: int) -> None:
        """Append ``pitch``, dropping the oldest pitch when full."""

        self._pitches.append(pitch)

    def pitches(self) -> Tuple[int, ...]:
        return tuple(self._pitches)

    def is_full(self) -> bool:
        return len(self._pitches) == self.degree

    def digest(self) -> int:
        """Return the chain key for the current contents."""

        return context_digest(self._pitches)

    def copy(self) -> "ContextWindow":
        return ContextWindow(self.degree, self._pitches)

    def __len__(self) -> int:
        return len(self._pitches)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContextWindow):
            return NotImplemented
        return self.degree == other.degree and self.pitches() == other.pitches()

    # Mutable, so unhashable; chains are keyed by digest().
    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ContextWindow(degree={self.degree}, pitches={list(self._pitches)})"
