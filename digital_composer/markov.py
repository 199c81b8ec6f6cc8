"""Frequency-counting Markov chain with weighted sampling.

The chain maps a context key to the symbols observed after it, together with
how often each was seen. :meth:`MarkovChain.random_successor` draws one of
those symbols with probability proportional to its count.

Sampling algorithm
------------------
Given a bucket whose counts sum to ``total``, an integer ``r`` is drawn
uniformly from ``[1, total]``. The bucket is walked in insertion order; the
first symbol whose count is at least ``r`` is returned, otherwise its count
is subtracted from ``r`` and the walk continues::

    counts = {60: 1, 64: 3}     # total = 4
    r = 1 -> 60                 # 1 <= 1
    r = 2 -> 64                 # 1 < 2, r = 1, 3 >= 1

Example
-------
>>> import random
>>> chain = MarkovChain()
>>> chain.mark("a", 60)
>>> chain.random_successor("a", random.Random(0))
60
>>> chain.random_successor("b") is None
True
"""

from __future__ import annotations

import random
from typing import Dict, Generic, Hashable, Iterator, Optional, TypeVar

__all__ = ["MarkovChain"]

ContextT = TypeVar("ContextT", bound=Hashable)
SymbolT = TypeVar("SymbolT", bound=Hashable)


class MarkovChain(Generic[ContextT, SymbolT]):
    """Order-agnostic transition counts from a context to its successors."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._chain: Dict[ContextT, Dict[SymbolT, int]] = {}
        self.rng = rng or random.Random()

    def mark(self, context: ContextT, symbol: SymbolT) -> None:
        """Record one occurrence of ``symbol`` following ``context``."""

        bucket = self._chain.setdefault(context, {})
        bucket[symbol] = bucket.get(symbol, 0) + 1

    def random_successor(
        self, context: ContextT, rng: Optional[random.Random] = None
    ) -> Optional[SymbolT]:
        """Return a weighted random successor of ``context``.

        Parameters
        ----------
        context:
            Key previously passed to :meth:`mark`.
        rng:
            Random source for this draw; the chain's own ``rng`` is used when
            omitted.

        Returns
        -------
        Optional[SymbolT]
            ``None`` when ``context`` was never marked, otherwise one of the
            symbols recorded for it.
        """

        bucket = self._chain.get(context)
        if not bucket:
            return None
        rng = rng or self.rng
        remaining = rng.randint(1, sum(bucket.values()))
        for symbol, count in bucket.items():
            if count >= remaining:
                return symbol
            remaining -= count
        # The draw never exceeds the bucket total, so the walk always returns.
        raise RuntimeError(f"weighted draw fell through for context {context!r}")

    def successors(self, context: ContextT) -> Dict[SymbolT, int]:
        """Return a copy of the successor counts recorded for ``context``."""

        return dict(self._chain.get(context, {}))

    def total(self, context: ContextT) -> int:
        """Return how many transitions were recorded from ``context``."""

        return sum(self._chain.get(context, {}).values())

    def contexts(self) -> Iterator[ContextT]:
        return iter(self._chain)

    def __contains__(self, context: object) -> bool:
        return context in self._chain

    def __len__(self) -> int:
        return len(self._chain)

    def __repr__(self) -> str:
        return f"MarkovChain(contexts={len(self._chain)})"
