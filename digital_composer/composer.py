"""Train a pitch Markov chain and sample new melodies from it.

Algorithm
---------
Training slides a window of ``degree`` pitches over the source melody. For
every pitch after the first window the chain records "window -> pitch" and
the window advances by one::

    window = notes[:degree]
    for note in notes[degree:]:
        chain.mark(digest(window), note)
        window = window[1:] + [note]

Generation starts from the window training ended on and repeatedly draws a
successor, appending it to the output and advancing the window.

Stalls
------
A window that never appeared during training has no successors. The chain is
read-only while generating, so retrying such a window can never succeed and
:func:`generate` raises :class:`~digital_composer.errors.StalledGeneration`
immediately. When ``restart_contexts`` are supplied the window is instead
replaced by one of them and generation continues; two stalls in a row still
raise so a bad restart list cannot loop forever.

Example
-------
>>> import random
>>> compose([60, 64, 67, 60, 64, 67], degree=1, length=3, rng=random.Random(1))
[[60, 64, 67]]
"""

from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Sequence, Tuple

from .context import ContextWindow
from .errors import StalledGeneration
from .markov import MarkovChain

__all__ = ["train", "seed_context", "generate", "Composer", "compose"]


def _validate_training(sequence: Sequence[int], degree: int) -> None:
    if degree < 1:
        raise ValueError("degree must be at least 1")
    if len(sequence) <= degree:
        raise ValueError(
            f"need more than {degree} notes to train a chain of degree {degree}, "
            f"got {len(sequence)}"
        )


def _accumulate(
    chain: MarkovChain[int, int], sequence: Sequence[int], degree: int
) -> Dict[int, Tuple[int, ...]]:
    """Mark every transition of ``sequence`` and return the windows seen."""

    window = ContextWindow(degree, sequence[:degree])
    windows: Dict[int, Tuple[int, ...]] = {}
    for pitch in sequence[degree:]:
        key = window.digest()
        windows.setdefault(key, window.pitches())
        chain.mark(key, pitch)
        window.push(pitch)
    return windows


def train(sequence: Sequence[int], degree: int) -> MarkovChain[int, int]:
    """Return a chain of order ``degree`` trained on ``sequence``.

    Raises
    ------
    ValueError
        If ``degree`` is below 1 or ``sequence`` is not longer than ``degree``.
    """

    _validate_training(sequence, degree)
    chain: MarkovChain[int, int] = MarkovChain()
    _accumulate(chain, sequence, degree)
    return chain


def seed_context(sequence: Sequence[int], degree: int) -> ContextWindow:
    """Return the window training on ``sequence`` finishes with."""

    _validate_training(sequence, degree)
    return ContextWindow(degree, sequence[-degree:])


def generate(
    chain: MarkovChain[int, int],
    seed: ContextWindow,
    length: int,
    rng: Optional[random.Random] = None,
    restart_contexts: Optional[Sequence[Tuple[int, ...]]] = None,
) -> List[int]:
    """Sample ``length`` pitches from ``chain`` starting at ``seed``.

    Parameters
    ----------
    chain:
        Trained chain keyed by window digests.
    seed:
        Starting window. It is copied, never modified.
    length:
        Number of pitches to produce.
    rng:
        Random source for successor draws and restarts. Defaults to the
        chain's own generator.
    restart_contexts:
        Windows to jump to when the current window has no successor.

    Raises
    ------
    StalledGeneration
        If a window without successors is reached and no restart is possible.
    """

    if length < 0:
        raise ValueError("length must be non-negative")
    rng = rng or chain.rng
    window = seed.copy()
    composition: List[int] = []
    stalled = False
    while len(composition) < length:
        pitch = chain.random_successor(window.digest(), rng)
        if pitch is None:
            if not restart_contexts or stalled:
                raise StalledGeneration(composition, length, window.pitches())
            stalled = True
            restart = rng.choice(restart_contexts)
            logging.info(
                "No successor for %s after %d notes; restarting from %s",
                list(window.pitches()),
                len(composition),
                list(restart),
            )
            window = ContextWindow(seed.degree, restart)
            continue
        stalled = False
        composition.append(pitch)
        window.push(pitch)
    return composition


class Composer:
    """Build a chain once and draw any number of melodies from it.

    The composer owns its chain for the whole session; training must finish
    before :meth:`generate` is called.
    """

    def __init__(self, degree: int = 1, rng: Optional[random.Random] = None) -> None:
        if degree < 1:
            raise ValueError("degree must be at least 1")
        self.degree = degree
        self.rng = rng or random.Random()
        self.chain: Optional[MarkovChain[int, int]] = None
        self._windows: Dict[int, Tuple[int, ...]] = {}
        self._seed: Optional[ContextWindow] = None

    def train(self, sequence: Sequence[int]) -> MarkovChain[int, int]:
        """Train a fresh chain on ``sequence`` and remember its final window."""

        _validate_training(sequence, self.degree)
        chain: MarkovChain[int, int] = MarkovChain(self.rng)
        self._windows = _accumulate(chain, sequence, self.degree)
        self._seed = ContextWindow(self.degree, sequence[-self.degree:])
        self.chain = chain
        logging.debug(
            "Trained degree %d chain with %d contexts from %d notes",
            self.degree,
            len(chain),
            len(sequence),
        )
        return chain

    @property
    def observed_contexts(self) -> List[Tuple[int, ...]]:
        """Windows that have at least one recorded successor."""

        if self.chain is None:
            return []
        return [self._windows[key] for key in self.chain.contexts()]

    def generate(self, length: int, reseed: bool = False) -> List[int]:
        """Draw one melody of ``length`` pitches.

        With ``reseed`` a dead end restarts from a random observed window
        instead of raising :class:`StalledGeneration`.
        """

        if self.chain is None or self._seed is None:
            raise RuntimeError("train() must be called before generate()")
        restart = self.observed_contexts if reseed else None
        return generate(self.chain, self._seed, length, self.rng, restart)

    def compose(self, length: int, tracks: int = 1, reseed: bool = False) -> List[List[int]]:
        """Draw ``tracks`` independent melodies from the trained chain."""

        if tracks < 1:
            raise ValueError("tracks must be at least 1")
        return [self.generate(length, reseed) for _ in range(tracks)]


def compose(
    notes: Sequence[int],
    degree: int,
    length: int,
    tracks: int = 1,
    rng: Optional[random.Random] = None,
    reseed: bool = False,
) -> List[List[int]]:
    """Train on ``notes`` and return ``tracks`` new melodies of ``length``."""

    composer = Composer(degree, rng)
    composer.train(notes)
    return composer.compose(length, tracks, reseed)
