"""Exception types raised while decoding, composing and encoding.

Every failure in the MIDI codec derives from :class:`MidiError` so callers can
catch a single type.  Each class carries a short ``description`` shared by all
instances and an optional ``detail`` string describing the concrete problem.
Underlying I/O failures are attached with ``raise ... from exc`` so the
original ``OSError`` stays reachable through ``__cause__``.

Example
-------
>>> try:
...     raise InvalidTrackNumber(3)
... except MidiError as exc:
...     format_error_chain(exc)
['Error: invalid track number', '     The file has no track 3']
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Sequence

__all__ = [
    "MidiError",
    "InvalidFile",
    "InvalidTrackNumber",
    "TruncatedStream",
    "UnexpectedEndOfTrack",
    "MidiIOError",
    "UnknownError",
    "StalledGeneration",
    "error_chain",
    "format_error_chain",
]


class MidiError(Exception):
    """Base class for all MIDI codec failures."""

    description = "MIDI error"

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail or self.description)
        self.detail = detail

    @property
    def cause(self) -> Optional[BaseException]:
        """Return the exception this error was raised from, if any."""

        return self.__cause__


class InvalidFile(MidiError):
    """The file or track chunk does not start with the expected tag."""

    description = "invalid MIDI file"


class InvalidTrackNumber(MidiError):
    """The requested track index is not below the declared track count."""

    description = "invalid track number"

    def __init__(self, requested: int) -> None:
        super().__init__(f"The file has no track {requested}")
        self.requested = requested


class TruncatedStream(MidiError):
    """The byte source ended before a required field was complete."""

    description = "unexpected end of stream"


class UnexpectedEndOfTrack(TruncatedStream):
    """The byte source ended before the End-Of-Track meta event."""

    description = "unexpected end of track"


class MidiIOError(MidiError):
    """The underlying byte source or sink raised an ``OSError``."""

    description = "underlying IO error"


class UnknownError(MidiError):
    """Fallback for states the decoder should never reach."""

    description = "unknown error"


class StalledGeneration(RuntimeError):
    """Generation reached a context that has no recorded successor.

    ``partial`` holds the pitches produced before the stall so callers can
    still inspect or salvage them.
    """

    description = "generation stalled"

    def __init__(self, partial: Sequence[int], requested: int, context: Sequence[int]) -> None:
        self.partial = list(partial)
        self.requested = requested
        self.context = tuple(context)
        self.detail = (
            f"No successor recorded for context {list(self.context)} after "
            f"{len(self.partial)} of {requested} notes"
        )
        super().__init__(self.detail)


def error_chain(err: BaseException) -> Iterator[BaseException]:
    """Yield ``err`` followed by every exception in its ``__cause__`` chain."""

    current: Optional[BaseException] = err
    seen = set()
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__


def _describe(err: BaseException) -> List[str]:
    description = getattr(err, "description", None)
    if description is None:
        # Foreign exceptions (``OSError`` and friends) only have their message.
        return [type(err).__name__, str(err)] if str(err) else [type(err).__name__]
    detail = getattr(err, "detail", None)
    return [description, detail] if detail else [description]


def format_error_chain(err: BaseException) -> List[str]:
    """Render ``err`` and its causes as printable lines.

    The first exception is introduced with ``Error:`` and each cause with
    ``Caused by:``.  Details are indented underneath their headline.
    """

    lines: List[str] = []
    for index, current in enumerate(error_chain(err)):
        parts = _describe(current)
        prefix = "Error" if index == 0 else "Caused by"
        lines.append(f"{prefix}: {parts[0]}")
        for extra in parts[1:]:
            lines.append(f"     {extra}")
    return lines
