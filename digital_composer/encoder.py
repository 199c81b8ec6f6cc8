"""Utilities for writing generated note sequences as MIDI files.

Modification summary
--------------------
* ``write_midi_file`` accepts an injectable ``random.Random`` so tests can
  reproduce the note lengths exactly.
* ``save_midi_file`` creates the destination directory automatically so
  callers can pass a path in a new folder without preparing it.
* ``load_midifile`` parses rendered bytes with ``mido`` so callers and tests
  can inspect the result without writing it to disk. ``mido`` is imported
  lazily so the encoder itself does not need it.

Each sequence becomes one track of a format 1 file. Every pitch is written as
a note-on on channel 1 followed, after a random delay of 15 to 30 ticks, by the
matching note-off. Every event carries its own status byte; running status is
never used on the write path.
"""

from __future__ import annotations

import io
import logging
import random
import struct
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Optional, Sequence, Union

from .decoder import FILE_TAG, TRACK_TAG
from .errors import MidiIOError

if TYPE_CHECKING:
    # ``MidiFile`` is only needed for type checking.
    from mido import MidiFile

__all__ = [
    "build_track_data",
    "write_midi_file",
    "render_midi_file",
    "save_midi_file",
    "load_midifile",
    "TIME_DIVISION",
]

# Ticks per quarter note written to every file.
TIME_DIVISION = 0x30

# Inclusive bounds for the random gap between a note-on and its note-off.
MIN_NOTE_TICKS = 15
MAX_NOTE_TICKS = 30

# Channel 1 in the one-based numbering used by musicians.
NOTE_ON = 0x91
NOTE_OFF = 0x81
NOTE_VELOCITY = 127

END_OF_TRACK_EVENT = bytes([0x00, 0xFF, 0x2F, 0x00])

_FORMAT_MULTI_TRACK = 1
_HEADER_LENGTH = 6
_MAX_TRACKS = 0xFFFF


def build_track_data(notes: Sequence[int], rng: Optional[random.Random] = None) -> bytes:
    """Return the event body of one track, without the chunk header.

    Raises
    ------
    ValueError
        If a pitch lies outside the MIDI range 0-127.
    """

    rng = rng or random.Random()
    data = bytearray()
    for note in notes:
        if not 0 <= note <= 127:
            raise ValueError(f"pitch must be between 0 and 127, got {note}")
        data += bytes([0x00, NOTE_ON, note, NOTE_VELOCITY])
        data.append(rng.randint(MIN_NOTE_TICKS, MAX_NOTE_TICKS))
        data += bytes([NOTE_OFF, note, 0])
    data += END_OF_TRACK_EVENT
    return bytes(data)


def write_midi_file(
    sink: BinaryIO,
    tracks: Sequence[Sequence[int]],
    rng: Optional[random.Random] = None,
) -> None:
    """Write ``tracks`` to ``sink`` as a complete Standard MIDI File.

    Parameters
    ----------
    sink:
        Binary stream receiving the file.
    tracks:
        One pitch sequence per track. Empty sequences produce a track that
        only contains the End-Of-Track event.
    rng:
        Random source for note lengths. A fresh ``random.Random`` is used
        when omitted.

    Raises
    ------
    MidiIOError
        If ``sink`` fails. The ``OSError`` is chained as the cause.
    """

    if len(tracks) > _MAX_TRACKS:
        raise ValueError(f"a MIDI file holds at most {_MAX_TRACKS} tracks")
    rng = rng or random.Random()

    # All bodies are built before the first write; an invalid pitch leaves
    # the sink untouched.
    bodies = [build_track_data(notes, rng) for notes in tracks]
    chunks = [
        FILE_TAG,
        struct.pack(">IHHH", _HEADER_LENGTH, _FORMAT_MULTI_TRACK, len(tracks), TIME_DIVISION),
    ]
    for body in bodies:
        chunks.append(TRACK_TAG)
        chunks.append(struct.pack(">I", len(body)))
        chunks.append(body)

    try:
        for chunk in chunks:
            sink.write(chunk)
    except OSError as exc:
        raise MidiIOError("Could not write MIDI data") from exc


def render_midi_file(
    tracks: Sequence[Sequence[int]], rng: Optional[random.Random] = None
) -> bytes:
    """Return the bytes :func:`write_midi_file` would write."""

    buffer = io.BytesIO()
    write_midi_file(buffer, tracks, rng)
    return buffer.getvalue()


def save_midi_file(
    path: Union[str, Path],
    tracks: Sequence[Sequence[int]],
    rng: Optional[random.Random] = None,
) -> Path:
    """Write ``tracks`` to ``path`` and return the resolved path."""

    data = render_midi_file(tracks, rng)
    target = Path(path).expanduser()
    try:
        # Ensure the destination directory exists so the write succeeds even
        # when the caller specifies a path in a new folder.
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    except OSError as exc:
        raise MidiIOError(f"Could not write {target}") from exc
    logging.info("MIDI file saved to %s", target)
    return target


def load_midifile(data: bytes) -> "MidiFile":
    """Parse ``data`` with ``mido`` and return the ``MidiFile``."""

    try:
        import mido
    except ModuleNotFoundError as exc:
        raise ImportError(
            "mido is required to inspect MIDI files; install it with 'pip install mido'"
        ) from exc
    return mido.MidiFile(file=io.BytesIO(data))
