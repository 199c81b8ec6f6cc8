"""Event scanner that extracts note-on pitches from one MIDI track.

The scanner is positioned at the first byte of a track body and walks the
event stream until the End-Of-Track meta event.  Only the pitches of note-on
events with a non-zero velocity are collected; every other event is skipped
by consuming exactly the bytes it occupies.

Event layout handled here
-------------------------
* Every event starts with a variable-length delta-time, which is discarded.
* A byte with the high bit clear where a status byte is expected means
  *running status*: the previous status byte applies and the byte just read is
  already the first data byte.
* Meta events (``0xFF``) carry a type byte, a length and a payload. Type
  ``0x2F`` ends the track.
* SysEx events (``0xF0``/``0xF7``) carry a length directly after the status
  byte followed by the payload. Under running status a SysEx event has
  one data byte before its length.
* Channel events carry one or two data bytes depending on their kind.

Design Notes
------------
Status bytes are classified once into :class:`EventKind` so the skipping rules
live in one table instead of being scattered as magic numbers.
"""

from __future__ import annotations

import enum
import logging
from typing import BinaryIO, Dict, List

from .errors import TruncatedStream, UnexpectedEndOfTrack
from .varlen import decode_varlen, read_byte, read_exact

__all__ = ["EventKind", "classify", "scan_track_notes", "END_OF_TRACK"]

# Meta event type marking the end of a track chunk.
END_OF_TRACK = 0x2F

_META_STATUS = 0xFF
_STATUS_BIT = 0x80


class EventKind(enum.Enum):
    """Classified MIDI event kinds keyed by their status nibble."""

    NOTE_OFF = 0x8
    NOTE_ON = 0x9
    POLY_AFTERTOUCH = 0xA
    CONTROLLER = 0xB
    PROGRAM_CHANGE = 0xC
    CHANNEL_AFTERTOUCH = 0xD
    PITCH_BEND = 0xE
    SYSEX = "sysex"
    META = "meta"
    OTHER = "other"


# Data bytes that follow the first data byte for each channel event kind.
# Note-on is absent because its second byte (velocity) is inspected.
_TRAILING_BYTES: Dict[EventKind, int] = {
    EventKind.NOTE_OFF: 1,
    EventKind.POLY_AFTERTOUCH: 1,
    EventKind.CONTROLLER: 1,
    EventKind.PITCH_BEND: 1,
    EventKind.PROGRAM_CHANGE: 0,
    EventKind.CHANNEL_AFTERTOUCH: 0,
    EventKind.OTHER: 0,
}


def classify(status: int) -> EventKind:
    """Return the :class:`EventKind` for ``status``.

    >>> classify(0x91)
    <EventKind.NOTE_ON: 9>
    >>> classify(0xFF)
    <EventKind.META: 'meta'>
    """

    if status == _META_STATUS:
        return EventKind.META
    nibble = status >> 4
    if nibble == 0xF:
        return EventKind.SYSEX
    try:
        return EventKind(nibble)
    except ValueError:
        # Nibbles below 0x8 only show up when running status is used before
        # any status byte was seen.
        return EventKind.OTHER


def _read_delta_time(stream: BinaryIO) -> int:
    """Read a delta-time, reporting a clean EOF as a missing End-Of-Track."""

    try:
        first = read_byte(stream)
    except TruncatedStream:
        raise UnexpectedEndOfTrack(
            "Track ended without an End Of Track event"
        ) from None
    return decode_varlen(stream, first)[0]


def _skip_block(stream: BinaryIO) -> int:
    """Skip a length-prefixed payload and return its length."""

    length, _ = decode_varlen(stream)
    read_exact(stream, length)
    return length


def scan_track_notes(stream: BinaryIO) -> List[int]:
    """Return the pitches of all sounding note-on events in one track.

    Parameters
    ----------
    stream:
        Binary stream positioned at the first event of a track body.

    Returns
    -------
    List[int]
        Pitches in the order they occur in the track.

    Raises
    ------
    UnexpectedEndOfTrack
        If the stream ends between events before an End-Of-Track meta event.
    TruncatedStream
        If the stream ends in the middle of an event.
    InvalidFile
        If a length or delta-time does not fit in 32 bits.
    """

    notes: List[int] = []
    last_event = 0
    events = 0
    while True:
        _read_delta_time(stream)
        first_byte = read_byte(stream)
        running = not first_byte & _STATUS_BIT
        status = last_event if running else first_byte
        kind = classify(status)
        events += 1

        if kind is EventKind.SYSEX:
            # Under running status the byte just read counts as the first data
            # byte; the length still follows.
            _skip_block(stream)
        else:
            param = first_byte if running else read_byte(stream)
            if kind is EventKind.META:
                _skip_block(stream)
                if param == END_OF_TRACK:
                    break
            elif kind is EventKind.NOTE_ON:
                velocity = read_byte(stream)
                # A note-on with velocity zero is a note-off.
                if velocity:
                    notes.append(param)
            else:
                read_exact(stream, _TRAILING_BYTES[kind])

        last_event = status

    logging.debug("Scanned %d events, found %d notes", events, len(notes))
    return notes
