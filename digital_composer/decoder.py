"""Standard MIDI File decoding.

:func:`get_notes` validates the ``MThd`` header, walks the ``MTrk`` chunks
until it reaches the requested track and hands the track body to
:func:`~digital_composer.scanner.scan_track_notes`.  Tracks before the
requested one are skipped using their declared chunk length, by seeking when
the stream supports it and by reading in bounded blocks otherwise, so only
the selected track is ever parsed event by event.

Example
-------
>>> with open("song.mid", "rb") as fh:  # doctest: +SKIP
...     get_notes(fh, 0)
[60, 64, 67]
"""

from __future__ import annotations

import io
import logging
import struct
from pathlib import Path
from typing import BinaryIO, List, NamedTuple, Union

from .errors import InvalidFile, InvalidTrackNumber, MidiIOError, UnknownError
from .scanner import scan_track_notes
from .varlen import read_exact

__all__ = ["MidiHeader", "read_header", "get_notes", "read_notes", "FILE_TAG", "TRACK_TAG"]

FILE_TAG = b"MThd"
TRACK_TAG = b"MTrk"

# Track numbers travel as unsigned 16-bit integers in the file header.
MAX_TRACK_INDEX = 0xFFFF


class MidiHeader(NamedTuple):
    """Fields of the ``MThd`` chunk that follow the chunk length."""

    format_type: int
    track_count: int
    division: int


def read_header(stream: BinaryIO) -> MidiHeader:
    """Validate the file tag and return the parsed header fields.

    The header length, format type and time division are not validated; a
    file with an unusual format still exposes its tracks.
    """

    if read_exact(stream, 4) != FILE_TAG:
        raise InvalidFile("Invalid MIDI file header")
    # Header chunk length, always 6 in practice.
    read_exact(stream, 4)
    format_type, track_count = struct.unpack(">HH", read_exact(stream, 4))
    (division,) = struct.unpack(">H", read_exact(stream, 2))
    return MidiHeader(format_type, track_count, division)


def _skip_chunk(stream: BinaryIO, size: int) -> None:
    """Move past a track body without parsing it.

    Seeking beyond the end of a file succeeds; the truncation is reported by
    the next read instead.
    """

    seekable = getattr(stream, "seekable", None)
    if seekable is not None and seekable():
        try:
            stream.seek(size, io.SEEK_CUR)
        except OSError as exc:
            raise MidiIOError(f"Could not skip {size} bytes") from exc
    else:
        read_exact(stream, size)


def get_notes(stream: BinaryIO, track_index: int) -> List[int]:
    """Return the note-on pitches of track ``track_index``.

    Parameters
    ----------
    stream:
        Binary stream positioned at the start of a Standard MIDI File.
    track_index:
        Zero-based index of the track to decode.

    Raises
    ------
    InvalidFile
        If the file or one of the visited track chunks has a bad tag.
    InvalidTrackNumber
        If ``track_index`` is not below the declared track count. This is
        checked before any track body is read.
    TruncatedStream
        If the stream ends early.
    ValueError
        If ``track_index`` cannot be represented as an unsigned 16-bit value.
    """

    if not 0 <= track_index <= MAX_TRACK_INDEX:
        raise ValueError(f"track_index must be between 0 and {MAX_TRACK_INDEX}")

    header = read_header(stream)
    logging.debug(
        "MIDI header: format %d, %d tracks, division %d",
        header.format_type,
        header.track_count,
        header.division,
    )
    if track_index >= header.track_count:
        raise InvalidTrackNumber(track_index)

    for current in range(header.track_count):
        if read_exact(stream, 4) != TRACK_TAG:
            raise InvalidFile(f"Invalid MIDI track header in track {current}")
        (chunk_size,) = struct.unpack(">I", read_exact(stream, 4))
        if current != track_index:
            _skip_chunk(stream, chunk_size)
            continue
        # The scanner stops at End-Of-Track; the declared chunk size is not
        # compared with the bytes it consumed.
        notes = scan_track_notes(stream)
        logging.info("Read %d notes from track %d", len(notes), track_index)
        return notes

    raise UnknownError(f"Track {track_index} was not found")


def read_notes(path: Union[str, Path], track_index: int) -> List[int]:
    """Open ``path`` and return the pitches of track ``track_index``."""

    try:
        fh = open(Path(path).expanduser(), "rb")
    except OSError as exc:
        raise MidiIOError(f"Could not open {path}") from exc
    with fh:
        return get_notes(fh, track_index)
