"""Unit tests for the track event scanner.

Track bodies are assembled byte by byte so each MIDI event rule is exercised
in isolation:

* **Running status** – data bytes without a status byte reuse the previous
  event type.
* **Skipping** – controller, program change, pitch bend, meta and SysEx events
  consume exactly their own bytes so later notes are still found.
* **Termination** – the End-Of-Track meta event stops the scan, a missing one
  is reported as ``UnexpectedEndOfTrack``.
"""

from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from digital_composer.errors import (  # noqa: E402
    InvalidFile,
    TruncatedStream,
    UnexpectedEndOfTrack,
)
from digital_composer.scanner import EventKind, classify, scan_track_notes  # noqa: E402

END = bytes([0x00, 0xFF, 0x2F, 0x00])


def _scan(*events: bytes) -> list:
    return scan_track_notes(io.BytesIO(b"".join(events)))


def test_note_on_pitches_in_order():
    """Sounding note-on events yield their pitches in order."""

    notes = _scan(
        bytes([0x00, 0x90, 60, 100]),
        bytes([0x10, 0x80, 60, 0]),
        bytes([0x00, 0x90, 64, 100]),
        bytes([0x10, 0x80, 64, 0]),
        END,
    )
    assert notes == [60, 64]


def test_zero_velocity_note_on_is_ignored():
    """A note-on with velocity zero acts as a note-off."""

    notes = _scan(bytes([0x00, 0x90, 60, 90]), bytes([0x08, 0x90, 60, 0]), END)
    assert notes == [60]


def test_running_status_reuses_previous_event():
    """Data bytes without a status byte belong to the previous event type."""

    notes = _scan(
        bytes([0x00, 0x93, 60, 80]),
        bytes([0x00, 62, 80]),  # running note-on
        bytes([0x00, 62, 0]),  # running note-on, velocity 0
        bytes([0x00, 67, 70]),
        END,
    )
    assert notes == [60, 62, 67]


def test_channel_events_are_skipped():
    """Controller, program change, aftertouch and pitch bend are consumed."""

    notes = _scan(
        bytes([0x00, 0xB0, 7, 100]),  # controller
        bytes([0x00, 0xC0, 5]),  # program change
        bytes([0x00, 0xD0, 40]),  # channel aftertouch
        bytes([0x00, 0xA0, 60, 30]),  # polyphonic aftertouch
        bytes([0x00, 0xE0, 0x00, 0x40]),  # pitch bend
        bytes([0x00, 0x90, 72, 64]),
        END,
    )
    assert notes == [72]


def test_meta_events_are_skipped():
    """Meta payloads such as track names and tempo are skipped entirely."""

    name = b"Melody"
    notes = _scan(
        bytes([0x00, 0xFF, 0x03, len(name)]) + name,
        bytes([0x00, 0xFF, 0x51, 0x03, 0x07, 0xA1, 0x20]),
        bytes([0x00, 0x90, 65, 64]),
        END,
    )
    assert notes == [65]


def test_sysex_events_are_skipped():
    """SysEx length follows the status byte and the payload is skipped."""

    payload = bytes([0x7E, 0x7F, 0x09, 0x01, 0xF7])
    notes = _scan(
        bytes([0x00, 0xF0, len(payload)]) + payload,
        bytes([0x00, 0x90, 48, 64]),
        END,
    )
    assert notes == [48]


def test_running_status_sysex_skips_its_payload():
    """Under running status a SysEx data byte precedes the length and payload."""

    notes = _scan(
        bytes([0x00, 0xF0, 0x02, 0x01, 0xF7]),
        # running SysEx: data byte 0x05, length 2, payload 0xAA 0xBB
        bytes([0x00, 0x05, 0x02, 0xAA, 0xBB]),
        bytes([0x00, 0x90, 48, 64]),
        END,
    )
    assert notes == [48]


def test_oversized_meta_length_is_invalid():
    """A meta length longer than 32 bits is a malformed file, not a crash."""

    with pytest.raises(InvalidFile, match="exceeds 32 bits"):
        _scan(bytes([0x00, 0xFF, 0x01]) + b"\xff" * 9 + b"\x7f", END)


def test_oversized_delta_time_is_invalid():
    with pytest.raises(InvalidFile):
        _scan(b"\xff" * 6 + b"\x7f" + bytes([0x90, 60, 64]), END)


def test_meta_length_beyond_stream_is_truncated():
    """The largest 32-bit length on a short track reports truncation."""

    with pytest.raises(TruncatedStream):
        _scan(bytes([0x00, 0xFF, 0x01]) + b"\x8f\xff\xff\xff\x7f" + b"text", END)


def test_multi_byte_delta_times():
    """Delta-times longer than one byte are consumed completely."""

    notes = _scan(bytes([0x83, 0x60, 0x90, 55, 64]), bytes([0xFF, 0x7F, 0x80, 55, 0]), END)
    assert notes == [55]


def test_scan_stops_at_end_of_track():
    """Bytes following End-Of-Track are left unread."""

    stream = io.BytesIO(bytes([0x00, 0x90, 60, 64]) + END + b"MTrk")
    assert scan_track_notes(stream) == [60]
    assert stream.read() == b"MTrk"


def test_missing_end_of_track_raises():
    """An exhausted stream without End-Of-Track is an explicit error."""

    with pytest.raises(UnexpectedEndOfTrack):
        _scan(bytes([0x00, 0x90, 60, 64]))


def test_empty_track_raises():
    with pytest.raises(UnexpectedEndOfTrack):
        _scan(b"")


def test_event_cut_short_raises_truncated():
    """Running out of bytes mid-event is reported as a truncated stream."""

    with pytest.raises(TruncatedStream) as excinfo:
        _scan(bytes([0x00, 0x90, 60]))
    assert not isinstance(excinfo.value, UnexpectedEndOfTrack)


@pytest.mark.parametrize(
    "status, kind",
    [
        (0x80, EventKind.NOTE_OFF),
        (0x9F, EventKind.NOTE_ON),
        (0xA2, EventKind.POLY_AFTERTOUCH),
        (0xB0, EventKind.CONTROLLER),
        (0xC5, EventKind.PROGRAM_CHANGE),
        (0xD0, EventKind.CHANNEL_AFTERTOUCH),
        (0xE1, EventKind.PITCH_BEND),
        (0xF0, EventKind.SYSEX),
        (0xF7, EventKind.SYSEX),
        (0xFF, EventKind.META),
        (0x00, EventKind.OTHER),
    ],
)
def test_classify_status_bytes(status, kind):
    assert classify(status) is kind
