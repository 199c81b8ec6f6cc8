#!/usr/bin/env python3
"""Digital Composer library.

This package reads the melody of one track of a Standard MIDI File, learns
which pitches tend to follow which, and writes a new melody drawn from those
statistics. A typical workflow is::

    notes = read_notes("input.mid", 0)
    tracks = compose(notes, degree=2, length=100)
    save_midi_file("composition.mid", tracks)

Underlying Algorithm
--------------------
The decoder extracts the pitches of every sounding note-on event in the
selected track. An order-``degree`` Markov chain counts, for every window of
``degree`` consecutive pitches, how often each following pitch occurs. New
melodies start from the last window of the source and repeatedly draw a
successor weighted by those counts. The encoder writes each melody as a track
of note-on/note-off pairs with a short random length per note.

Timing, dynamics and chords of the source are not reproduced; only the pitch
sequence is learned.
"""

__version__ = "0.1.0"

import json
import logging
import os
from pathlib import Path

from .composer import Composer, compose, generate, seed_context, train
from .context import ContextWindow, context_digest
from .decoder import MidiHeader, get_notes, read_header, read_notes
from .encoder import (
    build_track_data,
    load_midifile,
    render_midi_file,
    save_midi_file,
    write_midi_file,
)
from .errors import (
    InvalidFile,
    InvalidTrackNumber,
    MidiError,
    MidiIOError,
    StalledGeneration,
    TruncatedStream,
    UnexpectedEndOfTrack,
    UnknownError,
    error_chain,
    format_error_chain,
)
from .markov import MarkovChain
from .scanner import EventKind, classify, scan_track_notes
from .varlen import decode_varlen, encode_varlen

# Default path for storing user preferences
# The file lives in the user's home directory so settings persist
# between runs of the application.
env_path = os.environ.get("DIGITAL_COMPOSER_SETTINGS_FILE")
if env_path:
    DEFAULT_SETTINGS_FILE = Path(env_path).expanduser()
else:
    DEFAULT_SETTINGS_FILE = Path.home() / ".digital_composer_settings.json"

# Settings keys that may override command line defaults.
SETTINGS_KEYS = ("output", "length", "degree", "tracks")


def load_settings(path: Path = DEFAULT_SETTINGS_FILE) -> dict:
    """Load saved user settings from ``path`` if it exists.

    @param path (Path): Location of the settings file.
    @returns dict: Loaded settings or an empty dictionary when unavailable.
    """
    # Prefer the user's saved options but fall back to an empty
    # dictionary when the settings file is missing or unreadable.
    path = Path(path)
    if path.is_file():
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logging.error(f"Could not load settings: {exc}")
            return {}
        if isinstance(data, dict):
            return {key: data[key] for key in SETTINGS_KEYS if key in data}
        logging.error("Could not load settings: %s does not contain an object", path)
    return {}


def save_settings(settings: dict, path: Path = DEFAULT_SETTINGS_FILE) -> None:
    """Save user ``settings`` to ``path`` as JSON.

    @param settings (dict): Options to be persisted.
    @param path (Path): Destination file path.
    @returns None: Function does not return a value.
    """
    # Failing to save preferences is logged but never aborts composing.
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(settings, fh, indent=2)
    except OSError as exc:
        logging.error(f"Could not save settings: {exc}")


__all__ = [
    "__version__",
    "DEFAULT_SETTINGS_FILE",
    "load_settings",
    "save_settings",
    "Composer",
    "compose",
    "generate",
    "seed_context",
    "train",
    "ContextWindow",
    "context_digest",
    "MidiHeader",
    "get_notes",
    "read_header",
    "read_notes",
    "build_track_data",
    "load_midifile",
    "render_midi_file",
    "save_midi_file",
    "write_midi_file",
    "MidiError",
    "InvalidFile",
    "InvalidTrackNumber",
    "MidiIOError",
    "StalledGeneration",
    "TruncatedStream",
    "UnexpectedEndOfTrack",
    "UnknownError",
    "error_chain",
    "format_error_chain",
    "MarkovChain",
    "EventKind",
    "classify",
    "scan_track_notes",
    "decode_varlen",
    "encode_varlen",
]
