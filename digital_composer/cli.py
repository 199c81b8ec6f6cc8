"""Command line interface for Digital Composer.

Modification summary
--------------------
* Defaults for ``--output``, ``--length``, ``--degree`` and ``--tracks`` can
  be stored in a JSON settings file (``--settings-file``, the
  ``DIGITAL_COMPOSER_SETTINGS_FILE`` environment variable or
  ``~/.digital_composer_settings.json``). ``--save-settings`` writes the
  values of the current run back to that file.
* ``--seed`` feeds a single ``random.Random`` through composing and encoding
  so the same seed reproduces the same file byte for byte.
* ``--reseed`` restarts generation from a random known context instead of
  failing when the melody reaches a dead end.
* Decoding and encoding failures are logged together with every chained
  cause and the process exits with status ``1``.

Example
-------
Running ``python -m digital_composer song.mid 1 --degree 2 --length 64 \
    --output out.mid`` learns the melody of the second track of ``song.mid``
with a second order chain and writes a 64 note composition to ``out.mid``.
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from . import load_settings, save_settings
from .composer import compose
from .decoder import read_notes
from .encoder import load_midifile, save_midi_file
from .errors import MidiError, StalledGeneration, format_error_chain

__all__ = ["run_cli", "main"]

DEFAULT_OUTPUT = "composition.mid"
DEFAULT_LENGTH = 100
DEFAULT_DEGREE = 1
DEFAULT_TRACKS = 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="digital-composer",
        description="Compose a new melody from the note statistics of a MIDI track.",
    )
    parser.add_argument("input", type=str, help="Input MIDI file.")
    parser.add_argument("track", type=int, help="Zero-based number of the track to learn from.")
    parser.add_argument(
        "-o", "--output", type=str, default=DEFAULT_OUTPUT,
        help=f"Output MIDI file path (default: {DEFAULT_OUTPUT}).",
    )
    parser.add_argument(
        "-l", "--length", type=int, default=DEFAULT_LENGTH,
        help=f"Length of the composition in notes (default: {DEFAULT_LENGTH}).",
    )
    parser.add_argument(
        "-d", "--degree", type=int, default=DEFAULT_DEGREE,
        help=f"Degree of the Markov chain (default: {DEFAULT_DEGREE}).",
    )
    parser.add_argument(
        "--tracks", type=int, default=DEFAULT_TRACKS,
        help=f"Number of independent melodies to write (default: {DEFAULT_TRACKS}).",
    )
    parser.add_argument("--seed", type=int, help="Random seed for reproducible output")
    parser.add_argument(
        "--reseed", action="store_true",
        help="Restart from a random known context instead of failing at a dead end.",
    )
    parser.add_argument("--settings-file", type=str, help="Path to the JSON settings file")
    parser.add_argument(
        "--save-settings", action="store_true",
        help="Store output, length, degree and tracks as future defaults.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _log_error_chain(err: BaseException) -> None:
    """Log ``err`` and each of its causes on separate lines."""

    for line in format_error_chain(err):
        logging.error(line)


def _settings_path(value: Optional[str]) -> Path:
    if value:
        return Path(value).expanduser()
    # Resolved at call time, not import time.
    from . import DEFAULT_SETTINGS_FILE

    return DEFAULT_SETTINGS_FILE


def _report(path: Path, tracks: List[List[int]]) -> None:
    """Log a short summary of the written file using ``mido``."""

    midi = load_midifile(path.read_bytes())
    logging.info(
        "Wrote %d track(s), %d notes, %.1f seconds",
        len(midi.tracks),
        sum(len(track) for track in tracks),
        midi.length,
    )


def run_cli(argv: Optional[Sequence[str]] = None) -> None:
    """Parse CLI arguments, compose a melody and write it to disk.

    Invalid arguments and any decoding, composing or writing failure are
    logged and terminate the process with ``SystemExit(1)``.
    """

    argv = list(sys.argv[1:] if argv is None else argv)

    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--settings-file", type=str)
    pre_args, _ = pre_parser.parse_known_args(argv)
    settings_path = _settings_path(pre_args.settings_file)

    parser = _build_parser()
    parser.set_defaults(**load_settings(settings_path))
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.track < 0:
        logging.error("Track number must be non-negative.")
        sys.exit(1)
    if args.length < 0:
        logging.error("Length must be a non-negative integer.")
        sys.exit(1)
    if args.degree < 1:
        logging.error("Degree must be a positive integer.")
        sys.exit(1)
    if args.tracks < 1:
        logging.error("Number of tracks must be a positive integer.")
        sys.exit(1)

    rng = random.Random(args.seed)

    logging.info("Reading %s...", args.input)
    try:
        notes = read_notes(args.input, args.track)
    except MidiError as exc:
        _log_error_chain(exc)
        sys.exit(1)
    except ValueError as exc:
        logging.error(str(exc))
        sys.exit(1)

    try:
        tracks = compose(
            notes, args.degree, args.length, tracks=args.tracks, rng=rng, reseed=args.reseed
        )
    except StalledGeneration as exc:
        _log_error_chain(exc)
        logging.error("Run again with --reseed to restart from a known context.")
        sys.exit(1)
    except ValueError as exc:
        logging.error(str(exc))
        sys.exit(1)

    try:
        path = save_midi_file(args.output, tracks, rng)
    except MidiError as exc:
        _log_error_chain(exc)
        sys.exit(1)
    except ValueError as exc:
        logging.error("Could not write MIDI file: %s", exc)
        sys.exit(1)

    if args.save_settings:
        save_settings(
            {
                "output": args.output,
                "length": args.length,
                "degree": args.degree,
                "tracks": args.tracks,
            },
            settings_path,
        )

    _report(path, tracks)
    logging.info("Composition complete.")


def main() -> None:
    """Console entry point used by ``digital-composer`` and ``python -m``."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    run_cli()
