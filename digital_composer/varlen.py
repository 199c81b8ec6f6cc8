"""Variable-length quantities and exact reads for MIDI byte streams.

MIDI stores delta-times and meta/SysEx lengths as big-endian base-128
numbers. Every byte except the last has its high bit set, so the three bytes
``0xC0 0xA0 0x01`` decode to ``0b100000001000000000001``.

Streams are any object exposing ``read(size) -> bytes`` (open files,
:class:`io.BytesIO`, sockets wrapped with ``makefile``).

Example
-------
>>> import io
>>> decode_varlen(io.BytesIO(b"\\xc0\\xa0\\x01"))
(1052673, 3)
>>> encode_varlen(1052673)
b'\\xc0\\xa0\\x01'
"""

from __future__ import annotations

from typing import BinaryIO, Optional, Tuple

from .errors import InvalidFile, MidiIOError, TruncatedStream

__all__ = ["read_exact", "read_byte", "decode_varlen", "encode_varlen", "MAX_VARLEN"]

# Largest value a variable-length quantity may hold in either direction.
MAX_VARLEN = 0xFFFFFFFF

# Five 7-bit groups are enough for any 32-bit value.
MAX_VARLEN_BYTES = 5

# Upper bound for a single ``read`` call; large payloads are read in pieces.
_READ_BLOCK = 64 * 1024

_CONTINUATION = 0x80
_PAYLOAD = 0x7F


def read_exact(stream: BinaryIO, size: int) -> bytes:
    """Return exactly ``size`` bytes from ``stream``.

    Raises
    ------
    TruncatedStream
        If the stream ends before ``size`` bytes were read.
    MidiIOError
        If the stream itself fails. The ``OSError`` is chained as the cause.
    """

    if size == 0:
        return b""
    chunks = []
    remaining = size
    # File objects may return short reads (pipes, sockets) so keep reading
    # until the request is satisfied or the stream reports EOF. A declared
    # size never allocates more than one block ahead of the actual data.
    while remaining > 0:
        try:
            chunk = stream.read(min(remaining, _READ_BLOCK))
        except OSError as exc:
            raise MidiIOError(f"Could not read {size} bytes") from exc
        if not chunk:
            raise TruncatedStream(
                f"Expected {size} bytes but the stream ended after {size - remaining}"
            )
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def read_byte(stream: BinaryIO) -> int:
    """Return the next byte of ``stream`` as an integer."""

    return read_exact(stream, 1)[0]


def decode_varlen(stream: BinaryIO, first: Optional[int] = None) -> Tuple[int, int]:
    """Read one variable-length quantity.

    Parameters
    ----------
    stream:
        Binary stream positioned at the quantity, or just after ``first``.
    first:
        Leading byte when the caller already consumed it.

    Returns
    -------
    Tuple[int, int]
        The decoded value and the number of bytes it occupies, ``first``
        included.

    Raises
    ------
    InvalidFile
        If the quantity does not fit in 32 bits.
    TruncatedStream
        If the stream ends before the terminating byte.
    """

    value = 0
    consumed = 0
    byte = read_byte(stream) if first is None else first
    while True:
        consumed += 1
        value = (value << 7) | (byte & _PAYLOAD)
        if value > MAX_VARLEN or consumed > MAX_VARLEN_BYTES:
            raise InvalidFile("Variable-length quantity exceeds 32 bits")
        if not byte & _CONTINUATION:
            return value, consumed
        byte = read_byte(stream)


def encode_varlen(value: int) -> bytes:
    """Return the minimal variable-length encoding of ``value``."""

    if value < 0 or value > MAX_VARLEN:
        raise ValueError(f"value must be between 0 and {MAX_VARLEN}, got {value}")
    groups = [value & _PAYLOAD]
    value >>= 7
    while value:
        groups.append((value & _PAYLOAD) | _CONTINUATION)
        value >>= 7
    return bytes(reversed(groups))
