"""Byte transport capabilities.

Encoder/Decoder only ever talk to these two shapes:

  ByteSink.write(data)   -> bytes accepted (None = all of them)
  ByteSource.read(n)     -> up to n bytes, b"" at end of data

Any file object, pipe, socket.makefile() or io.BytesIO fits. Transport failures
(OSError) surface as StreamIOError; short writes are transport failures too.
"""

from __future__ import annotations

from typing import Protocol

from brstream.errors import StreamIOError


class ByteSink(Protocol):
    def write(self, data: bytes, /) -> int | None: ...


class ByteSource(Protocol):
    def read(self, size: int = -1, /) -> bytes: ...


def write_all(sink: ByteSink, data: bytes) -> int:
    """Write every byte of data to sink, retrying partial writes."""
    total = 0
    n_data = len(data)
    while total < n_data:
        chunk = data if total == 0 else data[total:]
        try:
            n = sink.write(chunk)
        except OSError as err:
            raise StreamIOError(f"sink: write fallita dopo {total}/{n_data} byte: {err}") from err
        if n is None:
            n = len(chunk)
        if n <= 0 or n > len(chunk):
            raise StreamIOError(f"sink: short write ({n} su {len(chunk)} byte)")
        total += n
    return total


def read_some(source: ByteSource, size: int) -> bytes:
    """Read whatever the source has, up to size bytes.

    Buffered readers wait for a full `size` in read(); read1() returns what is
    available, which is what a streaming consumer needs.
    """
    reader = getattr(source, "read1", None) or source.read
    try:
        chunk = reader(size)
    except OSError as err:
        raise StreamIOError(f"source: read fallita: {err}") from err
    if chunk is None:
        # non-blocking source senza dati pronti
        raise StreamIOError("source: nessun dato disponibile (non-blocking)")
    return bytes(chunk)
