"""Streaming Brotli decoder.

Pulls from the source only when no decoded bytes are pending, and returns as
soon as what it has pulled yields output: a Segment is fully delivered from
its own bytes, without waiting for the next one.

End of stream is reported only after the terminal marker has been decoded
and the source has been checked to be empty. Every loop iteration either
makes progress on the input or terminates.
Decoded bytes waiting for the caller never exceed one engine step
(output_limit) when the installed brotli can cap its output.
"""

from __future__ import annotations

import logging

from brstream.core.engine import DEFAULT_OUTPUT_LIMIT, DecompressSession
from brstream.core.transport import ByteSource, read_some
from brstream.errors import (
    CorruptDataError,
    TrailingDataError,
    ValidationError,
)
from brstream.session import StreamSession

logger = logging.getLogger(__name__)

DEFAULT_READ_SIZE = 32 * 1024


class Decoder(StreamSession):
    _role = "Decoder"

    def __init__(
        self,
        source: ByteSource,
        *,
        read_size: int = DEFAULT_READ_SIZE,
        output_limit: int = DEFAULT_OUTPUT_LIMIT,
    ):
        super().__init__()
        for name, value in (("read_size", read_size), ("output_limit", output_limit)):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValidationError(f"Decoder: {name} deve essere > 0, trovato {value!r}")
        self.read_size = read_size
        self.output_limit = output_limit
        self._source = source
        self._engine = DecompressSession(output_limit)
        self._pending = bytearray()
        self._pos = 0
        self._eos = False

    @property
    def at_eof(self) -> bool:
        return self._eos and self._pos >= len(self._pending)

    @property
    def pending(self) -> int:
        """Decoded bytes not yet returned to the caller."""
        return len(self._pending) - self._pos

    def read_chunk(self, capacity: int) -> tuple[bytes, bool]:
        """Return (up to capacity decoded bytes, is_end_of_stream)."""
        self._check_open("read")
        if capacity < 0:
            raise ValidationError(f"Decoder: capacity negativa: {capacity}")
        if capacity == 0:
            return b"", self.at_eof

        while self._pos >= len(self._pending) and not self._eos:
            self._fill()

        if self._pos >= len(self._pending):
            return b"", True

        end = min(len(self._pending), self._pos + capacity)
        data = bytes(self._pending[self._pos:end])
        self._pos = end
        if self._pos >= len(self._pending):
            self._pending.clear()
            self._pos = 0
        return data, False

    def read(self, size: int = -1) -> bytes:
        """File-like read: b"" means end of stream; size < 0 reads to the end."""
        if size is None or size < 0:
            return self._read_all()
        data, _ = self.read_chunk(size)
        return data

    def readinto(self, buffer) -> int:
        mv = memoryview(buffer).cast("B")
        data, _ = self.read_chunk(len(mv))
        mv[: len(data)] = data
        return len(data)

    def _read_all(self) -> bytes:
        out = bytearray()
        while True:
            data, eos = self.read_chunk(max(self.read_size, len(self._pending) - self._pos))
            if eos:
                return bytes(out)
            out += data

    def close(self) -> None:
        self._check_open("close")
        self._pending.clear()
        self._pos = 0
        self._mark_closed()

    def reset(self, source: ByteSource) -> None:
        """Rebind to source and start decoding a new stream."""
        self._pending.clear()
        self._pos = 0
        self._eos = False
        self._engine = DecompressSession(self.output_limit)
        self._source = source
        self._reopen()

    def _fill(self) -> None:
        engine = self._engine
        try:
            if engine.is_finished():
                self._check_end()
                return
            if engine.holds_input:
                raw = engine.drain()
                if not raw and engine.holds_input:
                    raise CorruptDataError("Decoder: il codec trattiene input senza produrre output")
            else:
                # StreamIOError is not sticky: nothing was consumed, the caller may retry
                chunk = read_some(self._source, self.read_size)
                if chunk:
                    raw, _ = engine.decompress_chunk(chunk)
                else:
                    raw = engine.drain()
                    if not raw and not engine.is_finished():
                        raise CorruptDataError("Decoder: stream troncato (EOF prima del marker finale)")
        except CorruptDataError as err:
            raise self._fail(err) from err.__cause__
        self._pending += raw

    def _check_end(self) -> None:
        if self._engine.excess:
            raise self._fail(
                TrailingDataError(f"Decoder: {self._engine.excess} byte in eccesso dopo il marker finale")
            )
        chunk = read_some(self._source, self.read_size)
        if chunk:
            raise self._fail(
                TrailingDataError(f"Decoder: {len(chunk)}+ byte in eccesso dopo il marker finale")
            )
        self._eos = True
        logger.debug("Decoder: end of stream")
