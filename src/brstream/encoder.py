"""Streaming Brotli encoder.

Writes are buffered and pushed through the codec engine when the buffer
reaches `buffer_size`; flush() and close() always push everything. After
flush() returns, every byte written so far is decodable from the sink alone
(one Segment per flush/close).
"""

from __future__ import annotations

import logging

from brstream.core.engine import CompressSession
from brstream.core.transport import ByteSink, write_all
from brstream.errors import StreamIOError, ValidationError
from brstream.options import Options
from brstream.session import StreamSession

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 64 * 1024


class Encoder(StreamSession):
    _role = "Encoder"

    def __init__(
        self,
        sink: ByteSink,
        options: Options | None = None,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ):
        super().__init__()
        if options is None:
            options = Options()
        if not isinstance(options, Options):
            raise ValidationError(f"Encoder: options deve essere Options, trovato {type(options).__name__}")
        if isinstance(buffer_size, bool) or not isinstance(buffer_size, int) or buffer_size <= 0:
            raise ValidationError(f"Encoder: buffer_size deve essere > 0, trovato {buffer_size!r}")

        self.options = options
        self.buffer_size = buffer_size
        self._sink = sink
        self._buf = bytearray()
        self._engine = CompressSession(options)
        # input passed in since the last Segment boundary
        self._dirty = False
        logger.debug(
            "Encoder: open (quality=%d, window_log=%d)", options.quality, options.window_log
        )

    @classmethod
    def with_level(cls, sink: ByteSink, level: int) -> "Encoder":
        return cls(sink, Options(quality=level))

    @property
    def buffered(self) -> int:
        """Bytes written but not yet handed to the codec engine."""
        return len(self._buf)

    def write(self, data: bytes | bytearray | memoryview) -> int:
        self._check_open("write")
        mv = memoryview(data)
        n = mv.nbytes
        if n == 0:
            return 0
        self._buf += mv
        self._dirty = True
        if len(self._buf) >= self.buffer_size:
            self._emit(self._take())
        return n

    def flush(self) -> None:
        self._check_open("flush")
        if not self._dirty:
            return
        # one sink write per Segment
        self._emit(self._take() + self._engine.flush())
        self._dirty = False
        logger.debug("Encoder: flushed segment")

    def close(self) -> None:
        self._check_open("close")
        tail = self._take() + self._engine.finish()
        self._dirty = False
        self._mark_closed()
        self._emit(tail)

    def reset(self, sink: ByteSink) -> None:
        """Rebind to sink and start a new stream, whatever the current state."""
        self._buf.clear()
        self._engine = CompressSession(self.options)
        self._sink = sink
        self._dirty = False
        self._reopen()

    def _take(self) -> bytes:
        """Hand the buffered input to the engine; return whatever it emits."""
        if not self._buf:
            return b""
        out = self._engine.compress_chunk(self._buf)
        self._buf.clear()
        return out

    def _emit(self, out: bytes) -> None:
        if not out:
            return
        try:
            write_all(self._sink, out)
        except StreamIOError as err:
            raise self._fail(err) from err.__cause__
