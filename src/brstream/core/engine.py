from __future__ import annotations

import brotli

from brstream.errors import CorruptDataError, ValidationError
from brstream.options import Options

# brotli >= 1.2 can cap the output of a single process() call
BOUNDED_OUTPUT = hasattr(brotli.Decompressor, "can_accept_more_data")

DEFAULT_OUTPUT_LIMIT = 64 * 1024


def engine_error_types() -> tuple[type[BaseException], ...]:
    return (brotli.error,)


class CompressSession:
    """
    One Brotli compression stream (codec engine side of an Encoder).

    Nota: il compressore nativo non ha reset; una sessione nuova per ogni stream
    garantisce output identico byte per byte a parita' di opzioni e sequenza di write.
    """

    codec_id = "brotli"

    def __init__(self, options: Options):
        self.options = options
        try:
            self._c = brotli.Compressor(
                mode=brotli.MODE_GENERIC,
                quality=int(options.quality),
                lgwin=int(options.window_log),
            )
        except brotli.error as err:
            raise ValidationError(f"engine: opzioni rifiutate ({options}): {err}") from err

    def compress_chunk(self, raw: bytes | bytearray) -> bytes:
        return self._c.process(raw)

    def flush(self) -> bytes:
        """Emit everything fed so far as a decodable prefix."""
        return self._c.flush()

    def finish(self) -> bytes:
        """Emit the remaining output plus the terminal marker. The session is unusable after."""
        return self._c.finish()


class DecompressSession:
    """
    One Brotli decompression stream (codec engine side of a Decoder).

    The native decoder is queried only while it is healthy: once process()
    has raised, the object is dropped. To tell "bytes past the terminal
    marker" from "corrupt data" the session keeps the compressed input of the
    current stream and replays it into a fresh decoder, feeding the last
    chunk one byte at a time. The history is released as soon as the
    terminal marker is decoded.

    With BOUNDED_OUTPUT each call returns at most output_limit bytes; input
    the engine could not take yet stays inside it (see holds_input/drain).
    """

    codec_id = "brotli"

    def __init__(self, output_limit: int = DEFAULT_OUTPUT_LIMIT) -> None:
        self.output_limit = output_limit
        self._d = brotli.Decompressor()
        self._history: list[bytes] = []
        self._produced = 0
        self._finished = False
        self._broken: CorruptDataError | None = None
        # bytes of the last chunk found past the terminal marker
        self.excess = 0

    def is_finished(self) -> bool:
        return self._finished

    @property
    def holds_input(self) -> bool:
        """True while input or output of earlier chunks is still inside the engine."""
        if self._broken is not None or self._finished or not BOUNDED_OUTPUT:
            return False
        return not self._d.can_accept_more_data()

    def decompress_chunk(self, compressed: bytes) -> tuple[bytes, int]:
        """Return (raw, consumed).

        consumed < len(compressed) only when the terminal marker sits inside
        this chunk: the rest is trailing data. After the marker nothing more
        is consumed.
        """
        if not compressed:
            return b"", 0
        if self._finished:
            return b"", 0
        self._history.append(bytes(compressed))
        raw = self._run(compressed)
        return raw, len(compressed) - self.excess

    def drain(self) -> bytes:
        """Output still held by the engine for input already passed in (b"" if none)."""
        if self._finished:
            return b""
        return self._run(b"")

    def _run(self, data: bytes) -> bytes:
        if self._broken is not None:
            raise self._broken
        try:
            if BOUNDED_OUTPUT:
                raw = self._d.process(data, output_buffer_limit=self.output_limit)
                finished = bool(self._d.is_finished())
                leftover = finished and not self._d.can_accept_more_data()
            else:
                raw = self._d.process(data)
                finished = bool(self._d.is_finished())
                leftover = False
        except brotli.error as err:
            return self._locate_end(err)
        if leftover:
            # finished with input still queued: count it on a fresh decoder
            return raw + self._locate_end(None, skip=len(raw))
        self._produced += len(raw)
        if finished:
            self._finish()
        return raw

    def _locate_end(self, cause: BaseException | None, skip: int = 0) -> bytes:
        """Replay the stream; return output not yet handed out, or raise CorruptDataError."""
        last = self._history[-1] if self._history else b""
        d = brotli.Decompressor()
        produced = 0
        tail = bytearray()
        try:
            for block in self._history[:-1]:
                produced += len(d.process(block))
            for i in range(len(last)):
                tail += d.process(last[i:i + 1])
                if d.is_finished():
                    self.excess = len(last) - i - 1
                    break
        except brotli.error as err:
            self._broken = CorruptDataError(f"engine: segmento non valido: {err}")
            raise self._broken from (cause or err)
        if not d.is_finished():
            self._broken = CorruptDataError(f"engine: segmento non valido: {cause or 'marker finale assente'}")
            raise self._broken from cause

        self._d = d
        start = max(0, self._produced + skip - produced)
        out = bytes(tail[start:])
        self._produced += skip + len(out)
        self._finish()
        return out

    def _finish(self) -> None:
        self._finished = True
        self._history.clear()
