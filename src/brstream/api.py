from __future__ import annotations

import io

from brstream.decoder import Decoder
from brstream.encoder import Encoder
from brstream.options import Options


def encode_all(data: bytes | bytearray | memoryview, options: Options | None = None) -> bytes:
    """Return data encoded as one complete Brotli stream."""
    buf = io.BytesIO()
    enc = Encoder(buf, options)
    enc.write(data)
    enc.close()
    return buf.getvalue()


def decode_all(data: bytes | bytearray | memoryview) -> bytes:
    """Decode a complete stream; bytes past the terminal marker are an error."""
    return Decoder(io.BytesIO(bytes(data))).read()
