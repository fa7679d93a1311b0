"""brstream: streaming Brotli encoder/decoder with explicit flush framing."""

from __future__ import annotations

from brstream.api import decode_all, encode_all
from brstream.decoder import Decoder
from brstream.encoder import Encoder
from brstream.errors import (
    BrStreamError,
    ClosedStreamError,
    CorruptDataError,
    StreamIOError,
    TrailingDataError,
    ValidationError,
    classify,
)
from brstream.options import (
    BEST_COMPRESSION,
    BEST_SPEED,
    DEFAULT_COMPRESSION,
    Options,
    load_options,
)

__version__ = "0.1.0"

__all__ = [
    "BEST_COMPRESSION",
    "BEST_SPEED",
    "DEFAULT_COMPRESSION",
    "BrStreamError",
    "ClosedStreamError",
    "CorruptDataError",
    "Decoder",
    "Encoder",
    "Options",
    "StreamIOError",
    "TrailingDataError",
    "ValidationError",
    "classify",
    "decode_all",
    "encode_all",
    "load_options",
]
