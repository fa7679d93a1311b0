from __future__ import annotations

import io
import random
import shutil

import pytest

from brstream import decode_all
from brstream.decoder import Decoder
from brstream.encoder import Encoder
from brstream.errors import ClosedStreamError, StreamIOError, ValidationError
from brstream.options import BEST_COMPRESSION, BEST_SPEED, Options

HTML = b"<html><body><H1>Hello world</H1></body></html>"


class FlakySink:
    """BytesIO that fails on demand."""

    def __init__(self) -> None:
        self.buf = io.BytesIO()
        self.fail = False

    def write(self, data: bytes) -> int:
        if self.fail:
            raise OSError("disk full")
        return self.buf.write(data)


def test_encoder_no_write() -> None:
    out = io.BytesIO()
    e = Encoder(out, Options(quality=5))
    e.close()
    assert e.closed
    assert decode_all(out.getvalue()) == b""

    with pytest.raises(ClosedStreamError, match="chiuso"):
        e.write(b"hi")


def test_encoder_empty_write() -> None:
    out = io.BytesIO()
    e = Encoder(out, Options(quality=5))
    assert e.write(b"") == 0
    e.close()
    assert decode_all(out.getvalue()) == b""


def test_empty_write_after_close_still_fails() -> None:
    e = Encoder(io.BytesIO())
    e.close()
    with pytest.raises(ClosedStreamError):
        e.write(b"")


def test_second_close_is_a_usage_error() -> None:
    e = Encoder(io.BytesIO())
    e.close()
    with pytest.raises(ClosedStreamError):
        e.close()
    with pytest.raises(ClosedStreamError):
        e.flush()


@pytest.mark.parametrize("level", range(BEST_SPEED, BEST_COMPRESSION + 1))
def test_writer_and_reset_are_deterministic(level: int) -> None:
    out = io.BytesIO()
    e = Encoder(out, Options(quality=level))
    shutil.copyfileobj(io.BytesIO(HTML), e)
    e.close()
    assert decode_all(out.getvalue()) == HTML

    out2 = io.BytesIO()
    e.reset(out2)
    assert not e.closed
    shutil.copyfileobj(io.BytesIO(HTML), e)
    e.close()
    assert out.getvalue() == out2.getvalue()


@pytest.mark.parametrize("level", [BEST_SPEED, 1])
def test_reset_repeats_chunked_writes_at_fast_levels(level: int) -> None:
    data = random.Random(7).randbytes(50_000)

    def run(e: Encoder) -> None:
        for i in range(0, len(data), 3001):
            e.write(data[i:i + 3001])
        e.close()

    out = io.BytesIO()
    e = Encoder(out, Options(quality=level), buffer_size=4096)
    run(e)
    out2 = io.BytesIO()
    e.reset(out2)
    run(e)

    assert out.getvalue() == out2.getvalue()
    assert decode_all(out2.getvalue()) == data


def test_reset_discards_unclosed_input() -> None:
    data = b"abc" * 1000
    fresh = io.BytesIO()
    with Encoder(fresh, Options(quality=7)) as e:
        e.write(data)

    stale = io.BytesIO()
    e2 = Encoder(stale, Options(quality=7))
    e2.write(b"garbage that must not leak")
    e2.flush()
    e2.write(b"more garbage")
    assert e2.buffered > 0

    out = io.BytesIO()
    e2.reset(out)
    assert e2.buffered == 0
    e2.write(data)
    e2.close()
    assert out.getvalue() == fresh.getvalue()
    assert decode_all(out.getvalue()) == data


def test_encoder_streams_output_before_close() -> None:
    # more than the sliding window has been fed: some output must already be out
    lg_win = 16
    rnd = random.Random(1)
    data = rnd.randbytes(8 * (1 << lg_win))
    half = data[: len(data) // 2]

    out = io.BytesIO()
    e = Encoder(out, Options(quality=11, window_log=lg_win))
    shutil.copyfileobj(io.BytesIO(half), e)
    assert len(out.getvalue()) > 0

    e.close()
    assert decode_all(out.getvalue()) == half


def test_encoder_flush_makes_everything_decodable() -> None:
    data = random.Random(2).randbytes(1000)
    out = io.BytesIO()
    e = Encoder(out, Options(quality=5))
    shutil.copyfileobj(io.BytesIO(data), e)
    e.flush()
    assert len(out.getvalue()) > 0

    reader = Decoder(io.BytesIO(out.getvalue()))
    assert reader.read(1000) == data
    e.close()


def test_flush_without_new_input_writes_nothing() -> None:
    out = io.BytesIO()
    e = Encoder(out)
    e.flush()
    assert out.getvalue() == b""

    e.write(b"payload")
    e.flush()
    n = len(out.getvalue())
    e.flush()
    e.flush()
    assert len(out.getvalue()) == n

    e.close()
    assert decode_all(out.getvalue()) == b"payload"


def test_small_writes_stay_buffered_until_flush() -> None:
    out = io.BytesIO()
    e = Encoder(out)
    e.write(b"0123456789")
    assert e.buffered == 10
    assert out.getvalue() == b""
    e.flush()
    assert e.buffered == 0
    assert out.getvalue() != b""


def test_buffer_threshold_drains_into_engine() -> None:
    e = Encoder(io.BytesIO(), buffer_size=16)
    e.write(b"x" * 10)
    assert e.buffered == 10
    e.write(b"y" * 10)
    assert e.buffered == 0


def test_write_accepts_buffer_protocol() -> None:
    out = io.BytesIO()
    with Encoder(out) as e:
        assert e.write(memoryview(b"abcdef")[1:4]) == 3
        assert e.write(bytearray(b"xyz")) == 3
    assert decode_all(out.getvalue()) == b"bcdxyz"


def test_context_manager_closes() -> None:
    out = io.BytesIO()
    with Encoder.with_level(out, 3) as e:
        e.write(HTML)
    assert e.closed
    assert e.options.quality == 3
    assert decode_all(out.getvalue()) == HTML


@pytest.mark.parametrize(
    "kwargs",
    [
        {"options": {"quality": 5}},
        {"buffer_size": 0},
        {"buffer_size": -1},
        {"buffer_size": True},
    ],
)
def test_construction_validation(kwargs: dict) -> None:
    with pytest.raises(ValidationError):
        Encoder(io.BytesIO(), **kwargs)


def test_sink_failure_is_sticky_until_reset() -> None:
    sink = FlakySink()
    e = Encoder(sink, Options(quality=5))
    e.write(HTML)
    sink.fail = True
    with pytest.raises(StreamIOError, match="disk full") as ei:
        e.flush()
    assert e.error is ei.value

    with pytest.raises(StreamIOError) as again:
        e.write(b"more")
    assert again.value is ei.value

    good = io.BytesIO()
    e.reset(good)
    assert e.error is None
    e.write(HTML)
    e.close()

    fresh = io.BytesIO()
    with Encoder(fresh, Options(quality=5)) as f:
        f.write(HTML)
    assert good.getvalue() == fresh.getvalue()


@pytest.mark.p1
@pytest.mark.parametrize("level", range(BEST_SPEED, BEST_COMPRESSION + 1))
def test_encoder_large_input(level: int) -> None:
    data = random.Random(level).randbytes(200_000)
    out = io.BytesIO()
    e = Encoder(out, Options(quality=level))
    shutil.copyfileobj(io.BytesIO(data), e)
    e.close()
    assert decode_all(out.getvalue()) == data

    out2 = io.BytesIO()
    e.reset(out2)
    # same write sequence: at low quality the output depends on how input is split
    shutil.copyfileobj(io.BytesIO(data), e)
    e.close()
    assert out.getvalue() == out2.getvalue()
