"""Typed errors for brstream.

Single source of truth for error kinds lives here.

Policy:
- Errors are small and boring.
- Every failure raised by an Encoder/Decoder resolves to exactly one kind (see ERROR_KINDS).
- docs/error_kinds.md is generated from this module (scripts/gen_error_kinds_md.py).
"""

from __future__ import annotations

from dataclasses import dataclass

# -------------------------
# Error kinds (single source)
# -------------------------

KIND_VALIDATION = "VALIDATION"
KIND_CLOSED_STREAM = "CLOSED_STREAM"
KIND_IO = "IO"
KIND_CORRUPT_DATA = "CORRUPT_DATA"
KIND_TRAILING_DATA = "TRAILING_DATA"


@dataclass(frozen=True, slots=True)
class ErrorKindInfo:
    name: str
    retryable: bool
    description: str


ERROR_KINDS: tuple[ErrorKindInfo, ...] = (
    ErrorKindInfo(KIND_VALIDATION, False, "Options outside documented ranges (quality, window_log, read_size)"),
    ErrorKindInfo(KIND_CLOSED_STREAM, False, "Write or second close after close, read after decoder close (before reset)"),
    ErrorKindInfo(KIND_IO, True, "Underlying sink/source reported a transport failure"),
    ErrorKindInfo(KIND_CORRUPT_DATA, False, "Bytes do not parse as a valid segment/terminal marker (incl. truncation)"),
    ErrorKindInfo(KIND_TRAILING_DATA, False, "Bytes remain in the source after the terminal marker"),
)

_ERROR_KIND_BY_NAME: dict[str, ErrorKindInfo] = {e.name: e for e in ERROR_KINDS}


def error_kind_info(name: str) -> ErrorKindInfo | None:
    return _ERROR_KIND_BY_NAME.get(str(name))


def render_error_kinds_markdown() -> str:
    """Render docs/error_kinds.md content."""
    lines: list[str] = []
    lines.append("# Error kinds\n")
    lines.append("> Generated from `src/brstream/errors.py` (ERROR_KINDS). Do not edit by hand.\n")
    lines.append("> Regenerate with `python scripts/gen_error_kinds_md.py` (`--check` only compares).\n\n")
    lines.append("Every failure raised by an Encoder/Decoder carries one of these kinds.\n\n")
    lines.append("| Kind | Exception | Retryable | Meaning |\n")
    lines.append("|---|---|:---:|---|\n")
    for e in ERROR_KINDS:
        exc = _EXCEPTION_BY_KIND[e.name].__name__
        retry = "yes" if e.retryable else "no"
        lines.append(f"| `{e.name}` | `{exc}` | {retry} | {e.description} |\n")
    lines.append("\n## Notes\n")
    lines.append("- All errors extend `BrStreamError` and carry a `kind`.\n")
    lines.append("- `classify()` maps raw `OSError` / `brotli.error` to the same kinds.\n")
    lines.append("- `reset()` is the only way to keep using an instance after a sticky error.\n")
    return "".join(lines)


# ---------------
# Typed exceptions
# ---------------


class BrStreamError(Exception):
    """Base error for brstream."""

    kind: str = KIND_CORRUPT_DATA

    @property
    def retryable(self) -> bool:
        info = error_kind_info(self.kind)
        return bool(info and info.retryable)


class ValidationError(BrStreamError, ValueError):
    kind = KIND_VALIDATION


class ClosedStreamError(BrStreamError, ValueError):
    kind = KIND_CLOSED_STREAM


class StreamIOError(BrStreamError, OSError):
    kind = KIND_IO


class CorruptDataError(BrStreamError):
    kind = KIND_CORRUPT_DATA


class TrailingDataError(BrStreamError):
    kind = KIND_TRAILING_DATA


_EXCEPTION_BY_KIND: dict[str, type[BrStreamError]] = {
    KIND_VALIDATION: ValidationError,
    KIND_CLOSED_STREAM: ClosedStreamError,
    KIND_IO: StreamIOError,
    KIND_CORRUPT_DATA: CorruptDataError,
    KIND_TRAILING_DATA: TrailingDataError,
}


def classify(exc: BaseException) -> ErrorKindInfo | None:
    """Map an exception onto the closed taxonomy.

    Package errors carry their kind; raw transport errors (OSError) are IO and
    raw engine errors (brotli.error) are CORRUPT_DATA. Anything else is not ours: None.
    """
    if isinstance(exc, BrStreamError):
        return error_kind_info(exc.kind)
    if isinstance(exc, OSError):
        return error_kind_info(KIND_IO)

    from brstream.core.engine import engine_error_types

    if isinstance(exc, engine_error_types()):
        return error_kind_info(KIND_CORRUPT_DATA)
    return None
