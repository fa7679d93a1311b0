"""Lifecycle shared by Encoder and Decoder.

States: Open -> Closed (terminal) and {Open, Closed} -> Open via reset().
A sticky error, once set, is re-raised by every operation until reset().
"""

from __future__ import annotations

import logging

from brstream.errors import BrStreamError, ClosedStreamError

logger = logging.getLogger(__name__)


class StreamSession:
    _role = "session"

    def __init__(self) -> None:
        self._closed = False
        self._error: BrStreamError | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def error(self) -> BrStreamError | None:
        return self._error

    def _check_open(self, op: str) -> None:
        if self._closed:
            raise ClosedStreamError(f"{self._role}: {op} su stream chiuso (usa reset())")
        if self._error is not None:
            raise self._error

    def _fail(self, err: BrStreamError) -> BrStreamError:
        """Record err as sticky and hand it back for raising."""
        self._error = err
        logger.warning("%s: sticky error set (%s): %s", self._role, err.kind, err)
        return err

    def _mark_closed(self) -> None:
        self._closed = True
        logger.debug("%s: closed", self._role)

    def _reopen(self) -> None:
        had = "closed" if self._closed else ("failed" if self._error is not None else "open")
        self._closed = False
        self._error = None
        logger.debug("%s: reset (was %s)", self._role, had)

    def close(self) -> None:
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._closed and self._error is None:
            self.close()
