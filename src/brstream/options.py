"""Encoder options (v1) for brstream.

Goal: make encode settings reproducible and portable (code, config files, CI).

This module intentionally stays *small* and strict:
  - out-of-range values are rejected, never clamped
  - JSON (or key=value pairs) for external config
  - unknown keys are rejected

Default policy: window_log=0 means "pinned default window" (DEFAULT_WINDOW_LOG).
It is the only value resolved on construction; everything else must be in range.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from brstream.errors import ValidationError

SPEC_ID_V1 = "brstream.options.v1"

BEST_SPEED = 0
BEST_COMPRESSION = 11
DEFAULT_COMPRESSION = 6

MIN_WINDOW_LOG = 10
MAX_WINDOW_LOG = 24
DEFAULT_WINDOW_LOG = 22


def _require_int(v: Any, *, name: str) -> int:
    # bool e' un int in Python: lo rifiutiamo esplicitamente
    if isinstance(v, bool) or not isinstance(v, int):
        raise ValidationError(f"options: '{name}' deve essere un intero, trovato {type(v).__name__}")
    return v


@dataclass(frozen=True)
class Options:
    """Validated encoder configuration.

    quality:    0 (fastest, largest) .. 11 (slowest, smallest)
    window_log: log2 of the sliding window, 10..24 (0 -> DEFAULT_WINDOW_LOG)
    """

    quality: int = DEFAULT_COMPRESSION
    window_log: int = 0

    def __post_init__(self) -> None:
        q = _require_int(self.quality, name="quality")
        if not (BEST_SPEED <= q <= BEST_COMPRESSION):
            raise ValidationError(
                f"options: quality deve essere {BEST_SPEED}..{BEST_COMPRESSION}, trovato {q}"
            )

        w = _require_int(self.window_log, name="window_log")
        if w == 0:
            object.__setattr__(self, "window_log", DEFAULT_WINDOW_LOG)
        elif not (MIN_WINDOW_LOG <= w <= MAX_WINDOW_LOG):
            raise ValidationError(
                f"options: window_log deve essere {MIN_WINDOW_LOG}..{MAX_WINDOW_LOG} (o 0), trovato {w}"
            )

    @property
    def window_size(self) -> int:
        return 1 << self.window_log

    def to_dict(self) -> dict[str, Any]:
        return {"spec": SPEC_ID_V1, "quality": self.quality, "window_log": self.window_log}

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> "Options":
        if not isinstance(obj, dict):
            raise ValidationError("options: atteso un oggetto JSON")

        # Strict key set (keep it small and stable).
        allowed = {"spec", "quality", "window_log"}
        extra = sorted(set(obj.keys()) - allowed)
        if extra:
            raise ValidationError(f"options: chiavi non supportate: {', '.join(extra)}")

        spec_id = obj.get("spec", SPEC_ID_V1)
        if spec_id != SPEC_ID_V1:
            raise ValidationError(
                f"options: spec non supportata: {spec_id!r} (attesa {SPEC_ID_V1!r})"
            )

        return cls(
            quality=obj.get("quality", DEFAULT_COMPRESSION),
            window_log=obj.get("window_log", 0),
        )


def _parse_json(text: str, where: str) -> dict[str, Any]:
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"options: JSON non valido ({where}): {e}") from e
    if not isinstance(obj, dict):
        raise ValidationError(f"options: atteso un oggetto JSON ({where}), trovato {type(obj).__name__}")
    return obj


def _read_file(path: Path) -> dict[str, Any]:
    p = path.expanduser()
    if not p.is_file():
        raise ValidationError(f"options: file non trovato: {p}")
    return _parse_json(p.read_text(encoding="utf-8"), str(p))


def _parse_pairs(text: str) -> dict[str, Any]:
    """'quality=5,window_log=20' -> {"quality": 5, "window_log": 20}."""
    obj: dict[str, Any] = {}
    for item in text.split(","):
        key, sep, value = item.partition("=")
        key, value = key.strip(), value.strip()
        if not sep or not key:
            raise ValidationError(f"options: coppia non valida {item.strip()!r} (atteso chiave=valore)")
        if key in obj:
            raise ValidationError(f"options: chiave ripetuta: {key}")
        try:
            obj[key] = int(value)
        except ValueError:
            # left as text: Options reports it as a non-integer
            obj[key] = value
    return obj


def load_options(source: str | Path | Mapping[str, Any]) -> Options:
    """Load and validate encoder options.

    source:
      - a mapping (already parsed config section)
      - a Path to a JSON file, or '@file.json'
      - an inline JSON object: '{"quality": 5}'
      - compact pairs: 'quality=5,window_log=20'
    """
    if isinstance(source, Mapping):
        return Options.from_dict(dict(source))
    if isinstance(source, Path):
        return Options.from_dict(_read_file(source))
    if not isinstance(source, str):
        raise ValidationError(f"options: sorgente non supportata: {type(source).__name__}")

    s = source.strip()
    if not s:
        raise ValidationError("options: argomento vuoto")
    if s.startswith("@"):
        return Options.from_dict(_read_file(Path(s[1:])))
    if s[0] in "{[":
        return Options.from_dict(_parse_json(s, "inline"))
    return Options.from_dict(_parse_pairs(s))
