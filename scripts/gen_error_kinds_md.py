#!/usr/bin/env python3
"""Write docs/error_kinds.md from brstream.errors, or check that it is current.

    python scripts/gen_error_kinds_md.py            # regenerate
    python scripts/gen_error_kinds_md.py --check    # exit 1 if missing/stale
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from brstream.errors import render_error_kinds_markdown

DEFAULT_OUT = Path(__file__).resolve().parents[1] / "docs" / "error_kinds.md"


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Render the brstream error-kind table as Markdown.")
    ap.add_argument("--out", type=Path, default=DEFAULT_OUT)
    ap.add_argument("--check", action="store_true", help="compare only, write nothing")
    args = ap.parse_args(argv)

    text = render_error_kinds_markdown()
    if args.check:
        current = args.out.read_text(encoding="utf-8") if args.out.is_file() else None
        if current != text:
            print(f"[brstream] {args.out} non aggiornato: rigenerare", file=sys.stderr)
            return 1
        print(f"[brstream] {args.out} ok")
        return 0

    args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_text(text, encoding="utf-8")
    print(f"[brstream] wrote {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
