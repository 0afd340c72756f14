"""Development entrypoint for the BTO allocation engine CLI."""

from __future__ import annotations

from bto_engine.main import main

if __name__ == "__main__":
    raise SystemExit(main())
