"""Module entrypoint for running Lectio as ``python -m lectio``."""

from __future__ import annotations

from lectio.cli import main


if __name__ == "__main__":
    main()
