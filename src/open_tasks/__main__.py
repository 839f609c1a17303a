"""Module entrypoint for ``python -m open_tasks``."""

from __future__ import annotations

from open_tasks.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
