"""Permite ejecutar la CLI con `python -m cli` desde `src/` sin instalar."""

from __future__ import annotations

import sys

# Windows terminals (cp1252) choke on Rich's box characters otherwise.
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")

from cli.main import run

if __name__ == "__main__":
    run()
