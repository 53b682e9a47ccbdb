"""
Folio — Entry Point.

Single entry point: `python main.py <command>` drives the session client.
"""

import logging

from folio.config import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from folio.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
