"""Module entrypoint for running the todo report server."""

from __future__ import annotations

import logging
import os
import sys

from .config import LOG_FORMAT, LOG_LEVEL
from .errors import PoolSetupError
from .server import run


def main() -> None:
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    host = os.getenv("TODO_REPORT_HOST", "0.0.0.0")
    port = int(os.getenv("TODO_REPORT_PORT", "3000"))
    try:
        run(host, port)
    except PoolSetupError as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
