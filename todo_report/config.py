"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os


def env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip()


POOL_SIZE = env_int("TODO_REPORT_POOL_SIZE", 2, minimum=1)
MAX_INFLIGHT_RENDERS = env_int(
    "TODO_REPORT_MAX_INFLIGHT_RENDERS",
    max(100, POOL_SIZE * 4),
    minimum=1,
)
RENDER_QUEUE_TIMEOUT_MS = env_int("TODO_REPORT_RENDER_QUEUE_TIMEOUT_MS", 120000, minimum=0)
RENDER_TIMEOUT_MS = env_int("TODO_REPORT_RENDER_TIMEOUT_MS", 300000, minimum=1000)
DRAIN_TIMEOUT_MS = env_int("TODO_REPORT_DRAIN_TIMEOUT_MS", 30000, minimum=0)

# An empty value disables persisting a copy of each report.
OUTPUT_DIR = env_str("TODO_REPORT_OUTPUT_DIR", "pdfs")

MAX_BODY_BYTES = env_int("TODO_REPORT_MAX_BODY_BYTES", 10 * 1024 * 1024, minimum=1024)
MAX_PAGES = env_int("TODO_REPORT_MAX_PAGES", 500, minimum=1)
LISTEN_BACKLOG = env_int("TODO_REPORT_LISTEN_BACKLOG", 512, minimum=1)
LOG_LEVEL = env_str("TODO_REPORT_LOG_LEVEL", "INFO").upper() or "INFO"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(processName)s] %(name)s: %(message)s"
