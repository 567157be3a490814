"""Send sample report requests to a running server and time them.

    python -m todo_report.smoke --url http://localhost:3000 --count 10
"""

from __future__ import annotations

import argparse
import json
import logging
import time
import urllib.error
import urllib.request
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from .models import TodoItem

logger = logging.getLogger(__name__)

SAMPLE_TODOS = (
    TodoItem(1, "Complete project documentation", True),
    TodoItem(2, "Review code changes", False),
    TodoItem(3, "Write unit tests", False),
    TodoItem(4, "Deploy to staging", True),
    TodoItem(5, "Fix bug in PDF generation", False),
)


def build_request_body(todos: Sequence[TodoItem] = SAMPLE_TODOS) -> bytes:
    return json.dumps({"todos": [todo.to_dict() for todo in todos]}).encode("utf-8")


def request_report(url: str, number: int, timeout: float = 300.0) -> float:
    """POST one sample payload; return the elapsed seconds or raise on failure."""
    started = time.monotonic()
    request = urllib.request.Request(
        url,
        data=build_request_body(),
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    with urllib.request.urlopen(request, timeout=timeout) as response:
        response.read()
    elapsed = time.monotonic() - started
    logger.info("[request %d] completed in %.0f ms", number, elapsed * 1000)
    return elapsed


def run_requests(url: str, count: int, concurrency: int = 1) -> List[Optional[float]]:
    """Return per-request durations; ``None`` marks a failed request."""

    def attempt(number: int) -> Optional[float]:
        try:
            return request_report(url, number)
        except (urllib.error.URLError, OSError) as exc:
            logger.error("[request %d] failed: %s", number, exc)
            return None

    with ThreadPoolExecutor(max_workers=max(1, concurrency)) as executor:
        return list(executor.map(attempt, range(1, count + 1)))


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--url", default="http://localhost:3000", help="server base URL")
    parser.add_argument("--count", type=int, default=10, help="number of requests")
    parser.add_argument("--concurrency", type=int, default=1, help="requests in flight at once")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    endpoint = args.url.rstrip("/") + "/pdf"
    logger.info("sending %d report requests to %s (concurrency %d)", args.count, endpoint, args.concurrency)

    started = time.monotonic()
    durations = run_requests(endpoint, args.count, args.concurrency)
    total = time.monotonic() - started

    failures = sum(1 for duration in durations if duration is None)
    logger.info("%d/%d requests completed in %.0f ms", len(durations) - failures, len(durations), total * 1000)
    if durations:
        logger.info("average time per request: %.0f ms", total * 1000 / len(durations))
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
