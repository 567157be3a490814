"""HTTP server entrypoints for todo report rendering."""

from __future__ import annotations

import errno
import json
import logging
import threading
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from .config import (
    DRAIN_TIMEOUT_MS,
    LISTEN_BACKLOG,
    MAX_BODY_BYTES as MAX_BODY_BYTES_CONFIG,
    MAX_INFLIGHT_RENDERS,
    MAX_PAGES as MAX_PAGES_CONFIG,
    OUTPUT_DIR,
    POOL_SIZE,
    RENDER_QUEUE_TIMEOUT_MS,
    RENDER_TIMEOUT_MS,
)
from .errors import DependencyError, PersistenceError, PoolClosedError, RenderError
from .formatting import report_filename
from .models import TodoFormatError, TodoItem
from .pagination import estimate_page_count, max_items_for_pages
from .pool import RenderPool
from .storage import persist_report

logger = logging.getLogger(__name__)

ValidationError = Tuple[int, Dict[str, Any]]
INVALID_TODOS_MESSAGE = "Invalid request: 'todos' must be an array"
RENDER_DEPENDENCIES = ("fpdf", "matplotlib", "dateutil")

DISCONNECT_ERRNOS = {
    errno.EPIPE,
    errno.ECONNRESET,
    errno.ETIMEDOUT,
}


def is_client_disconnect(exc: BaseException) -> bool:
    if isinstance(exc, (BrokenPipeError, ConnectionResetError, TimeoutError)):
        return True
    return isinstance(exc, OSError) and exc.errno in DISCONNECT_ERRNOS


def load_render_todos() -> Tuple[Callable[[Sequence[TodoItem]], bytes], Callable[[], None]]:
    try:
        from .rendering import init_render_worker, render_todos
    except ModuleNotFoundError as exc:
        if exc.name in RENDER_DEPENDENCIES:
            raise DependencyError(
                f"Missing dependency '{exc.name}'. Install project dependencies with "
                "'pip install -e .'."
            ) from exc
        raise
    return render_todos, init_render_worker


def create_render_pool(size: int = POOL_SIZE) -> RenderPool:
    render_todos, init_render_worker = load_render_todos()
    return RenderPool(render_todos, size, initializer=init_render_worker)


def validate_todo_payload(
    body: bytes,
    max_pages: int,
) -> Tuple[Optional[Tuple[TodoItem, ...]], Optional[ValidationError]]:
    try:
        payload = json.loads(body.decode("utf-8"))
    except UnicodeDecodeError:
        return None, (
            400,
            {"error": "invalid_encoding", "detail": "Body must be UTF-8 encoded JSON."},
        )
    except json.JSONDecodeError as exc:
        return None, (
            400,
            {
                "error": "invalid_json",
                "detail": f"{exc.msg} (line {exc.lineno}, column {exc.colno})",
            },
        )
    except (ValueError, RecursionError) as exc:
        # Oversized integer literals and very deep nesting fail outside the decoder.
        return None, (
            400,
            {"error": "invalid_json", "detail": f"Body could not be decoded as JSON: {exc}"},
        )

    if not isinstance(payload, dict):
        return None, (
            400,
            {"error": "invalid_payload", "detail": "JSON root must be an object."},
        )

    records = payload.get("todos")
    if not isinstance(records, list):
        return None, (400, {"error": "invalid_payload", "detail": INVALID_TODOS_MESSAGE})

    estimated_pages = estimate_page_count(len(records))
    if estimated_pages > max_pages:
        return None, (
            413,
            {
                "error": "report_too_large",
                "detail": f"Report would render {estimated_pages} pages; maximum is {max_pages}.",
                "max_items": max_items_for_pages(max_pages),
            },
        )

    todos = []
    seen_ids = set()
    for index, record in enumerate(records):
        try:
            todo = TodoItem.from_record(record)
        except TodoFormatError as exc:
            return None, (400, {"error": "invalid_todo", "detail": f"todos[{index}]: {exc}"})
        if todo.id in seen_ids:
            return None, (
                400,
                {"error": "invalid_todo", "detail": f"todos[{index}]: duplicate id {todo.id}"},
            )
        seen_ids.add(todo.id)
        todos.append(todo)

    return tuple(todos), None


class TodoReportHandler(BaseHTTPRequestHandler):
    MAX_BODY_BYTES = MAX_BODY_BYTES_CONFIG
    MAX_PAGES = MAX_PAGES_CONFIG

    server: "TodoReportHTTPServer"

    def _write_response(
        self,
        status: int,
        content_type: str,
        body: bytes,
        headers: Optional[Dict[str, str]] = None,
    ) -> bool:
        try:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            for name, value in (headers or {}).items():
                self.send_header(name, value)
            self.end_headers()
            self.wfile.write(body)
            return True
        except Exception as exc:
            if is_client_disconnect(exc):
                return False
            raise

    def _send_json(self, status: int, payload: Dict[str, Any]) -> bool:
        body = json.dumps(payload).encode("utf-8")
        return self._write_response(status, "application/json", body)

    def _read_body(self) -> Optional[bytes]:
        header = self.headers.get("Content-Length")
        if header is None:
            self._send_json(
                411,
                {
                    "error": "missing_content_length",
                    "detail": "Content-Length header is required.",
                },
            )
            return None

        try:
            content_length = int(header)
        except ValueError:
            self._send_json(
                400,
                {
                    "error": "invalid_content_length",
                    "detail": "Content-Length must be an integer.",
                },
            )
            return None

        if content_length <= 0:
            self._send_json(400, {"error": "empty_body", "detail": "Request body cannot be empty."})
            return None

        if content_length > self.MAX_BODY_BYTES:
            self._send_json(
                413,
                {
                    "error": "payload_too_large",
                    "detail": f"Body exceeds {self.MAX_BODY_BYTES} bytes.",
                },
            )
            return None

        try:
            return self.rfile.read(content_length)
        except Exception as exc:
            if is_client_disconnect(exc):
                return None
            raise

    def _render(self, todos: Tuple[TodoItem, ...]) -> Optional[bytes]:
        """Run the render on the pool; on failure send the error response and return None."""
        timeout_ms = self.server.render_timeout_ms
        future: Optional[Future] = None
        try:
            future = self.server.pool.submit(todos)
            return future.result(timeout=timeout_ms / 1000.0)
        except PoolClosedError:
            self._send_json(
                503,
                {"error": "shutting_down", "detail": "Server is shutting down; retry elsewhere."},
            )
        except FutureTimeoutError:
            if future is not None and not future.cancel():
                logger.warning(
                    "render exceeded %d ms; render continues in background, result discarded",
                    timeout_ms,
                )
            self._send_json(
                504,
                {
                    "error": "render_timeout",
                    "detail": f"Render exceeded timeout of {timeout_ms} ms.",
                },
            )
        except RenderError as exc:
            logger.error("PDF generation error: %s", exc, exc_info=exc)
            self._send_json(500, {"error": "render_failed", "message": str(exc)})
        except Exception:
            logger.exception("unexpected error while waiting for render")
            self._send_json(500, {"error": "render_failed", "message": "Unknown error"})
        return None

    def _persist(self, filename: str, pdf_bytes: bytes) -> None:
        output_dir = self.server.output_dir
        if not output_dir:
            return
        try:
            persist_report(output_dir, filename, pdf_bytes)
        except PersistenceError as exc:
            logger.warning("report not persisted: %s", exc)

    def do_POST(self) -> None:
        if self.path != "/pdf":
            self._send_json(404, {"error": "not_found", "detail": "Unsupported endpoint."})
            return

        body = self._read_body()
        if body is None:
            return

        todos, validation_error = validate_todo_payload(body, self.MAX_PAGES)
        if todos is None:
            status, payload_body = validation_error or (
                400,
                {"error": "invalid_payload", "detail": INVALID_TODOS_MESSAGE},
            )
            self._send_json(status, payload_body)
            return

        queue_timeout_ms = self.server.queue_timeout_ms
        acquired = self.server.inflight.acquire(timeout=queue_timeout_ms / 1000.0)
        if not acquired:
            retry_after_seconds = max(1, (queue_timeout_ms + 999) // 1000)
            self._send_json(
                503,
                {
                    "error": "server_busy",
                    "detail": "Render queue is full; retry shortly.",
                    "retry_after_ms": queue_timeout_ms,
                    "retry_after_seconds": retry_after_seconds,
                    "pool_size": self.server.pool.size,
                },
            )
            return

        try:
            pdf_bytes = self._render(todos)
        finally:
            self.server.inflight.release()
        if pdf_bytes is None:
            return

        filename = report_filename()
        self._persist(filename, pdf_bytes)
        self._write_response(
            200,
            "application/pdf",
            pdf_bytes,
            {"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    def do_GET(self) -> None:
        if self.path in ("/health", "/healthz", "/ready"):
            self._send_json(200, {"status": "ok", "pool": self.server.pool.stats()})
            return
        if self.path == "/api":
            self._send_json(200, {"message": "hey from api"})
            return
        self._send_json(404, {"error": "not_found", "detail": "Unsupported endpoint."})

    def handle_one_request(self) -> None:
        try:
            super().handle_one_request()
        except Exception as exc:
            if is_client_disconnect(exc):
                return
            raise

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - " + format, self.address_string(), *args)


class TodoReportHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True
    request_queue_size = LISTEN_BACKLOG

    def __init__(
        self,
        server_address: Tuple[str, int],
        pool: RenderPool,
        output_dir: str = OUTPUT_DIR,
        render_timeout_ms: int = RENDER_TIMEOUT_MS,
        queue_timeout_ms: int = RENDER_QUEUE_TIMEOUT_MS,
        max_inflight: int = MAX_INFLIGHT_RENDERS,
    ) -> None:
        super().__init__(server_address, TodoReportHandler)
        self.pool = pool
        self.output_dir = output_dir
        self.render_timeout_ms = render_timeout_ms
        self.queue_timeout_ms = queue_timeout_ms
        self.inflight = threading.BoundedSemaphore(max_inflight)


def run(host: str = "0.0.0.0", port: int = 3000) -> None:
    pool = create_render_pool()
    pool.start()
    try:
        server = TodoReportHTTPServer((host, port), pool)
    except OSError:
        pool.drain(timeout=0)
        raise
    logger.info("Todo report server listening on http://%s:%d (%d render slots)", host, server.server_port, pool.size)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("interrupted; shutting down")
    finally:
        server.server_close()
        pool.drain(timeout=DRAIN_TIMEOUT_MS / 1000.0)
