"""Public package API for todo report generation."""

from __future__ import annotations

from typing import Sequence

from .models import TodoItem


def render_todos(todos: Sequence[TodoItem]) -> bytes:
    from .rendering import render_todos as _render_todos

    return _render_todos(todos)


def run(host: str = "0.0.0.0", port: int = 3000) -> None:
    from .server import run as _run

    _run(host, port)


__all__ = ["TodoItem", "render_todos", "run"]
