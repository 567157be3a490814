"""Typed records handed from the HTTP boundary to the render workers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

STATUS_DONE = "Done"
STATUS_PENDING = "Pending"


class TodoFormatError(ValueError):
    """A todo record does not have the expected shape."""


@dataclass(frozen=True)
class TodoItem:
    id: int
    text: str
    completed: bool

    @property
    def status_label(self) -> str:
        return STATUS_DONE if self.completed else STATUS_PENDING

    def display_row(self) -> List[str]:
        return [str(self.id), self.text, self.status_label]

    @classmethod
    def from_record(cls, record: Any) -> "TodoItem":
        if not isinstance(record, dict):
            raise TodoFormatError("todo must be an object")

        todo_id = record.get("id")
        # bool is an int subclass; reject it explicitly.
        if isinstance(todo_id, bool) or not isinstance(todo_id, (int, float)):
            raise TodoFormatError("'id' must be a number")
        if isinstance(todo_id, float):
            if not todo_id.is_integer():
                raise TodoFormatError("'id' must be an integer")
            todo_id = int(todo_id)

        text = record.get("text")
        if not isinstance(text, str):
            raise TodoFormatError("'text' must be a string")

        completed = record.get("completed")
        if not isinstance(completed, bool):
            raise TodoFormatError("'completed' must be a boolean")

        return cls(id=todo_id, text=text, completed=completed)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "completed": self.completed}
