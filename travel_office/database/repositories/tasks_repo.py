from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import List, Optional

from ...enums import TaskPriority, TaskStatus
from ...errors import DomainError
from ...utils.helpers import new_id


@dataclass
class Task:
    title: str
    due_date: str
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    description: str | None = None
    assigned_to: str | None = None     # username
    related_client: str | None = None
    task_id: str | None = None


def _from_row(r: sqlite3.Row) -> Task:
    return Task(
        task_id=r["task_id"],
        title=r["title"],
        description=r["description"],
        due_date=r["due_date"],
        priority=TaskPriority(r["priority"]),
        status=TaskStatus(r["status"]),
        assigned_to=r["assigned_to"],
        related_client=r["related_client"],
    )


class TasksRepo:
    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    def list_tasks(self) -> List[Task]:
        rows = self.conn.execute("SELECT * FROM tasks ORDER BY DATE(due_date), task_id").fetchall()
        return [_from_row(r) for r in rows]

    def get(self, task_id: str) -> Optional[Task]:
        row = self.conn.execute("SELECT * FROM tasks WHERE task_id=?", (task_id,)).fetchone()
        return _from_row(row) if row else None

    def create(self, t: Task) -> str:
        if not t.title or not t.title.strip():
            raise DomainError("Task title cannot be empty.")
        if not t.due_date:
            raise DomainError("Due date is required.")
        tid = t.task_id or new_id("TSK")
        self.conn.execute(
            """
            INSERT INTO tasks(task_id, title, description, due_date, priority, status, assigned_to, related_client)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                tid, t.title.strip(), t.description, t.due_date, TaskPriority(t.priority).value,
                TaskStatus(t.status).value, t.assigned_to, t.related_client,
            ),
        )
        t.task_id = tid
        return tid

    def update(self, t: Task) -> None:
        if not t.title or not t.title.strip():
            raise DomainError("Task title cannot be empty.")
        cur = self.conn.execute(
            """
            UPDATE tasks
               SET title=?, description=?, due_date=?, priority=?, status=?, assigned_to=?, related_client=?
             WHERE task_id=?
            """,
            (
                t.title.strip(), t.description, t.due_date, TaskPriority(t.priority).value,
                TaskStatus(t.status).value, t.assigned_to, t.related_client, t.task_id,
            ),
        )
        if cur.rowcount == 0:
            raise DomainError(f"Task {t.task_id} does not exist.")

    def delete(self, task_id: str) -> None:
        self.conn.execute("DELETE FROM tasks WHERE task_id=?", (task_id,))
