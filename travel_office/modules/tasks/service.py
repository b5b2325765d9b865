"""
modules/tasks/service.py

Purpose
-------
Follow-up tasks for the office (call a client, chase a passport...). Plain
CRUD with an audit entry per change, plus the list filter used by the tasks
page.

Public interface
----------------
- filter_tasks(tasks, mode="All", username=None) -> list[Task]
- TasksService(conn, user=None, notifier=None)
    .list_tasks(mode="All") / .create_task(task) / .update_task(task)
    .complete_task(task_id) / .delete_task(task_id)
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import replace
from typing import Iterable, List

from ...database.repositories.audit_repo import AuditRepo
from ...database.repositories.tasks_repo import Task, TasksRepo
from ...enums import EntityType, TaskStatus
from ...errors import NotFoundError, ValidationError
from ...utils.helpers import parse_date
from ...utils.notifications import Notifier

_log = logging.getLogger(__name__)

FILTER_MODES = ("All", "Mine", "Pending")


def filter_tasks(tasks: Iterable[Task], mode: str = "All", username: str | None = None) -> List[Task]:
    """
    "Mine" keeps tasks assigned to `username`, "Pending" keeps open tasks,
    "All" keeps everything. Result is ordered by due date, earliest first;
    tasks with an unreadable due date go last.
    """
    if mode not in FILTER_MODES:
        raise ValidationError(f"Unknown task filter: {mode}")
    out = []
    for t in tasks:
        if mode == "Mine" and t.assigned_to != username:
            continue
        if mode == "Pending" and TaskStatus(t.status) != TaskStatus.PENDING:
            continue
        out.append(t)

    def key(t: Task):
        d = parse_date(t.due_date)
        return (d is None, d.isoformat() if d else "")

    return sorted(out, key=key)


class TasksService:
    def __init__(self, conn: sqlite3.Connection, *, user: str | None = None, notifier: Notifier | None = None):
        self.conn = conn
        self.user = user
        self.notifier = notifier
        self.repo = TasksRepo(conn)
        self.audit = AuditRepo(conn)

    def _log_audit(self, action: str, details: str) -> None:
        try:
            with self.conn:
                self.audit.record(action, details, EntityType.TASK, self.user)
        except sqlite3.Error as e:
            _log.warning("audit entry %s not written: %s", action, e)

    def list_tasks(self, mode: str = "All") -> List[Task]:
        return filter_tasks(self.repo.list_tasks(), mode, self.user)

    def create_task(self, task: Task) -> str:
        if parse_date(task.due_date) is None:
            raise ValidationError("Due date must be a valid date (YYYY-MM-DD).")
        with self.conn:
            tid = self.repo.create(task)
        self._log_audit("ADD_TASK", f"New task: {task.title}")
        if self.notifier:
            self.notifier.success("Task added")
        return tid

    def update_task(self, task: Task) -> None:
        with self.conn:
            self.repo.update(task)
        self._log_audit("UPDATE_TASK", f"Task updated: {task.title}")

    def complete_task(self, task_id: str) -> Task:
        task = self.repo.get(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} does not exist.")
        done = replace(task, status=TaskStatus.COMPLETED)
        with self.conn:
            self.repo.update(done)
        self._log_audit("UPDATE_TASK", f"Task completed: {task.title}")
        return done

    def delete_task(self, task_id: str) -> None:
        with self.conn:
            self.repo.delete(task_id)
        self._log_audit("DELETE_TASK", f"Task deleted: {task_id}")
