from __future__ import annotations

import sqlite3
from typing import Dict, List

from ...constants import RECENT_AUDIT_LIMIT
from ...enums import EntityType


class AuditRepo:
    """Append-only audit trail (rows in audit_logs). A trigger rejects UPDATE."""

    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    def record(
        self,
        action: str,
        details: str,
        entity_type: EntityType | str = EntityType.SYSTEM,
        performed_by: str | None = None,
    ) -> int:
        cur = self.conn.execute(
            "INSERT INTO audit_logs(action, details, entity_type, performed_by) VALUES (?, ?, ?, ?)",
            (action, details, EntityType(entity_type).value, performed_by or "System"),
        )
        return int(cur.lastrowid)

    def list_recent(self, limit: int = RECENT_AUDIT_LIMIT, entity_type: str | None = None) -> List[Dict]:
        lim = max(1, int(limit))
        if entity_type:
            rows = self.conn.execute(
                "SELECT * FROM audit_logs WHERE entity_type=? ORDER BY log_id DESC LIMIT ?",
                (entity_type, lim),
            ).fetchall()
        else:
            rows = self.conn.execute(
                "SELECT * FROM audit_logs ORDER BY log_id DESC LIMIT ?", (lim,)
            ).fetchall()
        return [dict(r) for r in rows]
