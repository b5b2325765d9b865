from __future__ import annotations

import json
import sqlite3
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from ...constants import BASE_CURRENCY
from ...errors import DomainError
from ...utils.helpers import new_id


@dataclass
class ItineraryDay:
    day: int
    title: str
    description: str = ""
    image_url: str | None = None


@dataclass
class Itinerary:
    title: str
    duration: int = 1                      # days
    client_name: str | None = None
    destination: str | None = None
    start_date: str | None = None
    price: float | None = None             # in `currency`
    currency: str = BASE_CURRENCY
    days: List[ItineraryDay] = field(default_factory=list)
    inclusions: str = ""
    exclusions: str = ""
    created_by: str | None = None
    created_at: str | None = None
    itinerary_id: str | None = None


def _days_from_json(raw: Optional[str]) -> List[ItineraryDay]:
    return [
        ItineraryDay(
            day=int(d.get("day", i + 1)),
            title=d.get("title") or "",
            description=d.get("description") or "",
            image_url=d.get("image_url"),
        )
        for i, d in enumerate(json.loads(raw or "[]"))
    ]


def _from_row(r: sqlite3.Row) -> Itinerary:
    return Itinerary(
        itinerary_id=r["itinerary_id"],
        title=r["title"],
        client_name=r["client_name"],
        destination=r["destination"],
        duration=int(r["duration"]),
        start_date=r["start_date"],
        price=r["price"],
        currency=r["currency"],
        days=_days_from_json(r["days"]),
        inclusions=r["inclusions"] or "",
        exclusions=r["exclusions"] or "",
        created_by=r["created_by"],
        created_at=r["created_at"],
    )


class ItinerariesRepo:
    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    def list_itineraries(self) -> List[Itinerary]:
        rows = self.conn.execute(
            "SELECT rowid AS _rid, * FROM itineraries ORDER BY created_at DESC, _rid DESC"
        ).fetchall()
        return [_from_row(r) for r in rows]

    def get(self, itinerary_id: str) -> Optional[Itinerary]:
        row = self.conn.execute("SELECT * FROM itineraries WHERE itinerary_id=?", (itinerary_id,)).fetchone()
        return _from_row(row) if row else None

    def create(self, it: Itinerary) -> str:
        if not it.title or not it.title.strip():
            raise DomainError("Itinerary title cannot be empty.")
        iid = it.itinerary_id or new_id("IT")
        try:
            self.conn.execute(
                """
                INSERT INTO itineraries(itinerary_id, title, client_name, destination, duration, start_date,
                                        price, currency, days, inclusions, exclusions, created_by)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    iid, it.title.strip(), it.client_name, it.destination, int(it.duration), it.start_date,
                    it.price, it.currency, json.dumps([asdict(d) for d in it.days]),
                    it.inclusions, it.exclusions, it.created_by,
                ),
            )
        except sqlite3.IntegrityError as e:
            raise DomainError(f"Itinerary {iid} could not be saved: {e}") from e
        it.itinerary_id = iid
        return iid

    def delete(self, itinerary_id: str) -> bool:
        cur = self.conn.execute("DELETE FROM itineraries WHERE itinerary_id=?", (itinerary_id,))
        return cur.rowcount > 0
