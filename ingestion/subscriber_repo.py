"""Supabase repository for alert subscribers.

Wraps supabase-py so the rest of the codebase stays testable (unit tests
inject fakes with the same methods).

Table (default name "subscribers"):
- id, name, phone, region, subscription ("daily" | "weekly"), state, created_at

Each call is a single statement; atomicity is whatever Supabase gives one
statement. There is no delete or unsubscribe path.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from supabase_setup import get_subscribers_table, get_supabase

SUBSCRIPTIONS = ("daily", "weekly")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Subscriber:
    name: str
    phone: str
    region: Optional[str] = None
    subscription: str = "daily"
    state: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Subscriber":
        return cls(
            id=row.get("id"),
            name=str(row.get("name") or ""),
            phone=str(row.get("phone") or ""),
            region=row.get("region"),
            subscription=row.get("subscription") or "daily",
            state=row.get("state"),
        )

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SubscriberRepo:
    supabase: Any
    table: str = "subscribers"

    @classmethod
    def from_env(cls) -> "SubscriberRepo":
        return cls(supabase=get_supabase(), table=get_subscribers_table())

    def find_by_phone(self, phone: str) -> Optional[Subscriber]:
        resp = self.supabase.table(self.table).select("*").eq("phone", phone).limit(1).execute()
        data = getattr(resp, "data", None) or []
        if data and isinstance(data, list):
            return Subscriber.from_row(data[0])
        return None

    def create(self, subscriber: Subscriber) -> Subscriber:
        row = subscriber.to_row()
        if not row.get("id"):
            row["id"] = str(uuid4())
        row["created_at"] = utc_now_iso()

        resp = self.supabase.table(self.table).insert(row).execute()
        # supabase-py returns inserted rows in resp.data
        data = getattr(resp, "data", None) or []
        if data and isinstance(data, list) and data[0].get("id"):
            return Subscriber.from_row(data[0])
        return Subscriber.from_row(row)

    def list_by_subscription(self, subscription: str) -> List[Subscriber]:
        resp = (
            self.supabase.table(self.table)
            .select("*")
            .eq("subscription", subscription)
            .order("created_at")
            .execute()
        )
        return [Subscriber.from_row(row) for row in (getattr(resp, "data", None) or [])]

    def count(self, subscription: Optional[str] = None) -> int:
        q = self.supabase.table(self.table).select("id", count="exact")
        if subscription:
            q = q.eq("subscription", subscription)
        resp = q.execute()
        return getattr(resp, "count", 0) or 0
