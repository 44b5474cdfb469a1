"""Feed registry for government health data.

Makes the regional data sources explicit: each feed has an id, a kind that
selects its parser, a URL and (for tabular feeds) the conditions it may
contribute. Feed order is significant: when two feeds produce the same
(region, condition) entry, the later feed wins.

The registry is file-backed (JSON) so tests and local runs need no database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import json

FEED_KINDS = ("counters", "tabular")


@dataclass(frozen=True)
class Feed:
    id: str
    kind: str
    url: str
    agency: str = ""
    condition: str = ""
    allowed_conditions: List[str] = field(default_factory=list)


class FeedRegistry:
    def __init__(self, feeds: List[Feed]):
        self._feeds = list(feeds)
        self._by_id = {f.id: f for f in feeds}

    @staticmethod
    def _default_path() -> Path:
        return Path(__file__).with_name("feeds.json")

    @classmethod
    def load_default(cls) -> "FeedRegistry":
        return cls.load_from_file(cls._default_path())

    @classmethod
    def load_from_file(cls, path: Path) -> "FeedRegistry":
        data = json.loads(Path(path).read_text(encoding="utf-8"))

        feeds: List[Feed] = []
        for row in data.get("feeds") or []:
            feeds.append(
                Feed(
                    id=str(row.get("id") or "").strip(),
                    kind=str(row.get("kind") or "").strip().lower(),
                    url=str(row.get("url") or "").strip(),
                    agency=str(row.get("agency") or "").strip(),
                    condition=str(row.get("condition") or "").strip().lower(),
                    allowed_conditions=[
                        str(c).strip().lower() for c in (row.get("allowed_conditions") or [])
                    ],
                )
            )

        # Drop incomplete or unknown entries rather than failing the whole registry
        feeds = [f for f in feeds if f.id and f.url and f.kind in FEED_KINDS]

        return cls(feeds=feeds)

    def list_feeds(self) -> List[Feed]:
        return list(self._feeds)

    def get(self, feed_id: str) -> Optional[Feed]:
        return self._by_id.get(feed_id)
