"""
Regional Dataset Builder

Fetches the government feeds listed in the feed registry and merges them into
a region -> condition -> message lookup.

- "counters" feeds (MoHFW JSON) carry per-state active/cured/death counts
  and contribute one entry per state under the feed's condition.
- "tabular" feeds (NVBDCP CSV) carry State/Disease/Cases rows and contribute
  an entry for every row whose disease matches an allowed condition.

Feeds are merged in registry order, so a later feed overwrites an earlier one
only for the exact same (region, condition) key. A feed that cannot be
fetched or parsed is logged and skipped; the build itself never raises.
Nothing is cached: every call to build() refetches every feed.
"""

from __future__ import annotations

import io
from typing import Any, Dict, Iterable, List, Optional
import logging

import httpx
import pandas as pd

import settings
from ingestion.feed_registry import Feed, FeedRegistry

logger = logging.getLogger(__name__)


CONDITION_LABELS = {
    "covid": "COVID-19",
}


def normalize_key(value: Any) -> str:
    return str(value).strip().lower()


def condition_label(condition: str) -> str:
    return CONDITION_LABELS.get(condition, condition.title())


class RegionalDataset:
    """Region -> condition -> formatted message. Keys are lowercase and trimmed."""

    def __init__(self, entries: Optional[Dict[str, Dict[str, str]]] = None):
        self._entries: Dict[str, Dict[str, str]] = {}
        for region, conditions in (entries or {}).items():
            for condition, message in conditions.items():
                self.set(region, condition, message)

    def set(self, region: str, condition: str, message: str) -> None:
        self._entries.setdefault(normalize_key(region), {})[normalize_key(condition)] = message

    def get(self, region: Optional[str], condition: Optional[str]) -> Optional[str]:
        """Look up a message; any missing key simply yields None."""
        if not region or not condition:
            return None
        return self._entries.get(normalize_key(region), {}).get(normalize_key(condition))

    def messages_for(self, region: Optional[str]) -> List[str]:
        """All messages for a region, in insertion order."""
        if not region:
            return []
        return list(self._entries.get(normalize_key(region), {}).values())

    def merge(self, other: "RegionalDataset") -> None:
        """Overlay another dataset; its entries win on identical keys."""
        for region, conditions in other._entries.items():
            for condition, message in conditions.items():
                self.set(region, condition, message)

    def regions(self) -> List[str]:
        return list(self._entries)

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {region: dict(conditions) for region, conditions in self._entries.items()}

    def __len__(self) -> int:
        return sum(len(conditions) for conditions in self._entries.values())

    def __contains__(self, region: object) -> bool:
        return isinstance(region, str) and normalize_key(region) in self._entries


def merge_datasets(datasets: Iterable[RegionalDataset]) -> RegionalDataset:
    """Merge datasets in order; later ones win on identical keys."""
    merged = RegionalDataset()
    for dataset in datasets:
        merged.merge(dataset)
    return merged


# -------------------------
# Feed parsers
# -------------------------

def parse_counters_feed(payload: Any, condition: str = "covid") -> RegionalDataset:
    """Parse a MoHFW-style JSON list of {state_name, active, cured, death} rows."""
    dataset = RegionalDataset()
    if not isinstance(payload, list):
        logger.warning(f"Counters feed payload is {type(payload).__name__}, expected list")
        return dataset

    label = condition_label(condition)
    for row in payload:
        if not isinstance(row, dict):
            continue
        state_name = str(row.get("state_name") or "").strip()
        if not state_name:
            continue
        message = (
            f"🦠 {label} update for {state_name}:\n"
            f"- Active: {row.get('active')}\n"
            f"- Cured: {row.get('cured')}\n"
            f"- Deaths: {row.get('death')}"
        )
        dataset.set(state_name, condition, message)
    return dataset


def parse_tabular_feed(text: str, allowed_conditions: List[str]) -> RegionalDataset:
    """Parse an NVBDCP-style CSV with State, Disease and Cases columns."""
    dataset = RegionalDataset()
    frame = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    frame.columns = [str(c).strip() for c in frame.columns]

    missing = {"State", "Disease", "Cases"} - set(frame.columns)
    if missing:
        raise ValueError(f"Tabular feed missing columns: {sorted(missing)}")

    for row in frame.to_dict("records"):
        state = str(row["State"]).strip()
        disease = str(row["Disease"]).strip().lower()
        if not state or not disease:
            continue
        for condition in allowed_conditions:
            if condition in disease:
                dataset.set(
                    state,
                    condition,
                    f"🦟 {condition_label(condition)} cases in {state}: {str(row['Cases']).strip()}",
                )
    return dataset


class RegionalDatasetBuilder:
    """
    Builds a fresh RegionalDataset from every registered feed.
    """

    def __init__(
        self,
        registry: Optional[FeedRegistry] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the builder.

        Args:
            registry: Feed registry (defaults to FEEDS_FILE / feeds.json)
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
        """
        self.registry = registry or FeedRegistry.load_from_file(settings.get_feeds_file())
        self.timeout = timeout if timeout is not None else settings.get_feed_timeout()
        self._transport = transport

    async def _fetch_feed(self, client: httpx.AsyncClient, feed: Feed) -> RegionalDataset:
        response = await client.get(feed.url)
        response.raise_for_status()

        if feed.kind == "counters":
            return parse_counters_feed(response.json(), condition=feed.condition or "covid")
        return parse_tabular_feed(response.text, feed.allowed_conditions)

    async def build(self) -> RegionalDataset:
        """Fetch all feeds and merge them; failing feeds contribute nothing."""
        dataset = RegionalDataset()

        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            for feed in self.registry.list_feeds():
                try:
                    partial = await self._fetch_feed(client, feed)
                except Exception as e:
                    logger.warning(f"Feed {feed.id} unavailable: {e}")
                    continue

                logger.info(f"Feed {feed.id}: {len(partial)} entries")
                dataset.merge(partial)

        logger.info(f"Regional dataset built: {len(dataset)} entries across {len(dataset.regions())} regions")
        return dataset
