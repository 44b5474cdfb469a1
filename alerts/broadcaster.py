"""
Subscriber Alert Broadcaster

One broadcast cycle:
- load every subscriber on the requested plan (daily by default)
- build the regional dataset once for the whole run
- compose a per-subscriber alert from their region's entries, or a generic
  safety message when the region has none
- deliver each alert; a failed send is logged and counted, and the run
  carries on with the remaining subscribers (no retry)

Subscribers are copied out of the store before the loop and never written
back.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Protocol
import logging

from ingestion.regional_dataset import RegionalDataset, RegionalDatasetBuilder
from ingestion.subscriber_repo import Subscriber

logger = logging.getLogger(__name__)


GENERIC_ALERT_BODY = "Stay safe and take precautions."


class SubscriberSource(Protocol):
    def list_by_subscription(self, subscription: str) -> List[Subscriber]: ...


class MessageSender(Protocol):
    async def send(self, to: str, body: str) -> str: ...


@dataclass
class BroadcastReport:
    """Summary of one broadcast cycle."""
    subscription: str
    total: int = 0
    delivered: int = 0
    failed: int = 0
    failed_phones: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            "subscription": self.subscription,
            "total": self.total,
            "delivered": self.delivered,
            "failed": self.failed,
        }


def compose_alert(subscriber: Subscriber, dataset: RegionalDataset, label: str = "Daily") -> str:
    """Region header plus every condition message, or the generic alert."""
    region = (subscriber.region or "").strip()
    messages = dataset.messages_for(region) if region else []
    if messages:
        return f"📢 {label} Health Alert for {region}:\n" + "\n".join(messages)
    return f"📢 {label} Health Alert:\n{GENERIC_ALERT_BODY}"


class AlertBroadcaster:
    """
    Pushes regional alerts to every subscriber on a plan.
    """

    def __init__(
        self,
        repo: SubscriberSource,
        dataset_builder: RegionalDatasetBuilder,
        gateway: MessageSender,
        max_concurrent: int = 1,
    ):
        """
        Initialize the broadcaster.

        Args:
            repo: Subscriber store
            dataset_builder: Builds the regional dataset once per run
            gateway: Message sender
            max_concurrent: Sends in flight at once (1 keeps them sequential)
        """
        self.repo = repo
        self.dataset_builder = dataset_builder
        self.gateway = gateway
        self.max_concurrent = max(1, max_concurrent)

    async def _deliver(
        self,
        subscriber: Subscriber,
        body: str,
        report: BroadcastReport,
        semaphore: asyncio.Semaphore,
    ) -> None:
        async with semaphore:
            try:
                await self.gateway.send(subscriber.phone, body)
            except Exception as e:
                logger.error(f"Alert delivery failed for {subscriber.phone}: {e}")
                report.failed += 1
                report.failed_phones.append(subscriber.phone)
                return
            report.delivered += 1

    async def run(
        self,
        subscription: str = "daily",
        dataset: Optional[RegionalDataset] = None,
    ) -> BroadcastReport:
        """
        Run one broadcast cycle.

        Args:
            subscription: Plan to broadcast to ("daily" or "weekly")
            dataset: Prebuilt dataset; built fresh when omitted

        Returns:
            BroadcastReport with delivery counts
        """
        label = subscription.capitalize()
        logger.info(f"📢 Sending {subscription} health alerts...")

        subscribers = list(self.repo.list_by_subscription(subscription))
        report = BroadcastReport(subscription=subscription, total=len(subscribers))
        if not subscribers:
            logger.info(f"No {subscription} subscribers")
            return report

        if dataset is None:
            dataset = await self.dataset_builder.build()

        semaphore = asyncio.Semaphore(self.max_concurrent)
        if self.max_concurrent == 1:
            for subscriber in subscribers:
                await self._deliver(subscriber, compose_alert(subscriber, dataset, label), report, semaphore)
        else:
            await asyncio.gather(*(
                self._deliver(subscriber, compose_alert(subscriber, dataset, label), report, semaphore)
                for subscriber in subscribers
            ))

        logger.info(f"Broadcast results: {report.delivered}/{report.total} delivered, {report.failed} failed")
        return report
