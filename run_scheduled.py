"""
Scheduled Alert Broadcasts

Automates the subscriber broadcasts:
- Sends the daily alert once per day at BROADCAST_TIME (local time)
- Sends the weekly alert on WEEKLY_BROADCAST_DAY at the same time
- A process started after today's broadcast time waits for tomorrow
"""

import asyncio
import logging
import sys
from datetime import date, datetime, time
from typing import Callable, Optional

import settings

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.get_log_level(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler('scheduler.log')
        ]
    )


def build_broadcaster():
    """Wire an AlertBroadcaster from environment configuration."""
    from alerts.broadcaster import AlertBroadcaster
    from alerts.messaging import TwilioGateway
    from ingestion.regional_dataset import RegionalDatasetBuilder
    from ingestion.subscriber_repo import SubscriberRepo

    return AlertBroadcaster(
        repo=SubscriberRepo.from_env(),
        dataset_builder=RegionalDatasetBuilder(),
        gateway=TwilioGateway(),
        max_concurrent=settings.get_broadcast_concurrency(),
    )


class BroadcastScheduler:
    """
    Fires broadcast cycles at a fixed wall-clock time.
    """

    def __init__(
        self,
        broadcaster=None,
        broadcast_time: Optional[time] = None,
        weekly_day: Optional[int] = None,
        poll_interval: float = 30.0,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize the scheduler.

        Args:
            broadcaster: AlertBroadcaster (built from env on first use when omitted)
            broadcast_time: Local time of day to broadcast
            weekly_day: Day of week for the weekly broadcast (0=Monday, 6=Sunday)
            poll_interval: Seconds between schedule checks
            clock: Returns the current local datetime
        """
        self._broadcaster = broadcaster
        self.broadcast_time = broadcast_time or settings.get_broadcast_time()
        self.weekly_day = settings.get_weekly_broadcast_day() if weekly_day is None else weekly_day
        self.poll_interval = poll_interval
        self.clock = clock

        self._running = False
        self._last_daily: Optional[date] = None
        self._last_weekly: Optional[date] = None

    @property
    def broadcaster(self):
        if self._broadcaster is None:
            self._broadcaster = build_broadcaster()
        return self._broadcaster

    def _past_broadcast_time(self, now: datetime) -> bool:
        return now.time() >= self.broadcast_time

    def prime(self) -> None:
        """Skip today's slots if the process starts after the broadcast time."""
        now = self.clock()
        if self._past_broadcast_time(now):
            self._last_daily = now.date()
            if now.weekday() == self.weekly_day:
                self._last_weekly = now.date()

    def should_run_daily(self) -> bool:
        """Check if the daily broadcast is due."""
        now = self.clock()
        if not self._past_broadcast_time(now):
            return False
        return self._last_daily != now.date()

    def should_run_weekly(self) -> bool:
        """Check if the weekly broadcast is due."""
        now = self.clock()
        if now.weekday() != self.weekly_day:
            return False
        if not self._past_broadcast_time(now):
            return False
        return self._last_weekly != now.date()

    async def run_daily_cycle(self):
        """Run the daily broadcast once."""
        # Marked before running: a failed cycle waits for tomorrow, no retry
        self._last_daily = self.clock().date()
        try:
            report = await self.broadcaster.run("daily")
            logger.info(f"Daily broadcast: {report.to_dict()}")
            return report
        except Exception as e:
            logger.error(f"Daily broadcast error: {e}")
            return None

    async def run_weekly_cycle(self):
        """Run the weekly broadcast once."""
        self._last_weekly = self.clock().date()
        try:
            report = await self.broadcaster.run("weekly")
            logger.info(f"Weekly broadcast: {report.to_dict()}")
            return report
        except Exception as e:
            logger.error(f"Weekly broadcast error: {e}")
            return None

    async def tick(self) -> None:
        """Run whatever is due right now."""
        if self.should_run_daily():
            await self.run_daily_cycle()
        if self.should_run_weekly():
            await self.run_weekly_cycle()

    async def start(self):
        """Start the scheduler loop."""
        logger.info("Starting broadcast scheduler...")
        logger.info(f"  Broadcast time: {self.broadcast_time.strftime('%H:%M')}")
        logger.info(f"  Weekly broadcast day: {self.weekly_day}")

        self.prime()
        self._running = True

        while self._running:
            try:
                await self.tick()
                await asyncio.sleep(self.poll_interval)

            except KeyboardInterrupt:
                logger.info("Scheduler interrupted by user")
                break
            except Exception as e:
                logger.error(f"Scheduler error: {e}")
                await asyncio.sleep(self.poll_interval)

    def stop(self):
        """Stop the scheduler."""
        self._running = False
        logger.info("Scheduler stopped")


async def main():
    """Main entry point for scheduler."""
    import argparse

    parser = argparse.ArgumentParser(description="Health Alert Broadcast Scheduler")
    parser.add_argument(
        "--once", action="store_true",
        help="Run the daily broadcast once and exit"
    )
    parser.add_argument(
        "--poll-interval", type=float, default=30.0,
        help="Seconds between schedule checks (default: 30)"
    )

    args = parser.parse_args()

    scheduler = BroadcastScheduler(poll_interval=args.poll_interval)

    if args.once:
        await scheduler.run_daily_cycle()
    else:
        await scheduler.start()


if __name__ == "__main__":
    configure_logging()

    print("=" * 60)
    print("  MULTILINGUAL HEALTH ALERT BOT")
    print("  Scheduled Subscriber Broadcasts")
    print("=" * 60)
    print()

    asyncio.run(main())
