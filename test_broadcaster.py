"""Unit tests for the alert broadcaster, the scheduler and Twilio delivery."""

from __future__ import annotations

from datetime import date, datetime, time
from types import SimpleNamespace
from typing import Dict, List

import pytest

from alerts.broadcaster import AlertBroadcaster, BroadcastReport, compose_alert
from alerts.messaging import DeliveryError, TwilioGateway, build_twiml_reply, whatsapp_address
from ingestion.regional_dataset import RegionalDataset
from ingestion.subscriber_repo import Subscriber
from run_scheduled import BroadcastScheduler


# -------------------------
# Fakes
# -------------------------


class FakeSubscriberRepo:
    def __init__(self, subscribers: List[Subscriber]):
        self.subscribers = list(subscribers)
        self.requested: List[str] = []

    def list_by_subscription(self, subscription: str) -> List[Subscriber]:
        self.requested.append(subscription)
        return [s for s in self.subscribers if s.subscription == subscription]


class FakeGateway:
    def __init__(self, failing: tuple = ()):
        self.failing = set(failing)
        self.sent: List[tuple] = []

    async def send(self, to: str, body: str) -> str:
        self.sent.append((to, body))
        if to in self.failing:
            raise DeliveryError(f"cannot reach {to}")
        return f"SM{len(self.sent)}"


class CountingBuilder:
    def __init__(self, dataset: RegionalDataset):
        self.dataset = dataset
        self.builds = 0

    async def build(self) -> RegionalDataset:
        self.builds += 1
        return self.dataset


def two_condition_dataset() -> RegionalDataset:
    return RegionalDataset({
        "kerala": {
            "covid": "🦠 COVID-19 update for Kerala:\n- Active: 1\n- Cured: 2\n- Deaths: 0",
            "dengue": "🦟 Dengue cases in Kerala: 42",
        }
    })


# -------------------------
# Alert composition
# -------------------------


def test_compose_alert_with_regional_data():
    alert = compose_alert(Subscriber(name="Asha", phone="+911", region="Kerala"), two_condition_dataset())

    assert alert == (
        "📢 Daily Health Alert for Kerala:\n"
        "🦠 COVID-19 update for Kerala:\n- Active: 1\n- Cured: 2\n- Deaths: 0\n"
        "🦟 Dengue cases in Kerala: 42"
    )


def test_compose_alert_matches_region_loosely():
    alert = compose_alert(Subscriber(name="A", phone="+911", region="  KERALA "), two_condition_dataset())
    assert alert.startswith("📢 Daily Health Alert for KERALA:\n")


@pytest.mark.parametrize("region", [None, "", "Goa"])
def test_compose_alert_generic_when_no_data(region):
    alert = compose_alert(Subscriber(name="A", phone="+911", region=region), two_condition_dataset())
    assert alert == "📢 Daily Health Alert:\nStay safe and take precautions."


# -------------------------
# Broadcaster
# -------------------------


@pytest.mark.asyncio
async def test_broadcast_sends_once_per_subscriber_with_both_conditions():
    repo = FakeSubscriberRepo([Subscriber(name="Asha", phone="+911", region="Kerala")])
    gateway = FakeGateway()
    builder = CountingBuilder(two_condition_dataset())

    report = await AlertBroadcaster(repo, builder, gateway).run()

    assert len(gateway.sent) == 1
    to, body = gateway.sent[0]
    assert to == "+911"
    assert body.startswith("📢 Daily Health Alert for Kerala:\n")
    assert "Dengue cases in Kerala: 42" in body
    assert "COVID-19 update for Kerala" in body
    assert report.delivered == 1 and report.failed == 0


@pytest.mark.asyncio
async def test_broadcast_builds_dataset_once_per_run():
    repo = FakeSubscriberRepo([
        Subscriber(name=f"S{i}", phone=f"+91{i}", region="Kerala") for i in range(5)
    ])
    builder = CountingBuilder(two_condition_dataset())

    await AlertBroadcaster(repo, builder, FakeGateway()).run()

    assert builder.builds == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("max_concurrent", [1, 3])
async def test_broadcast_failure_does_not_stop_others(max_concurrent):
    repo = FakeSubscriberRepo([
        Subscriber(name="A", phone="+911", region="Kerala"),
        Subscriber(name="B", phone="+912", region="Goa"),
        Subscriber(name="C", phone="+913"),
    ])
    gateway = FakeGateway(failing=("+912",))

    report = await AlertBroadcaster(
        repo, CountingBuilder(two_condition_dataset()), gateway, max_concurrent=max_concurrent
    ).run()

    assert sorted(to for to, _ in gateway.sent) == ["+911", "+912", "+913"]
    assert report == BroadcastReport(
        subscription="daily", total=3, delivered=2, failed=1, failed_phones=["+912"]
    )


@pytest.mark.asyncio
async def test_broadcast_only_targets_requested_plan():
    repo = FakeSubscriberRepo([
        Subscriber(name="A", phone="+911", subscription="daily"),
        Subscriber(name="B", phone="+912", subscription="weekly"),
    ])
    gateway = FakeGateway()

    report = await AlertBroadcaster(repo, CountingBuilder(RegionalDataset()), gateway).run("weekly")

    assert gateway.sent == [("+912", "📢 Weekly Health Alert:\nStay safe and take precautions.")]
    assert report.to_dict() == {"subscription": "weekly", "total": 1, "delivered": 1, "failed": 0}


@pytest.mark.asyncio
async def test_broadcast_without_subscribers_skips_feeds():
    builder = CountingBuilder(RegionalDataset())
    report = await AlertBroadcaster(FakeSubscriberRepo([]), builder, FakeGateway()).run()

    assert report.total == 0
    assert builder.builds == 0


# -------------------------
# Scheduler
# -------------------------


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class RecordingBroadcaster:
    def __init__(self):
        self.runs: List[str] = []

    async def run(self, subscription: str = "daily"):
        self.runs.append(subscription)
        return BroadcastReport(subscription=subscription)


def make_scheduler(now: datetime, broadcaster=None) -> BroadcastScheduler:
    return BroadcastScheduler(
        broadcaster=broadcaster or RecordingBroadcaster(),
        broadcast_time=time(9, 0),
        weekly_day=6,
        clock=FakeClock(now),
    )


def test_daily_not_due_before_broadcast_time():
    scheduler = make_scheduler(datetime(2026, 10, 14, 8, 59))
    assert not scheduler.should_run_daily()


@pytest.mark.asyncio
async def test_daily_runs_once_per_day():
    broadcaster = RecordingBroadcaster()
    clock = FakeClock(datetime(2026, 10, 14, 9, 0))
    scheduler = BroadcastScheduler(
        broadcaster=broadcaster, broadcast_time=time(9, 0), weekly_day=6, clock=clock
    )

    await scheduler.tick()
    clock.now = datetime(2026, 10, 14, 15, 30)
    await scheduler.tick()
    clock.now = datetime(2026, 10, 15, 9, 1)
    await scheduler.tick()

    assert broadcaster.runs == ["daily", "daily"]


def test_prime_skips_slot_already_passed():
    scheduler = make_scheduler(datetime(2026, 10, 14, 10, 0))
    scheduler.prime()
    assert not scheduler.should_run_daily()


def test_prime_keeps_upcoming_slot():
    scheduler = make_scheduler(datetime(2026, 10, 14, 7, 0))
    scheduler.prime()
    scheduler.clock.now = datetime(2026, 10, 14, 9, 0)
    assert scheduler.should_run_daily()


@pytest.mark.asyncio
async def test_weekly_runs_on_configured_day():
    broadcaster = RecordingBroadcaster()
    # 2026-10-18 is a Sunday
    scheduler = make_scheduler(datetime(2026, 10, 18, 9, 5), broadcaster)

    assert scheduler.should_run_weekly()
    await scheduler.tick()

    assert broadcaster.runs == ["daily", "weekly"]
    assert scheduler._last_weekly == date(2026, 10, 18)


def test_weekly_not_due_on_other_days():
    scheduler = make_scheduler(datetime(2026, 10, 14, 9, 5))
    assert not scheduler.should_run_weekly()


@pytest.mark.asyncio
async def test_failed_cycle_is_not_retried_same_day():
    class Exploding:
        def __init__(self):
            self.calls = 0

        async def run(self, subscription: str = "daily"):
            self.calls += 1
            raise RuntimeError("supabase down")

    broadcaster = Exploding()
    scheduler = make_scheduler(datetime(2026, 10, 14, 9, 0), broadcaster)

    assert await scheduler.run_daily_cycle() is None
    await scheduler.tick()

    assert broadcaster.calls == 1


# -------------------------
# Twilio gateway
# -------------------------


class FakeMessages:
    def __init__(self, error: Exception = None):
        self.error = error
        self.created: List[Dict[str, str]] = []

    def create(self, **kwargs):
        if self.error:
            raise self.error
        self.created.append(kwargs)
        return SimpleNamespace(sid="SM123")


def test_whatsapp_address():
    assert whatsapp_address("+919999999999") == "whatsapp:+919999999999"
    assert whatsapp_address("whatsapp:+91999") == "whatsapp:+91999"


@pytest.mark.asyncio
async def test_gateway_sends_via_twilio():
    messages = FakeMessages()
    gateway = TwilioGateway(client=SimpleNamespace(messages=messages), from_number="whatsapp:+14155238886")

    sid = await gateway.send("+919999999999", "hello")

    assert sid == "SM123"
    assert messages.created == [{
        "from_": "whatsapp:+14155238886",
        "to": "whatsapp:+919999999999",
        "body": "hello",
    }]


@pytest.mark.asyncio
async def test_gateway_wraps_errors():
    gateway = TwilioGateway(
        client=SimpleNamespace(messages=FakeMessages(error=RuntimeError("401"))),
        from_number="whatsapp:+1",
    )
    with pytest.raises(DeliveryError):
        await gateway.send("+91", "hello")


def test_twiml_reply_has_one_message_per_part():
    xml = build_twiml_reply(["part one", "part two"])
    assert xml.count("<Message>") == 2
    assert "<Message>part one</Message>" in xml
    assert xml.index("part one") < xml.index("part two")
