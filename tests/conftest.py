"""Shared fixtures for engine tests."""
from typing import Any, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from dateutil import tz

from wakeful.core import ServiceContainer, bootstrap, shutdown
from wakeful.database import NotificationStore
from wakeful.errors import DisplayFailure, WakePrimitiveFailure
from wakeful.events import EngineEvent, event_bus

# 2026-05-28T20:26:40Z
NOW = 1_780_000_000_000


class FakeClock:
    """Clock returning a fixed, manually advanced time."""

    def __init__(self, now: int = NOW) -> None:
        self.current = now

    def now(self) -> int:
        return self.current

    def advance(self, millis: int) -> None:
        self.current += millis


class RecordingPlatform:
    """Display and alarm capability that records calls and fails on demand."""

    def __init__(self) -> None:
        self.displayed: List[Tuple[int, Dict[str, Any]]] = []
        self.armed: List[Dict[str, Any]] = []
        self.cancelled: List[int] = []
        self.cleared: List[int] = []
        self.fail_display: set = set()
        self.fail_arm: set = set()

    async def render_and_display(self, payload: Dict[str, Any], notification_id: int) -> str:
        if notification_id in self.fail_display:
            raise DisplayFailure(f"cannot display {notification_id}")
        self.displayed.append((notification_id, payload))
        return f"handle-{notification_id}"

    async def clear(self, notification_id: int) -> None:
        self.cleared.append(notification_id)

    async def arm_wake(
        self,
        notification_id: int,
        instant: int,
        exact: bool,
        idle_capable: bool,
        repeating: Optional[int] = None,
    ) -> None:
        if notification_id in self.fail_arm:
            raise WakePrimitiveFailure(f"cannot arm {notification_id}")
        self.armed.append({
            "id": notification_id,
            "instant": instant,
            "exact": exact,
            "idle_capable": idle_capable,
            "repeating": repeating,
        })

    async def cancel_wake(self, notification_id: int) -> None:
        self.cancelled.append(notification_id)

    def displayed_ids(self) -> List[int]:
        return [nid for nid, _ in self.displayed]

    def armed_for(self, notification_id: int) -> Optional[Dict[str, Any]]:
        matches = [a for a in self.armed if a["id"] == notification_id]
        return matches[-1] if matches else None


class RecordingHost:
    def __init__(self) -> None:
        self.cleared_payloads: List[Dict[str, Any]] = []

    async def notify_cleared(self, payload: Dict[str, Any]) -> None:
        self.cleared_payloads.append(payload)


class EventCollector:
    """Subscribe to events and record them for assertions."""

    def __init__(self, *events: EngineEvent):
        self.received: list[tuple[EngineEvent, object]] = []
        self._subs = []
        for ev in events:
            sub = event_bus.subscribe(ev, lambda data, _ev=ev: self.received.append((_ev, data)))
            self._subs.append(sub)

    def count(self, event: EngineEvent) -> int:
        return sum(1 for ev, _ in self.received if ev == event)

    def data(self, event: EngineEvent) -> list:
        return [data for ev, data in self.received if ev == event]

    def cleanup(self):
        for sub in self._subs:
            sub.unsubscribe()


@pytest.fixture(autouse=True)
def _reset_event_bus():
    event_bus.clear()
    yield
    event_bus.clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def platform() -> RecordingPlatform:
    return RecordingPlatform()


@pytest.fixture
def host() -> RecordingHost:
    return RecordingHost()


@pytest.fixture
def collect():
    """Factory creating EventCollectors that are cleaned up after the test."""
    collectors: List[EventCollector] = []

    def _collect(*events: EngineEvent) -> EventCollector:
        collector = EventCollector(*events)
        collectors.append(collector)
        return collector

    yield _collect
    for collector in collectors:
        collector.cleanup()


@pytest_asyncio.fixture
async def store() -> NotificationStore:
    """A fresh in-memory store."""
    store = NotificationStore(":memory:")
    yield store
    await store.close()


@pytest_asyncio.fixture
async def services(platform, host, clock) -> ServiceContainer:
    """Engine and coordinators wired to recording fakes and an in-memory store."""
    svc = await bootstrap(
        display=platform,
        alarms=platform,
        host=host,
        db_path=":memory:",
        clock=clock,
        zone=tz.UTC,
    )
    yield svc
    await shutdown(svc)
