import asyncio
import random
from datetime import datetime, timedelta, timezone

import pytest

from gawbot.modules.giveaways.engine import GiveawayEngine
from gawbot.modules.giveaways.errors import GatewayUnavailable
from gawbot.modules.giveaways.types import GiveawayData, GiveawayToSendData, MessageHandle

CHANNEL_ID = 500
HOST_ID = 42


class FakeGateway:
    "In-memory Discord: messages are dicts, reactions are sets of user IDs"

    def __init__(self):
        self.next_message_id = 1000
        self.announcements: dict[int, GiveawayToSendData] = {}
        self.reactions: dict[int, dict[str, set[int]]] = {}
        self.updates: list[tuple[MessageHandle, GiveawayData]] = []
        self.reports: list[tuple[MessageHandle, GiveawayData]] = []
        self.fetch_calls = 0
        self.fail_on: set[str] = set()

    def _maybe_fail(self, method: str):
        if method in self.fail_on:
            raise GatewayUnavailable(f"{method} failed")

    def join(self, message_id: int, *user_ids: int, marker: str = "🎉"):
        "Simulate users clicking on the reaction"
        self.reactions[message_id].setdefault(marker, set()).update(user_ids)

    async def post_announcement(self, channel_id: int, data: GiveawayToSendData) -> MessageHandle:
        self._maybe_fail("post_announcement")
        self.next_message_id += 1
        self.announcements[self.next_message_id] = dict(data) # type: ignore
        self.reactions[self.next_message_id] = {}
        return MessageHandle(channel_id, self.next_message_id)

    async def add_join_affordance(self, handle: MessageHandle, marker: str):
        self._maybe_fail("add_join_affordance")
        self.reactions[handle.message_id].setdefault(marker, set())

    async def fetch_participants(self, handle: MessageHandle, marker: str) -> set[int]:
        self.fetch_calls += 1
        await asyncio.sleep(0)
        self._maybe_fail("fetch_participants")
        return set(self.reactions[handle.message_id].get(marker, set()))

    async def update_announcement(self, handle: MessageHandle, data: GiveawayData):
        self._maybe_fail("update_announcement")
        self.updates.append((handle, dict(data))) # type: ignore

    async def post_report(self, handle: MessageHandle, data: GiveawayData):
        self._maybe_fail("post_report")
        self.reports.append((handle, dict(data))) # type: ignore


class ManualTrigger:
    "Keep armed triggers in a dict, and fire them when asked"

    def __init__(self):
        self.armed: dict[int, tuple[datetime, object]] = {}

    def arm(self, giveaway_id, run_date, callback):
        self.armed[giveaway_id] = (run_date, callback)

    def disarm(self, giveaway_id):
        self.armed.pop(giveaway_id, None)

    async def fire_due(self, now: datetime):
        "Call every callback whose date is past"
        due = [(gaw_id, callback) for gaw_id, (run_date, callback) in self.armed.items() if run_date <= now]
        for gaw_id, callback in due:
            self.armed.pop(gaw_id, None)
            await callback(gaw_id) # type: ignore


class FakeClock:
    "A clock that only moves when told to"

    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def gateway():
    return FakeGateway()

@pytest.fixture
def trigger():
    return ManualTrigger()

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def errors():
    return []

@pytest.fixture
def engine(gateway, trigger, clock, errors):
    return GiveawayEngine(
        gateway, trigger,
        clock=clock,
        rng=random.Random(1234),
        error_callback=lambda err, context: errors.append((err, context)),
    )
