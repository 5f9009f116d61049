import logging
import random
import re
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

import discord

from gawbot.modules.giveaways.errors import GatewayUnavailable, InvalidDuration, InvalidPrize, InvalidWinnerCount
from gawbot.modules.giveaways.gateway import MessagingGateway
from gawbot.modules.giveaways.triggers import CompletionTrigger
from gawbot.modules.giveaways.types import (GiveawayData, GiveawayOutcome, GiveawayStatus, GiveawayToSendData,
                                            MessageHandle, ResolutionResult)

DURATION_PATTERN = re.compile(r'^(\d+)([smhdw])$', re.ASCII)
DURATION_UNITS: dict[str, int] = {
    's': 1000,
    'm': 60_000,
    'h': 3_600_000,
    'd': 86_400_000,
    'w': 604_800_000,
}
MIN_WINNERS = 1
MAX_WINNERS = 10

ErrorCallback = Callable[[BaseException, str], None]


def parse_duration(value: str) -> int:
    "Convert a duration like '30m' or '2d' into milliseconds"
    match = DURATION_PATTERN.fullmatch(value)
    if match is None:
        raise InvalidDuration(value)
    milliseconds = int(match.group(1)) * DURATION_UNITS[match.group(2)]
    if milliseconds <= 0:
        raise InvalidDuration(value)
    return milliseconds


class GiveawayEngine:
    """Run the giveaways lifecycle: announce, wait, draw winners, report

    The engine owns the registry of running giveaways. Nothing is saved, so every
    running giveaway is lost when the process stops."""

    def __init__(self, gateway: MessagingGateway, trigger: CompletionTrigger, *, marker: str = "🎉",
                 clock: Callable[[], datetime] = discord.utils.utcnow, rng: Optional[random.Random] = None,
                 error_callback: Optional[ErrorCallback] = None):
        self.gateway = gateway
        self.trigger = trigger
        self.marker = marker
        self.clock = clock
        self.rng = rng or random.Random()
        self.error_callback = error_callback
        self._giveaways: dict[int, GiveawayData] = {}
        self.log = logging.getLogger("gawbot.giveaways")

    def get_giveaway(self, giveaway_id: int) -> Optional[GiveawayData]:
        "Get a running giveaway"
        return self._giveaways.get(giveaway_id)

    def active_giveaways(self) -> list[GiveawayData]:
        "Get every running giveaway, sooner to end first"
        return sorted(self._giveaways.values(), key=lambda gaw: gaw["ends_at"])

    def overdue_giveaways(self, now: Optional[datetime] = None) -> list[GiveawayData]:
        "Get the running giveaways whose end date is already past"
        now = now or self.clock()
        return [gaw for gaw in self.active_giveaways() if gaw["ends_at"] <= now]

    async def create_giveaway(self, prize: str, duration: str, winners_count: int,
                              host_id: int, channel_id: int) -> GiveawayData:
        "Announce a new giveaway and schedule its end"
        prize = prize.strip()
        if not prize:
            raise InvalidPrize()
        milliseconds = parse_duration(duration)
        if not MIN_WINNERS <= winners_count <= MAX_WINNERS:
            raise InvalidWinnerCount(winners_count, MIN_WINNERS, MAX_WINNERS)
        now = self.clock()
        try:
            ends_at = now + timedelta(milliseconds=milliseconds)
        except OverflowError:
            raise InvalidDuration(duration) from None
        data: GiveawayToSendData = {
            "channel": channel_id,
            "prize": prize,
            "winners_count": winners_count,
            "host": host_id,
            "created_at": now,
            "ends_at": ends_at,
            "status": GiveawayStatus.OPEN,
        }
        handle = await self.gateway.post_announcement(channel_id, data)
        await self.gateway.add_join_affordance(handle, self.marker)
        giveaway: GiveawayData = {
            **data,
            "id": handle.message_id,
            "winners": [],
        }
        self._giveaways[giveaway["id"]] = giveaway
        self.trigger.arm(giveaway["id"], giveaway["ends_at"], self.resolve_giveaway)
        self.log.info("Created giveaway %s (%s) in channel %s, ending at %s",
                      giveaway["id"], prize, channel_id, giveaway["ends_at"])
        return giveaway

    def draw_winners(self, participants: Iterable[int], count: int) -> list[int]:
        "Pick `count` distinct participants, uniformly at random"
        pool = list(participants)
        if count > len(pool):
            raise ValueError(f"Cannot draw {count} winners out of {len(pool)} participants")
        # partial Fisher-Yates: the first `count` slots end up holding the winners
        for i in range(count):
            j = self.rng.randrange(i, len(pool))
            pool[i], pool[j] = pool[j], pool[i]
        return pool[:count]

    async def resolve_giveaway(self, giveaway_id: int) -> ResolutionResult:
        "Close a giveaway and pick the winners"
        giveaway = self._giveaways.get(giveaway_id)
        if giveaway is None or giveaway["status"] != GiveawayStatus.OPEN:
            self.log.debug("Giveaway %s is not running, ignoring resolution", giveaway_id)
            return {"giveaway_id": giveaway_id, "outcome": GiveawayOutcome.NOOP, "winners": []}
        # must happen before any await, so that a concurrent call becomes a no-op
        giveaway["status"] = GiveawayStatus.COMPLETED
        self.trigger.disarm(giveaway_id)
        self.log.info("Closing giveaway %s", giveaway_id)
        handle = MessageHandle(giveaway["channel"], giveaway_id)
        try:
            participants = await self.gateway.fetch_participants(handle, self.marker)
            if len(participants) < giveaway["winners_count"]:
                self.log.info("Giveaway %s ended with not enough participants (%s/%s)",
                              giveaway_id, len(participants), giveaway["winners_count"])
                outcome = GiveawayOutcome.INSUFFICIENT_PARTICIPANTS
            else:
                giveaway["winners"] = self.draw_winners(sorted(participants), giveaway["winners_count"])
                self.log.info("Giveaway %s won by %s", giveaway_id, giveaway["winners"])
                outcome = GiveawayOutcome.WINNERS
            await self.gateway.update_announcement(handle, giveaway)
            await self.gateway.post_report(handle, giveaway)
        except GatewayUnavailable as err:
            self.log.warning("Could not resolve giveaway %s: %s", giveaway_id, err)
            if self.error_callback is not None:
                self.error_callback(err, f"Resolution of giveaway {giveaway_id}")
            outcome = GiveawayOutcome.FAILED
        finally:
            self._giveaways.pop(giveaway_id, None)
        return {"giveaway_id": giveaway_id, "outcome": outcome, "winners": list(giveaway["winners"])}

    async def cancel_giveaway(self, giveaway_id: int) -> bool:
        "Stop a running giveaway without drawing any winner"
        giveaway = self._giveaways.get(giveaway_id)
        if giveaway is None or giveaway["status"] != GiveawayStatus.OPEN:
            return False
        giveaway["status"] = GiveawayStatus.CANCELLED
        self.trigger.disarm(giveaway_id)
        del self._giveaways[giveaway_id]
        self.log.info("Cancelled giveaway %s", giveaway_id)
        try:
            await self.gateway.update_announcement(MessageHandle(giveaway["channel"], giveaway_id), giveaway)
        except GatewayUnavailable as err:
            self.log.warning("Could not edit the announcement of cancelled giveaway %s: %s", giveaway_id, err)
        return True
