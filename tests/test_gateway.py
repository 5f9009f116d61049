from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Union
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from gawbot.modules.giveaways.errors import GatewayUnavailable
from gawbot.modules.giveaways.gateway import DiscordGateway, format_winners
from gawbot.modules.giveaways.types import GiveawayData, GiveawayStatus, MessageHandle

HANDLE = MessageHandle(500, 1001)


def make_not_found():
    response = SimpleNamespace(status=404, reason="Not Found")
    return discord.NotFound(response, "Unknown Message") # type: ignore


def make_giveaway(**kwargs) -> GiveawayData:
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    data: GiveawayData = {
        "id": HANDLE.message_id,
        "channel": HANDLE.channel_id,
        "prize": "Nitro",
        "winners_count": 2,
        "host": 42,
        "created_at": now,
        "ends_at": now + timedelta(hours=1),
        "status": GiveawayStatus.COMPLETED,
        "winners": [],
    }
    data.update(kwargs) # type: ignore
    return data


class FakeUser:
    def __init__(self, user_id: int, bot: bool = False):
        self.id = user_id
        self.bot = bot


class FakeReaction:
    def __init__(self, emoji: Union[str, discord.PartialEmoji], users: list[FakeUser]):
        self.emoji = emoji
        self._users = users

    async def users(self):
        for user in self._users:
            yield user


@pytest.fixture
def message():
    msg = MagicMock()
    msg.id = HANDLE.message_id
    msg.reactions = []
    msg.add_reaction = AsyncMock()
    msg.edit = AsyncMock()
    msg.reply = AsyncMock()
    return msg

@pytest.fixture
def channel(message):
    chan = MagicMock(spec=discord.TextChannel)
    chan.fetch_message = AsyncMock(return_value=message)
    chan.send = AsyncMock(return_value=message)
    return chan

@pytest.fixture
def bot(channel):
    client = MagicMock()
    client.get_channel = MagicMock(return_value=channel)
    client.fetch_channel = AsyncMock(return_value=channel)
    return client

@pytest.fixture
def gateway(bot):
    return DiscordGateway(bot)


async def test_post_announcement(gateway: DiscordGateway, channel):
    data = make_giveaway(status=GiveawayStatus.OPEN)
    handle = await gateway.post_announcement(500, data)
    assert handle == HANDLE
    embed: discord.Embed = channel.send.call_args.kwargs["embed"]
    assert "Nitro" in embed.description
    assert "<@42>" in embed.description


async def test_channel_fetched_when_not_cached(gateway: DiscordGateway, bot):
    bot.get_channel.return_value = None
    await gateway.add_join_affordance(HANDLE, "🎉")
    bot.fetch_channel.assert_awaited_once_with(500)


async def test_missing_channel(gateway: DiscordGateway, bot):
    bot.get_channel.return_value = None
    bot.fetch_channel.side_effect = make_not_found()
    with pytest.raises(GatewayUnavailable):
        await gateway.fetch_participants(HANDLE, "🎉")


async def test_non_messageable_channel(gateway: DiscordGateway, bot):
    bot.get_channel.return_value = MagicMock(spec=discord.CategoryChannel)
    with pytest.raises(GatewayUnavailable):
        await gateway.post_announcement(500, make_giveaway())


async def test_deleted_message(gateway: DiscordGateway, channel):
    channel.fetch_message.side_effect = make_not_found()
    with pytest.raises(GatewayUnavailable):
        await gateway.update_announcement(HANDLE, make_giveaway())


async def test_add_join_affordance(gateway: DiscordGateway, message):
    await gateway.add_join_affordance(HANDLE, "🎉")
    message.add_reaction.assert_awaited_once_with("🎉")


async def test_participants_exclude_bots(gateway: DiscordGateway, message):
    message.reactions = [
        FakeReaction("👍", [FakeUser(7)]),
        FakeReaction("🎉", [FakeUser(1), FakeUser(2), FakeUser(99, bot=True)]),
    ]
    assert await gateway.fetch_participants(HANDLE, "🎉") == {1, 2}


async def test_participants_with_custom_emoji(gateway: DiscordGateway, message):
    marker = "<:gift:123456789012345678>"
    message.reactions = [
        FakeReaction(discord.PartialEmoji.from_str(marker), [FakeUser(1), FakeUser(2), FakeUser(99, bot=True)]),
    ]
    assert await gateway.fetch_participants(HANDLE, marker) == {1, 2}


async def test_participants_without_reaction(gateway: DiscordGateway, message):
    assert await gateway.fetch_participants(HANDLE, "🎉") == set()


async def test_update_announcement_with_winners(gateway: DiscordGateway, message):
    await gateway.update_announcement(HANDLE, make_giveaway(winners=[1, 2]))
    embed: discord.Embed = message.edit.call_args.kwargs["embed"]
    assert "<@1>, <@2>" in embed.description
    assert embed.color.value == DiscordGateway.WINNERS_COLOR


async def test_update_announcement_not_enough_participants(gateway: DiscordGateway, message):
    await gateway.update_announcement(HANDLE, make_giveaway())
    embed: discord.Embed = message.edit.call_args.kwargs["embed"]
    assert "Not enough participants" in embed.description
    assert embed.color.value == DiscordGateway.FAILED_COLOR


async def test_update_announcement_cancelled(gateway: DiscordGateway, message):
    await gateway.update_announcement(HANDLE, make_giveaway(status=GiveawayStatus.CANCELLED))
    embed: discord.Embed = message.edit.call_args.kwargs["embed"]
    assert "Cancelled" in embed.description


async def test_post_report(gateway: DiscordGateway, message):
    await gateway.post_report(HANDLE, make_giveaway(winners=[1]))
    text: str = message.reply.call_args.args[0]
    assert "<@1>" in text
    assert "Nitro" in text


async def test_post_report_failure(gateway: DiscordGateway, message):
    message.reply.side_effect = make_not_found()
    with pytest.raises(GatewayUnavailable):
        await gateway.post_report(HANDLE, make_giveaway())


def test_format_many_winners():
    assert format_winners(list(range(50))) == "50 winners picked"
    assert format_winners([3]) == "<@3>"
