import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Protocol, Union

import discord

from gawbot.modules.giveaways.errors import GatewayUnavailable
from gawbot.modules.giveaways.types import GiveawayData, GiveawayStatus, GiveawayToSendData, MessageHandle

if TYPE_CHECKING:
    from gawbot.gawbot import GAWbot


class MessagingGateway(Protocol):
    """What the giveaway engine needs from the chat platform

    Every method raises GatewayUnavailable when the platform cannot fulfill the request"""

    async def post_announcement(self, channel_id: int, data: GiveawayToSendData) -> MessageHandle: ...

    async def add_join_affordance(self, handle: MessageHandle, marker: str) -> None: ...

    async def fetch_participants(self, handle: MessageHandle, marker: str) -> set[int]: ...

    async def update_announcement(self, handle: MessageHandle, data: GiveawayData) -> None: ...

    async def post_report(self, handle: MessageHandle, data: GiveawayData) -> None: ...


@contextmanager
def platform_errors(action: str):
    "Convert any Discord HTTP error raised in the block into a GatewayUnavailable"
    try:
        yield
    except discord.HTTPException as err:
        raise GatewayUnavailable(f"Discord error while trying to {action}: {err}") from err


def format_winners(winners: list[int]):
    "Mention every winner, or only count them if there are too many to display"
    if len(winners) < 35:
        return ", ".join(f"<@{winner}>" for winner in winners)
    return f"{len(winners)} winners picked"


class DiscordGateway:
    "Send, read and edit giveaway messages on Discord"

    ACTIVE_COLOR = 0xfbbf24
    WINNERS_COLOR = 0x10b981
    FAILED_COLOR = 0xef4444

    def __init__(self, bot: "GAWbot", embed_color: int = ACTIVE_COLOR):
        self.bot = bot
        self.embed_color = embed_color
        self.log = logging.getLogger("gawbot.giveaways.gateway")

    async def get_channel(self, channel_id: int) -> discord.abc.Messageable:
        "Get a channel from the cache, or fetch it from the API"
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            self.log.debug("Channel %s not in cache, fetching it", channel_id)
            with platform_errors(f"fetch channel {channel_id}"):
                channel = await self.bot.fetch_channel(channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            raise GatewayUnavailable(f"Channel {channel_id} cannot receive messages")
        return channel

    async def fetch_message(self, handle: MessageHandle) -> discord.Message:
        "Fetch the Discord message pointed by a handle"
        channel = await self.get_channel(handle.channel_id)
        with platform_errors(f"fetch message {handle.message_id}"):
            return await channel.fetch_message(handle.message_id)

    def create_active_gaw_embed(self, data: Union[GiveawayToSendData, GiveawayData]):
        "Create a Discord embed for an active giveaway"
        embed = discord.Embed(
            title="🎉 GIVEAWAY 🎉",
            description=(
                f"**Prize:** {data['prize']}\n"
                f"**Winners:** {data['winners_count']}\n"
                f"**Ends:** {discord.utils.format_dt(data['ends_at'], 'R')} "
                f"({discord.utils.format_dt(data['ends_at'], 'F')})\n"
                f"**Hosted by:** <@{data['host']}>"
            ),
            color=self.embed_color,
            timestamp=data["created_at"]
        )
        return embed

    def create_ended_gaw_embed(self, data: GiveawayData):
        "Create a Discord embed for a giveaway that is not running anymore"
        if data["status"] == GiveawayStatus.CANCELLED:
            ended_text = "Cancelled"
            winners_text = str(data["winners_count"])
            color = self.FAILED_COLOR
        elif data["winners"]:
            ended_text = discord.utils.format_dt(discord.utils.utcnow(), "R")
            winners_text = format_winners(data["winners"])
            color = self.WINNERS_COLOR
        else:
            ended_text = "Not enough participants!"
            winners_text = str(data["winners_count"])
            color = self.FAILED_COLOR
        embed = discord.Embed(
            title="🎉 GIVEAWAY 🎉",
            description=(
                f"**Prize:** {data['prize']}\n"
                f"**Winners:** {winners_text}\n"
                f"**Ended:** {ended_text}\n"
                f"**Hosted by:** <@{data['host']}>"
            ),
            color=color,
            timestamp=data["created_at"]
        )
        return embed

    async def post_announcement(self, channel_id: int, data: GiveawayToSendData) -> MessageHandle:
        channel = await self.get_channel(channel_id)
        embed = self.create_active_gaw_embed(data)
        with platform_errors(f"send a giveaway in channel {channel_id}"):
            message = await channel.send(content="🎉 **GIVEAWAY** 🎉", embed=embed)
        return MessageHandle(channel_id, message.id)

    async def add_join_affordance(self, handle: MessageHandle, marker: str):
        message = await self.fetch_message(handle)
        with platform_errors(f"add reaction {marker} to message {handle.message_id}"):
            await message.add_reaction(marker)

    async def fetch_participants(self, handle: MessageHandle, marker: str) -> set[int]:
        message = await self.fetch_message(handle)
        reaction = discord.utils.find(lambda r: str(r.emoji) == marker, message.reactions)
        if reaction is None:
            return set()
        with platform_errors(f"fetch reactions of message {handle.message_id}"):
            return {user.id async for user in reaction.users() if not user.bot}

    async def update_announcement(self, handle: MessageHandle, data: GiveawayData):
        message = await self.fetch_message(handle)
        embed = self.create_ended_gaw_embed(data)
        with platform_errors(f"edit message {handle.message_id}"):
            await message.edit(embed=embed)

    async def post_report(self, handle: MessageHandle, data: GiveawayData):
        message = await self.fetch_message(handle)
        if data["winners"]:
            text = (
                "🎉 **Giveaway Ended!**\n"
                f"**Winner(s):** {format_winners(data['winners'])}\n"
                f"**Prize:** {data['prize']}"
            )
        else:
            text = f"🎉 The **{data['prize']}** giveaway ended with not enough participants!"
        with platform_errors(f"reply to message {handle.message_id}"):
            await message.reply(text)
