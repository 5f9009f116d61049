import logging
import os
import sys
import traceback
from typing import Optional, Union

import discord
from discord.ext import commands

from gawbot.gawbot import GAWbot, GAWInteraction

AllowedCtx = Union[GAWInteraction, str]

def get_channel_name(interaction: GAWInteraction):
    "Compute the name of the channel from a given interaction"
    channel = interaction.channel
    if channel is None or isinstance(channel, discord.PartialMessageable):
        return "unknown channel"
    if isinstance(channel, discord.DMChannel):
        if channel.recipient is None:
            return "unknown DM"
        return "DM with " + channel.recipient.name
    if isinstance(channel, discord.GroupChannel):
        return channel.name or "unknown group"
    return channel.name

def split_error_message(context: str, trace: str, chunk_size: int = 1950) -> list[str]:
    "Split a traceback into messages small enough to be sent on Discord"
    messages: list[str] = []
    for i in range(0, len(trace), chunk_size):
        block = f"```py\n{trace[i:i+chunk_size]}\n```"
        messages.append(context + "\n" + block if i == 0 else block)
    return messages or [context]


class ErrorsCog(commands.Cog):
    "Handle error events"

    def __init__(self, bot: GAWbot):
        self.bot = bot
        self.log = logging.getLogger("gawbot.errors")

    @commands.Cog.listener()
    async def on_interaction_error(self, interaction: GAWInteraction, error: BaseException):
        "Called when an error is raised during an interaction"
        send = interaction.followup.send if interaction.response.is_done() else interaction.response.send_message
        if isinstance(error, discord.app_commands.CheckFailure):
            await send("Oops, it looks like you're not allowed to use this command!", ephemeral=True)
            return
        if isinstance(error, discord.app_commands.TransformerError):
            await send(f"Oops, the value `{error.value}` is not valid here :confused:", ephemeral=True)
            return
        if interaction.guild:
            guild = f"{interaction.guild.name} | {get_channel_name(interaction)}"
        elif interaction.guild_id:
            guild = f"guild {interaction.guild_id}"
        else:
            guild = f"DM with {interaction.user}"
        if interaction.type == discord.InteractionType.application_command:
            await self.on_error(error, interaction)
        elif interaction.type == discord.InteractionType.component:
            await self.on_error(error, f"Component interaction | {guild}")
        elif interaction.type == discord.InteractionType.autocomplete:
            await self.on_error(error, f"Command autocompletion | {guild}")
        else:
            self.log.warning("Unhandled interaction error type: %s", interaction.type)
            await self.on_error(error, None)
        await send("Oops, an error occured while executing this command :confused:", ephemeral=True)

    @commands.Cog.listener()
    async def on_error(self, error: BaseException, ctx: Optional[AllowedCtx] = None):
        """Called when an error is raised

        Its only purpose is to log the error, ctx parameter is only used for traceability"""
        if sys.exc_info()[0] is None:
            exc_info = (type(error), error, error.__traceback__)
        else:
            exc_info = sys.exc_info()
        try:
            # if this is only an interaction too slow, don't report in bug channel
            if isinstance(error, discord.NotFound) and error.text == "Unknown interaction":
                self.log.warning(error, exc_info=exc_info)
                return
            trace = " ".join(traceback.format_exception(*exc_info))
            trace = trace.replace(os.getcwd(), ".")
            # get context clue
            if ctx is None:
                context = "Internal error"
            elif isinstance(ctx, str):
                context = ctx
            elif ctx.guild is None:
                context = f"DM with {ctx.user}"
            else:
                cmd_name = ctx.command.name if ctx.command else "unknown command"
                context = f"Slash command `{cmd_name}` | {ctx.guild.name} | {get_channel_name(ctx)}"
            self.log.warning("%s: %s", context, error, exc_info=exc_info)
            await self.send_error_messages(context, trace)
        except Exception as err: # pylint: disable=broad-except
            self.log.error(err, exc_info=sys.exc_info())

    async def send_error_messages(self, context: str, trace: str):
        "Send an error report in the errors channel"
        errors_channel = self.bot.get_channel(self.bot.config["ERRORS_CHANNEL_ID"])
        if not isinstance(errors_channel, discord.abc.Messageable):
            self.log.critical("Cannot find errors channel")
            return False
        for msg in split_error_message(context, trace):
            await errors_channel.send(msg[:2000])
        return True


async def setup(bot: GAWbot):
    await bot.add_cog(ErrorsCog(bot))
