import logging
from typing import Optional

import discord
from discord import app_commands
from discord.app_commands import Choice
from discord.ext import commands, tasks

from gawbot.gawbot import GAWbot, GAWInteraction
from gawbot.modules.giveaways.engine import MAX_WINNERS, MIN_WINNERS, GiveawayEngine
from gawbot.modules.giveaways.errors import GatewayUnavailable, GiveawayError
from gawbot.modules.giveaways.gateway import DiscordGateway
from gawbot.modules.giveaways.triggers import SchedulerTrigger
from gawbot.modules.giveaways.types import GiveawayData, GiveawayOutcome
from gawbot.utils.confirm_view import ConfirmView


def get_message_url(guild_id: int, giveaway: GiveawayData):
    "Get the jump URL of a giveaway announcement"
    return f"https://discord.com/channels/{guild_id}/{giveaway['channel']}/{giveaway['id']}"


class GiveawaysCog(commands.Cog):
    "Handle giveaways"

    def __init__(self, bot: GAWbot):
        self.bot = bot
        self.embed_color = bot.config["EMBED_COLOR"]
        self.trigger = SchedulerTrigger()
        self.engine = GiveawayEngine(
            DiscordGateway(bot, self.embed_color),
            self.trigger,
            marker=bot.config["GIVEAWAY_EMOJI"],
            error_callback=self.on_engine_error,
        )
        self.log = logging.getLogger("gawbot.giveaways")

    async def cog_load(self):
        """Start the scheduler on cog load"""
        self.trigger.start()
        self.sweep_overdue_giveaways.start() # pylint: disable=no-member

    async def cog_unload(self):
        """Stop the scheduler on cog unload"""
        self.trigger.shutdown()
        self.sweep_overdue_giveaways.cancel() # pylint: disable=no-member

    def on_engine_error(self, error: BaseException, context: str):
        "Forward the errors met while closing a giveaway to the errors channel"
        self.bot.dispatch("error", error, context)

    @tasks.loop(minutes=5)
    async def sweep_overdue_giveaways(self):
        "Close the giveaways whose scheduled closing did not happen"
        for giveaway in self.engine.overdue_giveaways():
            self.log.warning("Giveaway %s missed its end date, closing it now", giveaway["id"])
            await self.engine.resolve_giveaway(giveaway["id"])

    @sweep_overdue_giveaways.before_loop
    async def on_sweep_overdue_giveaways_before(self):
        "Wait for the bot to be ready before starting the sweep"
        await self.bot.wait_until_ready()

    @sweep_overdue_giveaways.error
    async def on_sweep_overdue_giveaways_error(self, error: BaseException):
        "Log errors from the sweep"
        self.bot.dispatch("error", error)

    group = app_commands.Group(
        name="giveaways",
        description="Manage giveaways in your server",
        default_permissions=discord.Permissions(manage_guild=True),
        guild_only=True
    )

    def get_guild_giveaway(self, guild: discord.Guild, giveaway_id: str) -> Optional[GiveawayData]:
        "Find a running giveaway from its ID, only if it was sent in the given guild"
        try:
            giveaway = self.engine.get_giveaway(int(giveaway_id))
        except ValueError:
            return None
        if giveaway is None or guild.get_channel_or_thread(giveaway["channel"]) is None:
            return None
        return giveaway

    @group.command(name="create")
    @app_commands.describe(
        prize="What the winners will get",
        duration="How long the giveaway lasts (e.g. 30m, 2h, 1d, 1w)",
        winners=f"Number of winners, from {MIN_WINNERS} to {MAX_WINNERS}",
        channel="Where to send the giveaway (default: here)"
    )
    async def gw_create(self, interaction: GAWInteraction, prize: str, duration: str,
                        winners: app_commands.Range[int, MIN_WINNERS, MAX_WINNERS],
                        channel: Optional[discord.TextChannel]=None):
        "Create a giveaway"
        if interaction.guild is None:
            return
        target_channel = channel or interaction.channel
        if not isinstance(target_channel, discord.TextChannel):
            await interaction.response.send_message("Giveaways can only be sent in text channels!", ephemeral=True)
            return
        await interaction.response.defer(ephemeral=True)
        try:
            giveaway = await self.engine.create_giveaway(
                prize, duration, winners, interaction.user.id, target_channel.id
            )
        except GatewayUnavailable as err:
            self.log.warning("Could not send a giveaway in channel %s: %s", target_channel.id, err)
            await interaction.followup.send(
                f"I could not send the giveaway in {target_channel.mention}, check my permissions!"
            )
            return
        except GiveawayError as err:
            await interaction.followup.send(f"❌ {err}")
            return
        url = get_message_url(interaction.guild.id, giveaway)
        await interaction.followup.send(f"Giveaway created at {url} !")

    @group.command(name="list")
    async def gw_list(self, interaction: GAWInteraction):
        "List the running giveaways of the server"
        if interaction.guild is None:
            return
        text = ""
        for gaw in self.engine.active_giveaways():
            if interaction.guild.get_channel_or_thread(gaw["channel"]) is None:
                continue
            url = get_message_url(interaction.guild.id, gaw)
            end_date = discord.utils.format_dt(gaw["ends_at"], "R")
            text += f"- **[{gaw['prize']}]({url})**  -  {gaw['winners_count']} winners - ends {end_date}\n"
        embed = discord.Embed(
            title="List of active giveaways",
            description=text or "No giveaway is running right now",
            color=self.embed_color
        )
        await interaction.response.send_message(embed=embed)

    @group.command(name="end")
    async def gw_end(self, interaction: GAWInteraction, giveaway: str):
        "End a giveaway now and pick its winners"
        if interaction.guild is None:
            return
        gaw = self.get_guild_giveaway(interaction.guild, giveaway)
        if gaw is None:
            await interaction.response.send_message("Giveaway not found!", ephemeral=True)
            return
        await interaction.response.defer(ephemeral=True)
        result = await self.engine.resolve_giveaway(gaw["id"])
        if result["outcome"] == GiveawayOutcome.WINNERS:
            await interaction.followup.send("Giveaway ended, winners have been picked!")
        elif result["outcome"] == GiveawayOutcome.INSUFFICIENT_PARTICIPANTS:
            await interaction.followup.send("Giveaway ended, but there were not enough participants.")
        elif result["outcome"] == GiveawayOutcome.FAILED:
            await interaction.followup.send("Giveaway ended, but I could not announce the results :confused:")
        else:
            await interaction.followup.send("This giveaway is already over!")

    @group.command(name="cancel")
    async def gw_cancel(self, interaction: GAWInteraction, giveaway: str):
        "Cancel a giveaway without picking any winner"
        if interaction.guild is None:
            return
        gaw = self.get_guild_giveaway(interaction.guild, giveaway)
        if gaw is None:
            await interaction.response.send_message("Giveaway not found!", ephemeral=True)
            return
        confirm_view = ConfirmView(interaction.user.id)
        await interaction.response.send_message(
            f"Are you sure you want to cancel the **{gaw['prize']}** giveaway?",
            view=confirm_view, ephemeral=True
        )
        await confirm_view.wait()
        if not confirm_view.value:
            await interaction.followup.send("Giveaway not cancelled.", ephemeral=True)
            return
        if await self.engine.cancel_giveaway(gaw["id"]):
            await interaction.followup.send("Giveaway cancelled!", ephemeral=True)
        else:
            await interaction.followup.send("This giveaway is already over!", ephemeral=True)

    @gw_end.autocomplete("giveaway")
    @gw_cancel.autocomplete("giveaway")
    async def gw_giveaway_autocomplete(self, interaction: GAWInteraction, current: str):
        "Autocomplete for the giveaway argument of the end and cancel commands"
        if interaction.guild is None:
            return []
        current = current.lower()
        choices: list[tuple[bool, str, Choice[str]]] = []
        for gaw in self.engine.active_giveaways():
            if interaction.guild.get_channel_or_thread(gaw["channel"]) is None:
                continue
            if current in gaw["prize"].lower():
                priority = not gaw["prize"].lower().startswith(current)
                choice = Choice(name=gaw["prize"][:100], value=str(gaw["id"]))
                choices.append((priority, gaw["prize"], choice))
        return [choice for _, _, choice in sorted(choices, key=lambda x: x[0:2])][:25]


async def setup(bot: GAWbot):
    "Load the cog"
    await bot.add_cog(GiveawaysCog(bot))
