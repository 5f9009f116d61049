import logging

import discord
from discord import app_commands
from discord.ext import commands

from gawbot.gawbot import GAWbot, GAWInteraction
from gawbot.utils.checks import is_bot_admin


class AdminCog(commands.Cog):
    "A few commands to manage the bot"

    def __init__(self, bot: GAWbot):
        self.bot = bot
        self.log = logging.getLogger("gawbot.admin")

    group = discord.app_commands.Group(
        name="admin",
        description="Admin commands to manage the bot",
        default_permissions=discord.Permissions(administrator=True)
    )

    @group.command(name="shutdown")
    @app_commands.check(is_bot_admin)
    async def shutdown(self, interaction: GAWInteraction):
        "Shutdown the whole program"
        giveaways = self.bot.get_cog("GiveawaysCog")
        running = len(giveaways.engine.active_giveaways()) if giveaways else 0 # type: ignore
        await interaction.response.send_message(
            f"Shutting down... ({running} running giveaways will be lost)"
        )
        await self.bot.change_presence(status=discord.Status('offline'))
        self.log.info("Shutting down the process, requested by %s", interaction.user)
        await self.bot.close()

    @group.command(name="sync-commands")
    @app_commands.check(is_bot_admin)
    async def sync_app_commands(self, interaction: GAWInteraction):
        "Sync app commands"
        await interaction.response.defer()
        cmds = await self.bot.tree.sync()
        txt = f"{len(cmds)} global commands synced"
        self.log.info(txt)
        await interaction.followup.send(txt + '!')


async def setup(bot: GAWbot):
    await bot.add_cog(AdminCog(bot))
