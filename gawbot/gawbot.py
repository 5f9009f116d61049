import sys
from typing import Optional, Union

import discord
from discord.ext import commands

from .boot_utils import setup_logger
from .config import Config


class GAWbot(commands.Bot):
    "Bot class, with everything required to run it"

    user: discord.ClientUser # type override because we consider the bot will always be logged in, as long as used

    def __init__(self, status: discord.Status, beta: bool, config: Optional[Config] = None):
        allowed_mentions = discord.AllowedMentions(everyone=False, roles=False)
        intents = discord.Intents.default()
        intents.typing = False
        intents.webhooks = False
        intents.integrations = False
        self.config = config or Config() # load config from .json file
        super().__init__(command_prefix=commands.when_mentioned, status=status,
                         allowed_mentions=allowed_mentions, intents=intents)
        self.beta = beta # if the bot is in beta mode
        self.log = setup_logger() # logs module
        # app commands
        self.tree.on_error = self.on_app_cmd_error

    async def on_error(self, event_method: Union[Exception, str], *_args, **_kwargs):
        "Called when an event listener raises an uncaught exception"
        if isinstance(event_method, str) and event_method.startswith("on_") and event_method != "on_error":
            _, error, _ = sys.exc_info()
            self.dispatch("error", error, f"While handling event `{event_method}`")

    async def on_app_cmd_error(self, interaction: discord.Interaction, error: discord.app_commands.AppCommandError):
        self.dispatch("interaction_error", interaction, error)


GAWInteraction = discord.Interaction[GAWbot] # use generic interaction class with custom bot class
