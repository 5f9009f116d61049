import argparse
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING

import discord
from LRFutils import progress

from .utils.logging_formats import get_logging_formatter

if TYPE_CHECKING:
    from .gawbot import GAWbot


def setup_start_parser():
    "Create a parser for the command-line interface"
    parser = argparse.ArgumentParser()
    parser.add_argument('--beta', '-b', help="Use the beta bot instead of the release", action="store_true")
    return parser

def setup_logger():
    """Setup the logger used by the bot
    It should use both console and a debug file"""
    root_logger = logging.getLogger()
    bot_logger = logging.getLogger("gawbot")
    if root_logger.handlers:
        return bot_logger # already configured
    # console logging
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(get_logging_formatter(with_colors=sys.stdout.isatty()))
    # file logging
    os.makedirs("logs", exist_ok=True)
    file_handler = RotatingFileHandler("logs/debug.log", maxBytes=int(1e6), backupCount=2, delay=True)
    file_handler.setFormatter(get_logging_formatter(with_colors=False))

    # add handlers to root logger
    root_logger.addHandler(file_handler)
    root_logger.addHandler(stream_handler)
    root_logger.setLevel(logging.INFO)

    # set gawbot logger to debug
    bot_logger.setLevel(logging.DEBUG)
    return bot_logger

async def load_cogs(bot: "GAWbot"):
    "Load the bot modules"
    extensions = [
        "admin",
        "errors",
        "giveaways",
    ]
    progress_bar = progress.Bar(max=len(extensions), width=60, prefix="Loading extensions", eta=False, show_duration=False)

    # Here we load our extensions (cogs) listed above in [extensions]
    count = 0
    for i, extension in enumerate(extensions):
        progress_bar(i)
        try:
            await bot.load_extension(f"gawbot.modules.{extension}.main")
        except discord.DiscordException:
            bot.log.critical('Failed to load extension %s', extension, exc_info=True)
            count += 1
        if count  > 0:
            bot.log.critical("%s modules not loaded\nEnd of program", count)
            sys.exit()
    progress_bar(len(extensions), stop=True)
