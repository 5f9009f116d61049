#!/usr/bin/env python
#coding=utf-8

# check python version
import sys
py_version = sys.version_info
if py_version.major != 3 or py_version.minor < 9:
    print("You must use at least Python 3.9!", file=sys.stderr)
    sys.exit(1)

import asyncio

import discord

from gawbot.boot_utils import load_cogs, setup_start_parser
from gawbot.gawbot import GAWbot


async def main():
    "Instanciate and start the bot"
    parser = setup_start_parser()
    args = parser.parse_args()

    client = GAWbot(status=discord.Status.online, beta=args.beta)
    client.log.info("Starting bot")

    @client.event
    async def on_ready():
        client.log.info("Bot is ready")
        print("Name:", client.user)
        print("ID:", client.user.id)
        guild_names = (x.name for x in client.guilds)
        print("Connected on ["+str(len(client.guilds))+"] "+", ".join(guild_names))
        print('------')

    async with client:
        await load_cogs(client)
        if args.beta:
            token = client.config["DISCORD_BETA_TOKEN"]
        else:
            token = client.config["DISCORD_RELEASE_TOKEN"]
        await client.start(token)


if __name__ == "__main__":
    asyncio.run(main())
