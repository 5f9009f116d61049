from gawbot.gawbot import GAWInteraction

async def is_bot_admin(interaction: GAWInteraction) -> bool:
    """Check if the user is a bot admin."""
    return interaction.user.id in interaction.client.config["ADMIN_IDS"]
