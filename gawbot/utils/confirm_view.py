from typing import Optional

import discord
from discord.ui import button


class ConfirmView(discord.ui.View):
    "Ask a single user to confirm or cancel an action"

    def __init__(self, user_id: int, timeout: int = 60):
        super().__init__(timeout=timeout)
        self.user_id = user_id
        self.value: Optional[bool] = None

    async def interaction_check(self, interaction: discord.Interaction, /) -> bool:
        "Only the user who started the action can answer"
        if interaction.user.id != self.user_id:
            await interaction.response.send_message("You cannot use that!", ephemeral=True)
            return False
        return True

    @button(label="Confirm", style=discord.ButtonStyle.red)
    async def confirm(self, interaction: discord.Interaction, _button):
        "Confirm the action when clicking"
        self.value = True
        await self.disable(interaction)

    @button(label="Cancel", style=discord.ButtonStyle.grey)
    async def cancel(self, interaction: discord.Interaction, _button):
        "Cancel the action when clicking"
        self.value = False
        await self.disable(interaction)

    async def disable(self, interaction: discord.Interaction):
        "Grey out the buttons and stop listening"
        for child in self.children:
            child.disabled = True # type: ignore
        await interaction.response.edit_message(view=self)
        self.stop()
