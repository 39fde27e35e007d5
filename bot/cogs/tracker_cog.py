"""
Tracker Cog — Live roster commands for the active scenario.

Commands (all act on the scenario active in the current channel):
  /tracker show
  /npc add <name> <variant> [count]
  /npc hp <creature> <value>      — set health (clamped)
  /npc damage <creature> <amount>
  /npc heal <creature> <amount>
  /npc defeat <creature>
  /npc full <creature>
  /npc condition <creature> <condition>   — toggle
  /npc remove <creature>
  /npc show <creature>

Every change is written to the database first; the roster shown here is
only updated once the write succeeds.
"""

import logging
from typing import List, Optional

import discord
from discord import app_commands
from discord.ext import commands

from models.creatures import Condition, CreatureVariant
from tools.tracker_errors import TrackerError
from bot.views.roster_views import build_npc_embed, build_scenario_embed

logger = logging.getLogger("Tracker_Cog")


def npc_choice_name(npc) -> str:
    """Autocomplete label; defeated creatures are marked so reused names stay distinct."""
    if npc.is_defeated:
        return f"{npc.name} (defeated)"
    return npc.name


class TrackerCog(commands.Cog, name="Tracker"):
    """Health, conditions and roster edits during play."""

    tracker = app_commands.Group(name="tracker", description="Show the active scenario")
    npc = app_commands.Group(name="npc", description="Edit creatures in the active scenario")

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.sessions = bot.sessions
        self.asset_store = bot.asset_store
        self.catalog = bot.catalog

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _session_or_reply(self, interaction: discord.Interaction):
        session = self.sessions.get(interaction.channel_id)
        if session is None:
            await interaction.response.send_message(
                "No active scenario here. Use `/scenario create` or `/scenario load`.",
                ephemeral=True,
            )
        return session

    async def _reply_error(self, interaction: discord.Interaction, error: TrackerError):
        logger.warning(f"Tracker command failed in {interaction.channel_id}: {error}")
        message = f"⚠️ {error}"
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)

    async def _send_npc(self, interaction: discord.Interaction, npc, note: Optional[str] = None):
        image_url = await self.asset_store.creature_image_url(npc.group_name or npc.name, npc.type)
        embed = build_npc_embed(npc, image_url=image_url)
        if interaction.response.is_done():
            await interaction.followup.send(content=note, embed=embed)
        else:
            await interaction.response.send_message(content=note, embed=embed)

    async def creature_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> List[app_commands.Choice[str]]:
        session = self.sessions.get(interaction.channel_id)
        if session is None:
            return []
        needle = current.lower()
        return [
            app_commands.Choice(name=npc_choice_name(npc), value=npc.id)
            for npc in session.npcs
            if needle in npc.name.lower()
        ][:25]

    async def template_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> List[app_commands.Choice[str]]:
        try:
            names = await self.catalog.monster_names() + await self.catalog.boss_names()
        except TrackerError as e:
            logger.warning(f"Creature name autocomplete failed: {e}")
            return []
        needle = current.lower()
        return [
            app_commands.Choice(name=name, value=name)
            for name in sorted(set(names))
            if needle in name.lower()
        ][:25]

    # ------------------------------------------------------------------
    # /tracker
    # ------------------------------------------------------------------
    @tracker.command(name="show", description="Show the grouped roster")
    async def show_cmd(self, interaction: discord.Interaction):
        session = await self._session_or_reply(interaction)
        if session is None:
            return
        theme = await self.asset_store.theme_assets()
        await interaction.response.send_message(embed=build_scenario_embed(session, logo_url=theme.logo))

    # ------------------------------------------------------------------
    # /npc
    # ------------------------------------------------------------------
    @npc.command(name="add", description="Add creatures to the active scenario")
    @app_commands.autocomplete(name=template_autocomplete)
    async def add_cmd(
        self,
        interaction: discord.Interaction,
        name: str,
        variant: CreatureVariant = CreatureVariant.NORMAL,
        count: app_commands.Range[int, 1, 20] = 1,
    ):
        session = await self._session_or_reply(interaction)
        if session is None:
            return
        await interaction.response.defer()
        try:
            added = await session.add_creatures(name, variant, count)
        except TrackerError as e:
            await self._reply_error(interaction, e)
            return
        names = ", ".join(npc.name for npc in added)
        await interaction.followup.send(
            f"Added {names}.", embed=build_scenario_embed(session)
        )

    @npc.command(name="hp", description="Set a creature's health")
    @app_commands.autocomplete(creature=creature_autocomplete)
    async def hp_cmd(self, interaction: discord.Interaction, creature: str, value: int):
        session = await self._session_or_reply(interaction)
        if session is None:
            return
        await interaction.response.defer()
        try:
            npc = await session.set_health(session.find_npc(creature).id, value)
        except TrackerError as e:
            await self._reply_error(interaction, e)
            return
        await self._send_npc(interaction, npc)

    @npc.command(name="damage", description="Subtract health")
    @app_commands.autocomplete(creature=creature_autocomplete)
    async def damage_cmd(
        self, interaction: discord.Interaction, creature: str, amount: app_commands.Range[int, 1] = 1
    ):
        session = await self._session_or_reply(interaction)
        if session is None:
            return
        await interaction.response.defer()
        try:
            npc = await session.adjust_health(session.find_npc(creature).id, -amount)
        except TrackerError as e:
            await self._reply_error(interaction, e)
            return
        note = f"\U0001f480 **{npc.name}** is defeated." if npc.is_defeated else None
        await self._send_npc(interaction, npc, note)

    @npc.command(name="heal", description="Add health")
    @app_commands.autocomplete(creature=creature_autocomplete)
    async def heal_cmd(
        self, interaction: discord.Interaction, creature: str, amount: app_commands.Range[int, 1] = 1
    ):
        session = await self._session_or_reply(interaction)
        if session is None:
            return
        await interaction.response.defer()
        try:
            npc = await session.adjust_health(session.find_npc(creature).id, amount)
        except TrackerError as e:
            await self._reply_error(interaction, e)
            return
        await self._send_npc(interaction, npc)

    @npc.command(name="defeat", description="Drop a creature to 0 health")
    @app_commands.autocomplete(creature=creature_autocomplete)
    async def defeat_cmd(self, interaction: discord.Interaction, creature: str):
        session = await self._session_or_reply(interaction)
        if session is None:
            return
        await interaction.response.defer()
        try:
            npc = await session.defeat(session.find_npc(creature).id)
        except TrackerError as e:
            await self._reply_error(interaction, e)
            return
        await self._send_npc(interaction, npc, f"\U0001f480 **{npc.name}** is defeated.")

    @npc.command(name="full", description="Heal a creature to full health")
    @app_commands.autocomplete(creature=creature_autocomplete)
    async def full_cmd(self, interaction: discord.Interaction, creature: str):
        session = await self._session_or_reply(interaction)
        if session is None:
            return
        await interaction.response.defer()
        try:
            npc = await session.heal_full(session.find_npc(creature).id)
        except TrackerError as e:
            await self._reply_error(interaction, e)
            return
        await self._send_npc(interaction, npc)

    @npc.command(name="condition", description="Toggle a condition on a creature")
    @app_commands.autocomplete(creature=creature_autocomplete)
    async def condition_cmd(self, interaction: discord.Interaction, creature: str, condition: Condition):
        session = await self._session_or_reply(interaction)
        if session is None:
            return
        await interaction.response.defer()
        try:
            npc = await session.toggle_condition(session.find_npc(creature).id, condition)
        except TrackerError as e:
            await self._reply_error(interaction, e)
            return
        state = "applied to" if condition.value in npc.conditions else "removed from"
        await self._send_npc(interaction, npc, f"{condition.value} {state} **{npc.name}**.")

    @npc.command(name="remove", description="Delete a creature from the scenario")
    @app_commands.autocomplete(creature=creature_autocomplete)
    async def remove_cmd(self, interaction: discord.Interaction, creature: str):
        session = await self._session_or_reply(interaction)
        if session is None:
            return
        await interaction.response.defer()
        try:
            npc = await session.remove(session.find_npc(creature).id)
        except TrackerError as e:
            await self._reply_error(interaction, e)
            return
        await interaction.followup.send(
            f"Removed **{npc.name}**.", embed=build_scenario_embed(session)
        )

    @npc.command(name="show", description="Show one creature's card")
    @app_commands.autocomplete(creature=creature_autocomplete)
    async def npc_show_cmd(self, interaction: discord.Interaction, creature: str):
        session = await self._session_or_reply(interaction)
        if session is None:
            return
        try:
            npc = session.find_npc(creature)
        except TrackerError as e:
            await self._reply_error(interaction, e)
            return
        await interaction.response.defer()
        await self._send_npc(interaction, npc)


async def setup(bot: commands.Bot):
    await bot.add_cog(TrackerCog(bot))
