"""
Scenario Cog — Create, load, list, close and delete tracked scenarios.

Commands:
  /scenario create <name> <level> <players> [creatures]
  /scenario load <scenario_id>
  /scenario list
  /scenario close
  /scenario delete <scenario_id>
  /creatures list [search]
  /creatures stats <level>

The creatures option takes a semicolon-separated list:
  "Bandit Guard=2/1; Living Bones=3; Bandit Commander=boss"
meaning 2 Normal + 1 Elite Bandit Guards, 3 Normal Living Bones and one
Bandit Commander. An empty list creates a scenario with no creatures.
"""

import logging
from typing import List

import discord
from discord import app_commands
from discord.ext import commands
from pydantic import ValidationError

from models.creatures import CreatureRole, CreatureSelection
from tools.tracker_errors import TrackerError, TemplateNotFoundError, InvalidHealthError
from tools.tracker_session import TrackerSession
from bot.views.roster_views import build_scenario_embed, build_templates_embed

logger = logging.getLogger("Scenario_Cog")


def parse_selections(text: str) -> List[CreatureSelection]:
    """Parse the /scenario create creatures option. Raises ValueError."""
    selections: List[CreatureSelection] = []
    for raw in (text or "").split(";"):
        entry = raw.strip()
        if not entry:
            continue
        name, _, counts = entry.partition("=")
        name, counts = name.strip(), counts.strip().lower()
        if not name:
            raise ValueError(f"Missing creature name in '{entry}'")

        try:
            if counts in ("boss", "b"):
                selections.append(CreatureSelection(name=name, role=CreatureRole.BOSS, normal_count=1))
            elif counts.startswith("boss"):
                count = int(counts[len("boss"):].strip() or 1)
                selections.append(CreatureSelection(name=name, role=CreatureRole.BOSS, normal_count=count))
            else:
                normal, _, elite = (counts or "1").partition("/")
                selections.append(CreatureSelection(
                    name=name,
                    normal_count=int(normal or 0),
                    elite_count=int(elite or 0),
                ))
        except (ValueError, ValidationError) as e:
            raise ValueError(f"Could not read counts for '{name}': {counts!r}") from e
    return selections


class ScenarioCog(commands.Cog, name="Scenarios"):
    """Scenario setup and switching."""

    scenario = app_commands.Group(name="scenario", description="Create and load scenarios")
    creatures = app_commands.Group(name="creatures", description="Browse the creature tables")

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.state_manager = bot.state_manager
        self.catalog = bot.catalog
        self.asset_store = bot.asset_store
        self.sessions = bot.sessions
        self.user_id = bot.tracker_user_id

    async def _logo_url(self):
        theme = await self.asset_store.theme_assets()
        return theme.logo

    # ------------------------------------------------------------------
    # /scenario
    # ------------------------------------------------------------------
    @scenario.command(name="create", description="Start tracking a new scenario in this channel")
    @app_commands.describe(
        name="Scenario name",
        level="Scenario level (0-7)",
        players="Number of players (1-4)",
        creatures="e.g. 'Bandit Guard=2/1; Bandit Commander=boss'",
    )
    async def create_cmd(
        self,
        interaction: discord.Interaction,
        name: str,
        level: app_commands.Range[int, 0, 7],
        players: app_commands.Range[int, 1, 4],
        creatures: str = "",
    ):
        try:
            selections = parse_selections(creatures)
        except ValueError as e:
            await interaction.response.send_message(str(e), ephemeral=True)
            return

        await interaction.response.defer()
        try:
            session = await TrackerSession.create_scenario(
                self.state_manager,
                self.catalog,
                name=name,
                level=level,
                player_count=players,
                selections=selections,
                user_id=self.user_id,
            )
        except (TemplateNotFoundError, InvalidHealthError) as e:
            await interaction.followup.send(f"Scenario not created: {e}", ephemeral=True)
            return
        except TrackerError as e:
            logger.error(f"Scenario creation failed: {e}")
            await interaction.followup.send(
                f"Failed to create scenario. Please try again.\n_{e}_", ephemeral=True
            )
            return

        self.sessions.set(interaction.channel_id, session)
        logger.info(
            f"Scenario '{session.scenario.name}' created by {interaction.user.name} "
            f"in channel {interaction.channel_id}"
        )
        embed = build_scenario_embed(session, logo_url=await self._logo_url())
        await interaction.followup.send(embed=embed)

    @scenario.command(name="load", description="Resume a saved scenario in this channel")
    async def load_cmd(self, interaction: discord.Interaction, scenario_id: str):
        await interaction.response.defer()
        try:
            session = await TrackerSession.open(self.state_manager, self.catalog, scenario_id.strip())
        except TrackerError as e:
            logger.error(f"Scenario load failed: {e}")
            await interaction.followup.send(f"Could not load scenario: {e}", ephemeral=True)
            return
        if session is None:
            await interaction.followup.send(f"No scenario with id `{scenario_id}`.", ephemeral=True)
            return

        self.sessions.set(interaction.channel_id, session)
        embed = build_scenario_embed(session, logo_url=await self._logo_url())
        await interaction.followup.send(embed=embed)

    @scenario.command(name="list", description="Show recent scenarios")
    async def list_cmd(self, interaction: discord.Interaction):
        try:
            scenarios = await self.state_manager.list_scenarios(self.user_id)
        except TrackerError as e:
            await interaction.response.send_message(f"Could not list scenarios: {e}", ephemeral=True)
            return
        if not scenarios:
            await interaction.response.send_message("_No scenarios yet. Use `/scenario create`._", ephemeral=True)
            return

        lines = [
            f"`{s.id}` **{s.name}** — level {s.level}, {s.player_count} players"
            for s in scenarios
        ]
        await interaction.response.send_message("\n".join(lines), ephemeral=True)

    @scenario.command(name="close", description="Stop tracking the scenario in this channel")
    async def close_cmd(self, interaction: discord.Interaction):
        session = self.sessions.close(interaction.channel_id)
        if session is None:
            await interaction.response.send_message("No active scenario in this channel.", ephemeral=True)
            return
        await interaction.response.send_message(
            f"Closed **{session.scenario.name}**. Resume it with `/scenario load {session.scenario.id}`."
        )

    @scenario.command(name="delete", description="Permanently delete a saved scenario and its creatures")
    async def delete_cmd(self, interaction: discord.Interaction, scenario_id: str):
        scenario_id = scenario_id.strip()
        await interaction.response.defer(ephemeral=True)
        try:
            deleted = await self.state_manager.delete_scenario(scenario_id)
        except TrackerError as e:
            logger.error(f"Scenario delete failed: {e}")
            await interaction.followup.send(f"Could not delete scenario: {e}", ephemeral=True)
            return
        if not deleted:
            await interaction.followup.send(f"No scenario with id `{scenario_id}`.", ephemeral=True)
            return

        for channel_id in self.sessions.channels_for(scenario_id):
            self.sessions.close(channel_id)
        logger.info(f"Scenario {scenario_id} deleted by {interaction.user.name}")
        await interaction.followup.send(f"Deleted scenario `{scenario_id}`.", ephemeral=True)

    # ------------------------------------------------------------------
    # /creatures
    # ------------------------------------------------------------------
    @creatures.command(name="stats", description="Stat lines for every creature at a level")
    async def creatures_stats_cmd(
        self, interaction: discord.Interaction, level: app_commands.Range[int, 0, 7]
    ):
        await interaction.response.defer(ephemeral=True)
        try:
            templates = await self.catalog.list_templates(level)
        except TrackerError as e:
            await interaction.followup.send(f"Could not load creatures: {e}", ephemeral=True)
            return
        await interaction.followup.send(
            embed=build_templates_embed(level, templates["monsters"], templates["bosses"]),
            ephemeral=True,
        )

    @creatures.command(name="list", description="List monster and boss names")
    async def creatures_list_cmd(self, interaction: discord.Interaction, search: str = ""):
        try:
            monsters = await self.catalog.monster_names()
            bosses = await self.catalog.boss_names()
        except TrackerError as e:
            await interaction.response.send_message(f"Could not load creatures: {e}", ephemeral=True)
            return

        needle = search.strip().lower()
        if needle:
            monsters = [m for m in monsters if needle in m.lower()]
            bosses = [b for b in bosses if needle in b.lower()]

        embed = discord.Embed(title="Creatures", color=discord.Color.dark_red())
        embed.add_field(name="Monsters", value="\n".join(monsters)[:1024] or "_none_", inline=True)
        embed.add_field(name="Bosses", value="\n".join(bosses)[:1024] or "_none_", inline=True)
        await interaction.response.send_message(embed=embed, ephemeral=True)


async def setup(bot: commands.Bot):
    await bot.add_cog(ScenarioCog(bot))
