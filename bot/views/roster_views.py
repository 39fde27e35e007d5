"""
Roster Views — Embed builders for the tracker.

Contains:
  - build_scenario_embed: scenario header + grouped roster
  - build_npc_embed: one creature's card (health, conditions, stats)
  - build_templates_embed: stat table for one level (/creatures stats)
  - health_bar: text health bar used by both

Pure functions over models; no network calls. Respects Discord's limits
(25 fields per embed, 1024 characters per field value).
"""

import logging
from typing import List, Optional

import discord

from models.creatures import CreatureInstance, CreatureRole, CreatureTemplate, parse_special_traits
from tools.roster import RosterGroup, label_of

logger = logging.getLogger("RosterViews")

MAX_FIELDS = 25
MAX_FIELD_CHARS = 1024

CONDITION_EMOJI = {
    "Poison": "\U0001f922",      # nauseated face
    "Wound": "\U0001fa78",       # drop of blood
    "Immobilize": "⛓",      # chains
    "Disarm": "\U0001f5e1",      # dagger
    "Stun": "\U0001f4ab",        # dizzy
    "Muddle": "❓",          # question mark
    "Invisible": "\U0001f47b",   # ghost
    "Strengthen": "\U0001f4aa",  # flexed biceps
    "Bless": "✨",           # sparkles
    "Curse": "\U0001f480",       # skull
}


def health_bar(current: int, maximum: int, width: int = 10) -> str:
    if maximum <= 0:
        return "░" * width
    filled = round(width * current / maximum)
    return "█" * filled + "░" * (width - filled)


def _status_emoji(npc: CreatureInstance) -> str:
    if npc.is_defeated:
        return "\U0001f480"
    pct = npc.health_percentage
    if pct <= 25:
        return "\U0001f534"
    if pct <= 50:
        return "\U0001f7e1"
    return "\U0001f7e2"


def format_conditions(conditions) -> str:
    if not conditions:
        return ""
    return " ".join(f"{CONDITION_EMOJI.get(c, '')}{c}" for c in conditions)


def format_npc_line(npc: CreatureInstance) -> str:
    line = f"{_status_emoji(npc)} **{npc.name}** {npc.current_health}/{npc.max_health}"
    conditions = format_conditions(npc.conditions)
    if conditions:
        line += f" — {conditions}"
    if npc.is_defeated:
        line = f"~~{npc.name}~~ (defeated)"
    return line


def format_group(group: RosterGroup) -> str:
    lines = [format_npc_line(npc) for npc in group.members]
    text = "\n".join(lines)
    if len(text) > MAX_FIELD_CHARS:
        text = text[: MAX_FIELD_CHARS - 4] + "\n..."
    return text or "_empty_"


def build_scenario_embed(session, logo_url: Optional[str] = None) -> discord.Embed:
    """Scenario header with counts, then one field per creature group."""
    scenario = session.scenario
    summary = session.summary()
    embed = discord.Embed(
        title=scenario.name,
        description=(
            f"Level {scenario.level} • {scenario.player_count} players • "
            f"{summary['alive']} alive, {summary['defeated']} defeated"
        ),
        color=discord.Color.dark_purple(),
    )
    if logo_url:
        embed.set_thumbnail(url=logo_url)

    groups = list(session.groups().values())
    if not groups:
        embed.add_field(name="Roster", value="_No creatures in this scenario yet._", inline=False)

    for group in groups[:MAX_FIELDS]:
        embed.add_field(name=group.name, value=format_group(group), inline=False)
    if len(groups) > MAX_FIELDS:
        logger.warning(f"Roster has {len(groups)} groups; only {MAX_FIELDS} shown")

    embed.set_footer(
        text=f"Monsters: {summary['monsters']} | Bosses: {summary['bosses']} | ID: {scenario.id}"
    )
    return embed


def build_npc_embed(npc: CreatureInstance, image_url: Optional[str] = None) -> discord.Embed:
    """Full card for one creature."""
    is_boss = npc.type == CreatureRole.BOSS
    if npc.is_defeated:
        color = discord.Color.dark_grey()
    elif is_boss:
        color = discord.Color.gold()
    else:
        color = discord.Color.blue()

    embed = discord.Embed(
        title=npc.name,
        description=f"{npc.monster_type} {npc.type}",
        color=color,
    )
    if image_url:
        embed.set_thumbnail(url=image_url)

    embed.add_field(
        name="Health",
        value=f"`{health_bar(npc.current_health, npc.max_health)}` {npc.current_health}/{npc.max_health}",
        inline=False,
    )
    if npc.move is not None:
        embed.add_field(name="Move", value=str(npc.move), inline=True)
    if npc.attack:
        embed.add_field(name="Attack", value=npc.attack, inline=True)
    if npc.range:
        embed.add_field(name="Range", value=npc.range, inline=True)
    if npc.conditions:
        embed.add_field(name="Conditions", value=format_conditions(npc.conditions), inline=False)
    if npc.special_traits:
        embed.add_field(
            name="Traits", value="\n".join(parse_special_traits(npc.special_traits))[:MAX_FIELD_CHARS], inline=False
        )
    if npc.abilities:
        embed.add_field(name="Special Actions", value="\n".join(npc.abilities)[:MAX_FIELD_CHARS], inline=False)
    if npc.immunities:
        embed.add_field(name="Immune", value=", ".join(npc.immunities), inline=False)
    if npc.notes:
        embed.add_field(name="Notes", value=npc.notes[:MAX_FIELD_CHARS], inline=False)

    label = label_of(npc)
    footer = f"Group: {npc.group_name or 'Other'}"
    if label is not None:
        footer += f" | #{label}"
    embed.set_footer(text=footer)
    return embed


def format_template_line(template: CreatureTemplate) -> str:
    parts = [f"HP {template.hp}"]
    if template.move is not None:
        parts.append(f"Move {template.move}")
    if template.attack is not None:
        parts.append(f"Attack {template.attack}")
    if template.range and template.range != "-":
        parts.append(f"Range {template.range}")
    return f"**{template.name}** ({template.type}) " + ", ".join(parts)


def build_templates_embed(level: int, monsters: List[CreatureTemplate],
                          bosses: List[CreatureTemplate]) -> discord.Embed:
    """Stat table for one scenario level: monster variants, then bosses."""
    embed = discord.Embed(title=f"Creature stats — level {level}", color=discord.Color.dark_red())
    for title, templates in (("Monsters", monsters), ("Bosses", bosses)):
        text = "\n".join(format_template_line(t) for t in templates)
        if len(text) > MAX_FIELD_CHARS:
            text = text[: MAX_FIELD_CHARS - 4] + "\n..."
        embed.add_field(name=title, value=text or "_none_", inline=False)
    return embed
