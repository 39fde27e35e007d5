"""
CreatureCatalog — Lookup over the monster and boss stat tables.

Resolves a creature name + scenario level (+ Normal/Elite variant) to its
stat line, and turns a boss's "<N>×C" health formula into a number for the
current party size.
"""

import re
import logging
from typing import Dict, List, Union

from models.creatures import CreatureTemplate, CreatureVariant
from tools.tracker_errors import TemplateNotFoundError

logger = logging.getLogger("CreatureCatalog")

# "8×C", "8 x C", "8XC" — N times the character (player) count
_BOSS_HP_RE = re.compile(r"^(?P<base>\d+)\s*[×xX]\s*C$")


def calculate_boss_health(hp: Union[int, str], player_count: int) -> int:
    """Maximum health for a boss hp field at a given player count.

    Plain numbers are returned unchanged. Anything unparseable yields 0,
    which callers must treat as invalid rather than persist.
    """
    if isinstance(hp, int):
        return hp
    text = str(hp).strip()
    match = _BOSS_HP_RE.match(text)
    if match:
        return int(match.group("base")) * player_count
    try:
        return int(text)
    except ValueError:
        logger.warning(f"Unparseable boss health formula: {hp!r}")
        return 0


def resolve_max_health(template: CreatureTemplate, player_count: int) -> int:
    return calculate_boss_health(template.hp, player_count)


class CreatureCatalog:
    """Read-only access to creature templates via the StateManager."""

    def __init__(self, state_manager):
        self.state_manager = state_manager

    async def get_template(
        self, name: str, level: int, variant: Union[CreatureVariant, str]
    ) -> CreatureTemplate:
        """Stat line for (name, level, variant). Raises TemplateNotFoundError."""
        variant = CreatureVariant(variant)
        if variant == CreatureVariant.BOSS:
            row = await self.state_manager.find_boss(name, level)
            template = CreatureTemplate.from_boss_row(row) if row else None
        else:
            row = await self.state_manager.find_monster(name, level, variant.value)
            template = CreatureTemplate.model_validate(row) if row else None

        if template is None:
            logger.warning(f"No template for {name} ({variant.value}) at level {level}")
            raise TemplateNotFoundError(
                f"No {variant.value} stats for '{name}' at level {level}."
            )
        return template

    async def list_templates(self, level: int) -> Dict[str, List[CreatureTemplate]]:
        """All monster variants and bosses for a level."""
        monsters = await self.state_manager.find_monsters(level)
        bosses = await self.state_manager.find_bosses(level)
        return {
            "monsters": [CreatureTemplate.model_validate(m) for m in monsters],
            "bosses": [CreatureTemplate.from_boss_row(b) for b in bosses],
        }

    async def monster_names(self) -> List[str]:
        # Level 0 rows carry every creature name exactly once per variant
        return await self.state_manager.distinct_names("monsters", level=0)

    async def boss_names(self) -> List[str]:
        return await self.state_manager.distinct_names("bosses", level=0)
