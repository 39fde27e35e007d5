"""
Creature schemas — reference templates and the live instances on the board.

CreatureTemplate rows are read-only reference data (the monster and boss
stat tables). CreatureInstance documents are the mutable roster entries
stored in the npcs collection; they gate ALL writes to that collection.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator


class Condition(str, Enum):
    """Status effects that can be applied to a creature instance."""
    POISON = "Poison"
    WOUND = "Wound"
    IMMOBILIZE = "Immobilize"
    DISARM = "Disarm"
    STUN = "Stun"
    MUDDLE = "Muddle"
    INVISIBLE = "Invisible"
    STRENGTHEN = "Strengthen"
    BLESS = "Bless"
    CURSE = "Curse"


class CreatureRole(str, Enum):
    MONSTER = "monster"
    BOSS = "boss"


class CreatureVariant(str, Enum):
    NORMAL = "Normal"
    ELITE = "Elite"
    BOSS = "Boss"


# Boss table column -> immunity label, in display order
BOSS_IMMUNITY_COLUMNS = {
    "immune_poison": "Poison",
    "immune_wound": "Wound",
    "immune_immobilize": "Immobilize",
    "immune_disarm": "Disarm",
    "immune_knockout": "Knockout",
    "immune_confuse": "Confuse",
    "immune_curse": "Curse",
}


def parse_special_traits(traits: Optional[str]) -> List[str]:
    """Split a comma-separated traits string into a clean list."""
    if not traits:
        return []
    return [t.strip() for t in traits.split(",") if t.strip()]


class CreatureTemplate(BaseModel):
    """Stat line for one creature at one level and variant."""

    id: Optional[Union[int, str]] = None
    name: str
    level: int = Field(ge=0, le=7)
    type: CreatureVariant
    hp: Union[int, str]  # bosses use a "<N>×C" formula
    move: Optional[int] = None
    attack: Optional[Union[int, str]] = None  # may hold variables like "3+X"
    range: Optional[str] = None
    special_traits: Optional[str] = None
    special_actions: List[str] = []
    immunities: List[str] = []
    notes: Optional[str] = None

    model_config = {"extra": "ignore", "use_enum_values": True}

    @property
    def role(self) -> CreatureRole:
        if self.type == CreatureVariant.BOSS:
            return CreatureRole.BOSS
        return CreatureRole.MONSTER

    @classmethod
    def from_boss_row(cls, row: Dict[str, Any]) -> "CreatureTemplate":
        """Shape a raw bosses-table row: fold special actions and immunity flags."""
        actions = [row.get("special_action_1"), row.get("special_action_2")]
        immunities = [
            label for column, label in BOSS_IMMUNITY_COLUMNS.items() if row.get(column)
        ]
        data = {k: v for k, v in row.items() if k not in BOSS_IMMUNITY_COLUMNS}
        data["type"] = CreatureVariant.BOSS
        data["special_actions"] = [a for a in actions if a]
        data["immunities"] = immunities
        return cls.model_validate(data)


class CreatureInstance(BaseModel):
    """Schema for a creature on the board (a row in the npcs collection)."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    scenario_id: str
    name: str
    type: CreatureRole = CreatureRole.MONSTER
    monster_type: CreatureVariant = CreatureVariant.NORMAL
    max_health: int = Field(ge=1)
    current_health: int
    conditions: List[Condition] = []
    abilities: List[str] = []
    position: int = 0
    group_name: Optional[str] = None
    label: Optional[int] = Field(default=None, ge=1)
    move: Optional[int] = None
    attack: Optional[str] = None
    range: Optional[str] = None
    special_traits: Optional[str] = None
    immunities: List[str] = []
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"extra": "ignore", "use_enum_values": True}

    @field_validator("current_health")
    @classmethod
    def clamp_to_max(cls, v, info):
        hp_max = info.data.get("max_health")
        if hp_max is not None and v > hp_max:
            return hp_max
        return max(v, 0)

    @field_validator("conditions")
    @classmethod
    def drop_duplicate_conditions(cls, v):
        seen = []
        for c in v:
            if c not in seen:
                seen.append(c)
        return seen

    @field_validator("attack", mode="before")
    @classmethod
    def attack_as_text(cls, v):
        if v is None:
            return None
        return str(v)

    @property
    def is_defeated(self) -> bool:
        return self.current_health == 0

    @property
    def health_percentage(self) -> float:
        return self.current_health / self.max_health * 100


class CreatureSelection(BaseModel):
    """How many of one creature to place when a scenario is created."""

    name: str
    role: CreatureRole = CreatureRole.MONSTER
    normal_count: int = Field(default=0, ge=0)  # bosses count here too; a bare boss means one
    elite_count: int = Field(default=0, ge=0)

    model_config = {"use_enum_values": True}

    @model_validator(mode="after")
    def check_boss_counts(self):
        if self.role == CreatureRole.BOSS:
            if self.elite_count:
                raise ValueError("Bosses have no Elite variant")
            if self.normal_count == 0:
                self.normal_count = 1
        return self

    @property
    def total(self) -> int:
        return self.normal_count + self.elite_count
