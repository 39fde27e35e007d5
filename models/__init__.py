"""
Pydantic v2 data models — the contract for all tracker state.

Every write to MongoDB passes through these models first.
If validation fails, nothing is written.
"""

from models.scenario import Scenario, DEMO_USER_ID
from models.creatures import (
    Condition,
    CreatureRole,
    CreatureVariant,
    CreatureTemplate,
    CreatureInstance,
    CreatureSelection,
    parse_special_traits,
)

__all__ = [
    "Scenario",
    "DEMO_USER_ID",
    "Condition",
    "CreatureRole",
    "CreatureVariant",
    "CreatureTemplate",
    "CreatureInstance",
    "CreatureSelection",
    "parse_special_traits",
]
