"""
Shared pytest fixtures for the Haven Tracker test suite.

Provides creature factories, canned template rows, and a minimal async
cursor double so StateManager can be exercised without a MongoDB server.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from models.scenario import Scenario
from models.creatures import CreatureInstance, CreatureTemplate


# ---------------------------------------------------------------------------
# Mongo doubles
# ---------------------------------------------------------------------------

class FakeCursor:
    """Stands in for a motor cursor: chainable sort/limit + async iteration."""

    def __init__(self, docs):
        self._docs = [dict(d) for d in docs]

    def sort(self, key, direction=1):
        self._docs.sort(key=lambda d: d.get(key), reverse=direction < 0)
        return self

    def limit(self, n):
        self._docs = self._docs[:n]
        return self

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

MONSTER_ROWS = {
    ("Bandit Guard", 1, "Normal"): {
        "id": 11, "name": "Bandit Guard", "level": 1, "type": "Normal",
        "hp": 6, "move": 2, "attack": 2, "range": "-", "special_traits": None,
    },
    ("Bandit Guard", 1, "Elite"): {
        "id": 12, "name": "Bandit Guard", "level": 1, "type": "Elite",
        "hp": 9, "move": 2, "attack": 3, "range": "-", "special_traits": "Shield 1",
    },
    ("Living Bones", 1, "Normal"): {
        "id": 21, "name": "Living Bones", "level": 1, "type": "Normal",
        "hp": 5, "move": 3, "attack": 1, "range": "-", "special_traits": "Target 2",
    },
}

BOSS_ROWS = {
    ("Bandit Commander", 1): {
        "id": 31, "name": "Bandit Commander", "level": 1, "type": "Boss",
        "hp": "8×C", "move": 3, "attack": "3", "range": "-",
        "special_action_1": "Move to next door and reveal room",
        "special_action_2": "Summon Living Bones",
        "immune_poison": False, "immune_wound": False, "immune_immobilize": True,
        "immune_disarm": False, "immune_knockout": True, "immune_confuse": False,
        "immune_curse": True, "notes": "Remains at the entrance",
    },
    ("Broken Golem", 1): {
        "id": 32, "name": "Broken Golem", "level": 1, "type": "Boss",
        "hp": "lots", "move": 1, "attack": "5", "range": "-",
    },
}


class FakeCatalog:
    """CreatureCatalog double backed by the sample rows above."""

    async def get_template(self, name, level, variant):
        from tools.tracker_errors import TemplateNotFoundError
        variant = getattr(variant, "value", variant)
        if variant == "Boss":
            row = BOSS_ROWS.get((name, level))
            if row:
                return CreatureTemplate.from_boss_row(row)
        else:
            row = MONSTER_ROWS.get((name, level, variant))
            if row:
                return CreatureTemplate.model_validate(row)
        raise TemplateNotFoundError(f"No {variant} stats for '{name}' at level {level}.")


def make_npc(name, current_health=5, max_health=5, group_name=None, label=None,
             position=0, role="monster", variant="Normal", **extra):
    return CreatureInstance(
        scenario_id="scn-1",
        name=name,
        type=role,
        monster_type=variant,
        max_health=max_health,
        current_health=current_health,
        group_name=group_name,
        label=label,
        position=position,
        **extra,
    )


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def scenario():
    return Scenario(id="scn-1", name="Black Barrow", level=1, player_count=3)


@pytest.fixture
def fake_catalog():
    return FakeCatalog()


@pytest.fixture
def mock_state_manager():
    """AsyncMock StateManager whose writes all succeed."""
    sm = MagicMock()
    sm.is_connected = True
    sm.create_scenario = AsyncMock(side_effect=lambda scenario, npcs=None: scenario)
    sm.get_scenario = AsyncMock(return_value=None)
    sm.get_npcs = AsyncMock(return_value=[])
    sm.insert_npcs = AsyncMock(side_effect=lambda npcs: npcs)
    sm.update_npc = AsyncMock(return_value=None)
    sm.delete_npc = AsyncMock(return_value=None)
    return sm
