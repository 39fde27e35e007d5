"""
TrackerSession — The one explicit store for an active scenario.

Holds the scenario and its roster in memory and pushes every change through
the StateManager. Local state is only updated after the database accepts a
write; if the write fails the roster is left exactly as it was and the
error propagates to the caller. Nothing is retried.

Concurrent edits to the same creature are not ordered against each other;
the last write to land wins.
"""

import logging
from typing import Dict, List, Optional, Any, Union

from pydantic import ValidationError

from models.scenario import Scenario, DEMO_USER_ID
from models.creatures import (
    Condition,
    CreatureInstance,
    CreatureRole,
    CreatureSelection,
    CreatureTemplate,
    CreatureVariant,
)
from tools.combat import clamp_health, toggle_condition
from tools.creature_catalog import resolve_max_health
from tools.roster import (
    RosterGroup,
    format_display_name,
    group_roster,
    labels_for_group,
    summarize_roster,
)
from tools.tracker_errors import (
    CreatureNotFoundError,
    InvalidHealthError,
    ScenarioValidationError,
)

logger = logging.getLogger("TrackerSession")


def build_instances(
    scenario: Scenario,
    template: CreatureTemplate,
    labels: List[int],
    start_position: int,
) -> List[CreatureInstance]:
    """Instantiate a template once per label, copying its combat stats."""
    health = resolve_max_health(template, scenario.player_count)
    if health <= 0:
        raise InvalidHealthError(
            f"'{template.name}' has invalid health ({template.hp!r}); nothing was added."
        )
    role = template.role
    instances = []
    for offset, label in enumerate(labels):
        instances.append(CreatureInstance(
            scenario_id=scenario.id,
            name=format_display_name(template.name, role, template.type, label),
            type=role,
            monster_type=template.type,
            max_health=health,
            current_health=health,
            abilities=list(template.special_actions),
            position=start_position + offset,
            group_name=template.name,
            label=label,
            move=template.move,
            attack=template.attack,
            range=template.range,
            special_traits=template.special_traits,
            immunities=list(template.immunities),
            notes=template.notes,
        ))
    return instances


class TrackerSession:
    """Scenario + roster state for one channel."""

    def __init__(self, state_manager, catalog, scenario: Scenario,
                 npcs: Optional[List[CreatureInstance]] = None):
        self.state_manager = state_manager
        self.catalog = catalog
        self.scenario = scenario
        self._npcs: List[CreatureInstance] = list(npcs or [])

    @property
    def npcs(self) -> List[CreatureInstance]:
        return list(self._npcs)

    async def load(self) -> List[CreatureInstance]:
        """(Re)read the roster from the database."""
        self._npcs = await self.state_manager.get_npcs(self.scenario.id)
        return self.npcs

    # ------------------------------------------------------------------
    # Scenario creation
    # ------------------------------------------------------------------

    @classmethod
    async def create_scenario(
        cls,
        state_manager,
        catalog,
        name: str,
        level: int,
        player_count: int,
        selections: Optional[List[CreatureSelection]] = None,
        user_id: str = DEMO_USER_ID,
    ) -> "TrackerSession":
        """Create a scenario together with its starting roster.

        Every template is resolved before anything is written, so an unknown
        creature or a broken boss formula leaves the database untouched.
        An empty selection list creates a scenario with an empty roster.
        """
        try:
            scenario = Scenario(name=name, level=level, player_count=player_count, user_id=user_id)
        except ValidationError as e:
            raise ScenarioValidationError(_describe_validation_error(e)) from e

        roster: List[CreatureInstance] = []
        for selection in selections or []:
            for variant, count in _variant_counts(selection):
                if count <= 0:
                    continue
                template = await catalog.get_template(selection.name, scenario.level, variant)
                labels = labels_for_group(roster, template.name, count)
                roster.extend(build_instances(scenario, template, labels, len(roster)))

        await state_manager.create_scenario(scenario, roster)
        return cls(state_manager, catalog, scenario, roster)

    @classmethod
    async def open(cls, state_manager, catalog, scenario_id: str) -> Optional["TrackerSession"]:
        """Load an existing scenario, or None if it does not exist."""
        scenario = await state_manager.get_scenario(scenario_id)
        if scenario is None:
            return None
        session = cls(state_manager, catalog, scenario)
        await session.load()
        return session

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_npc(self, npc_id: str) -> CreatureInstance:
        for npc in self._npcs:
            if npc.id == npc_id:
                return npc
        raise CreatureNotFoundError(f"Creature {npc_id} is not in this scenario.")

    def find_npc(self, query: str) -> CreatureInstance:
        """Match by id or display name (case-insensitive).

        A reused label can leave a defeated creature and a live one with the
        same name; the live one wins.
        """
        for npc in self._npcs:
            if npc.id == query:
                return npc
        wanted = query.strip().lower()
        matches = [npc for npc in self._npcs if npc.name.lower() == wanted]
        if matches:
            return min(matches, key=lambda n: n.is_defeated)
        raise CreatureNotFoundError(f"No creature named '{query}' in this scenario.")

    def groups(self) -> Dict[str, RosterGroup]:
        return group_roster(self._npcs)

    def summary(self) -> Dict[str, int]:
        return summarize_roster(self._npcs)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def _apply(self, npc: CreatureInstance, updates: Dict[str, Any]) -> CreatureInstance:
        await self.state_manager.update_npc(npc.id, updates)
        updated = npc.model_copy(update=updates)
        self._npcs = [updated if n.id == npc.id else n for n in self._npcs]
        return updated

    async def set_health(self, npc_id: str, value: int) -> CreatureInstance:
        npc = self.get_npc(npc_id)
        return await self._apply(npc, {"current_health": clamp_health(value, npc.max_health)})

    async def adjust_health(self, npc_id: str, delta: int) -> CreatureInstance:
        npc = self.get_npc(npc_id)
        return await self.set_health(npc_id, npc.current_health + delta)

    async def defeat(self, npc_id: str) -> CreatureInstance:
        return await self.set_health(npc_id, 0)

    async def heal_full(self, npc_id: str) -> CreatureInstance:
        npc = self.get_npc(npc_id)
        return await self.set_health(npc_id, npc.max_health)

    async def toggle_condition(self, npc_id: str, condition: Union[Condition, str]) -> CreatureInstance:
        npc = self.get_npc(npc_id)
        return await self._apply(npc, {"conditions": toggle_condition(npc.conditions, condition)})

    async def add_creatures(
        self,
        name: str,
        variant: Union[CreatureVariant, str],
        count: int = 1,
    ) -> List[CreatureInstance]:
        """Add `count` creatures of one variant, numbered into their group."""
        if count <= 0:
            return []
        template = await self.catalog.get_template(name, self.scenario.level, variant)
        labels = labels_for_group(self._npcs, template.name, count)
        start = max((n.position for n in self._npcs), default=-1) + 1
        instances = build_instances(self.scenario, template, labels, start)
        await self.state_manager.insert_npcs(instances)
        self._npcs.extend(instances)
        logger.info(
            f"Added {count}x {template.name} ({template.type}) to {self.scenario.name}: "
            f"labels {labels}"
        )
        return instances

    async def remove(self, npc_id: str) -> CreatureInstance:
        npc = self.get_npc(npc_id)
        await self.state_manager.delete_npc(npc_id)
        self._npcs = [n for n in self._npcs if n.id != npc_id]
        return npc


def _variant_counts(selection: CreatureSelection):
    if selection.role == CreatureRole.BOSS:
        return [(CreatureVariant.BOSS, selection.normal_count)]
    return [
        (CreatureVariant.NORMAL, selection.normal_count),
        (CreatureVariant.ELITE, selection.elite_count),
    ]


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = " → ".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class SessionRegistry:
    """Active TrackerSession per Discord channel."""

    def __init__(self):
        self._sessions: Dict[int, TrackerSession] = {}

    def get(self, channel_id: int) -> Optional[TrackerSession]:
        return self._sessions.get(channel_id)

    def set(self, channel_id: int, session: TrackerSession) -> None:
        self._sessions[channel_id] = session
        logger.info(f"Channel {channel_id} now tracking '{session.scenario.name}'")

    def close(self, channel_id: int) -> Optional[TrackerSession]:
        return self._sessions.pop(channel_id, None)

    def channels_for(self, scenario_id: str) -> List[int]:
        """Channels currently tracking `scenario_id`."""
        return [cid for cid, s in self._sessions.items() if s.scenario.id == scenario_id]

    def __len__(self) -> int:
        return len(self._sessions)
