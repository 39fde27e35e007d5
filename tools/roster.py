"""
Roster — Numbering and display grouping for creatures on the board.

Pure Python, no database or Discord imports.

Every creature of the same base name (across Normal/Elite/Boss) shares one
number space. New creatures take the lowest free numbers among the *alive*
members of their group, so "Bandit Guard Normal 3" is reused once #3 goes
down instead of the numbers growing forever.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from models.creatures import CreatureInstance, CreatureRole, CreatureVariant

OTHER_GROUP = "Other"

_TRAILING_NUMBER_RE = re.compile(r"(\d+)\s*$")


def extract_label(name: str) -> Optional[int]:
    """Trailing integer of a display name, or None."""
    match = _TRAILING_NUMBER_RE.search(name or "")
    if not match:
        return None
    value = int(match.group(1))
    return value if value > 0 else None


def label_of(npc: CreatureInstance) -> Optional[int]:
    """The stored label, falling back to the name suffix for older rows."""
    if npc.label is not None:
        return npc.label
    return extract_label(npc.name)


def group_key(npc: CreatureInstance) -> str:
    return npc.group_name or OTHER_GROUP


def next_labels(existing: Iterable[int], count: int) -> List[int]:
    """The `count` lowest positive integers not in `existing`, ascending.

    Gaps below and between existing labels are filled first; after that
    numbering continues past the highest label.
    """
    if count <= 0:
        return []
    taken = sorted({label for label in existing if label and label > 0})

    available: List[int] = []
    candidate = 1
    for label in taken:
        while candidate < label and len(available) < count:
            available.append(candidate)
            candidate += 1
        if len(available) >= count:
            break
        candidate = label + 1

    while len(available) < count:
        available.append(candidate)
        candidate += 1
    return available


def labels_for_group(roster: Iterable[CreatureInstance], group_name: str, count: int) -> List[int]:
    """Labels for `count` new members of `group_name` given the current roster.

    Defeated creatures stay on the board but do not hold on to their number.
    """
    alive_labels = [
        label_of(npc)
        for npc in roster
        if group_key(npc) == group_name and not npc.is_defeated
    ]
    return next_labels([label for label in alive_labels if label is not None], count)


def format_display_name(base_name: str, role: str, variant: str, label: int) -> str:
    """'Bandit Guard Elite 3' for monsters, 'Bandit Commander 1' for bosses."""
    if role == CreatureRole.BOSS or variant == CreatureVariant.BOSS:
        return f"{base_name} {label}"
    return f"{base_name} {CreatureVariant(variant).value} {label}"


# ----------------------------------------------------------------------
# Display grouping
# ----------------------------------------------------------------------

@dataclass
class RosterGroup:
    """One group of same-name creatures, split for display."""

    name: str
    alive: List[CreatureInstance] = field(default_factory=list)
    defeated: List[CreatureInstance] = field(default_factory=list)

    @property
    def members(self) -> List[CreatureInstance]:
        """Alive first, then defeated."""
        return self.alive + self.defeated


def _display_order(npc: CreatureInstance):
    label = label_of(npc)
    # Numbered creatures first by number, unnumbered after by name
    return (label is None, label or 0, npc.name)


def group_roster(npcs: Iterable[CreatureInstance]) -> Dict[str, RosterGroup]:
    """Group a flat roster by group name for display.

    Groups are ordered by their earliest position on the board. Recomputed
    from scratch on every call; the same input always gives the same output.
    """
    ordered = sorted(npcs, key=lambda n: (n.position, n.name))
    groups: Dict[str, RosterGroup] = {}
    for npc in ordered:
        key = group_key(npc)
        group = groups.setdefault(key, RosterGroup(name=key))
        if npc.is_defeated:
            group.defeated.append(npc)
        else:
            group.alive.append(npc)

    for group in groups.values():
        group.alive.sort(key=_display_order)
        group.defeated.sort(key=_display_order)
    return groups


def summarize_roster(npcs: Iterable[CreatureInstance]) -> Dict[str, int]:
    """Header counts: monsters, bosses, alive, defeated."""
    summary = {"monsters": 0, "bosses": 0, "alive": 0, "defeated": 0}
    for npc in npcs:
        if npc.type == CreatureRole.BOSS:
            summary["bosses"] += 1
        else:
            summary["monsters"] += 1
        if npc.is_defeated:
            summary["defeated"] += 1
        else:
            summary["alive"] += 1
    return summary
