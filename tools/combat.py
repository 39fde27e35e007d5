"""
Combat helpers — health clamping and condition toggles.

Pure functions; the TrackerSession decides when to persist the results.
"""

from typing import List, Union

from models.creatures import Condition


def clamp_health(value: int, max_health: int) -> int:
    """Keep a requested health value inside [0, max_health]."""
    return max(0, min(int(value), max_health))


def toggle_condition(conditions: List[str], condition: Union[Condition, str]) -> List[str]:
    """Flip membership of `condition`. Returns a new list; order is preserved."""
    value = Condition(condition).value
    current = [Condition(c).value for c in conditions]
    if value in current:
        return [c for c in current if c != value]
    return current + [value]
