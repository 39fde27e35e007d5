"""
Tracker Error Types — Structured exception hierarchy.

Lets the Discord layer tell a backend outage apart from a bad request
(unknown creature, broken boss formula) and phrase the reply accordingly.
None of these are retried automatically.
"""


class TrackerError(Exception):
    """Base class for all tracker errors."""
    pass


class NotConnectedError(TrackerError):
    """The StateManager has no live database connection."""
    pass


class TrackerStoreError(TrackerError):
    """A database call failed (network, server error, write rejected)."""
    pass


class TemplateNotFoundError(TrackerError):
    """No monster/boss stat line exists for the requested name, level and variant."""
    pass


class InvalidHealthError(TrackerError):
    """A template resolved to non-positive health (e.g. malformed boss formula)."""
    pass


class ScenarioValidationError(TrackerError):
    """Scenario inputs failed presence or range checks."""
    pass


class CreatureNotFoundError(TrackerError):
    """The referenced creature instance is not in the current roster."""
    pass
