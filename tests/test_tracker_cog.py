"""
Tests for bot/cogs/tracker_cog.py — command callbacks and autocomplete with
a mocked Discord interaction.
"""

import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

from conftest import FakeCatalog, make_npc
from models.scenario import Scenario
from bot.cogs.tracker_cog import TrackerCog
from tools.tracker_errors import TrackerStoreError
from tools.tracker_session import SessionRegistry, TrackerSession


def _interaction(channel_id=7):
    interaction = MagicMock()
    interaction.channel_id = channel_id
    interaction.response.defer = AsyncMock()
    interaction.response.send_message = AsyncMock()
    interaction.response.is_done = MagicMock(return_value=True)
    interaction.followup.send = AsyncMock()
    return interaction


def _cog(npcs):
    state_manager = MagicMock()
    state_manager.delete_npc = AsyncMock()
    state_manager.insert_npcs = AsyncMock(side_effect=lambda npcs: npcs)
    session = TrackerSession(
        state_manager, FakeCatalog(), Scenario(id="scn-1", name="Black Barrow", player_count=3), npcs
    )
    sessions = SessionRegistry()
    sessions.set(7, session)

    bot = MagicMock()
    bot.sessions = sessions
    bot.asset_store = MagicMock()
    bot.catalog = MagicMock()
    bot.catalog.monster_names = AsyncMock(return_value=["Bandit Guard", "Living Bones"])
    bot.catalog.boss_names = AsyncMock(return_value=["Bandit Commander"])
    return TrackerCog(bot), session, state_manager


class TestRemoveCommand(unittest.TestCase):
    def test_defers_before_delete(self):
        npc = make_npc("Living Bones Normal 1")
        cog, session, sm = _cog([npc])
        interaction = _interaction()
        order = []
        interaction.response.defer.side_effect = lambda *a, **k: order.append("defer")
        sm.delete_npc.side_effect = lambda *a, **k: order.append("delete")

        asyncio.run(cog.remove_cmd.callback(cog, interaction, npc.id))

        self.assertEqual(order, ["defer", "delete"])
        interaction.followup.send.assert_awaited_once()
        interaction.response.send_message.assert_not_called()
        self.assertEqual(session.npcs, [])

    def test_backend_failure_replies_via_followup(self):
        npc = make_npc("Living Bones Normal 1")
        cog, session, sm = _cog([npc])
        sm.delete_npc.side_effect = TrackerStoreError("down")
        interaction = _interaction()

        asyncio.run(cog.remove_cmd.callback(cog, interaction, npc.id))

        interaction.response.defer.assert_awaited_once()
        self.assertTrue(interaction.followup.send.await_args.kwargs["ephemeral"])
        self.assertEqual(len(session.npcs), 1)


class TestAutocomplete(unittest.TestCase):
    def test_creature_choices_mark_defeated(self):
        alive = make_npc("Bandit Guard Normal 2", group_name="Bandit Guard", label=2)
        fallen = make_npc("Bandit Guard Normal 2", group_name="Bandit Guard", label=2, current_health=0)
        cog, _, _ = _cog([fallen, alive])

        choices = asyncio.run(cog.creature_autocomplete(_interaction(), "guard"))

        self.assertEqual(
            [(c.name, c.value) for c in choices],
            [("Bandit Guard Normal 2 (defeated)", fallen.id), ("Bandit Guard Normal 2", alive.id)],
        )

    def test_template_choices_from_catalog(self):
        cog, _, _ = _cog([])
        choices = asyncio.run(cog.template_autocomplete(_interaction(), "band"))
        self.assertEqual([c.name for c in choices], ["Bandit Commander", "Bandit Guard"])

    def test_template_choices_on_backend_error(self):
        cog, _, _ = _cog([])
        cog.catalog.monster_names.side_effect = TrackerStoreError("down")
        self.assertEqual(asyncio.run(cog.template_autocomplete(_interaction(), "")), [])


if __name__ == "__main__":
    unittest.main()
