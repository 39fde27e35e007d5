"""
StateManager — Async MongoDB service for all tracker state.

Every roster write passes through Pydantic validation. Raw dicts are never
written directly. This is the single backend client for:

  scenarios — one document per tracked scenario
  npcs      — creature instances on the board
  monsters  — read-only stat table (name, level, Normal/Elite)
  bosses    — read-only stat table (name, level), hp as "<N>×C"

Failures surface as TrackerStoreError so callers can leave their local
state untouched and tell the user.

Requires:
  - MONGODB_URI in .env (default: mongodb://localhost:27017)
  - Database name: haven_tracker (configurable)
"""

import os
import re
import logging
from contextlib import contextmanager
from typing import List, Optional, Dict, Any

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from models.scenario import Scenario, DEMO_USER_ID
from models.creatures import CreatureInstance
from tools.tracker_errors import (
    NotConnectedError,
    TrackerStoreError,
    CreatureNotFoundError,
)

logger = logging.getLogger("StateManager")


def _exact_name(name: str) -> Dict[str, Any]:
    return {"$regex": f"^{re.escape(name)}$", "$options": "i"}


@contextmanager
def _backend_call(action: str):
    """Translate driver failures into TrackerStoreError."""
    try:
        yield
    except PyMongoError as e:
        logger.error(f"MongoDB {action} failed: {e}")
        raise TrackerStoreError(f"Database error while trying to {action}.") from e


class StateManager:
    """Async MongoDB-backed state manager with Pydantic validation on every write."""

    def __init__(
        self,
        uri: Optional[str] = None,
        db_name: Optional[str] = None,
    ):
        self.uri = uri or os.getenv("MONGODB_URI", "mongodb://localhost:27017")
        self.db_name = db_name or os.getenv("MONGODB_DB", "haven_tracker")
        self._client: Any = None
        self._db: Any = None

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        """Connect to MongoDB. Returns True on success."""
        try:
            self._client = AsyncIOMotorClient(self.uri)
            # Verify connectivity
            await self._client.admin.command("ping")
            self._db = self._client[self.db_name]
            logger.info(f"StateManager connected to MongoDB: {self.db_name}")
            return True
        except PyMongoError as e:
            logger.error(f"MongoDB connection failed: {e}")
            self._client = None
            self._db = None
            return False

    async def close(self):
        """Close the MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._db = None

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    @property
    def database(self) -> Any:
        self._require_connection()
        return self._db

    def _require_connection(self):
        if not self.is_connected:
            raise NotConnectedError("StateManager is not connected to MongoDB.")

    async def _collect(self, cursor) -> List[Dict[str, Any]]:
        results = []
        async for doc in cursor:
            doc.pop("_id", None)
            results.append(doc)
        return results

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------

    async def get_scenario(self, scenario_id: str) -> Optional[Scenario]:
        self._require_connection()
        with _backend_call("load scenario"):
            doc = await self._db.scenarios.find_one({"id": scenario_id})
        if not doc:
            return None
        doc.pop("_id", None)
        return Scenario.model_validate(doc)

    async def list_scenarios(self, user_id: str = DEMO_USER_ID, limit: int = 10) -> List[Scenario]:
        """Most recent scenarios first."""
        self._require_connection()
        with _backend_call("list scenarios"):
            cursor = self._db.scenarios.find({"user_id": user_id}).sort("created_at", -1).limit(limit)
            docs = await self._collect(cursor)
        return [Scenario.model_validate(d) for d in docs]

    async def create_scenario(
        self, scenario: Scenario, npcs: Optional[List[CreatureInstance]] = None
    ) -> Scenario:
        """Insert a scenario together with its initial roster.

        If the roster insert fails the scenario document and any creatures
        already written for it are removed again, so a half-created scenario
        never survives.
        """
        self._require_connection()
        with _backend_call("create scenario"):
            await self._db.scenarios.insert_one(scenario.model_dump())
        if npcs:
            try:
                await self.insert_npcs(npcs)
            except TrackerStoreError:
                logger.warning(f"Rolling back scenario {scenario.id} after roster insert failure")
                with _backend_call("roll back scenario"):
                    await self._db.npcs.delete_many({"scenario_id": scenario.id})
                    await self._db.scenarios.delete_one({"id": scenario.id})
                raise
        logger.info(f"Scenario created: {scenario.name} ({scenario.id}) with {len(npcs or [])} creatures")
        return scenario

    async def delete_scenario(self, scenario_id: str) -> bool:
        """Delete a scenario and every creature in it."""
        self._require_connection()
        with _backend_call("delete scenario"):
            await self._db.npcs.delete_many({"scenario_id": scenario_id})
            result = await self._db.scenarios.delete_one({"id": scenario_id})
        return result.deleted_count > 0

    # ------------------------------------------------------------------
    # NPCs (creature instances)
    # ------------------------------------------------------------------

    async def get_npcs(self, scenario_id: str) -> List[CreatureInstance]:
        """The scenario's roster ordered by position."""
        self._require_connection()
        with _backend_call("load roster"):
            cursor = self._db.npcs.find({"scenario_id": scenario_id}).sort("position", 1)
            docs = await self._collect(cursor)
        return [CreatureInstance.model_validate(d) for d in docs]

    async def insert_npcs(self, npcs: List[CreatureInstance]) -> List[CreatureInstance]:
        self._require_connection()
        if not npcs:
            return []
        docs = [npc.model_dump() for npc in npcs]
        with _backend_call("add creatures"):
            await self._db.npcs.insert_many(docs)
        return npcs

    async def update_npc(self, npc_id: str, updates: Dict[str, Any]) -> None:
        """Apply a partial update to one creature instance."""
        self._require_connection()
        with _backend_call("update creature"):
            result = await self._db.npcs.update_one({"id": npc_id}, {"$set": updates})
        if result.matched_count == 0:
            raise CreatureNotFoundError(f"Creature {npc_id} no longer exists.")

    async def delete_npc(self, npc_id: str) -> None:
        self._require_connection()
        with _backend_call("remove creature"):
            result = await self._db.npcs.delete_one({"id": npc_id})
        if result.deleted_count == 0:
            raise CreatureNotFoundError(f"Creature {npc_id} no longer exists.")

    # ------------------------------------------------------------------
    # Reference tables (read-only)
    # ------------------------------------------------------------------

    async def find_monsters(self, level: int) -> List[Dict[str, Any]]:
        """Every monster row (Normal and Elite) for a level, ordered by name."""
        self._require_connection()
        with _backend_call("load monsters"):
            cursor = self._db.monsters.find({"level": level}).sort("name", 1)
            return await self._collect(cursor)

    async def find_bosses(self, level: int) -> List[Dict[str, Any]]:
        self._require_connection()
        with _backend_call("load bosses"):
            cursor = self._db.bosses.find({"level": level}).sort("name", 1)
            return await self._collect(cursor)

    async def find_monster(self, name: str, level: int, variant: str) -> Optional[Dict[str, Any]]:
        self._require_connection()
        with _backend_call("look up monster"):
            doc = await self._db.monsters.find_one(
                {"name": _exact_name(name), "level": level, "type": variant}
            )
        if doc:
            doc.pop("_id", None)
        return doc

    async def find_boss(self, name: str, level: int) -> Optional[Dict[str, Any]]:
        self._require_connection()
        with _backend_call("look up boss"):
            doc = await self._db.bosses.find_one({"name": _exact_name(name), "level": level})
        if doc:
            doc.pop("_id", None)
        return doc

    async def distinct_names(self, collection: str, level: int = 0) -> List[str]:
        """Unique creature names in a reference table, sorted."""
        self._require_connection()
        with _backend_call(f"list {collection}"):
            names = await self._db[collection].distinct("name", {"level": level})
        return sorted(names)
