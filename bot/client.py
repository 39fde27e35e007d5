"""
Haven Tracker — Discord Bot Client

Core bot setup, shared services, and the entry point.
All /commands live in Cogs (bot/cogs/). Scenario and roster state lives in
one TrackerSession per channel (tools/tracker_session.py).
"""

import os
import asyncio
import logging
import discord
from discord.ext import commands
from dotenv import load_dotenv

from models.scenario import DEMO_USER_ID
from tools.state_manager import StateManager
from tools.creature_catalog import CreatureCatalog
from tools.asset_store import AssetStore
from tools.tracker_session import SessionRegistry

logger = logging.getLogger("Tracker_Bot")

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------
load_dotenv()
DISCORD_TOKEN = os.getenv("DISCORD_BOT_TOKEN")
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB = os.getenv("MONGODB_DB", "haven_tracker")
ASSET_BASE_URL = os.getenv("ASSET_BASE_URL", "http://localhost:8000/assets")

# No authentication: every scenario belongs to this one identity
TRACKER_USER_ID = os.getenv("TRACKER_USER_ID", DEMO_USER_ID)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
if not os.path.exists("logs"):
    os.makedirs("logs")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.FileHandler("logs/haven_tracker.log", encoding="utf-8"),
        logging.StreamHandler(),
    ],
)

# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------
state_manager = StateManager(uri=MONGODB_URI, db_name=MONGODB_DB)  # async connect happens in on_ready
catalog = CreatureCatalog(state_manager)
asset_store = AssetStore(state_manager, base_url=ASSET_BASE_URL)
sessions = SessionRegistry()

# ---------------------------------------------------------------------------
# Discord Bot Instance
# ---------------------------------------------------------------------------
intents = discord.Intents.default()
bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)

# Attach shared services to bot so cogs can access them via self.bot
bot.state_manager = state_manager
bot.catalog = catalog
bot.asset_store = asset_store
bot.sessions = sessions
bot.tracker_user_id = TRACKER_USER_ID


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------
@bot.event
async def on_ready():
    logger.info(f"Logged in as {bot.user.name} ({bot.user.id})")

    if await state_manager.connect():
        logger.info("StateManager connected — scenarios can be created and loaded.")
    else:
        logger.warning("StateManager unavailable — every tracker command will report a database error.")

    try:
        synced = await bot.tree.sync()
        logger.info(f"Synced {len(synced)} slash command(s).")
    except discord.HTTPException as e:
        logger.error(f"Slash command sync failed: {e}")

    print("Haven Tracker online.")


# ---------------------------------------------------------------------------
# Cog Loading & Entry Point
# ---------------------------------------------------------------------------
async def load_cogs():
    """Load all Cog extensions."""
    await bot.load_extension("bot.cogs.scenario_cog")
    await bot.load_extension("bot.cogs.tracker_cog")
    logger.info("All Cogs loaded.")


async def main():
    """Async entry point — load cogs then start the bot."""
    try:
        async with bot:
            await load_cogs()
            await bot.start(DISCORD_TOKEN)
    finally:
        await state_manager.close()


def run():
    """Synchronous entry point for scripts."""
    if not DISCORD_TOKEN:
        print("Error: DISCORD_BOT_TOKEN not found via os.getenv")
        return
    asyncio.run(main())


if __name__ == "__main__":
    run()
