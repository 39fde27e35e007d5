"""
AssetStore — Creature portraits and theme art stored in GridFS buckets.

Buckets:
  monsters — monster portraits (gh-<name>.png)
  bosses   — boss portraits
  themes   — background / logo art

Files are served by an external static host at ASSET_BASE_URL/<bucket>/<file>.
Lookups here are best-effort: any miss or error falls back to a fixed image
(or None for theme art) and is only logged, never raised.
"""

import os
import re
import logging
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import quote

from motor.motor_asyncio import AsyncIOMotorGridFSBucket

from models.creatures import CreatureRole

logger = logging.getLogger("AssetStore")

FALLBACK_IMAGE = "gh-poti.png"
THEME_BUCKET = "themes"


@dataclass
class ThemeAssets:
    background: Optional[str] = None
    logo: Optional[str] = None


def bucket_for(role: str) -> str:
    return "bosses" if role == CreatureRole.BOSS else "monsters"


def normalize_creature_name(name: str) -> str:
    """'Bandit Guard' -> 'bandit-guard'."""
    cleaned = re.sub(r"[^a-z0-9\s]", "", name.lower())
    return re.sub(r"\s+", "-", cleaned.strip())


def match_creature_file(name: str, files: List[str]) -> Optional[str]:
    """Best filename for a creature: full-name match, then any word, then the fallback."""
    normalized = normalize_creature_name(name)
    if normalized:
        for f in files:
            if normalized in f.lower():
                return f
        words = [w for w in normalized.split("-") if len(w) > 2]
        for f in files:
            if any(w in f.lower() for w in words):
                return f
    if FALLBACK_IMAGE in files:
        return FALLBACK_IMAGE
    return None


class AssetStore:
    """Resolves public URLs for creature and theme images."""

    def __init__(self, state_manager, base_url: Optional[str] = None):
        self.state_manager = state_manager
        self.base_url = (base_url or os.getenv("ASSET_BASE_URL", "http://localhost:8000/assets")).rstrip("/")

    def public_url(self, bucket: str, filename: str) -> str:
        return f"{self.base_url}/{bucket}/{quote(filename)}"

    def fallback_url(self, role: str) -> str:
        return self.public_url(bucket_for(role), FALLBACK_IMAGE)

    async def list_bucket_files(self, bucket: str) -> List[str]:
        """Filenames in a bucket. Empty list on any error."""
        try:
            grid = AsyncIOMotorGridFSBucket(self.state_manager.database, bucket_name=bucket)
            names = []
            async for grid_out in grid.find({}):
                names.append(grid_out.filename)
            return names
        except Exception as e:
            logger.warning(f"Could not list bucket '{bucket}': {e}")
            return []

    async def creature_image_url(self, name: str, role: str) -> str:
        """Portrait URL for a creature, or the role's fallback image."""
        bucket = bucket_for(role)
        files = await self.list_bucket_files(bucket)
        match = match_creature_file(name, files)
        if match is None:
            logger.debug(f"No portrait for '{name}' in {bucket}, using fallback")
            return self.fallback_url(role)
        return self.public_url(bucket, match)

    async def theme_assets(self) -> ThemeAssets:
        assets = ThemeAssets()
        for filename in await self.list_bucket_files(THEME_BUCKET):
            lowered = filename.lower()
            if "background" in lowered or "bg" in lowered:
                assets.background = self.public_url(THEME_BUCKET, filename)
            if "logo" in lowered:
                assets.logo = self.public_url(THEME_BUCKET, filename)
        return assets
