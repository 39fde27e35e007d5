"""
Scenario schema — one tracked scenario at a fixed level and party size.

Created once when the table sits down; never edited afterwards.
"""

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

DEMO_USER_ID = "demo-user"


class Scenario(BaseModel):
    """Schema for a scenario document."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    level: int = Field(default=1, ge=0, le=7)
    player_count: int = Field(default=2, ge=1, le=4)
    user_id: str = DEMO_USER_ID
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Scenario name cannot be empty")
        return v

    model_config = {"extra": "ignore"}
