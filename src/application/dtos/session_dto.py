from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SavedSessionResponse(BaseModel):
    """Summary of the saved session offered for restoration."""
    exists: bool = Field(..., description="Whether a saved session is available")
    image_count: int = Field(0, description="Number of snapshots in the saved history", ge=0)
    cursor_index: int | None = Field(None, description="Saved cursor position")
    saved_at: datetime | None = Field(None, description="When the session was last saved")
