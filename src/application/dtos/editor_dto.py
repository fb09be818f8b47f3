from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from src.domain.entities.snapshot import ImageSnapshot


class SnapshotInfo(BaseModel):
    """Metadata of one image in the edit history."""
    id: str = Field(..., description="Unique identifier of the snapshot")
    name: str = Field(..., description="File name of the snapshot", examples=["adjusted-1718000000000.png"])
    width: int = Field(..., description="Width in native pixels", gt=0)
    height: int = Field(..., description="Height in native pixels", gt=0)
    mime_type: str = Field(..., description="MIME type of the encoded bytes", examples=["image/png"])
    created_at: datetime = Field(..., description="When the snapshot was produced")

    @classmethod
    def from_entity(cls, snapshot: ImageSnapshot) -> "SnapshotInfo":
        return cls(
            id=snapshot.id,
            name=snapshot.name,
            width=snapshot.width,
            height=snapshot.height,
            mime_type=snapshot.mime_type,
            created_at=snapshot.created_at,
        )


class SelectionInfo(BaseModel):
    x: float
    y: float
    width: float
    height: float
    displayed_width: int
    displayed_height: int


class EditorStateResponse(BaseModel):
    """Observable state of the single-image editor."""
    mode: str = Field(..., description="'empty', 'single' or 'batch'", examples=["single"])
    active_tab: str = Field(..., description="Active tool tab", examples=["retouch"])
    cursor: int = Field(..., description="Index of the displayed snapshot, -1 when empty")
    history_length: int = Field(..., description="Number of snapshots in the history", ge=0)
    can_undo: bool
    can_redo: bool
    current: SnapshotInfo | None = Field(None, description="Snapshot currently displayed")
    original: SnapshotInfo | None = Field(None, description="First snapshot of the session")
    selection: SelectionInfo | None = Field(None, description="Pending selection rectangle")
    masking_enabled: bool = False
    is_loading: bool = False
    error: str | None = Field(None, description="Last user-facing error, if any")


class UploadResponse(BaseModel):
    mode: str = Field(..., description="'single' or 'batch'")
    state: EditorStateResponse


class PromptRequest(BaseModel):
    """Request body for edit, filter and adjustment operations."""
    prompt: str = Field(..., description="What to change", examples=["warmer lighting"])


class SelectionRequest(BaseModel):
    """Rectangle drawn over the displayed image, in displayed-image pixels."""
    x: float = Field(..., description="Left edge", examples=[20.0])
    y: float = Field(..., description="Top edge", examples=[10.0])
    width: float = Field(..., description="Selection width", ge=0, examples=[120.0])
    height: float = Field(..., description="Selection height", ge=0, examples=[80.0])
    displayed_width: int = Field(..., description="Width the image is displayed at", gt=0, examples=[640])
    displayed_height: int = Field(..., description="Height the image is displayed at", gt=0, examples=[480])


class CropRequest(BaseModel):
    device_pixel_ratio: float = Field(
        1.0, description="Display pixel density used to rasterize the crop", gt=0, le=8, examples=[2.0]
    )


class ExpandRequest(BaseModel):
    aspect: str = Field(
        ...,
        description="Target aspect ratio",
        pattern="^(16:9|4:3|1:1|3:2)$",
        examples=["16:9"],
    )


class TabRequest(BaseModel):
    tab: str = Field(..., description="Tool tab", pattern="^(retouch|adjust|filters|crop|expand)$")
